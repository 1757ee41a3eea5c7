"""Tests for the raw-markup structure analyzer."""

import pytest

from site_checker.analyzers import HtmlStructureAnalyzer, PageSnapshot
from site_checker.analyzers.html_structure import check_markup, tokenize
from site_checker.models import Severity


def problems(markup: str):
    return [issue for issue in check_markup(markup) if issue.severity != Severity.SUCCESS]


class TestTokenizer:
    """Test cases for the tag tokenizer."""

    def test_quoted_angle_bracket(self):
        tokens = list(tokenize('<div data-x="a > b" class="box"><span>x</span></div>'))
        assert [(t.name, t.is_end) for t in tokens] == [
            ("div", False), ("span", False), ("span", True), ("div", True),
        ]
        assert tokens[0].class_name == "box"

    def test_skips_comments_and_scripts(self):
        markup = (
            "<!DOCTYPE html><!-- <div> -->"
            "<script>if (a < b) { document.write('<div>'); }</script>"
            "<![CDATA[ <p> ]]><p>ok</p>"
        )
        names = [t.name for t in tokenize(markup)]
        assert names == ["script", "script", "p", "p"]

    def test_line_numbers(self):
        tokens = list(tokenize("<div>\n\n<span>\n</span></div>"))
        assert [t.line for t in tokens] == [1, 3, 4, 4]


class TestHtmlStructure:
    """Test cases for tag balance and nesting checks."""

    def test_clean_markup_reports_success(self):
        markup = '<html><head><meta charset="utf-8"></head><body><div><img src="a.png"><br></div></body></html>'
        issues = check_markup(markup)

        assert len(issues) == 2
        assert all(issue.severity == Severity.SUCCESS for issue in issues)
        assert not any(issue.is_problem for issue in issues)

    def test_unmatched_closing_tag(self):
        issues = problems("<div><span>x</span></section></div>")

        assert len(issues) == 1
        assert issues[0].type == "unmatched_closing_tag"
        assert "no matching opening tag" in issues[0].message
        assert issues[0].severity == Severity.ERROR

    def test_unclosed_tag(self):
        issues = problems('<div class="wrapper"><section>text</div>')

        assert len(issues) == 1
        assert issues[0].type == "unclosed_tag"
        assert issues[0].element == "section"
        assert "not closed" in issues[0].message
        assert issues[0].suggestion == "Add </section> after the element's content."

    def test_unclosed_at_end_of_document(self):
        issues = problems('<main>\n<div class="card">')

        assert [issue.element for issue in issues] == ["main", "div"]
        assert issues[1].position == 2
        assert issues[1].class_name == "card"

    def test_optional_end_tags_allowed(self):
        assert problems("<ul><li>One<li>Two</ul><table><tr><td>A<td>B</table>") == []

    def test_self_closing_svg_children(self):
        assert problems('<svg><path d="M0 0"/><circle r="1" /></svg>') == []

    @pytest.mark.parametrize(
        "markup",
        [
            "<html><body><nav><a href=/about/>About</a></nav></body></html>",
            "<nav><a href=/about/ >About</a></nav>",
            "<div class=box/>text</div>",
        ],
    )
    def test_unquoted_value_ending_in_slash(self, markup):
        assert problems(markup) == []

    @pytest.mark.parametrize("markup", ["<br/>", "<div/>", "<div class='x' />", '<span id="y"/>'])
    def test_slash_token_self_closes(self, markup):
        tokens = list(tokenize(markup))
        assert tokens[0].self_closing

    @pytest.mark.parametrize(
        "markup, parent, child",
        [
            ("<p>text<div>block</div></p>", "p", "div"),
            ("<a href='/'>x<a href='/y'>y</a></a>", "a", "a"),
            ("<button>x<button>y</button></button>", "button", "button"),
            ("<button><a href='/'>go</a></button>", "button", "a"),
            ("<h2>Title <h3>Sub</h3></h2>", "h2", "h3"),
        ],
    )
    def test_invalid_nesting(self, markup, parent, child):
        nesting = [issue for issue in problems(markup) if issue.type == "invalid_nesting"]

        assert len(nesting) == 1
        assert nesting[0].element == child
        assert f"<{parent}>" in nesting[0].message
        assert nesting[0].severity == Severity.ERROR

    def test_idempotent(self):
        markup = "<div><p>a<div>b</div></p><span></div><footer>"
        assert check_markup(markup) == check_markup(markup)

    @pytest.mark.asyncio
    async def test_analyzer_prefers_raw_markup(self):
        """The rendered DOM is already repaired, so the raw body is checked."""
        snapshot = PageSnapshot(
            url="https://example.com/",
            html="<html><body><div></div></body></html>",
            raw_html="<html><body><div></body></html>",
        )
        issues = await HtmlStructureAnalyzer().analyze(snapshot)

        assert [issue.type for issue in issues] == ["unclosed_tag"]
