"""Tests for the heading analyzer."""

import pytest

from site_checker.analyzers import HeadingAnalyzer, PageSnapshot
from site_checker.models import Severity


def snapshot(body: str) -> PageSnapshot:
    return PageSnapshot(url="https://example.com/dir/page", html=f"<html><body>{body}</body></html>")


def of_type(issues, issue_type):
    return [issue for issue in issues if issue.type == issue_type]


class TestHeadingAnalyzer:
    """Test cases for HeadingAnalyzer."""

    @pytest.mark.asyncio
    async def test_missing_h1(self):
        """A page without h1 gets exactly one missing_h1 error."""
        issues = await HeadingAnalyzer().analyze(snapshot("<h2>Intro</h2><h3>More</h3>"))

        missing = of_type(issues, "missing_h1")
        assert len(missing) == 1
        assert missing[0].severity == Severity.ERROR

    @pytest.mark.asyncio
    async def test_multiple_h1_names_count(self):
        """Several h1 produce one warning naming the count."""
        issues = await HeadingAnalyzer().analyze(snapshot("<h1>A</h1><h1>B</h1><h1>C</h1>"))

        multiple = of_type(issues, "multiple_h1")
        assert len(multiple) == 1
        assert multiple[0].severity == Severity.WARNING
        assert "3" in multiple[0].message
        assert of_type(issues, "missing_h1") == []

    @pytest.mark.asyncio
    async def test_skipped_levels(self):
        """Each jump of more than one level warns once; decreases never do."""
        html = "<h1>A</h1><h3>B</h3><h4>C</h4><h2>D</h2><h5>E</h5><h1>F</h1>"
        issues = await HeadingAnalyzer().analyze(snapshot(html))

        skipped = of_type(issues, "skipped_heading_level")
        assert [issue.message for issue in skipped] == [
            "Heading level skipped from h1 to h3",
            "Heading level skipped from h2 to h5",
        ]
        assert all(issue.severity == Severity.WARNING for issue in skipped)

    @pytest.mark.asyncio
    async def test_first_heading_never_counts_as_skip(self):
        issues = await HeadingAnalyzer().analyze(snapshot("<h3>Start deep</h3><h1>Title</h1>"))
        assert of_type(issues, "skipped_heading_level") == []

    @pytest.mark.asyncio
    async def test_empty_heading(self):
        """Empty headings are errors unless they contain an image."""
        html = '<h1>Title</h1><h2>  </h2><h2><img src="/logo.png" alt="Logo"></h2>'
        issues = await HeadingAnalyzer().analyze(snapshot(html))

        empty = of_type(issues, "empty_heading")
        assert len(empty) == 1
        assert empty[0].element == "h2"
        assert empty[0].severity == Severity.ERROR

    def test_outline(self):
        """The outline lists every heading and names image-only headings."""
        html = (
            "<h1>Welcome</h1>"
            '<h2><img src="/img/banner-top.png" width="300" height="80"></h2>'
            '<h3><img src="//cdn.example.com/x.png" title="Shop"></h3>'
            "<h4></h4>"
        )
        nodes = HeadingAnalyzer().outline(snapshot(html))

        assert [node.tag for node in nodes] == ["h1", "h2", "h3", "h4"]
        assert nodes[0].text == "Welcome"
        assert nodes[1].text == "banner-top"
        assert nodes[1].images[0].src == "https://example.com/img/banner-top.png"
        assert nodes[1].images[0].width == 300
        assert nodes[2].text == "Shop"
        assert nodes[2].images[0].src == "https://cdn.example.com/x.png"
        assert nodes[3].is_empty is True
        assert nodes[1].to_dict()["hasImage"] is True
