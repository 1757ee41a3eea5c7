"""HTML structure analyzer working on the markup as served.

Browsers and lenient parsers silently repair unbalanced or illegally nested
tags, so this analyzer tokenizes the raw response text itself instead of
reading the DOM. The tokenizer understands quoted attribute values,
comments, CDATA, doctype/processing instructions and raw-text elements.
"""

import re
from dataclasses import dataclass
from typing import Iterator

from ..models import HtmlStructureIssue, Severity
from .base import BaseAnalyzer, PageSnapshot

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "keygen",
    "link", "meta", "param", "source", "track", "wbr",
})

# End tag may be omitted in valid HTML
OPTIONAL_END_TAG = frozenset({
    "html", "head", "body", "p", "li", "dt", "dd", "option", "optgroup",
    "tr", "td", "th", "thead", "tbody", "tfoot", "colgroup", "rb", "rt", "rtc", "rp",
})

RAW_TEXT_ELEMENTS = frozenset({"script", "style", "textarea", "title"})

HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")

NESTING_RULES = frozenset(
    [
        ("p", "div"),
        ("p", "p"),
        ("a", "a"),
        ("button", "button"),
        ("button", "a"),
    ]
    + [(outer, inner) for outer in HEADINGS for inner in HEADINGS]
)

_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9:_-]*")
_CLASS_RE = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)
# A trailing slash only self-closes when it is not the end of an unquoted value
_SELF_CLOSING_RE = re.compile(r"""(?:^|[\s"'])/\s*$""")


@dataclass(frozen=True)
class TagToken:
    name: str
    is_end: bool
    self_closing: bool
    line: int
    class_name: str | None = None


def tokenize(markup: str) -> Iterator[TagToken]:
    """Yield start and end tags in document order."""
    length = len(markup)
    pos = 0
    line = 1
    line_pos = 0

    while True:
        start = markup.find("<", pos)
        if start == -1 or start + 1 >= length:
            return

        line += markup.count("\n", line_pos, start)
        line_pos = start

        if markup.startswith("<!--", start):
            pos = _skip_to(markup, "-->", start + 4)
            continue
        if markup.startswith("<![CDATA[", start):
            pos = _skip_to(markup, "]]>", start + 9)
            continue
        if markup[start + 1] in "!?":
            pos = _skip_to(markup, ">", start + 2)
            continue

        is_end = markup[start + 1] == "/"
        match = _NAME_RE.match(markup, start + 2 if is_end else start + 1)
        if match is None:
            pos = start + 1
            continue

        name = match.group(0).lower()
        close = _find_tag_end(markup, match.end())
        attributes = markup[match.end():close]
        pos = close + 1

        if is_end:
            yield TagToken(name=name, is_end=True, self_closing=False, line=line)
            continue

        class_match = _CLASS_RE.search(attributes)
        class_name = next((group for group in class_match.groups() if group is not None), None) if class_match else None

        yield TagToken(
            name=name,
            is_end=False,
            self_closing=_SELF_CLOSING_RE.search(attributes) is not None,
            line=line,
            class_name=class_name,
        )

        if name in RAW_TEXT_ELEMENTS:
            end_match = re.compile(rf"</{name}\b", re.IGNORECASE).search(markup, pos)
            pos = end_match.start() if end_match else length


def _skip_to(markup: str, marker: str, start: int) -> int:
    end = markup.find(marker, start)
    return len(markup) if end == -1 else end + len(marker)


def _find_tag_end(markup: str, start: int) -> int:
    """Index of the '>' closing a tag, ignoring any inside quoted values."""
    quote = None
    for index in range(start, len(markup)):
        char = markup[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ">":
            return index
    return len(markup)


def check_tag_balance(tokens: list[TagToken]) -> list[HtmlStructureIssue]:
    issues = []
    stack: list[TagToken] = []

    for token in tokens:
        if token.name in VOID_ELEMENTS:
            continue

        if not token.is_end:
            if not token.self_closing:
                stack.append(token)
            continue

        if not any(open_tag.name == token.name for open_tag in stack):
            issues.append(
                HtmlStructureIssue(
                    type="unmatched_closing_tag",
                    element=token.name,
                    message=f"Closing tag </{token.name}> has no matching opening tag",
                    severity=Severity.ERROR,
                    position=token.line,
                    suggestion=f"Remove </{token.name}> or add the missing <{token.name}>.",
                )
            )
            continue

        while stack:
            open_tag = stack.pop()
            if open_tag.name == token.name:
                break
            if open_tag.name not in OPTIONAL_END_TAG:
                issues.append(_unclosed(open_tag))

    issues.extend(_unclosed(open_tag) for open_tag in stack if open_tag.name not in OPTIONAL_END_TAG)
    return issues


def _unclosed(token: TagToken) -> HtmlStructureIssue:
    return HtmlStructureIssue(
        type="unclosed_tag",
        element=token.name,
        message=f"<{token.name}> tag is not closed",
        severity=Severity.ERROR,
        position=token.line,
        class_name=token.class_name,
        suggestion=f"Add </{token.name}> after the element's content.",
    )


def check_nesting(tokens: list[TagToken]) -> list[HtmlStructureIssue]:
    issues = []
    stack: list[str] = []

    for token in tokens:
        if token.name in VOID_ELEMENTS:
            continue

        if token.is_end:
            if token.name in stack:
                while stack.pop() != token.name:
                    pass
            continue

        parent = next((open_name for open_name in reversed(stack) if (open_name, token.name) in NESTING_RULES), None)
        if parent is not None:
            issues.append(
                HtmlStructureIssue(
                    type="invalid_nesting",
                    element=token.name,
                    message=f"<{token.name}> must not be nested inside <{parent}>",
                    severity=Severity.ERROR,
                    position=token.line,
                    class_name=token.class_name,
                    suggestion=f"Close <{parent}> before opening <{token.name}>, or use a different container element.",
                )
            )

        if not token.self_closing:
            stack.append(token.name)

    return issues


def check_markup(markup: str) -> list[HtmlStructureIssue]:
    """Tag balance and nesting issues, or success entries if there are none."""
    tokens = list(tokenize(markup))
    issues = check_tag_balance(tokens) + check_nesting(tokens)

    if issues:
        return issues

    return [
        HtmlStructureIssue(
            type="tag_balance",
            message="All tags are properly opened and closed",
            severity=Severity.SUCCESS,
        ),
        HtmlStructureIssue(
            type="element_nesting",
            message="No invalid element nesting found",
            severity=Severity.SUCCESS,
        ),
    ]


class HtmlStructureAnalyzer(BaseAnalyzer):
    """Reports unbalanced tags and illegal parent/child nesting."""

    name = "html_structure"

    async def analyze(self, snapshot: PageSnapshot) -> list[HtmlStructureIssue]:
        return check_markup(snapshot.source)
