"""Link analyzer for accessible text and target=_blank safety."""

import structlog

from ..models import LinkIssue, Severity
from .base import BaseAnalyzer, PageSnapshot, attr_text

logger = structlog.get_logger()

MAX_LINK_HTML = 200


class LinkAnalyzer(BaseAnalyzer):
    """Checks every <a> element on the page."""

    name = "links"

    async def analyze(self, snapshot: PageSnapshot) -> list[LinkIssue]:
        issues = []

        for link in snapshot.soup.find_all("a"):
            href = link.get("href")
            text = link.get_text().strip()
            link_html = _truncate(str(link))

            if not text and link.find("img", alt=True) is None:
                issues.append(
                    LinkIssue(
                        type="empty_link_text",
                        element="a",
                        href=href,
                        link_html=link_html,
                        message="Link has no accessible text",
                        severity=Severity.ERROR,
                    )
                )

            rel_tokens = attr_text(link.get("rel")).lower().split()
            if attr_text(link.get("target")) == "_blank" and "noopener" not in rel_tokens:
                issues.append(
                    LinkIssue(
                        type="missing_noopener",
                        element="a",
                        href=href,
                        link_text=text or None,
                        link_html=link_html,
                        message='External link missing rel="noopener"',
                        severity=Severity.WARNING,
                    )
                )

        return issues


def _truncate(markup: str) -> str:
    if len(markup) <= MAX_LINK_HTML:
        return markup
    return markup[:MAX_LINK_HTML] + "..."
