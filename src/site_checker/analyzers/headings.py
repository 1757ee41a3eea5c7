"""Heading hierarchy analyzer."""

import structlog

from ..models import HeadingImage, HeadingIssue, HeadingNode, Severity
from .base import BaseAnalyzer, PageSnapshot, attr_text, filename_stem, parse_dimension, resolve_src

logger = structlog.get_logger()

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


class HeadingAnalyzer(BaseAnalyzer):
    """Checks h1-h6 usage and builds the heading outline."""

    name = "headings"

    async def analyze(self, snapshot: PageSnapshot) -> list[HeadingIssue]:
        issues = []
        headings = snapshot.soup.find_all(HEADING_TAGS)
        previous_level = 0

        for index, heading in enumerate(headings):
            level = int(heading.name[1])
            text = heading.get_text().strip()

            if not text and heading.find("img") is None:
                issues.append(
                    HeadingIssue(
                        type="empty_heading",
                        element=heading.name,
                        message="Empty heading found",
                        severity=Severity.ERROR,
                    )
                )

            if index > 0 and level > previous_level + 1:
                issues.append(
                    HeadingIssue(
                        type="skipped_heading_level",
                        element=heading.name,
                        message=f"Heading level skipped from h{previous_level} to h{level}",
                        severity=Severity.WARNING,
                    )
                )

            previous_level = level

        h1_count = sum(1 for heading in headings if heading.name == "h1")
        if h1_count == 0:
            issues.append(
                HeadingIssue(
                    type="missing_h1",
                    message="No h1 heading found",
                    severity=Severity.ERROR,
                )
            )
        elif h1_count > 1:
            issues.append(
                HeadingIssue(
                    type="multiple_h1",
                    element="h1",
                    message=f"Multiple h1 headings found ({h1_count})",
                    severity=Severity.WARNING,
                )
            )

        logger.debug("Heading analysis complete", url=snapshot.url, headings=len(headings), issues=len(issues))
        return issues

    def outline(self, snapshot: PageSnapshot) -> list[HeadingNode]:
        """All headings in document order, with any images they contain.

        An image-only heading takes its text from the images' alt, title or
        filename so the outline never shows a blank entry for it.
        """
        nodes = []

        for index, heading in enumerate(snapshot.soup.find_all(HEADING_TAGS)):
            images = []
            for img in heading.find_all("img"):
                src = img.get("src")
                images.append(
                    HeadingImage(
                        src=resolve_src(src, snapshot.url),
                        alt=attr_text(img.get("alt")),
                        title=attr_text(img.get("title")),
                        width=parse_dimension(img.get("width")),
                        height=parse_dimension(img.get("height")),
                        filename=filename_stem(src),
                    )
                )

            text = heading.get_text().strip()
            if not text and images:
                text = ", ".join(
                    image.alt or image.title or image.filename or "Untitled image"
                    for image in images
                )

            nodes.append(
                HeadingNode(
                    level=int(heading.name[1]),
                    tag=heading.name,
                    text=text,
                    index=index,
                    images=images,
                )
            )

        return nodes
