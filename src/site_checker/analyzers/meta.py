"""Meta/SEO analyzer for required tags and Open Graph coverage."""

from ..models import MetaInfo, MetaIssue, Severity
from .base import BaseAnalyzer, PageSnapshot, attr_text


def page_title(soup):
    """The document <title>, ignoring <title> children of inline SVG."""
    for title in soup.find_all("title"):
        if title.find_parent("svg") is None:
            return title
    return None


REQUIRED_META = [
    ("title", page_title, "Missing title tag"),
    ("description", lambda soup: soup.find("meta", attrs={"name": "description"}), "Missing meta description"),
    ("viewport", lambda soup: soup.find("meta", attrs={"name": "viewport"}), "Missing viewport meta tag"),
]

OG_TAGS = ["og:title", "og:description", "og:image", "og:url"]

OTHER_META = ["keywords", "author", "robots"]


class MetaAnalyzer(BaseAnalyzer):
    """Checks title/description/viewport presence and Open Graph tags."""

    name = "meta"

    async def analyze(self, snapshot: PageSnapshot) -> list[MetaIssue]:
        soup = snapshot.soup
        issues = []

        for name, find, message in REQUIRED_META:
            if find(soup) is None:
                issues.append(
                    MetaIssue(
                        type="missing_meta",
                        element=name,
                        message=message,
                        severity=Severity.ERROR,
                    )
                )

        missing_og = [tag for tag in OG_TAGS if soup.find("meta", attrs={"property": tag}) is None]
        if missing_og:
            issues.append(
                MetaIssue(
                    type="missing_og_tags",
                    message=f"Missing Open Graph tags: {', '.join(missing_og)}",
                    severity=Severity.INFO,
                )
            )

        return issues

    def collect(self, snapshot: PageSnapshot) -> list[MetaInfo]:
        """Title, description, viewport, OG, Twitter card and other meta values."""
        soup = snapshot.soup
        entries = []

        title = page_title(soup)
        if title is not None:
            text = title.get_text().strip()
            entries.append(MetaInfo(type="title", name="title", content=text, length=len(text)))

        for name in ("description", "viewport"):
            tag = soup.find("meta", attrs={"name": name})
            if tag is not None:
                content = attr_text(tag.get("content")).strip()
                length = len(content) if name == "description" else None
                entries.append(MetaInfo(type=name, name=name, content=content, length=length))

        for tag in soup.find_all("meta"):
            prop = attr_text(tag.get("property"))
            name = attr_text(tag.get("name"))
            content = attr_text(tag.get("content")).strip()

            if prop.startswith("og:"):
                entries.append(MetaInfo(type="og", name=prop, content=content, property=prop))
            elif name.startswith("twitter:"):
                entries.append(MetaInfo(type="twitter", name=name, content=content))
            elif name.lower() in OTHER_META:
                entries.append(MetaInfo(type="other", name=name.lower(), content=content))

        canonical = soup.find("link", rel="canonical")
        if canonical is not None:
            entries.append(MetaInfo(type="other", name="canonical", content=attr_text(canonical.get("href"))))

        return entries
