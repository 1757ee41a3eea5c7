"""Image analyzer for alt text, dimensions, inline SVG and file size."""

import asyncio

import httpx
import structlog
from bs4 import Tag

from ..config import settings
from ..models import BasicAuth, ImageIssue, ImageRecord, Severity
from .base import BaseAnalyzer, PageSnapshot, attr_text, filename_stem, parse_dimension, resolve_src

logger = structlog.get_logger()

SVG_SUGGESTION = (
    'Add role="img" together with aria-label or a <title> element, reference a label '
    'with aria-labelledby, or mark decorative graphics with role="presentation".'
)

_LANDMARKS = {
    "header": "header",
    "nav": "nav",
    "footer": "footer",
}
_LANDMARK_ROLES = {
    "banner": "header",
    "navigation": "nav",
    "contentinfo": "footer",
}


class ImageAnalyzer(BaseAnalyzer):
    """Checks <img> and inline <svg> elements."""

    name = "images"

    def __init__(
        self,
        check_sizes: bool | None = None,
        large_image_bytes: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.check_sizes = check_sizes if check_sizes is not None else settings.check_image_sizes
        self.large_image_bytes = settings.large_image_bytes if large_image_bytes is None else large_image_bytes
        self._transport = transport
        self._semaphore = asyncio.Semaphore(settings.image_probe_concurrency)
        self._checked_sizes: dict[str, int | None] = {}

    async def analyze(self, snapshot: PageSnapshot, auth: BasicAuth | None = None) -> list[ImageIssue]:
        issues = []

        for img in snapshot.soup.find_all("img"):
            src = resolve_src(img.get("src"), snapshot.url)

            if img.get("alt") is None:
                issues.append(
                    ImageIssue(
                        type="missing_alt",
                        element="img",
                        src=src,
                        message="Image missing alt attribute",
                        severity=Severity.ERROR,
                    )
                )

            if not img.get("width") or not img.get("height"):
                issues.append(
                    ImageIssue(
                        type="missing_dimensions",
                        element="img",
                        src=src,
                        message="Image missing width or height attributes",
                        severity=Severity.WARNING,
                    )
                )

        for svg in _top_level_svgs(snapshot):
            if not _svg_is_accessible(svg):
                issues.append(
                    ImageIssue(
                        type="svg_missing_accessible_name",
                        element="svg",
                        message="Inline SVG has no accessible name",
                        severity=Severity.WARNING,
                        suggestion=SVG_SUGGESTION,
                    )
                )

        if self.check_sizes:
            issues.extend(await self._check_file_sizes(snapshot, auth))

        return issues

    def inventory(self, snapshot: PageSnapshot) -> list[ImageRecord]:
        """Every <img> and top-level inline <svg>, in document order."""
        records = []

        for img in snapshot.soup.find_all("img"):
            original_src = attr_text(img.get("src"))
            width = parse_dimension(img.get("width"))
            height = parse_dimension(img.get("height"))
            in_picture = img.find_parent("picture") is not None

            records.append(
                ImageRecord(
                    index=len(records),
                    src=resolve_src(original_src, snapshot.url),
                    original_src=original_src,
                    alt=attr_text(img.get("alt")),
                    title=attr_text(img.get("title")),
                    width=width,
                    height=height,
                    has_alt=img.get("alt") is not None,
                    has_dimensions=bool(img.get("width")) and bool(img.get("height")),
                    filename=filename_stem(original_src),
                    type="img",
                    location=_location(img),
                    is_in_picture=in_picture,
                    has_webp_alternative=_has_webp_alternative(img, in_picture),
                    has_lazy_loading=attr_text(img.get("loading")).lower() == "lazy",
                )
            )

        for svg in _top_level_svgs(snapshot):
            label = attr_text(svg.get("aria-label"))
            title_tag = svg.find("title")
            title = title_tag.get_text().strip() if title_tag else ""

            records.append(
                ImageRecord(
                    index=len(records),
                    src="",
                    original_src="",
                    alt=label or title,
                    title=title,
                    width=parse_dimension(svg.get("width")),
                    height=parse_dimension(svg.get("height")),
                    has_alt=bool(label or title),
                    has_dimensions=bool(svg.get("width")) and bool(svg.get("height")),
                    filename="",
                    type="svg",
                    location=_location(svg),
                    is_in_picture=False,
                    role=attr_text(svg.get("role")) or None,
                )
            )

        return records

    async def _check_file_sizes(self, snapshot: PageSnapshot, auth: BasicAuth | None) -> list[ImageIssue]:
        """HEAD-probe each image; network failures are logged, never reported."""
        sources = []
        for img in snapshot.soup.find_all("img"):
            src = resolve_src(img.get("src"), snapshot.url)
            if src.startswith(("http://", "https://")) and src not in sources:
                sources.append(src)

        if not sources:
            return []

        client_auth = auth.as_tuple() if auth is not None and auth.is_complete else None
        async with httpx.AsyncClient(
            timeout=settings.image_probe_timeout,
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
            auth=client_auth,
            transport=self._transport,
        ) as client:
            sizes = await asyncio.gather(*(self._probe_size(client, src) for src in sources))

        issues = []
        for src, size in zip(sources, sizes):
            if size is not None and size >= self.large_image_bytes:
                issues.append(
                    ImageIssue(
                        type="large_image",
                        element="img",
                        src=src,
                        file_size=size,
                        message=f"Image file is large ({size / (1024 * 1024):.1f} MB)",
                        severity=Severity.WARNING,
                        suggestion="Compress the image or serve a modern format such as WebP.",
                    )
                )
        return issues

    async def _probe_size(self, client: httpx.AsyncClient, src: str) -> int | None:
        if src in self._checked_sizes:
            return self._checked_sizes[src]

        async with self._semaphore:
            try:
                response = await client.head(src)
                length = response.headers.get("content-length")
                size = int(length) if response.is_success and length and length.isdigit() else None
            except httpx.HTTPError as e:
                logger.debug("Image size probe failed", src=src, error=str(e))
                size = None

        self._checked_sizes[src] = size
        return size


def _top_level_svgs(snapshot: PageSnapshot) -> list[Tag]:
    return [svg for svg in snapshot.soup.find_all("svg") if svg.find_parent("svg") is None]


def _svg_is_accessible(svg: Tag) -> bool:
    role = attr_text(svg.get("role")).strip().lower()
    has_title = svg.find("title") is not None

    if role in ("presentation", "none"):
        return True
    if attr_text(svg.get("aria-hidden")).lower() == "true":
        return True
    if svg.get("aria-labelledby") or has_title:
        return True
    return role == "img" and bool(attr_text(svg.get("aria-label")).strip())


def _location(element: Tag) -> str:
    for parent in element.parents:
        if parent.name in _LANDMARKS:
            return _LANDMARKS[parent.name]
        role = attr_text(parent.get("role")).lower() if isinstance(parent, Tag) else ""
        if role in _LANDMARK_ROLES:
            return _LANDMARK_ROLES[role]
    return "content"


def _has_webp_alternative(img: Tag, in_picture: bool) -> bool:
    if ".webp" in attr_text(img.get("srcset")).lower():
        return True
    if not in_picture:
        return False
    picture = img.find_parent("picture")
    for source in picture.find_all("source"):
        if attr_text(source.get("type")).lower() == "image/webp":
            return True
        if ".webp" in attr_text(source.get("srcset")).lower():
            return True
    return False
