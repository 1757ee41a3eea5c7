"""Data models for the site checker.

Every record has a ``to_dict()`` that produces the camelCase JSON document
the dashboard consumes. Optional fields left as ``None`` are omitted.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    return value


def _record_to_dict(record: Any) -> dict[str, Any]:
    data = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if value is None:
            continue
        data[_camel(f.name)] = _serialize(value)
    return data


class Severity(Enum):
    """Severity of a reported issue. SUCCESS is informational only."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


class ConsoleErrorKind(Enum):
    """Source of a collected runtime error."""

    CONSOLE_ERROR = "console-error"
    JS_ERROR = "javascript-error"
    REQUEST_FAILED = "request-failed"


@dataclass
class BasicAuth:
    """HTTP Basic credentials passed through to navigation and image probes."""

    username: str
    password: str = field(repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.username) and bool(self.password)

    def as_tuple(self) -> tuple[str, str]:
        return (self.username, self.password)

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}


# Issues -------------------------------------------------------------------


@dataclass
class Issue:
    """Common shape of every reported problem."""

    type: str
    message: str
    severity: Severity
    element: str | None = None

    @property
    def is_problem(self) -> bool:
        return self.severity is not Severity.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return _record_to_dict(self)


@dataclass
class HeadingIssue(Issue):
    """Empty heading, skipped level, or h1 count problem."""


@dataclass
class ImageIssue(Issue):
    """Missing alt/dimensions, inaccessible SVG, or oversized image."""

    src: str | None = None
    suggestion: str | None = None
    file_size: int | None = None


@dataclass
class LinkIssue(Issue):
    """Link without accessible text or an unsafe target=_blank."""

    href: str | None = None
    link_text: str | None = None
    link_html: str | None = None


@dataclass
class MetaIssue(Issue):
    """Missing required meta tag or Open Graph tags."""


@dataclass
class HtmlStructureIssue(Issue):
    """Unbalanced tag or illegal nesting found in the raw markup."""

    position: int | None = None
    class_name: str | None = None
    suggestion: str | None = None


@dataclass
class ConsoleErrorRecord:
    """A console error, uncaught exception or failed request seen during load."""

    kind: ConsoleErrorKind
    message: str
    timestamp: str
    severity: Severity
    location: dict[str, Any] | None = None
    stack: str | None = None
    url: str | None = None
    failure_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "type": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
        }
        if self.location is not None:
            data["location"] = self.location
        if self.stack is not None:
            data["stack"] = self.stack
        if self.url is not None:
            data["url"] = self.url
        if self.failure_reason is not None:
            data["failure"] = {"errorText": self.failure_reason}
        return data


# Display records ----------------------------------------------------------


@dataclass
class HeadingImage:
    src: str
    alt: str
    title: str
    width: int | None
    height: int | None
    filename: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "src": self.src,
            "alt": self.alt,
            "title": self.title,
            "width": self.width,
            "height": self.height,
            "filename": self.filename,
        }


@dataclass
class HeadingNode:
    """One heading in document order, for the outline view."""

    level: int
    tag: str
    text: str
    index: int
    images: list[HeadingImage] = field(default_factory=list)

    @property
    def has_image(self) -> bool:
        return bool(self.images)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.images

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "tag": self.tag,
            "text": self.text,
            "index": self.index,
            "images": [image.to_dict() for image in self.images],
            "hasImage": self.has_image,
            "isEmpty": self.is_empty,
        }


@dataclass
class ImageRecord:
    """Inventory entry for an <img> or inline <svg>."""

    index: int
    src: str
    original_src: str
    alt: str
    title: str
    width: int | None
    height: int | None
    has_alt: bool
    has_dimensions: bool
    filename: str
    type: str = "img"  # img, svg
    location: str = "content"  # header, nav, footer, content
    is_in_picture: bool = False
    has_webp_alternative: bool = False
    has_lazy_loading: bool = False
    role: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = _record_to_dict(self)
        # width/height are meaningful as null
        data["width"] = self.width
        data["height"] = self.height
        return data


@dataclass
class MetaInfo:
    """A meta value surfaced for display."""

    type: str  # title, description, viewport, og, twitter, other
    name: str
    content: str
    length: int | None = None
    property: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _record_to_dict(self)


@dataclass
class SiteLink:
    """Same-domain link offered for cross-navigation."""

    url: str
    text: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return _record_to_dict(self)


@dataclass
class AccessibilityViolation:
    """One axe-core rule violation."""

    rule_id: str
    impact: str | None
    description: str
    help: str
    help_url: str
    tags: list[str] = field(default_factory=list)
    affected_node_count: int = 0
    target_selectors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.rule_id,
            "impact": self.impact,
            "description": self.description,
            "help": self.help,
            "helpUrl": self.help_url,
            "tags": list(self.tags),
            "nodes": self.affected_node_count,
            "targetSelectors": list(self.target_selectors),
        }


@dataclass
class AuditFinding:
    """A failing accessibility audit reported by Lighthouse."""

    id: str
    title: str
    description: str
    score: float
    display_value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _record_to_dict(self)


@dataclass
class Scores:
    """Category scores on a 0-100 scale."""

    performance: int = 0
    accessibility: int = 0
    best_practices: int = 0
    seo: int = 0

    def to_dict(self) -> dict[str, int]:
        return _record_to_dict(self)


@dataclass
class PerformanceAudit:
    """Output of the performance/quality auditor."""

    scores: Scores = field(default_factory=Scores)
    accessibility_findings: list[AuditFinding] = field(default_factory=list)
    source: str = "none"  # lighthouse, fallback, none


# Results ------------------------------------------------------------------


@dataclass
class PageIssues:
    """All issue lists and display extracts for one page."""

    headings: list[HeadingIssue] = field(default_factory=list)
    headings_structure: list[HeadingNode] = field(default_factory=list)
    images: list[ImageIssue] = field(default_factory=list)
    all_images: list[ImageRecord] = field(default_factory=list)
    links: list[LinkIssue] = field(default_factory=list)
    meta: list[MetaIssue] = field(default_factory=list)
    all_meta: list[MetaInfo] = field(default_factory=list)
    html_structure: list[HtmlStructureIssue] = field(default_factory=list)
    audit_issues: list[AuditFinding] = field(default_factory=list)
    violations: list[AccessibilityViolation] = field(default_factory=list)
    console_errors: list[ConsoleErrorRecord] = field(default_factory=list)

    def problem_count(self) -> int:
        """Number of issues that are actual problems (success entries excluded)."""
        groups = (self.headings, self.images, self.links, self.meta, self.html_structure)
        count = sum(1 for group in groups for issue in group if issue.is_problem)
        return count + len(self.violations) + len(self.console_errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "headings": _serialize(self.headings),
            "headingsStructure": _serialize(self.headings_structure),
            "images": _serialize(self.images),
            "allImages": _serialize(self.all_images),
            "links": _serialize(self.links),
            "meta": _serialize(self.meta),
            "allMeta": _serialize(self.all_meta),
            "htmlStructure": _serialize(self.html_structure),
            "accessibility": {
                "auditIssues": _serialize(self.audit_issues),
                "violations": _serialize(self.violations),
            },
            "consoleErrors": _serialize(self.console_errors),
        }


@dataclass
class PageResult:
    """Result of analyzing one page.

    A failed page carries ``error`` and no scores or issues.
    """

    url: str
    timestamp: str = field(default_factory=utc_timestamp)
    scores: Scores | None = None
    issues: PageIssues | None = None
    site_links: list[SiteLink] = field(default_factory=list)
    auth: BasicAuth | None = None
    error: str | None = None

    @classmethod
    def failed(cls, url: str, error: str) -> "PageResult":
        return cls(url=url, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self, include_auth: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"url": self.url, "timestamp": self.timestamp}
        if self.error is not None:
            data["error"] = self.error
            return data
        if self.scores is not None:
            data["scores"] = self.scores.to_dict()
        if self.issues is not None:
            data["issues"] = self.issues.to_dict()
        data["siteLinks"] = _serialize(self.site_links)
        if include_auth and self.auth is not None:
            data["auth"] = self.auth.to_dict()
        return data


@dataclass
class CrawlPlan:
    """URLs a crawl would analyze, in discovery order."""

    start_url: str
    discovered_urls: list[str] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return len(self.discovered_urls)

    def to_dict(self) -> dict[str, Any]:
        return {"totalPages": self.total_pages, "urls": list(self.discovered_urls)}


@dataclass
class CrawlResult:
    """Aggregate of every page analyzed during a crawl, in discovery order."""

    start_url: str
    results: list[PageResult] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)
    auth: BasicAuth | None = None

    @property
    def total_pages(self) -> int:
        return len(self.results)

    @property
    def failed_pages(self) -> list[PageResult]:
        return [result for result in self.results if not result.ok]

    def to_dict(self, include_auth: bool = True) -> dict[str, Any]:
        data = {
            "startUrl": self.start_url,
            "totalPages": self.total_pages,
            "timestamp": self.timestamp,
            "results": [result.to_dict(include_auth=include_auth) for result in self.results],
        }
        if include_auth and self.auth is not None:
            data["auth"] = self.auth.to_dict()
        return data
