"""Base analyzer interface and the page snapshot analyzers read from."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class PageSnapshot:
    """Markup of one loaded page.

    ``html`` is the rendered DOM, ``raw_html`` the response body as sent by
    the server. ``url`` is the base every relative reference resolves
    against. Analyzers only read from a snapshot, so one instance can be
    shared by analyzers running concurrently.
    """

    url: str
    html: str
    raw_html: str | None = None
    soup: BeautifulSoup = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "soup", BeautifulSoup(self.html, "html.parser"))

    @property
    def source(self) -> str:
        """Markup as authored, falling back to the rendered DOM."""
        return self.raw_html if self.raw_html is not None else self.html


class BaseAnalyzer(ABC):
    """Abstract base class for all markup analyzers."""

    name: str = "analyzer"

    @abstractmethod
    async def analyze(self, snapshot: PageSnapshot) -> list[Any]:
        """
        Analyze a page snapshot and return a list of issues.

        Args:
            snapshot: The page to analyze.

        Returns:
            List of issues found during analysis.
        """
        pass


def resolve_src(src: str | None, base_url: str) -> str:
    """Make an image/link reference absolute against ``base_url``."""
    if not src:
        return ""
    if src.startswith(("http://", "https://", "data:")):
        return src
    if src.startswith("//"):
        return "https:" + src
    return urljoin(base_url, src)


def filename_stem(src: str | None) -> str:
    """Last path segment of a reference without its extension."""
    if not src or src.startswith("data:"):
        return ""
    name = PurePosixPath(urlparse(src).path).name
    return name.split(".")[0]


def parse_dimension(value: Any) -> int | None:
    """Leading integer of a width/height attribute, like parseInt."""
    if value is None:
        return None
    digits = ""
    for char in str(value).strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def attr_text(value: Any) -> str:
    """Attribute value as a string (bs4 returns lists for class/rel)."""
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)
