"""Breadth-first discovery of same-domain pages using Playwright."""

from collections import deque
from urllib.parse import urlparse

import structlog

from ..config import settings
from ..errors import NavigationError
from ..models import BasicAuth, CrawlPlan
from .filters import is_crawlable, normalize_url

logger = structlog.get_logger()

EXTRACT_LINKS_SCRIPT = """
() => Array.from(document.querySelectorAll('a[href]'))
    .map(a => a.href)
    .filter(href => href.startsWith('http'))
"""


class LinkDiscoverer:
    """
    Walks a site breadth-first from a start URL.

    Uses the rendered DOM of every visited page so links added by
    JavaScript are found too. Links are kept only if they stay on the
    start URL's hostname and pass the exclusion policy in ``filters``.
    """

    def __init__(self, session, max_pages: int | None = None):
        self.session = session
        self.max_pages = settings.max_pages if max_pages is None else max_pages

    def _cap_reached(self, discovered: list[str]) -> bool:
        return bool(self.max_pages) and len(discovered) >= self.max_pages

    async def discover(self, start_url: str, auth: BasicAuth | None = None) -> list[str]:
        """Return normalized, deduplicated page URLs in discovery order."""
        hostname = (urlparse(start_url).hostname or "").lower()
        start = normalize_url(start_url)

        queue: deque[str] = deque([start])
        queued: set[str] = {start}
        visited: set[str] = set()
        discovered: list[str] = []

        logger.info("Starting discovery", start_url=start, max_pages=self.max_pages or None)

        while queue and not self._cap_reached(discovered):
            url = queue.popleft()
            if url in visited:
                continue

            visited.add(url)
            discovered.append(url)

            for link in await self._extract_links(url, auth):
                if not is_crawlable(link, hostname):
                    continue
                normalized = normalize_url(link)
                if normalized in visited or normalized in queued:
                    continue
                queued.add(normalized)
                queue.append(normalized)

        logger.info("Discovery completed", pages=len(discovered), pending=len(queue))
        return discovered

    async def plan_pages(self, start_url: str, auth: BasicAuth | None = None) -> CrawlPlan:
        """Preview of the pages a crawl from ``start_url`` would analyze."""
        urls = await self.discover(start_url, auth)
        return CrawlPlan(start_url=start_url, discovered_urls=urls)

    async def _extract_links(self, url: str, auth: BasicAuth | None) -> list[str]:
        """Absolute http(s) hrefs on the page; a failed load yields none."""
        try:
            async with self.session.page(auth) as page:
                await self.session.navigate(page, url)
                return await page.evaluate(EXTRACT_LINKS_SCRIPT)
        except NavigationError as e:
            logger.warning("Failed to crawl page", url=url, error=e.reason)
        except Exception as e:
            logger.warning("Failed to extract links", url=url, error=str(e))
        return []
