"""Orchestrators for single-page checks and site crawls."""

import asyncio
from typing import Any, Callable
from urllib.parse import urljoin, urlparse

import structlog
from playwright.async_api import Response

from .analyzers import (
    ConsoleErrorCollector,
    HeadingAnalyzer,
    HtmlStructureAnalyzer,
    ImageAnalyzer,
    LinkAnalyzer,
    MetaAnalyzer,
    PageSnapshot,
)
from .auditors import AccessibilityAuditor, PerformanceAuditor
from .browser import BrowserSession
from .config import settings
from .crawler import LinkDiscoverer, is_crawlable, normalize_url
from .models import (
    BasicAuth,
    CrawlPlan,
    CrawlResult,
    PageIssues,
    PageResult,
    PerformanceAudit,
    SiteLink,
)

logger = structlog.get_logger()


class PageChecker:
    """Runs every analyzer against one page.

    The page is loaded once for the markup snapshot; the console collector
    and the performance fallback open their own tabs in the same session.
    All analyzers run concurrently and a failing analyzer only empties its
    own section of the result.
    """

    def __init__(
        self,
        session: BrowserSession,
        accessibility: AccessibilityAuditor | None = None,
        performance: PerformanceAuditor | None = None,
        console: ConsoleErrorCollector | None = None,
        images: ImageAnalyzer | None = None,
        site_links_limit: int | None = None,
    ):
        self.session = session
        self.headings = HeadingAnalyzer()
        self.images = images or ImageAnalyzer()
        self.links = LinkAnalyzer()
        self.meta = MetaAnalyzer()
        self.html_structure = HtmlStructureAnalyzer()
        self.console = console or ConsoleErrorCollector()
        self.accessibility = accessibility or AccessibilityAuditor()
        self.performance = performance or PerformanceAuditor()
        self.site_links_limit = settings.site_links_limit if site_links_limit is None else site_links_limit

    async def analyze_page(self, url: str, auth: BasicAuth | None = None) -> PageResult:
        """
        Load and check a single page.

        Raises:
            NavigationError: if the page itself cannot be loaded.
        """
        logger.info("Checking page", url=url, authenticated=auth is not None)

        async with self.session.page(auth) as page:
            response = await self.session.navigate(page, url)
            snapshot = PageSnapshot(
                url=url,
                html=await page.content(),
                raw_html=await _response_text(response),
            )

            tasks = {
                "headings": self.headings.analyze(snapshot),
                "images": self.images.analyze(snapshot, auth),
                "links": self.links.analyze(snapshot),
                "meta": self.meta.analyze(snapshot),
                "html_structure": self.html_structure.analyze(snapshot),
                "console_errors": self.console.collect(self.session, url, auth),
                "accessibility": self.accessibility.audit(page),
                "performance": self.performance.audit(url, auth, self.session),
            }
            outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)

        results: dict[str, Any] = {}
        for name, outcome in zip(tasks, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("Analyzer failed", analyzer=name, url=url, error=str(outcome))
                outcome = None
            elif isinstance(outcome, BaseException):
                raise outcome
            results[name] = outcome

        performance = results["performance"] or PerformanceAudit()

        issues = PageIssues(
            headings=results["headings"] or [],
            headings_structure=self._extract(url, "heading outline", self.headings.outline, snapshot),
            images=results["images"] or [],
            all_images=self._extract(url, "image inventory", self.images.inventory, snapshot),
            links=results["links"] or [],
            meta=results["meta"] or [],
            all_meta=self._extract(url, "meta collection", self.meta.collect, snapshot),
            html_structure=results["html_structure"] or [],
            audit_issues=performance.accessibility_findings,
            violations=results["accessibility"] or [],
            console_errors=results["console_errors"] or [],
        )

        result = PageResult(
            url=url,
            scores=performance.scores,
            issues=issues,
            site_links=collect_site_links(snapshot, self.site_links_limit),
            auth=auth,
        )

        logger.info(
            "Page check complete",
            url=url,
            problems=issues.problem_count(),
            score_source=performance.source,
        )
        return result

    def _extract(self, url: str, label: str, extract: Callable[[PageSnapshot], list], snapshot: PageSnapshot) -> list:
        try:
            return extract(snapshot)
        except Exception as e:
            logger.warning("Extraction failed", extract=label, url=url, error=str(e))
            return []


class CrawlOrchestrator:
    """Checks every discovered page with a bounded number in flight."""

    def __init__(
        self,
        session: BrowserSession,
        checker: PageChecker | None = None,
        discoverer: LinkDiscoverer | None = None,
        concurrency: int | None = None,
        max_pages: int | None = None,
    ):
        self.session = session
        self.checker = checker or PageChecker(session)
        self.discoverer = discoverer or LinkDiscoverer(session, max_pages=max_pages)
        self.concurrency = max(1, settings.concurrent_pages if concurrency is None else concurrency)

    async def crawl(
        self,
        start_url: str,
        urls: list[str] | None = None,
        auth: BasicAuth | None = None,
    ) -> CrawlResult:
        """Check ``urls`` (discovered from ``start_url`` if omitted), keeping their order."""
        if urls is None:
            urls = await self.discoverer.discover(start_url, auth)

        logger.info("Starting crawl", start_url=start_url, pages=len(urls), concurrency=self.concurrency)

        semaphore = asyncio.Semaphore(self.concurrency)
        completed = 0

        async def check(url: str) -> PageResult:
            nonlocal completed
            async with semaphore:
                try:
                    result = await self.checker.analyze_page(url, auth)
                except Exception as e:
                    logger.warning("Page check failed", url=url, error=str(e))
                    result = PageResult.failed(url, str(e) or type(e).__name__)

            completed += 1
            logger.info("Crawl progress", completed=completed, total=len(urls))
            return result

        results = await asyncio.gather(*(check(url) for url in urls))

        crawl_result = CrawlResult(start_url=start_url, results=list(results), auth=auth)
        logger.info(
            "Crawl completed",
            pages=crawl_result.total_pages,
            failed=len(crawl_result.failed_pages),
        )
        return crawl_result


def collect_site_links(snapshot: PageSnapshot, limit: int) -> list[SiteLink]:
    """Same-domain links on the page for cross-navigation, deduplicated."""
    hostname = (urlparse(snapshot.url).hostname or "").lower()
    current = normalize_url(snapshot.url)
    seen = {current}
    links = []

    for anchor in snapshot.soup.find_all("a", href=True):
        if len(links) >= limit:
            break

        absolute = urljoin(snapshot.url, anchor["href"])
        if not is_crawlable(absolute, hostname, include_archives=True):
            continue

        normalized = normalize_url(absolute)
        if normalized in seen:
            continue
        seen.add(normalized)

        links.append(
            SiteLink(
                url=normalized,
                text=anchor.get_text(" ", strip=True)[:100],
                title=str(anchor.get("title") or ""),
            )
        )

    return links


async def _response_text(response: Response | None) -> str | None:
    if response is None:
        return None
    try:
        return await response.text()
    except Exception as e:
        logger.debug("Response body unavailable", url=response.url, error=str(e))
        return None


async def analyze_single_page(url: str, auth: BasicAuth | None = None) -> PageResult:
    """Check one page in a fresh browser session."""
    async with BrowserSession() as session:
        return await PageChecker(session).analyze_page(url, auth)


async def plan_crawl(
    start_url: str,
    auth: BasicAuth | None = None,
    max_pages: int | None = None,
) -> CrawlPlan:
    """Discover the pages a crawl would check, without checking them."""
    async with BrowserSession() as session:
        return await LinkDiscoverer(session, max_pages=max_pages).plan_pages(start_url, auth)


async def crawl_site(
    start_url: str,
    urls: list[str] | None = None,
    auth: BasicAuth | None = None,
    max_pages: int | None = None,
    concurrency: int | None = None,
) -> CrawlResult:
    """Discover (unless ``urls`` is given) and check a whole site in one session."""
    async with BrowserSession() as session:
        orchestrator = CrawlOrchestrator(session, concurrency=concurrency, max_pages=max_pages)
        return await orchestrator.crawl(start_url, urls=urls, auth=auth)
