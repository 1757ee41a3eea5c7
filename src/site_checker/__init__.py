"""Headless-browser website checker: accessibility, SEO, markup and runtime errors."""

from .models import BasicAuth, CrawlPlan, CrawlResult, PageResult
from .orchestrator import analyze_single_page, crawl_site, plan_crawl

__version__ = "0.2.0"

__all__ = [
    "BasicAuth",
    "CrawlPlan",
    "CrawlResult",
    "PageResult",
    "analyze_single_page",
    "crawl_site",
    "plan_crawl",
    "__version__",
]
