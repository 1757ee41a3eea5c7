"""Crawler module for discovering same-domain pages."""

from .discovery import LinkDiscoverer
from .filters import is_crawlable, normalize_url

__all__ = ["LinkDiscoverer", "is_crawlable", "normalize_url"]
