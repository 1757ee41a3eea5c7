"""Shared pytest fixtures: an in-memory browser session and audit engines."""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest

from site_checker.analyzers import ConsoleErrorCollector, ImageAnalyzer
from site_checker.auditors import AccessibilityAuditor, PerformanceAuditor
from site_checker.errors import NavigationError


@dataclass
class FakeSite:
    """What the fake browser serves for one URL."""

    html: str = "<html><head></head><body></body></html>"
    raw_html: str | None = None
    links: list[str] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    events: list[tuple[str, Any]] = field(default_factory=list)
    fail: bool = False


class FakeResponse:
    def __init__(self, url: str, body: str):
        self.url = url
        self._body = body

    async def text(self) -> str:
        return self._body


class FakePage:
    def __init__(self, session: "FakeSession"):
        self.session = session
        self.url: str | None = None
        self.handlers: dict[str, list] = {}

    def on(self, event: str, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def content(self) -> str:
        return self.session.sites[self.url].html

    async def evaluate(self, script: str) -> Any:
        site = self.session.sites[self.url]
        if "a[href]" in script:
            return list(site.links)
        if "resourceCount" in script:
            return dict(site.metrics)
        raise AssertionError(f"Unexpected script: {script}")


class FakeSession:
    """Stands in for BrowserSession; serves FakeSite entries by URL."""

    def __init__(self, sites: dict[str, FakeSite] | None = None, debug_port: int | None = None):
        self.sites = sites or {}
        self.debug_port = debug_port
        self.navigations: list[str] = []
        self.auth_seen: list[Any] = []
        self.open_pages = 0
        self.max_open_pages = 0

    @asynccontextmanager
    async def page(self, auth=None):
        self.auth_seen.append(auth)
        self.open_pages += 1
        self.max_open_pages = max(self.max_open_pages, self.open_pages)
        try:
            yield FakePage(self)
        finally:
            self.open_pages -= 1

    async def navigate(self, page: FakePage, url: str) -> FakeResponse:
        self.navigations.append(url)
        site = self.sites.get(url)
        if site is None or site.fail:
            raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
        page.url = url
        for event, payload in site.events:
            page.emit(event, payload)
        return FakeResponse(url, site.raw_html if site.raw_html is not None else site.html)


class FakeAxe:
    """Accessibility engine returning canned violations."""

    def __init__(self, violations: list[dict] | None = None, error: Exception | None = None):
        self.violations = violations or []
        self.error = error
        self.calls: list[list[str]] = []

    async def run(self, page, tags):
        self.calls.append(list(tags))
        if self.error:
            raise self.error
        return {"violations": self.violations}


class FakeLighthouse:
    """Performance engine returning a canned report or raising."""

    def __init__(self, report: dict | None = None, error: Exception | None = None):
        self.report = report or {}
        self.error = error
        self.calls: list[tuple] = []

    async def run(self, url, port, auth=None):
        self.calls.append((url, port, auth))
        if self.error:
            raise self.error
        return self.report


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def fake_axe():
    return FakeAxe()


@pytest.fixture
def checker_parts(fake_axe):
    """Analyzer collaborators that never touch the network or a browser."""
    return {
        "accessibility": AccessibilityAuditor(engine=fake_axe, enabled=True),
        "performance": PerformanceAuditor(engine=FakeLighthouse(), enabled=False, timer=iter([0.0, 0.5] * 100).__next__),
        "console": ConsoleErrorCollector(settle_seconds=0, sleep=no_sleep),
        "images": ImageAnalyzer(check_sizes=False),
    }


class FakeContext:
    def __init__(self, browser: "FakeBrowser", options: dict):
        self.browser = browser
        self.options = options
        self.closed = False

    async def new_page(self):
        return object()

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.contexts: list[FakeContext] = []
        self.close_calls = 0

    async def new_context(self, **options) -> FakeContext:
        context = FakeContext(self, options)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.close_calls += 1


class FakePlaywright:
    """Stands in for the object returned by ``async_playwright().start()``."""

    def __init__(self, launch_error: Exception | None = None):
        self.launch_error = launch_error
        self.launch_args: list[str] = []
        self.browser = FakeBrowser()
        self.stop_calls = 0
        self.chromium = self

    async def launch(self, headless: bool = True, args: list[str] | None = None) -> FakeBrowser:
        self.launch_args = list(args or [])
        if self.launch_error:
            raise self.launch_error
        return self.browser

    async def stop(self) -> None:
        self.stop_calls += 1


@pytest.fixture
def fake_playwright(monkeypatch):
    """Patch the browser module so sessions launch a FakePlaywright."""
    playwright = FakePlaywright()

    class Starter:
        async def start(self):
            return playwright

    monkeypatch.setattr("site_checker.browser.async_playwright", lambda: Starter())
    return playwright
