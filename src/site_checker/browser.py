"""Browser session manager for Playwright-based page checks."""

import socket
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Response,
    TimeoutError as PlaywrightTimeout,
)

from .config import settings
from .errors import BrowserLaunchError, NavigationError
from .models import BasicAuth

logger = structlog.get_logger()

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-features=TranslateUI",
    "--disable-ipc-flooding-protection",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
]


class BrowserSession:
    """One headless Chromium shared by every page of a check or crawl.

    Use as an async context manager so the browser is closed on every exit
    path. Each page gets its own browser context, which is where Basic-Auth
    credentials are attached.
    """

    def __init__(
        self,
        page_load_timeout: int | None = None,
        remote_debugging_port: int | None = None,
        expose_debug_port: bool | None = None,
    ):
        self.page_load_timeout = settings.page_load_timeout if page_load_timeout is None else page_load_timeout
        self.remote_debugging_port = (
            settings.remote_debugging_port if remote_debugging_port is None else remote_debugging_port
        )
        self.expose_debug_port = settings.expose_debug_port if expose_debug_port is None else expose_debug_port
        self._debug_port: int | None = None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def debug_port(self) -> int | None:
        """Remote debugging port, if the running browser exposes one."""
        if self._browser is None:
            return None
        return self._debug_port

    async def start(self) -> None:
        """Launch the browser. Failure is fatal to the enclosing operation."""
        if self._browser is not None:
            return

        args = list(LAUNCH_ARGS)
        port = None
        if self.expose_debug_port:
            port = self.remote_debugging_port or free_port()
            args.append(f"--remote-debugging-port={port}")

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=args)
        except Exception as e:
            await self.stop()
            raise BrowserLaunchError(f"Browser launch failed: {e}") from e

        self._debug_port = port
        logger.info("Browser started", debug_port=port)

    async def stop(self) -> None:
        """Close the browser and cleanup resources. Safe to call twice."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        self._debug_port = None

        if browser:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.warning("Browser close failed", error=str(e))
            logger.info("Browser stopped")

        if playwright:
            await playwright.stop()

    @asynccontextmanager
    async def page(self, auth: BasicAuth | None = None) -> AsyncGenerator[Page, None]:
        """Open an isolated page, with Basic-Auth credentials when complete."""
        if self._browser is None:
            await self.start()

        options = {
            "viewport": {"width": settings.viewport_width, "height": settings.viewport_height},
            "user_agent": settings.user_agent,
            "ignore_https_errors": True,
        }
        if auth is not None and auth.is_complete:
            options["http_credentials"] = {"username": auth.username, "password": auth.password}

        context = await self._browser.new_context(**options)
        try:
            page = await context.new_page()
            yield page
        finally:
            await context.close()

    async def navigate(self, page: Page, url: str) -> Response | None:
        """
        Load a URL and wait until the network has been quiet.

        Raises:
            NavigationError: on timeout or any browser-side load failure.
        """
        try:
            return await page.goto(
                url,
                wait_until="networkidle",
                timeout=self.page_load_timeout,
            )
        except PlaywrightTimeout as e:
            raise NavigationError(url, f"timed out after {self.page_load_timeout}ms") from e
        except PlaywrightError as e:
            raise NavigationError(url, e.message) from e

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()


def free_port() -> int:
    """A TCP port on localhost that is free right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
