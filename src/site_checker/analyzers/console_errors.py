"""Collector for console errors, uncaught exceptions and failed requests."""

import asyncio
from typing import Awaitable, Callable

import structlog
from playwright.async_api import ConsoleMessage, Error as PlaywrightError, Page, Request

from ..config import settings
from ..errors import NavigationError
from ..models import BasicAuth, ConsoleErrorKind, ConsoleErrorRecord, Severity, utc_timestamp

logger = structlog.get_logger()


class ConsoleErrorCollector:
    """Loads a page on its own tab and records runtime errors.

    Errors that fire after the load event (timers, late fetches) are only
    caught if they happen inside the settle window, so a longer window trades
    latency for completeness. ``sleep`` and ``clock`` are injectable for tests.
    """

    name = "console_errors"

    def __init__(
        self,
        settle_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.settle_seconds = settle_seconds if settle_seconds is not None else settings.console_settle_seconds
        self._sleep = sleep
        self._clock = clock

    async def collect(self, session, url: str, auth: BasicAuth | None = None) -> list[ConsoleErrorRecord]:
        """
        Open a secondary page against ``url`` and gather errors until settled.

        Args:
            session: The BrowserSession shared by the current check.
            url: The page to load.
            auth: Optional Basic-Auth credentials.

        Returns:
            One record per event, in arrival order.
        """
        records: list[ConsoleErrorRecord] = []

        async with session.page(auth) as page:
            self._subscribe(page, records)

            try:
                await session.navigate(page, url)
            except NavigationError as e:
                logger.warning("Console check navigation failed", url=url, error=e.reason)
                return records

            await self._sleep(self.settle_seconds)

        logger.debug("Console error collection complete", url=url, errors=len(records))
        return records

    def _subscribe(self, page: Page, records: list[ConsoleErrorRecord]) -> None:
        def on_console(message: ConsoleMessage) -> None:
            if message.type != "error":
                return
            location = message.location or {}
            records.append(
                ConsoleErrorRecord(
                    kind=ConsoleErrorKind.CONSOLE_ERROR,
                    message=message.text,
                    timestamp=self._clock(),
                    severity=Severity.ERROR,
                    location={
                        "url": location.get("url", ""),
                        "lineNumber": location.get("lineNumber", 0),
                        "columnNumber": location.get("columnNumber", 0),
                    },
                )
            )

        def on_page_error(error: PlaywrightError) -> None:
            records.append(
                ConsoleErrorRecord(
                    kind=ConsoleErrorKind.JS_ERROR,
                    message=error.message,
                    timestamp=self._clock(),
                    severity=Severity.ERROR,
                    stack=error.stack,
                )
            )

        def on_request_failed(request: Request) -> None:
            reason = request.failure or "unknown"
            records.append(
                ConsoleErrorRecord(
                    kind=ConsoleErrorKind.REQUEST_FAILED,
                    message=f"Request failed: {request.url}",
                    timestamp=self._clock(),
                    severity=Severity.WARNING,
                    url=request.url,
                    failure_reason=reason,
                )
            )

        page.on("console", on_console)
        page.on("pageerror", on_page_error)
        page.on("requestfailed", on_request_failed)
