"""Exceptions raised by the checking pipeline."""


class CheckerError(Exception):
    """Base class for site checker errors."""


class InvalidURLError(CheckerError, ValueError):
    """Raised when a URL is rejected before analysis starts."""


class BrowserLaunchError(CheckerError):
    """Raised when the headless browser cannot be started."""


class NavigationError(CheckerError):
    """Raised when a page cannot be loaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")
