"""URL validation for user input and for links found while crawling."""

import re
from urllib.parse import urlparse

from .errors import InvalidURLError

_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


def validate_url(url) -> str | None:
    """
    Check a user-supplied URL.

    Returns:
        An error message, or None if the URL may be analyzed.
    """
    if not url:
        return "URL is required"

    if not isinstance(url, str):
        return "URL must be a string"

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return "Invalid URL format"

    if not parsed.scheme or not hostname:
        return "Invalid URL format"

    if parsed.scheme != "https":
        return "Only HTTPS URLs are allowed"

    if hostname in _LOCAL_HOSTS:
        return "Localhost URLs are not allowed"

    if _IPV4_RE.match(hostname):
        return "IP addresses are not allowed"

    return None


def ensure_valid_url(url) -> str:
    """Return the URL unchanged or raise InvalidURLError."""
    error = validate_url(url)
    if error:
        raise InvalidURLError(error)
    return url


def is_public_web_url(url: str) -> bool:
    """Check a discovered link: http(s), has a host, not local, not a bare IPv4."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https") or not hostname:
        return False

    return hostname not in _LOCAL_HOSTS and not _IPV4_RE.match(hostname)
