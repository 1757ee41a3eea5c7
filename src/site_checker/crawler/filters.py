"""URL normalization and the exclusion policy for crawled links."""

import re
from urllib.parse import parse_qsl, unquote, urlparse

from ..validation import is_public_web_url

NON_HTML_EXTENSIONS = (
    # images
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".avif", ".ico", ".bmp", ".tif", ".tiff",
    # stylesheets, scripts, data
    ".css", ".js", ".mjs", ".map", ".json", ".xml", ".rss", ".atom", ".txt", ".csv",
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".rtf",
    # archives
    ".zip", ".tar", ".gz", ".tgz", ".rar", ".7z", ".dmg", ".exe",
    # media and fonts
    ".mp3", ".mp4", ".avi", ".mov", ".webm", ".wav", ".ogg",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
)

# Path segments of admin, account and utility endpoints
EXCLUDED_SEGMENTS = frozenset({
    "wp-admin", "wp-login", "admin", "administrator", "login", "logout", "signin",
    "signup", "register", "search", "feed", "api", "wp-json", "xmlrpc", "cgi-bin",
    "cart", "checkout", "my-account",
})

WORDPRESS_ARCHIVE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/page/\d+/?$",
        r"/category/",
        r"/tag/",
        r"/author/",
        r"/\d{4}/?$",
        r"/\d{4}/\d{1,2}/?$",
        r"/\d{4}/\d{1,2}/\d{1,2}/?$",
        r"/trackback/?$",
        r"/attachment/",
        r"/embed/?$",
        r"/comment-page-\d+",
        r"/wp-content/",
        r"/wp-includes/",
    )
]

EXCLUDED_QUERY_PARAMS = frozenset({
    "p", "page", "paged", "page_id", "cat", "tag", "author", "s", "m",
    "attachment_id", "replytocom", "orderby", "order", "sort", "filter",
})

MAX_ENCODED_OCTETS = 2

_ENCODED_OCTET_RE = re.compile(r"%[0-9A-Fa-f]{2}")
# Latin script ends at Latin Extended-B
_MAX_LATIN_CODEPOINT = 0x024F


def normalize_url(url: str) -> str:
    """Scheme, host and path only; trailing slash dropped except for the root."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    if path != "/":
        path = path.rstrip("/") or "/"
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{path}"


def same_host(url: str, hostname: str) -> bool:
    try:
        return (urlparse(url).hostname or "") == hostname.lower()
    except ValueError:
        return False


def has_non_html_extension(path: str) -> bool:
    return path.lower().endswith(NON_HTML_EXTENSIONS)


def has_excluded_segment(path: str) -> bool:
    for segment in path.lower().split("/"):
        if not segment:
            continue
        if segment in EXCLUDED_SEGMENTS or segment.split(".")[0] in EXCLUDED_SEGMENTS:
            return True
    return False


def has_unsupported_encoding(path: str) -> bool:
    """Percent-encoded paths with non-Latin text or more than two octets."""
    if len(_ENCODED_OCTET_RE.findall(path)) > MAX_ENCODED_OCTETS:
        return True
    decoded = unquote(path)
    return any(ord(char) > _MAX_LATIN_CODEPOINT for char in decoded)


def is_wordpress_archive(path: str) -> bool:
    return any(pattern.search(path) for pattern in WORDPRESS_ARCHIVE_PATTERNS)


def has_excluded_query(query: str) -> bool:
    return any(key.lower() in EXCLUDED_QUERY_PARAMS for key, _ in parse_qsl(query, keep_blank_values=True))


def is_crawlable(url: str, hostname: str, include_archives: bool = False) -> bool:
    """
    Check a raw discovered link against the exclusion policy.

    Args:
        url: Absolute link as found on the page (query and fragment intact).
        hostname: Hostname of the start URL.
        include_archives: Skip the WordPress archive/pagination rules.

    Returns:
        True if the link should be followed.
    """
    if not is_public_web_url(url) or not same_host(url, hostname):
        return False

    parsed = urlparse(url)
    path = parsed.path or "/"

    if has_non_html_extension(path):
        return False
    if has_excluded_segment(path):
        return False
    if has_unsupported_encoding(path):
        return False
    if not include_archives and is_wordpress_archive(path):
        return False
    if has_excluded_query(parsed.query):
        return False

    return True
