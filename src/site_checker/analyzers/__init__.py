"""Analyzers module for checking page markup and runtime behaviour."""

from .base import BaseAnalyzer, PageSnapshot
from .console_errors import ConsoleErrorCollector
from .headings import HeadingAnalyzer
from .html_structure import HtmlStructureAnalyzer
from .images import ImageAnalyzer
from .links import LinkAnalyzer
from .meta import MetaAnalyzer

__all__ = [
    "BaseAnalyzer",
    "PageSnapshot",
    "ConsoleErrorCollector",
    "HeadingAnalyzer",
    "HtmlStructureAnalyzer",
    "ImageAnalyzer",
    "LinkAnalyzer",
    "MetaAnalyzer",
]
