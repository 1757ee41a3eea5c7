"""Storage module for persisting reports."""

from .manager import ReportStorage

__all__ = ["ReportStorage"]
