"""Auditors wrapping third-party audit engines."""

from .accessibility import AccessibilityAuditor, AccessibilityEngine, AxeEngine
from .performance import LighthouseEngine, PerformanceAuditor, PerformanceEngine

__all__ = [
    "AccessibilityAuditor",
    "AccessibilityEngine",
    "AxeEngine",
    "LighthouseEngine",
    "PerformanceAuditor",
    "PerformanceEngine",
]
