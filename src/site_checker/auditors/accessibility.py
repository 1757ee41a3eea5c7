"""Accessibility auditor backed by axe-core."""

from typing import Any, Protocol

import structlog
from playwright.async_api import Page

from ..config import settings
from ..models import AccessibilityViolation

logger = structlog.get_logger()


class AccessibilityEngine(Protocol):
    """Runs an accessibility audit against a live page."""

    async def run(self, page: Page, tags: list[str]) -> dict[str, Any]:
        """
        Audit the page.

        Returns:
            The engine's raw result, with a ``violations`` list.
        """
        ...


class AxeEngine:
    """axe-core injected through axe-playwright-python."""

    def __init__(self):
        self._axe = None

    async def run(self, page: Page, tags: list[str]) -> dict[str, Any]:
        if self._axe is None:
            from axe_playwright_python.async_playwright import Axe

            self._axe = Axe()

        results = await self._axe.run(
            page,
            options={"runOnly": {"type": "tag", "values": list(tags)}},
        )
        return results.response


class AccessibilityAuditor:
    """Runs the WCAG A/AA rule sets and normalizes violations."""

    name = "accessibility"

    def __init__(
        self,
        engine: AccessibilityEngine | None = None,
        enabled: bool | None = None,
        tags: list[str] | None = None,
    ):
        self.engine = engine or AxeEngine()
        self.enabled = enabled if enabled is not None else settings.check_accessibility
        self.tags = settings.accessibility_tags if tags is None else tags

    async def audit(self, page: Page) -> list[AccessibilityViolation]:
        """Violations on the page; empty when disabled or when the engine fails."""
        if not self.enabled:
            return []

        try:
            raw = await self.engine.run(page, self.tags)
            violations = [to_violation(item) for item in raw.get("violations", [])]
        except Exception as e:
            logger.warning("Accessibility audit failed", error=str(e))
            return []

        logger.debug("Accessibility audit complete", violations=len(violations))
        return violations


def to_violation(raw: dict[str, Any]) -> AccessibilityViolation:
    nodes = raw.get("nodes") or []
    first_target = nodes[0].get("target", []) if nodes else []

    return AccessibilityViolation(
        rule_id=raw.get("id", ""),
        impact=raw.get("impact"),
        description=raw.get("description", ""),
        help=raw.get("help", ""),
        help_url=raw.get("helpUrl", ""),
        tags=list(raw.get("tags", [])),
        affected_node_count=len(nodes),
        target_selectors=[_selector(target) for target in first_target],
    )


def _selector(target: Any) -> str:
    # Shadow DOM targets are nested lists of selectors
    if isinstance(target, list):
        return " >>> ".join(str(part) for part in target)
    return str(target)
