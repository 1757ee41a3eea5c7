"""Performance/quality auditor: Lighthouse with a local metrics fallback."""

import asyncio
import base64
import json
import math
import shutil
import time
from typing import Any, Callable, Protocol

import structlog

from ..config import settings
from ..models import AuditFinding, BasicAuth, PerformanceAudit, Scores

logger = structlog.get_logger()

CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]

# Desktop profile: 1350x940, 40ms RTT, 10 Mbps, no CPU slowdown
LIGHTHOUSE_FLAGS = [
    "--output=json",
    "--output-path=stdout",
    "--quiet",
    f"--only-categories={','.join(CATEGORIES)}",
    "--form-factor=desktop",
    "--screenEmulation.mobile=false",
    "--screenEmulation.width=1350",
    "--screenEmulation.height=940",
    "--screenEmulation.deviceScaleFactor=1",
    "--screenEmulation.disabled=false",
    "--throttling.rttMs=40",
    "--throttling.throughputKbps=10240",
    "--throttling.cpuSlowdownMultiplier=1",
    "--throttling.requestLatencyMs=0",
    "--throttling.downloadThroughputKbps=0",
    "--throttling.uploadThroughputKbps=0",
    "--max-wait-for-fcp=15000",
    "--max-wait-for-load=35000",
]

METRICS_SCRIPT = """
() => ({
    hasTitle: !!document.title,
    hasDescription: !!document.querySelector('meta[name="description"]'),
    hasH1: !!document.querySelector('h1'),
    imagesWithoutAlt: document.querySelectorAll('img:not([alt])').length,
    totalImages: document.images.length,
    resourceCount: performance.getEntriesByType('resource').length,
})
"""


class PerformanceEngine(Protocol):
    """Runs a full quality audit through a browser's debugging port."""

    async def run(self, url: str, port: int, auth: BasicAuth | None = None) -> dict[str, Any]:
        """Return the engine's report (``categories`` and ``audits``)."""
        ...


class LighthouseEngine:
    """Lighthouse CLI attached to the running Chromium."""

    def __init__(self, executable: str | None = None, timeout: float | None = None):
        self.executable = executable or settings.lighthouse_path
        self.timeout = settings.lighthouse_timeout if timeout is None else timeout

    def build_command(self, url: str, port: int, auth: BasicAuth | None = None) -> list[str]:
        command = [self.executable, url, f"--port={port}", *LIGHTHOUSE_FLAGS]
        if auth is not None and auth.is_complete:
            token = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode()
            command.append("--extra-headers=" + json.dumps({"Authorization": f"Basic {token}"}))
        return command

    async def run(self, url: str, port: int, auth: BasicAuth | None = None) -> dict[str, Any]:
        if shutil.which(self.executable) is None:
            raise FileNotFoundError(f"Lighthouse executable not found: {self.executable}")

        process = await asyncio.create_subprocess_exec(
            *self.build_command(url, port, auth),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            raise RuntimeError(
                f"Lighthouse exited with status {process.returncode}: "
                f"{stderr.decode(errors='replace')[-500:]}"
            )

        return json.loads(stdout)


class PerformanceAuditor:
    """Scores a page on performance, accessibility, best practices and SEO."""

    name = "performance"

    def __init__(
        self,
        engine: PerformanceEngine | None = None,
        enabled: bool | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.engine = engine or LighthouseEngine()
        self.enabled = enabled if enabled is not None else settings.run_lighthouse
        self._timer = timer

    async def audit(self, url: str, auth: BasicAuth | None, session) -> PerformanceAudit:
        """
        Audit a page through the session's debugging port.

        Falls back to locally measured metrics when Lighthouse is disabled,
        the session exposes no debugging port, or the run fails. Never raises.
        """
        port = session.debug_port

        if self.enabled and port:
            try:
                report = await self.engine.run(url, port, auth)
                result = from_lighthouse(report)
                logger.debug("Lighthouse audit complete", url=url, scores=result.scores.to_dict())
                return result
            except Exception as e:
                logger.warning("Lighthouse audit failed, using fallback", url=url, error=str(e))
        else:
            logger.debug("Lighthouse unavailable, using fallback", url=url, debug_port=port)

        return await self._fallback(url, auth, session)

    async def _fallback(self, url: str, auth: BasicAuth | None, session) -> PerformanceAudit:
        try:
            async with session.page(auth) as page:
                started = self._timer()
                await session.navigate(page, url)
                load_time_ms = (self._timer() - started) * 1000
                metrics = await page.evaluate(METRICS_SCRIPT)
        except Exception as e:
            logger.warning("Fallback metrics failed", url=url, error=str(e))
            return PerformanceAudit()

        return PerformanceAudit(scores=fallback_scores(load_time_ms, metrics), source="fallback")


def from_lighthouse(report: dict[str, Any]) -> PerformanceAudit:
    """Convert 0-1 category scores to 0-100 and keep failing a11y audits."""
    categories = report.get("categories") or {}
    audits = report.get("audits") or {}

    def score(name: str) -> int:
        value = (categories.get(name) or {}).get("score")
        return _round(value * 100) if value is not None else 0

    findings = []
    for ref in (categories.get("accessibility") or {}).get("auditRefs", []):
        audit = audits.get(ref.get("id"))
        if audit and audit.get("score") is not None and audit["score"] < 1:
            findings.append(
                AuditFinding(
                    id=audit.get("id", ref.get("id")),
                    title=audit.get("title", ""),
                    description=audit.get("description", ""),
                    score=audit["score"],
                    display_value=audit.get("displayValue") or None,
                )
            )

    return PerformanceAudit(
        scores=Scores(
            performance=score("performance"),
            accessibility=score("accessibility"),
            best_practices=score("best-practices"),
            seo=score("seo"),
        ),
        accessibility_findings=findings,
        source="lighthouse",
    )


def fallback_scores(load_time_ms: float, metrics: dict[str, Any]) -> Scores:
    """Approximate scores from load time and a DOM snapshot.

    The constants are heuristics: 1 performance point per 50ms of load time,
    10 accessibility points per image without alt, 1 best-practice point per
    resource beyond 50.
    """
    images_without_alt = int(metrics.get("imagesWithoutAlt") or 0)
    resource_count = int(metrics.get("resourceCount") or 0)

    return Scores(
        performance=max(0, _round(100 - load_time_ms / 50)),
        accessibility=max(0, 100 - 10 * images_without_alt),
        best_practices=max(0, 100 - max(0, resource_count - 50)),
        seo=(
            40 * bool(metrics.get("hasTitle"))
            + 40 * bool(metrics.get("hasDescription"))
            + 20 * bool(metrics.get("hasH1"))
        ),
    )


def _round(value: float) -> int:
    """Round half up, matching the dashboard's rounding."""
    return math.floor(value + 0.5)
