"""Storage manager for saving check and crawl reports."""

import json
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse

import aiofiles
import structlog

from ..config import settings
from ..models import CrawlResult, PageResult

logger = structlog.get_logger()


class ReportStorage:
    """Writes result documents as JSON, one folder per run."""

    def __init__(self, base_url: str, output_dir: Path | None = None):
        self.domain = urlparse(base_url).netloc

        # Create a unique folder for each run
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        folder_name = f"{self._sanitize_domain(self.domain)}_{timestamp}"

        self.output_dir = (output_dir or settings.output_dir) / folder_name

    def _sanitize_domain(self, domain: str) -> str:
        """Convert domain to safe folder name."""
        return domain.replace(":", "_").replace("/", "_").replace(".", "_")

    async def save(self, result: PageResult | CrawlResult) -> Path:
        """Save a page or crawl result as report.json. Credentials are left out."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        report_path = self.output_dir / "report.json"

        document = result.to_dict(include_auth=False)

        async with aiofiles.open(report_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(document, indent=2, ensure_ascii=False))

        logger.info("Saved report", path=str(report_path))
        return report_path
