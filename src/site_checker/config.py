"""Configuration settings for the site checker."""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Crawl settings
    max_pages: int = Field(default=30, description="Maximum pages to discover (0 = no limit)")
    concurrent_pages: int = Field(default=3, description="Max page analyses in flight during a crawl")
    site_links_limit: int = Field(default=20, description="Same-domain links listed per page result")
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="User agent string (realistic browser UA)",
    )

    # Playwright/Browser settings
    page_load_timeout: int = Field(
        default=30000,
        description="Page load timeout in milliseconds",
    )
    viewport_width: int = Field(default=1350, description="Browser viewport width")
    viewport_height: int = Field(default=940, description="Browser viewport height")
    remote_debugging_port: int = Field(
        default=0,
        description="Chromium remote debugging port shared with Lighthouse (0 = a free port per session)",
    )
    expose_debug_port: bool = Field(default=True, description="Open a remote debugging port for Lighthouse")

    # Analyzer settings
    check_accessibility: bool = Field(default=True, description="Run the axe-core accessibility audit")
    accessibility_tags: list[str] = Field(
        default=["wcag2a", "wcag2aa"],
        description="axe-core tag sets the audit is restricted to",
    )
    console_settle_seconds: float = Field(
        default=2.0,
        description="How long to keep listening for console/runtime errors after load",
    )
    check_image_sizes: bool = Field(default=True, description="HEAD-probe images to flag large files")
    large_image_bytes: int = Field(default=1024 * 1024, description="Image size that triggers a warning")
    image_probe_timeout: float = Field(default=10.0, description="Image HEAD probe timeout in seconds")
    image_probe_concurrency: int = Field(default=10, description="Max concurrent image HEAD probes")

    # Lighthouse settings
    run_lighthouse: bool = Field(default=True, description="Try Lighthouse before the local fallback")
    lighthouse_path: str = Field(default="lighthouse", description="Lighthouse CLI executable")
    lighthouse_timeout: float = Field(default=120.0, description="Lighthouse run timeout in seconds")

    # Storage settings
    output_dir: Path = Field(default=Path("./reports"), description="Directory for saved JSON reports")

    model_config = {"env_prefix": "CHECKER_", "env_file": ".env"}


settings = Settings()
