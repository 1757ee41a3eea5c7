"""Command-line interface for the site checker."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings
from .models import BasicAuth, CrawlResult, PageResult, Severity
from .orchestrator import analyze_single_page, crawl_site, plan_crawl
from .storage import ReportStorage
from .utils import setup_logging
from .validation import validate_url

app = typer.Typer(
    name="site-checker",
    help="Check websites for accessibility, SEO, markup and runtime problems.",
    no_args_is_help=True,
)
console = Console()

USERNAME_OPTION = typer.Option(None, "--username", "-u", help="Basic-Auth username")
PASSWORD_OPTION = typer.Option(
    None, "--password", "-p", envvar="CHECKER_AUTH_PASSWORD",
    help="Basic-Auth password (or set CHECKER_AUTH_PASSWORD env var)",
)


def _prepare(
    url: str,
    username: str | None,
    password: str | None,
    no_a11y: bool,
    no_lighthouse: bool,
    verbose: bool,
) -> BasicAuth | None:
    """Configure logging and settings, validate the URL and build credentials."""
    setup_logging(verbose)

    error = validate_url(url)
    if error:
        console.print(f"[red]Error: {error}[/red]")
        raise typer.Exit(2)

    if no_a11y:
        settings.check_accessibility = False
    if no_lighthouse:
        settings.run_lighthouse = False

    if username or password:
        return BasicAuth(username=username or "", password=password or "")
    return None


@app.command()
def check(
    url: str = typer.Argument(..., help="The HTTPS URL to check"),
    username: str = USERNAME_OPTION,
    password: str = PASSWORD_OPTION,
    no_a11y: bool = typer.Option(False, "--no-a11y", help="Skip the axe-core accessibility audit"),
    no_lighthouse: bool = typer.Option(False, "--no-lighthouse", help="Use only the local score fallback"),
    output_dir: Path = typer.Option(None, "--output", "-o", help="Save the JSON report under this directory"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Check a single page."""
    auth = _prepare(url, username, password, no_a11y, no_lighthouse, verbose)

    try:
        result = asyncio.run(analyze_single_page(url, auth))
    except KeyboardInterrupt:
        console.print("\n[yellow]Check cancelled by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[red]Analysis failed: {str(e)}[/red]")
        raise typer.Exit(1)

    _finish(url, result, output_dir, as_json)


@app.command()
def plan(
    url: str = typer.Argument(..., help="The HTTPS URL to start from"),
    max_pages: int = typer.Option(None, "--max-pages", "-m", help="Maximum pages to discover (0 = no limit)"),
    username: str = USERNAME_OPTION,
    password: str = PASSWORD_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print the raw plan document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List the pages a crawl would check."""
    auth = _prepare(url, username, password, False, False, verbose)

    try:
        crawl_plan = asyncio.run(plan_crawl(url, auth, max_pages=max_pages))
    except Exception as e:
        console.print(f"\n[red]Discovery failed: {str(e)}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(crawl_plan.to_dict()))
        return

    console.print(Panel.fit(f"[bold]{crawl_plan.total_pages}[/bold] pages found from [green]{url}[/green]", title="Crawl Plan"))
    for page_url in crawl_plan.discovered_urls:
        console.print(f"  • {page_url}")


@app.command()
def crawl(
    url: str = typer.Argument(..., help="The HTTPS URL to start from"),
    max_pages: int = typer.Option(None, "--max-pages", "-m", help="Maximum pages to discover (0 = no limit)"),
    concurrency: int = typer.Option(None, "--concurrency", "-c", help="Pages checked at the same time"),
    username: str = USERNAME_OPTION,
    password: str = PASSWORD_OPTION,
    no_a11y: bool = typer.Option(False, "--no-a11y", help="Skip the axe-core accessibility audit"),
    no_lighthouse: bool = typer.Option(False, "--no-lighthouse", help="Use only the local score fallback"),
    output_dir: Path = typer.Option(None, "--output", "-o", help="Save the JSON report under this directory"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Discover same-domain pages and check each of them."""
    auth = _prepare(url, username, password, no_a11y, no_lighthouse, verbose)

    console.print(Panel.fit(
        f"[bold blue]Site Checker[/bold blue]\n"
        f"Crawling: [green]{url}[/green]\n"
        f"Max Pages: {max_pages if max_pages is not None else settings.max_pages} | "
        f"Concurrency: {settings.concurrent_pages if concurrency is None else concurrency}",
        title="Starting Crawl",
    ))

    try:
        result = asyncio.run(crawl_site(url, auth=auth, max_pages=max_pages, concurrency=concurrency))
    except KeyboardInterrupt:
        console.print("\n[yellow]Crawl cancelled by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[red]Crawl failed: {str(e)}[/red]")
        raise typer.Exit(1)

    _finish(url, result, output_dir, as_json)


def _finish(url: str, result: PageResult | CrawlResult, output_dir: Path | None, as_json: bool) -> None:
    if output_dir is not None:
        report_path = asyncio.run(ReportStorage(url, output_dir).save(result))
        console.print(f"Report saved to [cyan]{report_path}[/cyan]")

    if as_json:
        console.print_json(json.dumps(result.to_dict(include_auth=False)))
    elif isinstance(result, CrawlResult):
        _display_crawl(result)
    else:
        _display_page(result)


def _display_page(result: PageResult) -> None:
    """Display a page result in formatted tables."""
    console.print()

    scores = Table(title=f"Scores: {result.url}", show_header=True)
    scores.add_column("Category", style="cyan")
    scores.add_column("Score", style="green")
    for name, value in result.scores.to_dict().items():
        scores.add_row(name, str(value))
    console.print(scores)

    issues = result.issues
    summary = Table(title="Findings", show_header=True)
    summary.add_column("Check", style="cyan")
    summary.add_column("Errors", style="red")
    summary.add_column("Warnings", style="yellow")
    summary.add_column("Info", style="blue")

    for label, group in (
        ("Headings", issues.headings),
        ("Images", issues.images),
        ("Links", issues.links),
        ("Meta", issues.meta),
        ("HTML structure", issues.html_structure),
        ("Console", issues.console_errors),
    ):
        counts = {severity: 0 for severity in Severity}
        for issue in group:
            counts[issue.severity] += 1
        summary.add_row(
            label,
            str(counts[Severity.ERROR]),
            str(counts[Severity.WARNING]),
            str(counts[Severity.INFO]),
        )
    summary.add_row("Accessibility (axe)", str(len(issues.violations)), "-", "-")
    console.print(summary)

    problems = [
        issue
        for group in (issues.headings, issues.images, issues.links, issues.meta, issues.html_structure)
        for issue in group
        if issue.severity is Severity.ERROR
    ]
    if problems:
        console.print("\n[red]Errors:[/red]")
        for issue in problems[:10]:
            console.print(f"  • {issue.message}")

    if issues.violations:
        console.print("\n[yellow]Accessibility violations:[/yellow]")
        for violation in issues.violations[:10]:
            console.print(f"  • [{violation.impact}] {violation.help} ({violation.affected_node_count} nodes)")


def _display_crawl(result: CrawlResult) -> None:
    """Display a crawl result as one row per page."""
    console.print()

    table = Table(title=f"Crawl Summary: {result.start_url}", show_header=True)
    table.add_column("Page", style="cyan")
    table.add_column("Perf", style="green")
    table.add_column("A11y", style="green")
    table.add_column("SEO", style="green")
    table.add_column("Problems", style="yellow")

    for page in result.results:
        if not page.ok:
            table.add_row(page.url, "-", "-", "-", f"[red]{page.error}[/red]")
            continue
        table.add_row(
            page.url,
            str(page.scores.performance),
            str(page.scores.accessibility),
            str(page.scores.seo),
            str(page.issues.problem_count()),
        )

    console.print(table)
    console.print(f"Pages: {result.total_pages} | Failed: {len(result.failed_pages)}")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Site Checker version {__version__}")


if __name__ == "__main__":
    app()
