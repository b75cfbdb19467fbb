"""Command-line interface for unslop."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from github import GithubException
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from unslop import __version__
from unslop.config import Config, load_config, parse_categories, validate_config
from unslop.detectors import CatalogError
from unslop.models.findings import Category, FixAction, FixSafety
from unslop.models.remediation import RemediationMode
from unslop.models.report import Report, Scope
from unslop.remediation import (
    ConsoleDecisionProvider,
    DecisionProvider,
    DirtyWorkingTreeError,
    load_decisions,
)
from unslop.scanning import EmptyScopeError
from unslop.session import SessionController, StaleReportError
from unslop.store import ReportFormatError, ReportNotFoundError, ReportStore
from unslop.vcs import GitError

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_checked_config(config_path: str | None) -> Config:
    config = load_config(Path(config_path) if config_path else None)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)
    return config


def _categories(names: tuple[str, ...]) -> set[Category]:
    try:
        return parse_categories(names)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--category") from None


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """unslop - find and fix machine-generated slop in a repository."""
    setup_logging(verbose)


@cli.command("scan")
@click.argument("paths", nargs=-1)
@click.option("--all", "scan_all", is_flag=True, help="Scan every tracked file, not just changes")
@click.option("--category", "category_names", multiple=True, help="Only run rules of this category on prose")
@click.option(
    "--suppress-from",
    type=click.Path(path_type=Path),
    help="Report whose findings should not be repeated",
)
@click.option("--pr", help="Also scan pull request text (OWNER/REPO#N)")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def scan(
    paths: tuple[str, ...],
    scan_all: bool,
    category_names: tuple[str, ...],
    suppress_from: Path | None,
    pr: str | None,
    config_path: str | None,
) -> None:
    """Scan for slop and write a report.

    Without PATHS, files changed against scan.base_ref are scanned together
    with the commit messages on the branch.
    """
    config = _load_checked_config(config_path)
    categories = _categories(category_names)
    controller = SessionController(config)

    try:
        result = asyncio.run(
            controller.scan(
                paths=list(paths),
                scope=Scope.ALL if scan_all else Scope.CHANGED,
                categories=categories,
                suppress_from=suppress_from,
                pr=pr,
            )
        )
    except EmptyScopeError:
        console.print("[green]Nothing to scan.[/green]")
        return
    except (GitError, CatalogError, GithubException, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    report = result.report
    console.print(
        f"🔍 Scanned {report.files_scanned} files and {report.items_scanned} metadata items: "
        f"[bold]{report.summary.total}[/bold] findings"
    )
    if result.partial:
        failed = ", ".join(f"{f.partition} ({f.reason})" for f in report.partial_failures)
        console.print(f"[yellow]⚠️  Some partitions failed and were skipped: {failed}[/yellow]")

    if report.findings:
        console.print(_summary_table(report))
        console.print(f"\nReport written to {result.report_path}. Run [bold]unslop remediate[/bold] to fix.")


@cli.command("remediate")
@click.option("--dry-run", is_flag=True, help="Show planned edits without writing")
@click.option(
    "--category",
    "category_names",
    multiple=True,
    help="Only remediate this category (other findings are dropped if the report is removed)",
)
@click.option(
    "--decisions",
    "decisions_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML file with decisions for needs-review findings",
)
@click.option("--no-review", is_flag=True, help="Apply safe fixes only; leave needs-review findings pending")
@click.option("--fail-on-stale", is_flag=True, help="Exit with an error if the report is stale")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def remediate(
    dry_run: bool,
    category_names: tuple[str, ...],
    decisions_path: Path | None,
    no_review: bool,
    fail_on_stale: bool,
    config_path: str | None,
) -> None:
    """Fix findings from the last scan.

    Safe findings are fixed automatically. Needs-review findings are put to
    you one at a time, or answered from --decisions. When every edited file
    validates the report is removed, including findings left pending,
    rejected or outside --category.
    """
    config = _load_checked_config(config_path)
    categories = _categories(category_names)
    controller = SessionController(config)
    mode = RemediationMode.DRY_RUN if dry_run else RemediationMode.APPLY

    decisions: DecisionProvider | None = None
    if decisions_path is not None:
        try:
            decisions = load_decisions(decisions_path)
        except ValueError as e:
            console.print(f"[red]Error:[/red] invalid decisions file: {e}")
            sys.exit(1)
    elif not no_review and not dry_run and sys.stdin.isatty():
        decisions = ConsoleDecisionProvider(console)

    try:
        session = controller.remediate(mode, categories, decisions, fail_on_stale)
    except ReportNotFoundError:
        console.print("[red]No report found.[/red] Run [bold]unslop scan[/bold] first.")
        sys.exit(1)
    except ReportFormatError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("Delete the report and run [bold]unslop scan[/bold] again.")
        sys.exit(1)
    except StaleReportError as e:
        console.print(f"[red]Stale report:[/red] {e}")
        console.print("Run [bold]unslop scan[/bold] again.")
        sys.exit(1)
    except DirtyWorkingTreeError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        console.print("Commit or stash your changes, then run remediate again.")
        sys.exit(1)
    except GitError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if session.stale_report:
        console.print("[yellow]⚠️  Report is stale; findings that no longer match were skipped.[/yellow]")

    result = session.result
    if dry_run:
        console.print("[yellow]Dry run - no files changed[/yellow]")
        for path, plan in sorted(result.plans.items()):
            for edit in plan.ordered():
                new = "" if edit.action == FixAction.DELETE else edit.new_text
                console.print(
                    f"  {path}:{edit.line}  [red]{escape(repr(edit.old_text))}[/red] "
                    f"→ [green]{escape(repr(new))}[/green]"
                )
        console.print(f"{result.planned_edit_count} edits planned")

    table = Table(title="Remediation")
    table.add_column("Outcome")
    table.add_column("Findings", justify="right")
    for label, ids in (
        ("applied", result.applied),
        ("pending review", result.pending),
        ("rejected", result.rejected),
        ("downgraded to review", result.downgraded),
        ("conflicting", result.conflicting),
        ("stale", result.stale),
        ("not auto-fixable", result.not_auto_fixable),
    ):
        if ids:
            table.add_row(label, str(len(ids)))
    if table.row_count:
        console.print(table)

    if session.report_deleted:
        console.print("[green]✓ All edits validated; report removed.[/green]")
        if session.dropped:
            console.print(
                f"[yellow]{len(session.dropped)} unapplied findings were removed with it; "
                "run [bold]unslop scan[/bold] to list them again.[/yellow]"
            )

    if result.has_failures:
        console.print("[red]Rolled back files that failed validation:[/red]")
        for failure in result.failures:
            console.print(f"  • {failure.path}: {failure.reason}")
        console.print("The report was kept for the remaining findings.")
        sys.exit(1)


@cli.group("report")
def report_group() -> None:
    """Report commands."""
    pass


@report_group.command("show")
@click.option("--json", "as_json", is_flag=True, help="Print the raw report document")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def report_show(as_json: bool, config_path: str | None) -> None:
    """Show the stored report."""
    config = load_config(Path(config_path) if config_path else None)
    store = ReportStore(Path(config.store.path))

    try:
        report = store.read()
    except ReportNotFoundError:
        console.print("[red]No report found.[/red] Run [bold]unslop scan[/bold] first.")
        sys.exit(1)
    except ReportFormatError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    table = Table(title=f"Findings ({report.scope.value} scope, {report.created_at:%Y-%m-%d %H:%M})")
    table.add_column("ID", justify="right")
    table.add_column("Location")
    table.add_column("Type")
    table.add_column("Safety")
    table.add_column("Text")
    for finding in report.findings:
        safety = "[green]safe[/green]" if finding.fix_safety == FixSafety.SAFE else "[yellow]review[/yellow]"
        table.add_row(
            str(finding.id),
            str(finding.location),
            finding.type.value,
            safety,
            escape(finding.original_text[:60]),
        )
    console.print(table)
    console.print(_summary_table(report))


def _summary_table(report: Report) -> Table:
    summary = report.summary
    table = Table(title="Summary")
    table.add_column("Category")
    table.add_column("Findings", justify="right")
    for category, count in summary.by_category.items():
        if count:
            table.add_row(category.value, str(count))
    table.add_row(
        "[bold]total[/bold]",
        f"[bold]{summary.total}[/bold] "
        f"({summary.by_safety[FixSafety.SAFE]} safe, {summary.by_safety[FixSafety.NEEDS_REVIEW]} review)",
    )
    return table


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_validate(config_path: str | None) -> None:
    """Validate configuration file."""
    try:
        config = load_config(Path(config_path) if config_path else None)
        errors = validate_config(config)

        if errors:
            console.print("[red]Configuration is invalid:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            sys.exit(1)
        else:
            console.print("[green]✓ Configuration is valid[/green]")
    except (OSError, ValueError, TypeError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    config = load_config(Path(config_path) if config_path else None)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("scan.base_ref", config.scan.base_ref)
    table.add_row("scan.include_commits", str(config.scan.include_commits))
    table.add_row("scan.max_commits", str(config.scan.max_commits))
    table.add_row("scan.ignore_patterns", ", ".join(config.scan.ignore_patterns))
    table.add_row("scan.catalogs", ", ".join(config.scan.catalogs) or "(bundled only)")
    table.add_row("pool.max_concurrency", str(config.pool.max_concurrency))
    table.add_row("pool.timeout_seconds", str(config.pool.timeout_seconds or "none"))
    table.add_row("store.path", config.store.path)
    table.add_row("remediation.require_clean_tree", str(config.remediation.require_clean_tree))
    table.add_row("remediation.rollback_strategy", config.remediation.rollback_strategy)
    table.add_row("github.token", "set" if config.github.token else "not set")
    console.print(table)


if __name__ == "__main__":
    cli()
