"""
Rendering functions for profilekit output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from rich.markup import escape
from typing import List, Dict, Any, Optional, Sequence

from .domain.operation import OperationStatus, OperationSummary
from .domain.reports import TestReport

console = Console()

STATUS_STYLES = {
    OperationStatus.SUCCESS: "[green]✓ {}[/green]",
    OperationStatus.SKIPPED: "[yellow]- {}[/yellow]",
    OperationStatus.FAILED: "[red]✗ {}[/red]",
    OperationStatus.DRY_RUN: "[cyan]~ {}[/cyan]",
}


def _table(title: Optional[str] = None) -> Table:
    return Table(
        title=escape(title) if title else None,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def _fmt_number(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return f"{value:,}" if isinstance(value, int) else str(value)


def _fmt_delta(value: Any) -> str:
    if value is None:
        return "-"
    if value > 0:
        return f"[green]+{_fmt_number(value)}[/green]"
    if value < 0:
        return f"[red]{_fmt_number(value)}[/red]"
    return "0"


def render_table(headers: List[str], rows: List[List[Any]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = _table(title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_commit_check(results: Sequence) -> None:
    """
    Render commit-history validation as a table.

    Args:
        results: (GitCommit, ValidationResult) pairs
    """
    if not results:
        console.print("[yellow]No commits to check.[/yellow]")
        return

    table = _table("Commit Messages")
    table.add_column("Commit", style="cyan")
    table.add_column("Subject")
    table.add_column("Verdict")
    table.add_column("Reason", style="dim")

    for commit, result in results:
        verdict = "[green]ACCEPT[/green]" if result.accepted else "[red]REJECT[/red]"
        table.add_row(commit.short_hash, escape(result.subject), verdict, escape(result.reason or ""))

    console.print(table)
    rejected = sum(1 for _, r in results if not r.accepted)
    if rejected:
        console.print(f"[red]{rejected} of {len(results)} commit message(s) rejected[/red]")
    else:
        console.print(f"[green]All {len(results)} commit message(s) accepted[/green]")


def render_conversions(conversions: Sequence) -> None:
    """Render catalogue entries grouped by category."""
    if not conversions:
        console.print("[yellow]No conversions match.[/yellow]")
        return

    table = _table("Conversions")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="blue")
    table.add_column("Tool", style="magenta")
    table.add_column("Options", style="yellow")
    table.add_column("Description", style="dim")

    for entry in sorted(conversions, key=lambda c: (c.category, c.name)):
        table.add_row(
            entry.name,
            entry.category,
            entry.tool.id,
            ", ".join(entry.required_options),
            entry.description,
        )

    console.print(table)


def render_tool_status(statuses: Sequence) -> None:
    """Render conversion tool availability."""
    table = _table("Conversion Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Available")
    table.add_column("Path", style="dim")
    table.add_column("Conversions", justify="right")

    for status in statuses:
        available = "[green]yes[/green]" if status.available else "[red]no[/red]"
        table.add_row(status.id, available, status.path or "", str(status.conversions))

    console.print(table)


def render_summary(summary: OperationSummary, title: Optional[str] = None) -> None:
    """Render the details and counts of a multi-step operation."""
    if summary.details:
        table = _table(title)
        table.add_column("Step", style="cyan")
        table.add_column("Status")
        table.add_column("Details", style="dim")

        for detail in summary.details:
            style = STATUS_STYLES.get(detail.status, "{}")
            info = detail.error or detail.message or detail.metadata.get('output') or \
                detail.metadata.get('path') or ""
            table.add_row(escape(detail.name), style.format(detail.action), escape(str(info)))

        console.print(table)

    prefix = "[cyan]\\[dry run][/cyan] " if summary.dry_run else ""
    parts = [f"{summary.successful} succeeded"]
    if summary.skipped:
        parts.append(f"{summary.skipped} skipped")
    if summary.failed:
        parts.append(f"[red]{summary.failed} failed[/red]")
    console.print(prefix + ", ".join(parts))


def render_tool_checks(checks: Sequence) -> None:
    """Render setup tool checks."""
    table = _table("Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Required")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Minimum", style="dim")
    table.add_column("Path", style="dim")

    colors = {"ok": "green", "missing": "red", "outdated": "red", "unknown_version": "yellow"}
    for check in checks:
        status = check.status
        if status == "missing" and not check.required:
            color = "yellow"
        else:
            color = colors.get(status, "white")
        table.add_row(
            check.name,
            "yes" if check.required else "no",
            f"[{color}]{status}[/{color}]",
            check.version or "",
            check.min_version or "",
            check.path or "",
        )

    console.print(table)


def render_metrics(metrics: Dict[str, Any], title: str = "Code Metrics") -> None:
    """Render one CodeMetrics dict with its per-language breakdown."""
    table = _table(title)
    table.add_column("Language", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Code", justify="right")
    table.add_column("Comments", justify="right")
    table.add_column("Blank", justify="right")

    for name, lang in metrics.get('languages', {}).items():
        table.add_row(name, *[_fmt_number(lang[k]) for k in
                              ('files', 'lines', 'code_lines', 'comment_lines', 'blank_lines')])
    table.add_row(
        "[bold]total[/bold]",
        *[_fmt_number(metrics.get(k)) for k in
          ('files', 'lines', 'code_lines', 'comment_lines', 'blank_lines')]
    )
    console.print(table)

    coverage = metrics.get('coverage_percent')
    console.print(
        f"Functions: {_fmt_number(metrics.get('functions'))}  "
        f"Classes: {_fmt_number(metrics.get('classes'))}  "
        f"Test files: {_fmt_number(metrics.get('test_files'))}  "
        f"Coverage: {_fmt_number(coverage) + '%' if coverage is not None else 'n/a'}"
    )


def render_trends(trends: Dict[str, Any]) -> None:
    """Render the snapshot series with coverage changes."""
    series = trends.get('series', [])
    if not series:
        console.print("[yellow]No metrics snapshots yet. Run 'profilekit metrics snapshot'.[/yellow]")
        return

    table = _table("Metrics Trends")
    table.add_column("Snapshot", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Code lines", justify="right")
    table.add_column("Functions", justify="right")
    table.add_column("Test files", justify="right")
    table.add_column("Coverage %", justify="right")
    table.add_column("Change", justify="right")

    for row in series:
        table.add_row(
            row['timestamp'],
            _fmt_number(row.get('files')),
            _fmt_number(row.get('code_lines')),
            _fmt_number(row.get('functions')),
            _fmt_number(row.get('test_files')),
            _fmt_number(row.get('coverage_percent')),
            _fmt_delta(row.get('coverage_change')),
        )

    console.print(table)


def render_dashboard(data: Dict[str, Any]) -> None:
    """Render dashboard data: latest metrics, deltas and recent history."""
    latest = data['latest']
    title = "Code Metrics (live)" if data.get('live') else f"Code Metrics ({latest['timestamp']})"
    render_metrics(latest['metrics'], title=title)

    deltas = data.get('deltas')
    if deltas:
        table = _table(f"Change since {data['previous']['timestamp']}")
        table.add_column("Metric", style="cyan")
        table.add_column("Change", justify="right")
        for name, value in deltas.items():
            table.add_row(name, _fmt_delta(value))
        console.print(table)

    history = data.get('history') or []
    if len(history) > 1:
        render_trends({'series': history})


def render_test_report(report: TestReport, title: str = "Test Results") -> None:
    """Render per-suite counts and the failed cases."""
    if not report.suites:
        console.print("[yellow]No test suites ran.[/yellow]")
        return

    table = _table(title)
    table.add_column("Suite", style="cyan")
    table.add_column("Tests", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failures", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Time (s)", justify="right", style="dim")

    for suite in report.suites:
        failures = f"[red]{suite.failures}[/red]" if suite.failures else "0"
        errors = f"[red]{suite.errors}[/red]" if suite.errors else "0"
        table.add_row(suite.name, str(suite.tests), str(suite.passed), failures, errors,
                      str(suite.skipped), f"{suite.duration:.2f}")

    console.print(table)

    for suite in report.suites:
        for case in suite.failed_cases:
            console.print(f"  [red]✗[/red] {suite.name}: {escape(case)}")

    if report.success:
        console.print(f"[green]{report.passed} passed[/green], {report.skipped} skipped")
    else:
        console.print(f"[red]{report.failures} failed, {report.errors} errors[/red], {report.passed} passed")


def render_missing_tests(missing: List[Dict[str, str]]) -> None:
    if not missing:
        console.print("[green]Every module has a test file.[/green]")
        return
    render_table(["Module", "Expected test"],
                 [[m['module'], m['expected_test']] for m in missing],
                 title=f"Modules without tests ({len(missing)})")
