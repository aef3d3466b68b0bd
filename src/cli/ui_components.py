"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets several commands reuse the same tables and panels.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import (
    CanvasReport,
    CleanupResult,
    DataQuality,
    HealthMetrics,
    LintReport,
    ProjectValidationResult,
    TemplateAnalyticsReport,
    VaultMetrics,
)


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Lives here (not in main) to avoid a main <-> doctor import cycle.
    """

    title = Text("VAULTKIT", style="bold cyan")
    subtitle = Text("Obsidian vault validation • Analytics • Cleanup", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def score_style(score: float) -> str:
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def _kb(size: int) -> str:
    return f"{size / 1024:.1f} KB"


def build_validation_table(result: ProjectValidationResult, *, limit: int = 20) -> Table:
    """Least compliant files first."""

    table = Table(title="Documentation compliance")
    table.add_column("File", style="cyan")
    table.add_column("Compliance", justify="right")
    table.add_column("Frontmatter", justify="center")
    table.add_column("Code blocks", justify="right")
    table.add_column("First error", style="red")

    ranked = sorted(result.results, key=lambda r: r.overall_compliance)
    for item in ranked[:limit]:
        errors = item.frontmatter.errors + item.code_blocks.errors
        first = f"L{errors[0].line}: {errors[0].message}" if errors else ""
        score = item.overall_compliance
        table.add_row(
            escape(item.file_path),
            f"[{score_style(score)}]{score:.0f}%[/]",
            "✅" if item.frontmatter.is_valid else "❌",
            f"{item.code_blocks.compliant_blocks}/{item.code_blocks.total_blocks}",
            escape(first),
        )
    return table


def build_validation_summary(result: ProjectValidationResult) -> Panel:
    summary = result.summary
    body = Text()
    body.append(f"Files: {result.total_files}\n")
    body.append(f"Compliant: {result.compliant_files}\n", style="green")
    body.append(f"Non-compliant: {result.non_compliant_files}\n", style="red")
    body.append(f"Frontmatter compliance: {summary.frontmatter_compliance:.1f}%\n")
    body.append(f"Code block compliance: {summary.code_block_compliance:.1f}%\n")
    if summary.common_issues:
        body.append("\nMost common issues:\n", style="bold")
        for issue in summary.common_issues:
            body.append(f"- {issue.issue} ({issue.count})\n")
    overall = result.overall_compliance
    return Panel(
        body,
        title=Text(f"Overall compliance {overall:.1f}%", style=f"bold {score_style(overall)}"),
        border_style=score_style(overall),
    )


def build_lint_panel(report: LintReport) -> Panel:
    body = Text()
    for issue in report.issues:
        body.append(f"❌ {issue}\n", style="red")
    for warning in report.warnings:
        body.append(f"⚠️  {warning}\n", style="yellow")
    stats = report.stats
    body.append(
        f"\nFiles checked: {stats.total_files} • valid names: {stats.valid_files} • "
        f"invalid names: {stats.invalid_files} • orphaned: {stats.orphaned_files}",
        style="dim",
    )
    title = "Lint passed" if report.passed else f"Lint failed ({len(report.issues)} issues)"
    return Panel(body, title=title, border_style="green" if report.passed else "red")


def build_canvas_tables(report: CanvasReport) -> list[Table]:
    metrics = report.metrics
    overview = Table(title="Canvas overview")
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right")
    overview.add_row("Canvases", str(metrics.total_canvases))
    overview.add_row("Nodes", str(metrics.total_nodes))
    overview.add_row("Connections", str(metrics.total_connections))
    overview.add_row("Average complexity", f"{metrics.average_complexity:.1f}")
    overview.add_row("Total size", _kb(metrics.total_size))
    overview.add_row("Health", f"[{score_style(metrics.health_score)}]{metrics.health_score:.1f}%[/]")

    canvases = Table(title="Canvases")
    canvases.add_column("Canvas", style="cyan")
    canvases.add_column("Type")
    canvases.add_column("Nodes", justify="right")
    canvases.add_column("Edges", justify="right")
    canvases.add_column("Health", justify="right")
    canvases.add_column("Status")
    canvases.add_column("Issues", justify="right")
    for canvas in sorted(report.canvases, key=lambda c: c.health):
        canvases.add_row(
            escape(canvas.path),
            canvas.canvas_type,
            str(canvas.node_count),
            str(canvas.connection_count),
            f"[{score_style(canvas.health)}]{canvas.health:.0f}[/]",
            canvas.status,
            str(len(canvas.issues)),
        )

    directories = Table(title="By directory")
    directories.add_column("Directory", style="cyan")
    directories.add_column("Canvases", justify="right")
    directories.add_column("Nodes", justify="right")
    directories.add_column("Size", justify="right")
    directories.add_column("Avg health", justify="right")
    directories.add_column("Status")
    for stats in report.by_directory:
        directories.add_row(
            escape(stats.directory),
            str(stats.canvas_count),
            str(stats.total_nodes),
            _kb(stats.total_size),
            f"{stats.average_health:.1f}",
            stats.status,
        )

    buckets = Table(title="Distribution")
    buckets.add_column("Bucket", style="cyan")
    buckets.add_column("Count", justify="right")
    buckets.add_column("Share", justify="right")
    for bucket in [*report.by_complexity, *report.by_size]:
        buckets.add_row(bucket.label, str(bucket.count), f"{bucket.percentage:.1f}%")

    return [overview, canvases, directories, buckets]


def build_analytics_table(report: TemplateAnalyticsReport) -> Table:
    table = Table(title=f"Template analytics (avg usage {report.average_usage_score:.1f}/100)")
    table.add_column("Template", style="cyan")
    table.add_column("Category")
    table.add_column("Usage", justify="right")
    table.add_column("Complexity", justify="right")
    table.add_column("Backlinks", justify="right")
    table.add_column("Outbound", justify="right")
    for template in sorted(report.templates, key=lambda t: t.usage_score, reverse=True):
        table.add_row(
            escape(template.name),
            template.category,
            f"{template.usage_score:.0f}",
            str(template.complexity),
            str(template.backlinks),
            str(template.outbound_links),
        )
    return table


def build_opportunities_panel(report: TemplateAnalyticsReport) -> Panel:
    body = Text()
    for item in report.optimization_opportunities:
        body.append(f"• {item}\n")
    for category, items in sorted(report.recommendations_by_category.items()):
        unique = list(dict.fromkeys(items))[:3]
        if not unique:
            continue
        body.append(f"\n{category} ({len(items)} recommendations)\n", style="bold cyan")
        for item in unique:
            body.append(f"  - {item}\n")
    return Panel(body, title="Optimization opportunities", border_style="yellow")


def build_health_panel(metrics: HealthMetrics) -> Panel:
    table = Table(show_header=True, box=None)
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Issues", justify="right")
    for name, category in metrics.categories.items():
        table.add_row(name, f"[{score_style(category.score)}]{category.score:.1f}[/]", str(category.issues))

    overall = metrics.overall
    title = Text(f"Vault health {overall.score:.1f} • grade {overall.grade}", style=f"bold {score_style(overall.score)}")
    return Panel(table, title=title, border_style=score_style(overall.score))


def build_quality_table(rows: list[tuple[str, DataQuality]], threshold: float) -> Table:
    table = Table(title=f"Record quality (threshold {threshold:.2f})")
    table.add_column("Record", style="cyan")
    for name in ("Complete", "Accurate", "Fresh", "Consistent", "Valid", "Overall"):
        table.add_column(name, justify="right")
    for key, quality in rows:
        style = "green" if quality.overall >= threshold else "red"
        table.add_row(
            escape(key),
            f"{quality.completeness:.2f}",
            f"{quality.accuracy:.2f}",
            f"{quality.freshness:.2f}",
            f"{quality.consistency:.2f}",
            f"{quality.validity:.2f}",
            f"[{style}]{quality.overall:.2f}[/]",
        )
    return table


def build_cleanup_panel(result: CleanupResult) -> Panel:
    body = Text()
    verb = "Would archive" if result.dry_run else "Archived"
    for rel in result.archived:
        body.append(f"📦 {verb} (stale): {rel}\n", style="green")
    for rel in result.cleaned:
        body.append(f"🧹 {verb}: {rel}\n", style="blue")
    for error in result.errors:
        body.append(f"❌ {error}\n", style="red")
    body.append(
        f"\nStale: {len(result.archived)} • cleaned: {len(result.cleaned)} • "
        f"space: {_kb(result.space_saved)}",
        style="dim",
    )
    title = "Cleanup plan (dry run)" if result.dry_run else "Cleanup results"
    return Panel(body, title=title, border_style="yellow" if result.dry_run else "green")


def build_metrics_table(metrics: VaultMetrics) -> Table:
    table = Table(title="Vault metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Notes", str(metrics.total_files))
    table.add_row("Folders", str(metrics.total_folders))
    table.add_row("Size", _kb(metrics.total_size))
    table.add_row("Links", str(metrics.total_links))
    table.add_row("Distinct tags", str(metrics.total_tags))
    table.add_row("With frontmatter", str(metrics.files_with_frontmatter))
    table.add_row("Without backlinks", str(metrics.orphaned_files))
    return table
