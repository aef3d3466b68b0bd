"""vaultkit command line interface (Typer + Rich)."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.markdown import Markdown

from adapters.json_exporter import dumps_model, export_json
from adapters.report_exporter import export_health_html, export_health_pdf
from adapters.vault_files import relative
from cli import doctor
from cli.ui_components import (
    build_analytics_table,
    build_canvas_tables,
    build_cleanup_panel,
    build_health_panel,
    build_lint_panel,
    build_metrics_table,
    build_opportunities_panel,
    build_quality_table,
    build_validation_summary,
    build_validation_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import TemplateConfig
from core.errors import VaultKitError
from core.services.canvas import CanvasMonitor
from core.services.cleanup import VaultCleanup
from core.services.health import calculate_health
from core.services.project_validator import DEFAULT_PATTERN, compliance_verdict, list_notes, validate_project
from core.services.quality import LazyQualityAssessor, QualityAssessorFactory, load_records, note_records
from core.services.template_analytics import TemplateAnalytics, usage_distribution
from core.services.templates import AVAILABLE_SECTIONS, TEMPLATE_TYPES, create_daily_note, create_template
from core.services.vault_index import FILE_CREATED, VaultIndex
from core.services.vault_lint import VaultLinter
from core.services.vault_state import VaultManager

app = typer.Typer(
    no_args_is_help=True,
    help="Validate, analyze and clean up an Obsidian vault.",
)
template_app = typer.Typer(no_args_is_help=True, help="Template and daily note generators.")
app.add_typer(doctor.app, name="doctor")
app.add_typer(template_app, name="template")

_console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _settings(ctx: typer.Context) -> AppSettings:
    return ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()


@contextmanager
def _vault_errors() -> Iterator[None]:
    try:
        yield
    except VaultKitError as exc:
        _console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _write_json(model, output: Path | None) -> None:
    if output is not None:
        path = export_json(model=model, output_path=output)
        _console.print(f"[green]JSON written to:[/green] {path}")


@app.callback()
def main(
    ctx: typer.Context,
    vault: Path | None = typer.Option(None, "--vault", "-p", help="Vault root (default: VAULTKIT_VAULT_PATH or cwd)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    banner: bool = typer.Option(False, "--banner", help="Print the banner before the command output."),
) -> None:
    overrides = {"vault_path": vault} if vault is not None else {}
    settings = AppSettings(**overrides)
    _configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings
    if banner:
        print_banner(_console)


@app.command()
def validate(
    ctx: typer.Context,
    pattern: str = typer.Argument(DEFAULT_PATTERN, help="Glob of notes to check, relative to the vault."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only list the files that would be checked."),
    json_out: Path | None = typer.Option(None, "--json", help="Also write the full result as JSON."),
) -> None:
    """Check frontmatter and code blocks against the documentation standards."""

    settings = _settings(ctx)
    with _vault_errors():
        if dry_run:
            notes = list_notes(settings, pattern)
            root = settings.vault_root()
            for path in notes:
                _console.print(f"  {relative(path, root)}")
            _console.print(f"[cyan]{len(notes)} files would be validated.[/cyan]")
            return
        result = validate_project(settings, pattern)

    if result.total_files == 0:
        _console.print(f"[yellow]No files match {pattern!r}.[/yellow]")
        return

    _console.print(build_validation_table(result))
    _console.print(build_validation_summary(result))
    for error in result.errors:
        _console.print(f"[red]Unreadable:[/red] {escape(error)}")
    _console.print(compliance_verdict(result.overall_compliance))
    _write_json(result, json_out)

    if result.overall_compliance < settings.compliance_threshold:
        raise typer.Exit(code=1)


@app.command()
def lint(ctx: typer.Context) -> None:
    """Check folder structure, naming, links, tags and content hygiene."""

    with _vault_errors():
        report = VaultLinter(_settings(ctx)).lint()
    _console.print(build_lint_panel(report))
    if not report.passed:
        raise typer.Exit(code=1)


@app.command()
def canvas(
    ctx: typer.Context,
    json_out: Path | None = typer.Option(None, "--json", help="Also write the report as JSON."),
) -> None:
    """Canvas health dashboard."""

    with _vault_errors():
        report = CanvasMonitor(_settings(ctx)).scan()
    if not report.canvases:
        _console.print("[yellow]No canvas files found.[/yellow]")
    else:
        for table in build_canvas_tables(report):
            _console.print(table)
    for error in report.errors:
        _console.print(f"[red]{escape(error)}[/red]")
    _write_json(report, json_out)


@template_app.command("new")
def template_new(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Template name without spaces."),
    doc_type: str | None = typer.Option(None, "--type", help=f"One of: {', '.join(TEMPLATE_TYPES)}."),
    category: str | None = typer.Option(None, "--category"),
    priority: str = typer.Option("medium", "--priority", help="low, medium or high."),
    description: str | None = typer.Option(None, "--description"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Extra tag (repeatable); `template` is always added."),
    section: str | None = typer.Option(None, "--section", help="01-06 or 10; auto-detected when omitted."),
    include: list[str] | None = typer.Option(
        None, "--include-section", help=f"Section to include (repeatable): {', '.join(AVAILABLE_SECTIONS)}."
    ),
    examples: bool = typer.Option(True, "--examples/--no-examples"),
) -> None:
    """Create a standards-compliant template, prompting for missing values."""

    settings = _settings(ctx)
    name = name or typer.prompt("Template name (without spaces)")
    doc_type = doc_type or typer.prompt("Template type", default="template")
    category = category or typer.prompt("Category (e.g. development, design, system)", default="general")
    if description is None:
        description = typer.prompt("Short description", default="")
    if not tags:
        raw = typer.prompt("Tags (comma-separated)", default="documentation")
        tags = [t.strip() for t in raw.split(",") if t.strip()]

    try:
        config = TemplateConfig(
            name=name,
            type=doc_type,
            category=category,
            section=section,
            priority=priority,
            description=description,
            tags=list(dict.fromkeys(["template", *tags])),
            include_examples=examples,
            include_sections=include or ["Overview", "Usage", "Examples"],
        )
    except ValidationError as exc:
        _console.print(f"[red]Invalid template options:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    with _vault_errors():
        path = create_template(settings, config)
    _console.print(f"[green]Template created:[/green] {path}")


@template_app.command("daily")
def template_daily(
    ctx: typer.Context,
    day: datetime | None = typer.Option(None, "--date", formats=["%Y-%m-%d"], help="Defaults to today."),
) -> None:
    """Create the daily note (never overwrites an existing one)."""

    with _vault_errors():
        path = create_daily_note(_settings(ctx), day.date() if day else None)
    _console.print(f"[green]Daily note created:[/green] {path}")


@app.command()
def analytics(
    ctx: typer.Context,
    json_out: Path | None = typer.Option(None, "--json", help="Also write the report as JSON."),
) -> None:
    """Template usage analytics dashboard."""

    with _vault_errors():
        report = TemplateAnalytics(_settings(ctx)).run()
    if not report.templates:
        _console.print("[yellow]No templates found.[/yellow]")
        return

    _console.print(build_analytics_table(report))
    distribution = ", ".join(f"{band}: {count}" for band, count in usage_distribution(report.templates).items())
    _console.print(f"[dim]Usage distribution: {distribution}[/dim]")
    _console.print(build_opportunities_panel(report))
    _write_json(report, json_out)


@app.command()
def health(
    ctx: typer.Context,
    html: Path | None = typer.Option(None, "--html", help="Write the HTML dashboard."),
    pdf: Path | None = typer.Option(None, "--pdf", help="Write a PDF dashboard (falls back to HTML)."),
    json_out: Path | None = typer.Option(None, "--json", help="Also write the metrics as JSON."),
) -> None:
    """Vault health score (yaml, links, tags, structure, freshness)."""

    settings = _settings(ctx)
    with _vault_errors():
        metrics = calculate_health(settings)

    _console.print(build_health_panel(metrics))
    for item in metrics.recommendations:
        _console.print(f"  💡 {item}")

    vault_name = settings.vault_root().name
    if html is not None:
        path = export_health_html(metrics=metrics, vault_name=vault_name, output_path=html)
        _console.print(f"[green]HTML written to:[/green] {path}")
    if pdf is not None:
        path = export_health_pdf(metrics=metrics, vault_name=vault_name, output_path=pdf)
        if path.suffix != ".pdf":
            _console.print("[yellow]PDF export failed; wrote HTML instead.[/yellow]")
        _console.print(f"[green]Report written to:[/green] {path}")
    _write_json(metrics, json_out)


@app.command()
def quality(
    ctx: typer.Context,
    source: Path | None = typer.Argument(None, help="JSON/JSONL file of records (default: note frontmatter)."),
    threshold: float = typer.Option(0.7, "--threshold", min=0.0, max=1.0),
) -> None:
    """Lazy quality assessment of records."""

    settings = _settings(ctx)
    QualityAssessorFactory.configure(settings)
    try:
        with _vault_errors():
            records = load_records(source) if source is not None else note_records(settings)
    except (OSError, ValueError) as exc:
        _console.print(f"[red]Cannot read records:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if not records:
        _console.print("[yellow]No records to assess.[/yellow]")
        return

    assessor = QualityAssessorFactory.for_volume(len(records), settings.quick_assessor_volume_threshold)
    if isinstance(assessor, LazyQualityAssessor):
        pending = assessor.assess_batch_lazy((record, key) for key, record in records)
        rows = [(key, item.assess()) for (key, _), item in zip(records, pending)]
        _console.print(build_quality_table(rows, threshold))
        below = sum(1 for _, q in rows if q.overall < threshold)
    else:
        scores = assessor.assess_batch_quick(record for _, record in records)
        below = sum(1 for s in scores if s < threshold)
        _console.print(f"Quick assessment of {len(scores)} records (average {sum(scores) / len(scores):.2f}).")
    _console.print(f"{below} of {len(records)} records below {threshold:.2f}.")


@app.command()
def cleanup(
    ctx: typer.Context,
    dry_run: bool = typer.Option(True, "--dry-run/--apply", help="Only report (default) or actually move files."),
) -> None:
    """Archive stale, empty, orphaned and duplicate notes."""

    with _vault_errors():
        result = VaultCleanup(_settings(ctx), dry_run=dry_run).cleanup_all()
    _console.print(build_cleanup_panel(result))
    if dry_run and (result.archived or result.cleaned):
        _console.print("[dim]Run with --apply to move these files.[/dim]")
    if result.errors:
        raise typer.Exit(code=1)


@app.command()
def init(ctx: typer.Context) -> None:
    """Create the vault folders and state files."""

    with _vault_errors():
        manager = VaultManager(_settings(ctx))
        created = manager.initialize()
    for directory in created:
        _console.print(f"[green]Created[/green] {directory.relative_to(manager.root)}")
    _console.print(f"[green]Vault initialized:[/green] {manager.root}")


@app.command()
def status(
    ctx: typer.Context,
    check: bool = typer.Option(False, "--check", help="Validate config, folders and templates first."),
) -> None:
    """Show the persisted vault status and live metrics."""

    settings = _settings(ctx)
    with _vault_errors():
        manager = VaultManager(settings)
        index = VaultIndex(settings)
        index.events.on(FILE_CREATED, lambda f: logger.debug("Indexed %s", f.path))
        index.scan()

        if check:
            result = manager.validate()
            index.mark_validated(result)
            for error in result.errors:
                _console.print(f"[red]❌ {escape(error)}[/red]")
            for warning in result.warnings:
                _console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]")
            _console.print("Validation result: " + ("[green]PASSED[/green]" if result.valid else "[red]FAILED[/red]"))

    _console.print_json(dumps_model(manager.status))
    _console.print(build_metrics_table(index.metrics))
    if check and not result.valid:
        raise typer.Exit(code=1)


@app.command()
def report(
    ctx: typer.Context,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the markdown report to a file."),
) -> None:
    """Markdown report of the vault configuration and status."""

    with _vault_errors():
        text = VaultManager(_settings(ctx)).generate_report()
    if output is None:
        _console.print(Markdown(text))
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    _console.print(f"[green]Report written to:[/green] {output}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
