"""Doctor command for environment diagnostics."""

from __future__ import annotations

import tempfile
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.report_exporter import export_health_pdf
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.models import CategoryScore, HealthMetrics, OverallHealth
from core.services.vault_lint import REQUIRED_FOLDERS
from core.services.vault_state import CONFIG_FILE, STATUS_FILE

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_pdf() -> tuple[bool, str]:
    """Render a minimal dashboard to detect WeasyPrint issues."""

    metrics = HealthMetrics(
        overall=OverallHealth(score=100.0, grade="A"),
        categories={"yaml": CategoryScore(score=100.0)},
    )
    with tempfile.TemporaryDirectory() as tmp:
        out = export_health_pdf(metrics=metrics, vault_name="doctor", output_path=Path(tmp) / "doctor.pdf")
        if out.suffix != ".pdf":
            return False, "WeasyPrint unavailable, HTML fallback in use"
    return True, "OK"


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings: AppSettings = ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()
    root = settings.vault_root()

    table = Table(title="vaultkit doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    vault_ok = root.is_dir()
    table.add_row("Vault", "OK" if vault_ok else "FAIL", str(root))

    if vault_ok:
        missing = [f for f in REQUIRED_FOLDERS if not (root / f).is_dir()]
        table.add_row(
            "Folders",
            "OK" if not missing else "WARN",
            "All required folders present" if not missing else f"Missing: {', '.join(missing)}",
        )
        for name in (CONFIG_FILE, STATUS_FILE):
            present = (root / name).is_file()
            table.add_row(name, "OK" if present else "OPTIONAL", "found" if present else "run `vaultkit init`")

    user_env = get_user_env_file()
    table.add_row("User config", "OK" if user_env.is_file() else "OPTIONAL", str(user_env))

    ok_pdf, detail_pdf = _check_pdf()
    table.add_row("WeasyPrint PDF", "OK" if ok_pdf else "FAIL", detail_pdf)

    _console.print(table)

    if not ok_pdf:
        _console.print(
            "\n[yellow]Note:[/yellow] When PDF export fails, `health --pdf` automatically falls back to HTML."
        )
    if not vault_ok:
        raise typer.Exit(code=1)


@app.command()
def setup() -> None:
    """Interactive setup (stores defaults in the user config .env)."""

    defaults = AppSettings()
    vault = typer.prompt("Vault path", default=str(defaults.vault_root()), show_default=True).strip()
    templates = typer.prompt("Templates folder", default=defaults.templates_dir, show_default=True).strip()
    archive = typer.prompt("Archive folder", default=defaults.archive_dir, show_default=True).strip()
    stale_days = typer.prompt("Archive notes untouched for (days)", default=defaults.stale_after_days, type=int)

    if not Path(vault).expanduser().is_dir():
        raise typer.BadParameter(f"Vault directory not found: {vault}")
    if stale_days < 1:
        raise typer.BadParameter("days must be >= 1")

    env_path = write_user_env_vars(
        {
            "VAULTKIT_VAULT_PATH": vault,
            "VAULTKIT_TEMPLATES_DIR": templates,
            "VAULTKIT_ARCHIVE_DIR": archive,
            "VAULTKIT_STALE_AFTER_DAYS": str(stale_days),
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
