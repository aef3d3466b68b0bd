"""Template rendering and report export.

Why in adapters:
- HTML/PDF and markdown rendering are infrastructure details (Jinja2/WeasyPrint).
- The core only hands over plain context values and `HealthMetrics`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import HealthMetrics

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def _get_text_env() -> Environment:
    """Environment for markdown notes: no escaping, block tags eat their newline."""

    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_note(template_name: str, **context: Any) -> str:
    """Render one of the `*.md.j2` note templates."""

    return _get_text_env().get_template(template_name).render(**context)


def render_health_html(*, metrics: HealthMetrics, vault_name: str) -> str:
    """Render a self-contained HTML health dashboard."""

    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    categories = sorted(metrics.categories.items(), key=lambda kv: kv[1].score)

    template = _get_env().get_template("health.html")
    return template.render(
        metrics=metrics,
        vault_name=vault_name,
        generated_at=generated_at,
        categories=categories,
    )


def export_health_html(*, metrics: HealthMetrics, vault_name: str, output_path: Path) -> Path:
    """Export the dashboard as HTML.

    Also the fallback when PDF rendering is not supported by the environment.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    html = render_health_html(metrics=metrics, vault_name=vault_name)
    output_path.write_text(html, encoding="utf-8")
    return output_path


def export_health_pdf(*, metrics: HealthMetrics, vault_name: str, output_path: Path) -> Path:
    """Export the dashboard as PDF.

    WeasyPrint needs native libraries (pango/cairo); when they are missing or
    rendering fails, an `.html` file is written next to the requested path and
    its path is returned instead.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    html = render_health_html(metrics=metrics, vault_name=vault_name)
    try:
        from weasyprint import HTML

        HTML(string=html, base_url=str(_TEMPLATES_DIR)).write_pdf(str(output_path))
    except (ImportError, OSError) as exc:
        fallback = output_path.with_suffix(".html")
        logger.warning("PDF export failed (%s); writing HTML to %s", exc, fallback)
        fallback.write_text(html, encoding="utf-8")
        return fallback
    return output_path
