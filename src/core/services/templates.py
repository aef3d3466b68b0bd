"""Template wizard and daily note generator."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from adapters.report_exporter import render_note
from core.config import AppSettings
from core.domain.models import TemplateConfig
from core.errors import NoteExistsError, TemplateConfigError

logger = logging.getLogger(__name__)

TEMPLATE_TYPES: tuple[str, ...] = (
    "template",
    "documentation",
    "guide",
    "note",
    "api-doc",
    "project-plan",
    "meeting-notes",
    "research",
    "specification",
    "dashboard",
)

SECTIONS: tuple[str, ...] = ("01", "02", "03", "04", "05", "06", "10")

AVAILABLE_SECTIONS: tuple[str, ...] = (
    "Overview",
    "Usage",
    "Examples",
    "Configuration",
    "Troubleshooting",
    "FAQ",
    "References",
)

REVIEW_AFTER = timedelta(days=30)


def detect_section(config: TemplateConfig) -> str:
    """Vault section a template belongs to, from its type and category."""

    category = config.category.lower()
    if config.type in ("note", "meeting-notes"):
        return "01"
    if config.type in ("api-doc", "specification"):
        return "02"
    if "development" in category or "code" in category:
        return "03"
    if config.type in ("documentation", "guide"):
        return "04"
    if "asset" in category or "resource" in category:
        return "05"
    return "06"


def template_path(settings: AppSettings, config: TemplateConfig) -> Path:
    return settings.templates_root() / f"{config.name}-Template.md"


def validate_config(config: TemplateConfig, target: Path | None = None) -> None:
    if not config.name.strip():
        raise TemplateConfigError("Template name is required")
    if " " in config.name:
        raise TemplateConfigError("Template name cannot contain spaces")
    if not config.category.strip():
        raise TemplateConfigError("Category is required")
    if len(config.tags) < 2:
        raise TemplateConfigError("At least 2 tags are required")
    if config.section is not None and config.section not in SECTIONS:
        raise TemplateConfigError(f"Unknown section {config.section!r}; expected one of {', '.join(SECTIONS)}")
    if target is not None and target.exists():
        raise TemplateConfigError(f"Template already exists: {target}")


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def render_template(
    config: TemplateConfig,
    now: datetime | None = None,
    *,
    templates_dir: str = "06 - Templates",
) -> str:
    now = now or datetime.now(timezone.utc)
    return render_note(
        "note_template.md.j2",
        config=config,
        title=f"{config.name[:1].upper()}{config.name[1:]} Template",
        slug=config.name.lower(),
        section=config.section or detect_section(config),
        created=_iso_utc(now),
        review_date=_iso_utc(now + REVIEW_AFTER),
        templates_dir=templates_dir,
    )


def create_template(settings: AppSettings, config: TemplateConfig, *, now: datetime | None = None) -> Path:
    target = template_path(settings, config)
    validate_config(config, target)

    content = render_template(config, now, templates_dir=settings.templates_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.info("Created template %s", target)
    return target


def daily_note_path(settings: AppSettings, day: date) -> Path:
    return settings.daily_notes_root() / f"{day.isoformat()}.md"


def render_daily_note(day: date, *, home_note: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return render_note(
        "daily_note.md.j2",
        day=day.isoformat(),
        weekday=day.strftime("%A"),
        created=_iso_utc(now),
        home=Path(home_note).stem,
    )


def create_daily_note(settings: AppSettings, day: date | None = None, *, now: datetime | None = None) -> Path:
    day = day or date.today()
    target = daily_note_path(settings, day)
    if target.exists():
        raise NoteExistsError(target)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_daily_note(day, home_note=settings.home_note, now=now), encoding="utf-8")
    logger.info("Created daily note %s", target)
    return target
