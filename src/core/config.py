"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Lets services (validators, cleanup, templates) read the vault layout consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "vaultkit"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "vaultkit"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "vaultkit"
    return Path.home() / ".config" / "vaultkit"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# vaultkit user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed and validated at the edge (env vars) without polluting the core.
    - A single configuration contract for the CLI and every service.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULTKIT_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    vault_path: Path = Field(
        default=Path("."),
        description="Root directory of the Obsidian vault.",
    )
    templates_dir: str = Field(
        default="06 - Templates",
        min_length=1,
        description="Vault-relative folder holding note templates.",
    )
    daily_notes_dir: str = Field(
        default="01 - Daily Notes",
        min_length=1,
        description="Vault-relative folder for daily notes.",
    )
    archive_dir: str = Field(
        default="07 - Archive",
        min_length=1,
        description="Vault-relative folder where cleanup moves archived notes.",
    )
    logs_dir: str = Field(
        default="08 - Logs",
        min_length=1,
        description="Vault-relative folder for generated logs and reports.",
    )
    home_note: str = Field(
        default="🏠 Home.md",
        description="Root note that is allowed to live at the top of the vault.",
    )
    ignore_patterns: list[str] = Field(
        default_factory=lambda: [".obsidian", "node_modules", "scripts", ".git", ".trash"],
        description="Directory names skipped while walking the vault.",
    )

    stale_after_days: int = Field(
        default=90,
        ge=1,
        le=3650,
        description="Notes untouched for longer than this are archived as stale.",
    )
    empty_note_max_chars: int = Field(
        default=200,
        ge=0,
        description="Notes at or below this many characters are treated as empty.",
    )
    compliance_threshold: float = Field(
        default=90.0,
        ge=0,
        le=100,
        description="Minimum per-file and overall compliance (%) for validation to pass.",
    )

    quality_cache_size: int = Field(
        default=1000,
        ge=1,
        description="Capacity of the lazy quality assessment cache.",
    )
    quick_assessor_volume_threshold: int = Field(
        default=1000,
        ge=1,
        description="Above this record count the quick assessor replaces the lazy one.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level (DEBUG, INFO, WARNING, ERROR).",
    )

    def vault_root(self) -> Path:
        return self.vault_path.expanduser().resolve()

    def archive_root(self) -> Path:
        return self.vault_root() / self.archive_dir

    def templates_root(self) -> Path:
        return self.vault_root() / self.templates_dir

    def daily_notes_root(self) -> Path:
        return self.vault_root() / self.daily_notes_dir

    def skipped_dirs(self) -> set[str]:
        """Directory names the vault walkers never descend into."""

        return {*self.ignore_patterns, self.archive_dir}
