"""Persisted vault state: `.vault-config.json` and `.vault-status.json`."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from adapters.json_exporter import load_json_object, write_json_object
from adapters.vault_files import ensure_vault, iter_vault_files, read_note
from core.config import AppSettings
from core.domain.models import VaultConfig, VaultStateCheck, VaultStatus
from core.services.markdown import split_frontmatter

logger = logging.getLogger(__name__)

CONFIG_FILE = ".vault-config.json"
STATUS_FILE = ".vault-status.json"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_config(settings: AppSettings) -> VaultConfig:
    now = _now_iso()
    return VaultConfig(
        created=now,
        last_modified=now,
        paths={
            "templates": f"{settings.templates_dir}/",
            "dailyNotes": f"{settings.daily_notes_dir}/",
            "archive": f"{settings.archive_dir}/",
            "logs": f"{settings.logs_dir}/",
        },
        standards={
            "namingConvention": "PascalCase",
            "dateFormat": "YYYY-MM-DD",
            "templateValidation": True,
        },
    )


class VaultManager:
    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.root = ensure_vault(settings.vault_root())
        self.config_path = self.root / CONFIG_FILE
        self.status_path = self.root / STATUS_FILE
        self.config = self._load_config()
        self.status = self._load_status()

    def _load_config(self) -> VaultConfig:
        try:
            data = load_json_object(self.config_path)
            if data:
                return VaultConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable %s: %s", CONFIG_FILE, exc)
        return default_config(self.settings)

    def _load_status(self) -> VaultStatus:
        try:
            return VaultStatus.model_validate(load_json_object(self.status_path))
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable %s: %s", STATUS_FILE, exc)
        return VaultStatus()

    def save_config(self) -> Path:
        self.config.last_modified = _now_iso()
        return write_json_object(data=self.config.model_dump(by_alias=True), output_path=self.config_path)

    def save_status(self) -> Path:
        self.status.last_modified = _now_iso()
        # Keys written by other tools (e.g. cleanup stats) are kept.
        try:
            data = load_json_object(self.status_path)
        except ValueError:
            data = {}
        data.update(self.status.model_dump(by_alias=True))
        return write_json_object(data=data, output_path=self.status_path)

    def directories(self) -> list[Path]:
        return [self.root / rel.rstrip("/") for rel in self.config.paths.values()]

    def initialize(self) -> list[Path]:
        """Create the configured folders and write both state files."""

        created: list[Path] = []
        for directory in self.directories():
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                created.append(directory)
        self.save_config()
        self.save_status()
        logger.info("Initialized vault at %s (%d folders created)", self.root, len(created))
        return created

    def validate(self) -> VaultStateCheck:
        result = VaultStateCheck()
        self._validate_config(result)
        self._validate_directories(result)
        self._validate_templates(result)

        self.status.last_validation = _now_iso()
        self.status.health = "healthy" if result.valid else "unhealthy"
        self.status.issues = [*result.errors, *result.warnings]
        self.status.metrics.total_files = sum(
            1 for _ in iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs())
        )
        self.status.metrics.validated_files = result.files_checked
        self.status.metrics.error_count = len(result.errors)
        self.save_status()
        return result

    def _validate_config(self, result: VaultStateCheck) -> None:
        if not self.config_path.exists():
            result.errors.append(f"Configuration file issue: {CONFIG_FILE} not found")
            result.valid = False
            return
        try:
            json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            result.errors.append(f"Configuration file issue: {exc}")
            result.valid = False

    def _validate_directories(self, result: VaultStateCheck) -> None:
        for directory in self.directories():
            if directory.is_dir():
                result.files_checked += 1
            else:
                result.errors.append(f"Missing required directory: {directory.relative_to(self.root)}")
                result.valid = False

    def _validate_templates(self, result: VaultStateCheck) -> None:
        templates = self.config.paths.get("templates", f"{self.settings.templates_dir}/")
        template_dir = self.root / templates.rstrip("/")
        if not template_dir.is_dir():
            result.warnings.append(f"Could not validate templates: {template_dir.name} not found")
            return

        for path in sorted(template_dir.glob("*.md")):
            try:
                content = read_note(path)
            except (OSError, UnicodeDecodeError) as exc:
                result.warnings.append(f"Could not read template {path.name}: {exc}")
                continue
            if split_frontmatter(content) is None:
                result.warnings.append(f"Template {path.name} missing frontmatter")
            result.files_checked += 1

    def generate_report(self) -> str:
        config, status = self.config, self.status
        settings = config.settings
        lines = [
            "# 📊 Vault Report",
            "",
            f"Generated: {_now_iso()}",
            "",
            "## 🏛️ Configuration",
            f"- Version: {config.version}",
            f"- Created: {config.created}",
            f"- Last Modified: {config.last_modified}",
            "",
            "## 📈 Status",
            f"- Health: {status.health}",
            f"- Last Validation: {status.last_validation or 'Never'}",
            f"- Last Organization: {status.last_organization or 'Never'}",
            f"- Issues: {len(status.issues)}",
            "",
            "## 📊 Metrics",
            f"- Total Files: {status.metrics.total_files}",
            f"- Organized Files: {status.metrics.organized_files}",
            f"- Validated Files: {status.metrics.validated_files}",
            f"- Error Count: {status.metrics.error_count}",
            "",
            "## ⚙️ Settings",
            f"- Auto Organize: {str(settings.auto_organize).lower()}",
            f"- Validate on Save: {str(settings.validate_on_save).lower()}",
            f"- Enable Monitoring: {str(settings.enable_monitoring).lower()}",
            f"- Log Level: {settings.log_level}",
        ]
        return "\n".join(lines)
