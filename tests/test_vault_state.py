from __future__ import annotations

import json

from core.services.vault_state import CONFIG_FILE, STATUS_FILE, VaultManager


def test_defaults_without_state_files(settings) -> None:
    manager = VaultManager(settings)

    assert manager.config.paths == {
        "templates": "06 - Templates/",
        "dailyNotes": "01 - Daily Notes/",
        "archive": "07 - Archive/",
        "logs": "08 - Logs/",
    }
    assert manager.status.health == "unknown"


def test_initialize_creates_folders_and_files(settings, vault) -> None:
    created = VaultManager(settings).initialize()

    assert {p.name for p in created} == {"06 - Templates", "01 - Daily Notes", "07 - Archive", "08 - Logs"}
    config = json.loads((vault / CONFIG_FILE).read_text(encoding="utf-8"))
    assert config["settings"]["autoOrganize"] is True
    assert "lastModified" in config
    assert (vault / STATUS_FILE).exists()
    assert VaultManager(settings).initialize() == []


def test_validate_uninitialized_vault(settings, vault) -> None:
    manager = VaultManager(settings)

    check = manager.validate()

    assert not check.valid
    assert check.errors[0] == f"Configuration file issue: {CONFIG_FILE} not found"
    assert "Missing required directory: 07 - Archive" in check.errors
    assert check.warnings == ["Could not validate templates: 06 - Templates not found"]

    status = json.loads((vault / STATUS_FILE).read_text(encoding="utf-8"))
    assert status["health"] == "unhealthy"
    assert status["metrics"]["errorCount"] == len(check.errors)
    assert status["lastValidation"]


def test_validate_initialized_vault(settings, vault, write_note) -> None:
    VaultManager(settings).initialize()
    write_note("06 - Templates/Bare.md", "# no frontmatter\n")
    write_note("06 - Templates/Good.md", "---\ntype: template\n---\n")
    write_note("notes/x.md", "x")

    manager = VaultManager(settings)
    check = manager.validate()

    assert check.valid
    assert check.warnings == ["Template Bare.md missing frontmatter"]
    assert check.files_checked == 6
    assert manager.status.health == "healthy"
    assert manager.status.metrics.total_files == 3


def test_status_keeps_foreign_keys(settings, vault) -> None:
    (vault / STATUS_FILE).write_text(
        json.dumps({"health": "good", "cleanupStats": {"archived": 2}}), encoding="utf-8"
    )

    manager = VaultManager(settings)
    manager.save_status()

    status = json.loads((vault / STATUS_FILE).read_text(encoding="utf-8"))
    assert status["cleanupStats"] == {"archived": 2}
    assert status["health"] == "good"
    assert status["lastModified"]


def test_corrupt_config_falls_back_to_defaults(settings, vault) -> None:
    (vault / CONFIG_FILE).write_text("{broken", encoding="utf-8")

    manager = VaultManager(settings)
    check = manager.validate()

    assert manager.config.version == "1.0.0"
    assert check.errors[0].startswith("Configuration file issue:")


def test_report(settings) -> None:
    report = VaultManager(settings).generate_report()

    assert report.startswith("# 📊 Vault Report")
    assert "- Health: unknown" in report
    assert "- Last Validation: Never" in report
    assert "- Log Level: info" in report
