from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from core.config import AppSettings

VALID_FRONTMATTER = """---
type: guide
title: Sample Guide
version: 1.0.0
category: documentation
priority: medium
status: active
tags:
  - guide
  - documentation
created: 2025-01-01T10:00:00Z
updated: 2025-01-02T10:00:00Z
author: team
validation_rules:
  - required-frontmatter
template_version: 1.0.0
description: A sample guide
---
"""


@pytest.fixture(autouse=True)
def _isolated_user_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's real user `.env` and env vars out of the tests."""

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
    monkeypatch.setenv("APPDATA", str(tmp_path_factory.mktemp("appdata")))
    for key in list(os.environ):
        if key.startswith("VAULTKIT_"):
            monkeypatch.delenv(key)


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture()
def settings(vault: Path) -> AppSettings:
    return AppSettings(_env_file=None, vault_path=vault)


@pytest.fixture()
def write_note(vault: Path) -> Callable[..., Path]:
    def _write(rel: str, content: str, *, mtime: float | None = None) -> Path:
        path = vault / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture()
def valid_note() -> Callable[[str], str]:
    """Compliant note: valid frontmatter plus the given body."""

    def _note(body: str = "# Title\n\n## Overview\n\nSome text.\n") -> str:
        return VALID_FRONTMATTER + "\n" + body

    return _note
