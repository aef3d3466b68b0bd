"""Error hierarchy for the core.

Per-file problems during a scan are recorded in result objects; these
exceptions are reserved for conditions that stop an operation.
"""

from __future__ import annotations

from pathlib import Path


class VaultKitError(Exception):
    """Base class for every error raised by vaultkit."""


class VaultNotFoundError(VaultKitError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Vault directory not found: {path}")
        self.path = path


class CanvasParseError(VaultKitError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot parse canvas {path}: {reason}")
        self.path = path
        self.reason = reason


class TemplateConfigError(VaultKitError):
    """Invalid template wizard input or a target file that already exists."""


class NoteExistsError(VaultKitError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Note already exists: {path}")
        self.path = path
