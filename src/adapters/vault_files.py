"""Filesystem access to the vault.

Why in adapters:
- Walking directories and reading files are infrastructure details.
- Services receive paths and text; they never decide which folders are skipped.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Callable, Iterator

from core.errors import VaultNotFoundError

logger = logging.getLogger(__name__)


def ensure_vault(root: Path) -> Path:
    """Return the resolved vault root or raise `VaultNotFoundError`."""

    resolved = root.expanduser().resolve()
    if not resolved.is_dir():
        raise VaultNotFoundError(resolved)
    return resolved


def iter_vault_files(
    root: Path,
    *,
    suffix: str = ".md",
    skip_dirs: set[str] | frozenset[str] = frozenset(),
    pattern: str | None = None,
) -> Iterator[Path]:
    """Yield files under `root` in a stable (sorted) order.

    - Hidden directories and any directory named in `skip_dirs` are pruned.
    - `pattern` is an optional glob matched against the vault-relative POSIX path
      (e.g. `**/*.md`, `04 - Documentation/*.md`).
    """

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in skip_dirs)
        for filename in sorted(filenames):
            if suffix and not filename.endswith(suffix):
                continue
            path = Path(dirpath) / filename
            if pattern and not _matches(path.relative_to(root).as_posix(), pattern):
                continue
            yield path


def _matches(rel_path: str, pattern: str) -> bool:
    """Glob match by path segment: `*` stays inside one folder, `**` spans any number."""

    return _match_parts(rel_path.split("/"), pattern.split("/"))


def _match_parts(parts: list[str], globs: list[str]) -> bool:
    if not globs:
        return not parts
    head, rest = globs[0], globs[1:]
    if head == "**":
        return any(_match_parts(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatch(parts[0], head) and _match_parts(parts[1:], rest)


def relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def read_note(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_notes(
    paths: list[Path],
    on_error: Callable[[Path, Exception], None] | None = None,
) -> dict[Path, str]:
    """Read several notes, skipping unreadable ones.

    Failures are passed to `on_error` when given, otherwise logged.
    """

    contents: dict[Path, str] = {}
    for path in paths:
        try:
            contents[path] = read_note(path)
        except (OSError, UnicodeDecodeError) as exc:
            if on_error is None:
                logger.warning("Skipping unreadable note %s: %s", path, exc)
            else:
                on_error(path, exc)
    return contents
