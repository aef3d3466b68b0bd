"""Vault cleanup: move stale, empty, orphaned and duplicate notes to the archive.

Nothing is ever deleted. Phases run in order and a note handled by one phase is
not considered by the next ones:

1. stale      -> `<archive>/<original relative path>`
2. empty      -> `<archive>/empty/<name>`
3. orphaned   -> `<archive>/orphaned/<name>`
4. duplicates -> `<archive>/duplicates/<name>` (first file in walk order is kept)
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path

from adapters.json_exporter import load_json_object, write_json_object
from adapters.vault_files import ensure_vault, iter_vault_files, read_notes, relative
from core.config import AppSettings
from core.domain.models import CleanupResult
from core.services.markdown import extract_links

logger = logging.getLogger(__name__)

STATUS_FILE = ".vault-status.json"

IMPORTANT_FILES: frozenset[str] = frozenset(
    {
        "README.md",
        "STANDARDS.md",
        "00 - Dashboard.md",
        "package.json",
        ".vault-config.json",
        STATUS_FILE,
    }
)

_HEADING_RE = re.compile(r"^#{1,6}\s", re.MULTILINE)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def is_empty_note(content: str, max_chars: int) -> bool:
    stripped = content.strip()
    if len(stripped) > max_chars:
        return False
    return "```" not in stripped and not _HEADING_RE.search(stripped)


def unique_destination(dest: Path, taken: set[Path] | None = None) -> Path:
    """`dest`, or `dest` with `-1`, `-2`... appended to the stem when taken."""

    taken = taken or set()
    candidate = dest
    counter = 1
    while candidate.exists() or candidate in taken:
        candidate = dest.with_name(f"{dest.stem}-{counter}{dest.suffix}")
        counter += 1
    return candidate


class VaultCleanup:
    def __init__(self, settings: AppSettings, *, dry_run: bool = False, now: float | None = None) -> None:
        self.settings = settings
        self.root = ensure_vault(settings.vault_root())
        self.archive = self.root / settings.archive_dir
        self.dry_run = dry_run
        self.now = now
        self.result = CleanupResult(dry_run=dry_run)
        self._handled: set[Path] = set()
        self._planned: set[Path] = set()

    def is_important(self, rel_path: str) -> bool:
        name = rel_path.rsplit("/", 1)[-1]
        return (
            rel_path in IMPORTANT_FILES
            or name in IMPORTANT_FILES
            or rel_path == self.settings.home_note
            or rel_path.startswith(self.settings.templates_dir + "/")
            or rel_path.startswith("00 -")
            or rel_path.endswith("Template.md")
        )

    def cleanup_all(self) -> CleanupResult:
        notes = [
            p
            for p in iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs())
            if not self.is_important(relative(p, self.root))
        ]
        all_notes = list(iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs()))
        unreadable: list[Path] = []

        def on_error(path: Path, exc: Exception) -> None:
            unreadable.append(path)
            self._error(path, exc)

        contents = read_notes(all_notes, on_error=on_error)
        # Unreadable notes stay where they are.
        self._handled.update(unreadable)

        self.archive_stale(notes)
        self.cleanup_empty(notes, contents)
        if unreadable:
            logger.warning("Skipping orphan cleanup: links of %d unreadable notes are unknown", len(unreadable))
        else:
            self.cleanup_orphaned(notes, contents)
        self.cleanup_duplicates(notes, contents)

        if not self.dry_run:
            self.update_status()

        logger.info(
            "Cleanup %s: %d archived, %d cleaned, %d errors",
            "planned" if self.dry_run else "done",
            len(self.result.archived),
            len(self.result.cleaned),
            len(self.result.errors),
        )
        return self.result

    def archive_stale(self, notes: list[Path]) -> None:
        now = time.time() if self.now is None else self.now
        cutoff = now - self.settings.stale_after_days * 86400
        for path in self._pending(notes):
            try:
                if path.stat().st_mtime >= cutoff:
                    continue
            except OSError as exc:
                self._error(path, exc)
                continue
            rel = relative(path, self.root)
            if self._move(path, self.archive / rel):
                self.result.archived.append(rel)

    def cleanup_empty(self, notes: list[Path], contents: dict[Path, str]) -> None:
        for path in self._pending(notes):
            content = contents.get(path)
            if content is None or not is_empty_note(content, self.settings.empty_note_max_chars):
                continue
            if self._move(path, self.archive / "empty" / path.name):
                self.result.cleaned.append(relative(path, self.root))

    def cleanup_orphaned(self, notes: list[Path], contents: dict[Path, str]) -> None:
        linked: set[str] = set()
        for path, content in contents.items():
            linked.update(t for t in extract_links(content) if t != path.stem)

        for path in self._pending(notes):
            if path.stem in linked:
                continue
            if self._move(path, self.archive / "orphaned" / path.name):
                self.result.cleaned.append(relative(path, self.root))

    def cleanup_duplicates(self, notes: list[Path], contents: dict[Path, str]) -> None:
        seen: dict[str, Path] = {}
        for path in self._pending(notes):
            content = contents.get(path)
            if content is None:
                continue
            digest = content_hash(content)
            keep = seen.setdefault(digest, path)
            if keep == path:
                continue
            if self._move(path, self.archive / "duplicates" / path.name):
                self.result.cleaned.append(relative(path, self.root))
                logger.debug("Duplicate %s (kept %s)", path.name, keep.name)

    def update_status(self) -> None:
        status_file = self.root / STATUS_FILE
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        try:
            data = load_json_object(status_file)
            data["lastCleanup"] = stamp
            data["lastUpdate"] = stamp
            data["cleanupStats"] = {
                "archived": len(self.result.archived),
                "cleaned": len(self.result.cleaned),
                "spaceSaved": self.result.space_saved,
                "errors": len(self.result.errors),
            }
            write_json_object(data=data, output_path=status_file)
        except (OSError, ValueError) as exc:
            logger.warning("Status update failed: %s", exc)

    def _pending(self, notes: list[Path]) -> list[Path]:
        return [p for p in notes if p not in self._handled]

    def _move(self, source: Path, dest: Path) -> bool:
        try:
            size = source.stat().st_size
            target = unique_destination(dest, self._planned)
            if not self.dry_run:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(source), str(target))
        except OSError as exc:
            self._error(source, exc)
            return False

        self._handled.add(source)
        self._planned.add(target)
        self.result.space_saved += size
        logger.info("%s %s -> %s", "Would move" if self.dry_run else "Moved", source.name, relative(target, self.root))
        return True

    def _error(self, path: Path, exc: Exception) -> None:
        rel = relative(path, self.root)
        logger.error("Cleanup failed for %s: %s", rel, exc)
        self.result.errors.append(f"{rel}: {exc}")
