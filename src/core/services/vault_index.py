"""In-memory index of the vault: parsed files, folder tree, metrics.

`VaultIndex.scan()` can be called repeatedly; notes whose mtime has not changed
are served from the cache and do not emit events.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Generic, Hashable, TypeVar

from adapters.vault_files import ensure_vault, iter_vault_files, read_note, relative
from core.config import AppSettings
from core.domain.models import VaultFile, VaultFolder, VaultMetrics
from core.services.markdown import extract_links, extract_tags, parse_frontmatter

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

FILE_CREATED = "file:created"
FILE_UPDATED = "file:updated"
VAULT_VALIDATED = "vault:validated"
EVENTS: frozenset[str] = frozenset({FILE_CREATED, FILE_UPDATED, VAULT_VALIDATED})

Listener = Callable[..., None]

_TRACKED_FIELDS: tuple[str, ...] = ("size", "content", "frontmatter", "tags", "links")


class VaultCache(Generic[K, V]):
    def __init__(self) -> None:
        self._data: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._data.get(key)

    def set(self, key: K, value: V) -> None:
        self._data[key] = value

    def delete(self, key: K) -> bool:
        return self._data.pop(key, None) is not None

    def clear(self) -> None:
        self._data.clear()

    def has(self, key: K) -> bool:
        return key in self._data

    def size(self) -> int:
        return len(self._data)


class VaultEventEmitter:
    """Synchronous event emitter for the index's file and validation events."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(*args)


class VaultIndex:
    def __init__(self, settings: AppSettings, *, events: VaultEventEmitter | None = None) -> None:
        self.settings = settings
        self.root = ensure_vault(settings.vault_root())
        self.events = events or VaultEventEmitter()
        self.cache: VaultCache[str, tuple[float, VaultFile]] = VaultCache()
        self.files: dict[str, VaultFile] = {}
        self.tree: VaultFolder | None = None
        self.metrics = VaultMetrics()

    def scan(self) -> dict[str, VaultFile]:
        files: dict[str, VaultFile] = {}
        for path in iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs()):
            rel = relative(path, self.root)
            try:
                files[rel] = self._load(path, rel)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable note %s: %s", rel, exc)

        for rel in [k for k in list(self.files) if k not in files]:
            self.cache.delete(rel)

        self._link_backlinks(files)
        self.files = files
        self.tree = self.build_tree(files)
        self.metrics = self.compute_metrics(files)
        return files

    def mark_validated(self, result: Any) -> None:
        self.events.emit(VAULT_VALIDATED, result)

    def _load(self, path: Path, rel: str) -> VaultFile:
        stats = path.stat()
        cached = self.cache.get(rel)
        if cached is not None and cached[0] == stats.st_mtime:
            return cached[1]

        content = read_note(path)
        frontmatter = parse_frontmatter(content)
        vault_file = VaultFile(
            path=rel,
            name=path.stem,
            extension=path.suffix,
            size=stats.st_size,
            created_at=datetime.fromtimestamp(getattr(stats, "st_birthtime", stats.st_ctime)),
            modified_at=datetime.fromtimestamp(stats.st_mtime),
            content=content,
            frontmatter=frontmatter,
            tags=extract_tags(content, frontmatter),
            links=list(dict.fromkeys(extract_links(content))),
        )
        self.cache.set(rel, (stats.st_mtime, vault_file))

        if cached is None:
            self.events.emit(FILE_CREATED, vault_file)
        else:
            changed = [f for f in _TRACKED_FIELDS if getattr(cached[1], f) != getattr(vault_file, f)]
            self.events.emit(FILE_UPDATED, vault_file, changed)
        return vault_file

    @staticmethod
    def _link_backlinks(files: dict[str, VaultFile]) -> None:
        by_name: dict[str, list[str]] = defaultdict(list)
        for rel, vault_file in files.items():
            for target in vault_file.links:
                if target != vault_file.name:
                    by_name[target].append(rel)
        for vault_file in files.values():
            vault_file.backlinks = sorted(by_name.get(vault_file.name, []))

    def build_tree(self, files: dict[str, VaultFile]) -> VaultFolder:
        root = VaultFolder(path="", name=self.root.name)
        folders: dict[str, VaultFolder] = {"": root}

        def folder_for(rel_dir: str) -> VaultFolder:
            if rel_dir in folders:
                return folders[rel_dir]
            parent_dir, _, name = rel_dir.rpartition("/")
            folder = VaultFolder(path=rel_dir, name=name)
            folder_for(parent_dir).subfolders.append(folder)
            folders[rel_dir] = folder
            return folder

        for rel, vault_file in sorted(files.items()):
            rel_dir = rel.rpartition("/")[0]
            folder_for(rel_dir).files.append(vault_file)

        _roll_up(root)
        return root

    @staticmethod
    def compute_metrics(files: dict[str, VaultFile]) -> VaultMetrics:
        folders: set[str] = set()
        for rel in files:
            parts = rel.split("/")[:-1]
            folders.update("/".join(parts[: i + 1]) for i in range(len(parts)))
        all_tags = {tag for f in files.values() for tag in f.tags}
        return VaultMetrics(
            total_files=len(files),
            total_folders=len(folders),
            total_size=sum(f.size for f in files.values()),
            total_links=sum(len(f.links) for f in files.values()),
            total_tags=len(all_tags),
            files_with_frontmatter=sum(1 for f in files.values() if f.frontmatter is not None),
            orphaned_files=sum(1 for f in files.values() if not f.backlinks),
        )


def _roll_up(folder: VaultFolder) -> None:
    count = len(folder.files)
    size = sum(f.size for f in folder.files)
    for sub in folder.subfolders:
        _roll_up(sub)
        count += sub.file_count
        size += sub.total_size
    folder.file_count = count
    folder.total_size = size
