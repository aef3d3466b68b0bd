"""Vault linter: folder structure, naming, links, tags and content hygiene.

The rules mirror the vault's conventions (numbered top-level sections, one
naming pattern per folder, a closed tag vocabulary). Hard violations go to
`issues`; everything else is a `warning`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from adapters.vault_files import ensure_vault, iter_vault_files, read_notes
from core.config import AppSettings
from core.domain.models import LintReport
from core.services.markdown import (
    extract_links,
    frontmatter_tags,
    parse_frontmatter,
    split_frontmatter,
)

logger = logging.getLogger(__name__)

REQUIRED_FOLDERS: tuple[str, ...] = (
    "01 - Daily Notes",
    "02 - Architecture",
    "03 - Development",
    "04 - Documentation",
    "05 - Assets",
    "06 - Templates",
    "07 - Archive",
)

RECOMMENDED_SUBFOLDERS: tuple[str, ...] = (
    "02 - Architecture/System Design",
    "02 - Architecture/Data Models",
    "03 - Development/Code Snippets",
    "03 - Development/Testing",
    "04 - Documentation/Guides",
    "04 - Documentation/API",
    "05 - Assets/Excalidraw",
    "05 - Assets/Images",
    "07 - Archive/Old Notes",
)

NAMING_RULES: dict[str, re.Pattern[str]] = {
    "01 - Daily Notes": re.compile(r"^(\d{4}-\d{2}-\d{2})(?:-.*)?\.md$"),
    "02 - Architecture/System Design": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\.md$"),
    "02 - Architecture/Data Models": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\s+(Model|Schema|Interface|Type)\.md$"),
    "03 - Development/Code Snippets": re.compile(r"^[a-z][a-zA-Z0-9-]*\s+(Examples|Implementation|Usage|Pattern)\.md$"),
    "03 - Development/Testing": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\s+(Test|Testing|Spec)\.md$"),
    "04 - Documentation/Guides": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\.md$"),
    "04 - Documentation/API": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\s+(API|Interface|Endpoint|Reference)\.md$"),
    "06 - Templates": re.compile(r"^[A-Z][a-zA-Z0-9\s-]+\s+Template\.md$"),
}

VALID_TAGS: frozenset[str] = frozenset(
    {
        "architecture", "development", "testing", "documentation", "api",
        "code-snippet", "guide", "system-design", "daily-note", "template",
        "examples", "implementation", "usage", "pattern", "how-to", "reference",
    }
)

_INLINE_CODE_TAG_RE = re.compile(r"`#([\w-]+)`")
_DAILY_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class VaultLinter:
    def __init__(
        self,
        settings: AppSettings,
        *,
        valid_tags: frozenset[str] = VALID_TAGS,
        naming_rules: dict[str, re.Pattern[str]] | None = None,
    ) -> None:
        self.settings = settings
        self.valid_tags = valid_tags
        self.naming_rules = NAMING_RULES if naming_rules is None else naming_rules
        self.root = ensure_vault(settings.vault_root())

    def lint(self) -> LintReport:
        report = LintReport()
        notes = list(iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs()))
        contents = read_notes(notes)

        self.check_structure(report)
        self.check_naming(report)
        self.check_links(report, contents)
        self.check_tags(report, contents)
        self.check_content(report, contents)

        logger.info(
            "Lint finished: %d issues, %d warnings over %d notes",
            len(report.issues),
            len(report.warnings),
            len(contents),
        )
        return report

    def check_structure(self, report: LintReport) -> None:
        for folder in REQUIRED_FOLDERS:
            if not (self.root / folder).is_dir():
                report.issues.append(f"Missing required folder: {folder}")

        for folder in RECOMMENDED_SUBFOLDERS:
            if not (self.root / folder).is_dir():
                report.warnings.append(f"Missing recommended subfolder: {folder}")

        for entry in sorted(self.root.iterdir()):
            if entry.is_file() and entry.suffix == ".md" and entry.name != self.settings.home_note:
                report.warnings.append(
                    f"Markdown file in root directory should be organized: {entry.name}"
                )
                report.stats.orphaned_files += 1

    def check_naming(self, report: LintReport) -> None:
        for folder, pattern in self.naming_rules.items():
            folder_path = self.root / folder
            if not folder_path.is_dir():
                continue
            for entry in sorted(folder_path.iterdir()):
                if not (entry.is_file() and entry.suffix == ".md"):
                    continue
                report.stats.total_files += 1
                if pattern.match(entry.name):
                    report.stats.valid_files += 1
                else:
                    report.issues.append(
                        f"Invalid naming in {folder}: {entry.name} (expected: {pattern.pattern})"
                    )
                    report.stats.invalid_files += 1

    def check_links(self, report: LintReport, contents: dict[Path, str]) -> None:
        known = {path.stem for path in contents}
        # Attachments and canvases are valid link targets too.
        for p in iter_vault_files(self.root, suffix="", skip_dirs=self.settings.skipped_dirs()):
            if p.suffix != ".md":
                known.update((p.stem, p.name))
        for path, content in contents.items():
            for target in dict.fromkeys(extract_links(content)):
                if target not in known:
                    report.warnings.append(f"Broken link in {path.name}: [[{target}]]")

    def check_tags(self, report: LintReport, contents: dict[Path, str]) -> None:
        for path, content in contents.items():
            for tag in _INLINE_CODE_TAG_RE.findall(content):
                if tag not in self.valid_tags:
                    report.warnings.append(f"Unknown tag in {path.name}: #{tag}")
            for tag in frontmatter_tags(parse_frontmatter(content)):
                if tag not in self.valid_tags:
                    report.warnings.append(f"Unknown tag in YAML of {path.name}: {tag}")

    def check_content(self, report: LintReport, contents: dict[Path, str]) -> None:
        for path, content in contents.items():
            name = path.name
            if "Template" in name or _DAILY_NAME_RE.match(name):
                continue

            block = split_frontmatter(content)
            body = block.body if block else content

            if not re.search(r"^#{1,6}\s", body, re.MULTILINE):
                report.warnings.append(f"No headers found in {name}")
            if not re.search(r"^#{1,2}\s+(?:\W+\s*)?Overview\b", body, re.MULTILINE):
                report.warnings.append(f"Missing overview section in {name}")

            stripped = content.strip()
            if len(stripped) < 50:
                report.warnings.append(f"Very short content in {name} ({len(stripped)} characters)")

            if _has_bare_opening_fence(body):
                report.warnings.append(f"Code block without language specified in {name}")

            if re.search(r"[ \t]{2,}\n", content):
                report.warnings.append(f"Multiple trailing spaces detected in {name}")

        logger.debug("Content checks done for %d notes", len(contents))


def _has_bare_opening_fence(body: str) -> bool:
    opening = True
    for line in body.split("\n"):
        stripped = line.strip()
        if not stripped.startswith("```"):
            continue
        if opening and stripped == "```":
            return True
        opening = not opening
    return False

