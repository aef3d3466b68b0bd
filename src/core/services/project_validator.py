"""Project-wide documentation compliance.

Runs the frontmatter and code block validators over every matching note and
aggregates the results into a `ProjectValidationResult`.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Sequence

from adapters.vault_files import ensure_vault, iter_vault_files, read_note, relative
from core.config import AppSettings
from core.domain.models import (
    FileValidationResult,
    IssueCount,
    ProjectValidationResult,
    ProjectValidationSummary,
)
from core.interfaces.validator import MarkdownValidator
from core.services.frontmatter import CodeBlockValidator, FrontmatterValidator

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "**/*.md"


def file_compliance(frontmatter_valid: bool, total_blocks: int, compliant_blocks: int) -> float:
    """50 points for valid frontmatter plus up to 50 for code blocks.

    Notes without code blocks get 25 (partial credit).
    """

    score = 50.0 if frontmatter_valid else 0.0
    if total_blocks > 0:
        score += compliant_blocks / total_blocks * 50.0
    else:
        score += 25.0
    return score


def validate_note(
    path: str,
    content: str,
    *,
    frontmatter_validator: MarkdownValidator | None = None,
    code_block_validator: MarkdownValidator | None = None,
) -> FileValidationResult:
    fm = (frontmatter_validator or FrontmatterValidator()).validate(content)
    cb = (code_block_validator or CodeBlockValidator()).validate(content)
    return FileValidationResult(
        file_path=path,
        frontmatter=fm,
        code_blocks=cb,
        overall_compliance=file_compliance(fm.is_valid, cb.total_blocks, cb.compliant_blocks),
    )


def list_notes(settings: AppSettings, pattern: str = DEFAULT_PATTERN) -> list[Path]:
    root = ensure_vault(settings.vault_root())
    return list(iter_vault_files(root, skip_dirs=settings.skipped_dirs(), pattern=pattern))


def validate_project(
    settings: AppSettings,
    pattern: str = DEFAULT_PATTERN,
    *,
    paths: Sequence[Path] | None = None,
) -> ProjectValidationResult:
    root = ensure_vault(settings.vault_root())
    notes = list(paths) if paths is not None else list_notes(settings, pattern)
    threshold = settings.compliance_threshold

    frontmatter_validator = FrontmatterValidator()
    code_block_validator = CodeBlockValidator()

    result = ProjectValidationResult(total_files=len(notes))
    for path in notes:
        rel = relative(path, root)
        try:
            content = read_note(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error validating file %s: %s", rel, exc)
            result.errors.append(f"{rel}: {exc}")
            continue

        file_result = validate_note(
            rel,
            content,
            frontmatter_validator=frontmatter_validator,
            code_block_validator=code_block_validator,
        )
        result.results.append(file_result)
        if file_result.overall_compliance >= threshold:
            result.compliant_files += 1
        else:
            result.non_compliant_files += 1

    result.summary = summarize(result)
    if result.total_files:
        result.overall_compliance = result.compliant_files / result.total_files * 100.0
    logger.info(
        "Validated %d notes (%d compliant, %.1f%%)",
        result.total_files,
        result.compliant_files,
        result.overall_compliance,
    )
    return result


def summarize(result: ProjectValidationResult, *, top: int = 10) -> ProjectValidationSummary:
    if not result.total_files:
        return ProjectValidationSummary()

    frontmatter_ok = sum(1 for r in result.results if r.frontmatter.is_valid)
    code_blocks_ok = sum(1 for r in result.results if r.code_blocks.is_valid)

    counts: Counter[str] = Counter()
    for file_result in result.results:
        for issue in file_result.frontmatter.errors:
            counts[f"Frontmatter: {issue.message}"] += 1
        for issue in file_result.code_blocks.errors:
            counts[f"Code Block: {issue.message}"] += 1

    return ProjectValidationSummary(
        frontmatter_compliance=frontmatter_ok / result.total_files * 100.0,
        code_block_compliance=code_blocks_ok / result.total_files * 100.0,
        common_issues=[IssueCount(issue=k, count=v) for k, v in counts.most_common(top)],
    )


def compliance_verdict(overall: float) -> str:
    if overall >= 90:
        return "EXCELLENT: Project meets documentation standards!"
    if overall >= 70:
        return "GOOD: Project mostly meets standards, some improvements needed."
    return "NEEDS WORK: Project requires significant improvements to meet standards."
