"""Vault health score.

Five categories, each scored 0..100 from real checks over the notes:

- yaml: notes whose frontmatter parses to a mapping
- links: links that resolve to an existing note or attachment
- tags: tags written in kebab-case
- structure: notes whose headings never skip a level
- freshness: notes modified within `stale_after_days`

The overall score is the plain mean of the categories.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from adapters.vault_files import ensure_vault, iter_vault_files, read_notes
from core.config import AppSettings
from core.domain.models import CategoryScore, HealthMetrics, OverallHealth
from core.services.markdown import extract_links, extract_tags, heading_levels, is_kebab_case, parse_frontmatter

logger = logging.getLogger(__name__)

CATEGORIES: tuple[str, ...] = ("yaml", "links", "tags", "structure", "freshness")

_RECOMMENDATIONS: dict[str, str] = {
    "yaml": "Add or fix YAML frontmatter in {n} notes",
    "links": "Fix {n} broken wiki links",
    "tags": "Standardize {n} tags to kebab-case",
    "structure": "Resolve heading hierarchy issues in {n} notes",
    "freshness": "Review {n} stale notes for relevance",
}


def grade_for(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def has_heading_jump(levels: list[int]) -> bool:
    """True when a heading goes more than one level deeper than the previous one."""

    return any(curr > prev + 1 for prev, curr in zip(levels, levels[1:]))


def _ratio_score(good: int, total: int) -> float:
    return 100.0 if total == 0 else good / total * 100.0


def score_notes(
    contents: dict[Path, str],
    *,
    known_targets: set[str],
    mtimes: dict[Path, float],
    stale_after_days: int,
    now: float | None = None,
) -> dict[str, CategoryScore]:
    now = time.time() if now is None else now
    stale_cutoff = now - stale_after_days * 86400
    total = len(contents)

    yaml_bad = links_total = links_broken = tags_total = tags_bad = jumps = stale = 0
    for path, content in contents.items():
        frontmatter = parse_frontmatter(content)
        if frontmatter is None:
            yaml_bad += 1

        for target in extract_links(content):
            links_total += 1
            if target not in known_targets:
                links_broken += 1

        for tag in extract_tags(content, frontmatter):
            tags_total += 1
            if not is_kebab_case(tag):
                tags_bad += 1

        if has_heading_jump(heading_levels(content)):
            jumps += 1

        if mtimes.get(path, now) < stale_cutoff:
            stale += 1

    return {
        "yaml": CategoryScore(score=_ratio_score(total - yaml_bad, total), issues=yaml_bad),
        "links": CategoryScore(score=_ratio_score(links_total - links_broken, links_total), issues=links_broken),
        "tags": CategoryScore(score=_ratio_score(tags_total - tags_bad, tags_total), issues=tags_bad),
        "structure": CategoryScore(score=_ratio_score(total - jumps, total), issues=jumps),
        "freshness": CategoryScore(score=_ratio_score(total - stale, total), issues=stale),
    }


def build_recommendations(categories: dict[str, CategoryScore]) -> list[str]:
    ranked = sorted(
        ((name, cat) for name, cat in categories.items() if cat.issues),
        key=lambda kv: kv[1].issues,
        reverse=True,
    )
    return [_RECOMMENDATIONS[name].format(n=cat.issues) for name, cat in ranked]


def calculate_health(settings: AppSettings, *, now: float | None = None) -> HealthMetrics:
    root = ensure_vault(settings.vault_root())
    skip = settings.skipped_dirs()

    paths = list(iter_vault_files(root, skip_dirs=skip))
    contents = read_notes(paths)
    # Attachments are linked by full name (`![[img.png]]`), notes by stem.
    known: set[str] = set()
    for p in iter_vault_files(root, suffix="", skip_dirs=skip):
        known.update((p.stem, p.name))
    mtimes: dict[Path, float] = {}
    for p in list(contents):
        try:
            mtimes[p] = p.stat().st_mtime
        except OSError as exc:
            logger.warning("Skipping vanished note %s: %s", p, exc)
            del contents[p]

    categories = score_notes(
        contents,
        known_targets=known,
        mtimes=mtimes,
        stale_after_days=settings.stale_after_days,
        now=now,
    )
    overall = sum(c.score for c in categories.values()) / len(categories)
    metrics = HealthMetrics(
        overall=OverallHealth(score=overall, grade=grade_for(overall)),
        categories=categories,
        recommendations=build_recommendations(categories),
        files_checked=len(contents),
    )
    logger.info("Vault health %.1f (%s) over %d notes", overall, metrics.overall.grade, len(contents))
    return metrics
