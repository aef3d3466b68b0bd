"""Template usage analytics.

Scores every note under the templates folder by how connected, fresh and
substantial it is, and derives per-template recommendations plus vault-wide
optimization opportunities.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime
from pathlib import Path

from adapters.vault_files import ensure_vault, iter_vault_files, read_notes, relative
from core.config import AppSettings
from core.domain.models import TemplateAnalyticsReport, TemplateMetrics
from core.services.markdown import extract_links, extract_wiki_links, parse_frontmatter

logger = logging.getLogger(__name__)

LOW_USAGE = 20
HIGH_USAGE = 80
HIGH_COMPLEXITY = 150
LOW_COMPLEXITY = 30
STALE_DAYS = 180

USAGE_BANDS: tuple[tuple[str, float, float], ...] = (
    ("80-100", 80, 101),
    ("60-79", 60, 80),
    ("40-59", 40, 60),
    ("20-39", 20, 40),
    ("0-19", 0, 20),
)

_HEADING_RE = re.compile(r"^#+", re.MULTILINE)
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_VARIABLE_RE = re.compile(r"\{\{[^}]+\}\}")
_WIKI_RE = re.compile(r"\[\[[^\]]+\]\]")


def calculate_complexity(content: str) -> int:
    complexity = (
        len(_HEADING_RE.findall(content)) * 2
        + len(_CODE_BLOCK_RE.findall(content)) * 3
        + len(_VARIABLE_RE.findall(content))
        + len(_WIKI_RE.findall(content)) * 0.5
    )
    return round(complexity)


def _days_since(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / 86400


def calculate_usage_score(metrics: TemplateMetrics, now: datetime) -> float:
    score = 0.0
    score += min(metrics.backlinks * 10, 50)
    score += min(metrics.outbound_links * 2, 20)

    age = _days_since(metrics.last_modified, now)
    if age < 7:
        score += 15
    elif age < 30:
        score += 10
    elif age < 90:
        score += 5

    if 5000 < metrics.size < 50000:
        score += 10
    if 50 < metrics.complexity < 150:
        score += 5
    return min(100.0, score)


def generate_recommendations(metrics: TemplateMetrics, now: datetime) -> list[str]:
    recommendations: list[str] = []

    if metrics.usage_score < LOW_USAGE:
        recommendations.append("Low usage - consider promoting or improving documentation")
    elif metrics.usage_score > HIGH_USAGE:
        recommendations.append("High usage - ensure maintenance and consider optimization")

    if metrics.complexity > HIGH_COMPLEXITY:
        recommendations.append("High complexity - consider simplification or splitting")
    elif metrics.complexity < LOW_COMPLEXITY:
        recommendations.append("Low complexity - could be enhanced with more features")

    if metrics.backlinks == 0:
        recommendations.append("No backlinks - add references from other notes")
    elif metrics.backlinks < 3:
        recommendations.append("Few backlinks - increase integration with other notes")

    if metrics.outbound_links < 5:
        recommendations.append("Few outbound links - add more references and connections")

    if metrics.size > 100_000:
        recommendations.append("Large file size - consider splitting into smaller templates")
    elif metrics.size < 2000:
        recommendations.append("Small template - could be expanded with more content")

    if _days_since(metrics.last_modified, now) > STALE_DAYS:
        recommendations.append("Not updated recently - review for relevance and updates")

    if metrics.category == "general":
        recommendations.append("General category - consider more specific categorization")

    return recommendations


def count_backlinks(contents: dict[Path, str], exclude: set[Path] | None = None) -> Counter[str]:
    """Number of distinct notes linking to each target stem."""

    counts: Counter[str] = Counter()
    for path, content in contents.items():
        if exclude and path in exclude:
            continue
        for target in set(extract_links(content)):
            if target != path.stem:
                counts[target] += 1
    return counts


def optimization_opportunities(templates: list[TemplateMetrics], now: datetime) -> list[str]:
    opportunities: list[str] = []
    if not templates:
        return opportunities

    low_usage = sum(1 for t in templates if t.usage_score < LOW_USAGE)
    if low_usage:
        opportunities.append(f"{low_usage} templates have low usage - consider consolidation or improvement")

    complex_count = sum(1 for t in templates if t.complexity > HIGH_COMPLEXITY)
    if complex_count:
        opportunities.append(f"{complex_count} templates have high complexity - optimization needed")

    unlinked = sum(1 for t in templates if t.backlinks == 0)
    if unlinked:
        opportunities.append(f"{unlinked} templates have no backlinks - improve integration")

    stale = sum(1 for t in templates if _days_since(t.last_modified, now) > STALE_DAYS)
    if stale:
        opportunities.append(f"{stale} templates haven't been updated in 6+ months - review needed")

    category, count = Counter(t.category for t in templates).most_common(1)[0]
    if count > len(templates) * 0.5 and len(templates) > 1:
        opportunities.append(
            f"Category imbalance - {category} has {count} templates ({count / len(templates) * 100:.1f}%)"
        )

    if not opportunities:
        opportunities.append("Template system is well-optimized - maintain current standards")
    return opportunities


def usage_distribution(templates: list[TemplateMetrics]) -> dict[str, int]:
    return {
        label: sum(1 for t in templates if low <= t.usage_score < high)
        for label, low, high in USAGE_BANDS
    }


class TemplateAnalytics:
    def __init__(self, settings: AppSettings, *, now: datetime | None = None) -> None:
        self.settings = settings
        self.root = ensure_vault(settings.vault_root())
        self.now = now

    def run(self) -> TemplateAnalyticsReport:
        now = self.now or datetime.now()
        templates_root = self.settings.templates_root()

        vault_notes = list(iter_vault_files(self.root, skip_dirs=self.settings.skipped_dirs()))
        contents = read_notes(vault_notes)
        template_paths = [p for p in vault_notes if _is_under(p, templates_root)]
        # Templates linking to each other do not count as usage.
        backlinks = count_backlinks(contents, exclude=set(template_paths))

        report = TemplateAnalyticsReport(timestamp=now)
        for path in template_paths:
            content = contents.get(path)
            if content is None:
                continue
            try:
                report.templates.append(self.analyze(path, content, backlinks, now))
            except OSError as exc:
                logger.warning("Could not analyze %s: %s", relative(path, self.root), exc)

        templates = report.templates
        report.total_templates = len(templates)
        if templates:
            report.average_usage_score = sum(t.usage_score for t in templates) / len(templates)
        ranked = sorted(templates, key=lambda t: t.usage_score, reverse=True)
        report.most_used = ranked[:5]
        report.least_used = sorted(templates, key=lambda t: t.usage_score)[:5]
        for template in templates:
            report.recommendations_by_category.setdefault(template.category, []).extend(
                template.recommendations
            )
        report.optimization_opportunities = optimization_opportunities(templates, now)

        logger.info("Analyzed %d templates", len(templates))
        return report

    def analyze(self, path: Path, content: str, backlinks: Counter[str], now: datetime) -> TemplateMetrics:
        frontmatter = parse_frontmatter(content) or {}
        metrics = TemplateMetrics(
            file_path=relative(path, self.root),
            name=path.stem,
            type=str(frontmatter.get("type") or "unknown"),
            category=str(frontmatter.get("category") or "general"),
            size=len(content),
            complexity=calculate_complexity(content),
            last_modified=datetime.fromtimestamp(path.stat().st_mtime),
            backlinks=backlinks.get(path.stem, 0),
            outbound_links=len(extract_wiki_links(content)),
        )
        metrics.usage_score = calculate_usage_score(metrics, now)
        metrics.recommendations = generate_recommendations(metrics, now)
        return metrics


def _is_under(path: Path, folder: Path) -> bool:
    try:
        path.relative_to(folder)
    except ValueError:
        return False
    return True
