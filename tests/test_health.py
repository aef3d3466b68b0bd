from __future__ import annotations

import time
from pathlib import Path

import pytest

from core.domain.models import CategoryScore
from core.services import health
from core.services.health import (
    build_recommendations,
    calculate_health,
    grade_for,
    has_heading_jump,
    score_notes,
)

DAY = 86400


def test_grades() -> None:
    assert [grade_for(s) for s in (95, 85, 75, 65, 10)] == ["A", "B", "C", "D", "F"]


def test_heading_jumps() -> None:
    assert not has_heading_jump([1, 2, 3, 2, 3])
    assert not has_heading_jump([2, 1])
    assert has_heading_jump([1, 3])


def test_score_notes() -> None:
    now = 1_000 * DAY
    contents = {
        Path("a.md"): "---\ntags: [good-tag, BadTag]\n---\n# A\n### C\n[[b]] [[missing]]\n",
        Path("b.md"): "# B\n## C\n",
        Path("c.md"): "---\ntitle: c\n---\n# C\n[[a]]\n",
    }
    mtimes = {Path("a.md"): now - 200 * DAY, Path("b.md"): now, Path("c.md"): now - DAY}

    categories = score_notes(
        contents,
        known_targets={"a", "b", "c"},
        mtimes=mtimes,
        stale_after_days=90,
        now=now,
    )

    assert categories["yaml"].issues == 1
    assert categories["yaml"].score == pytest.approx(200 / 3)
    assert categories["links"].issues == 1
    assert categories["links"].score == pytest.approx(200 / 3)
    assert categories["tags"].score == 50.0
    assert categories["structure"].issues == 1
    assert categories["freshness"].issues == 1


def test_recommendations_ordered_by_issue_count() -> None:
    categories = {
        "yaml": CategoryScore(score=90, issues=1),
        "links": CategoryScore(score=50, issues=7),
        "tags": CategoryScore(score=100, issues=0),
    }

    assert build_recommendations(categories) == [
        "Fix 7 broken wiki links",
        "Add or fix YAML frontmatter in 1 notes",
    ]


def test_empty_vault_is_perfect(settings) -> None:
    metrics = calculate_health(settings)

    assert metrics.files_checked == 0
    assert metrics.overall.score == 100.0
    assert metrics.overall.grade == "A"
    assert metrics.recommendations == []


def test_attachments_resolve_links(settings, write_note, vault) -> None:
    (vault / "img.png").write_bytes(b"png")
    write_note("note.md", "---\ntags: [a]\n---\n# Note\n![[img.png]] [[gone]]\n")

    metrics = calculate_health(settings, now=time.time())

    assert metrics.files_checked == 1
    assert metrics.categories["links"].issues == 1
    assert metrics.categories["links"].score == 50.0
    assert metrics.recommendations == ["Fix 1 broken wiki links"]
    assert metrics.overall.score == pytest.approx(90.0)
    assert metrics.overall.grade == "A"


def test_note_removed_after_read_is_skipped(settings, write_note, monkeypatch) -> None:
    write_note("keep.md", "---\ntags: [x]\n---\n# Keep\n")
    gone = write_note("gone.md", "# Gone\n")

    def read_then_delete(paths):
        contents = {p: p.read_text(encoding="utf-8") for p in paths}
        gone.unlink()
        return contents

    monkeypatch.setattr(health, "read_notes", read_then_delete)

    metrics = calculate_health(settings)

    assert metrics.files_checked == 1
