from __future__ import annotations

from core.services.project_validator import (
    compliance_verdict,
    file_compliance,
    list_notes,
    validate_note,
    validate_project,
)


def test_file_compliance_scoring() -> None:
    assert file_compliance(True, 0, 0) == 75.0
    assert file_compliance(True, 2, 2) == 100.0
    assert file_compliance(False, 4, 1) == 12.5
    assert file_compliance(False, 0, 0) == 25.0


def test_validate_note_combines_both_validators(valid_note) -> None:
    result = validate_note("a.md", valid_note("# T\n\n```python\nx = 1\n```\n"))

    assert result.frontmatter.is_valid
    assert result.code_blocks.total_blocks == 1
    assert result.overall_compliance == 100.0


def test_validate_project_aggregates(settings, write_note, valid_note) -> None:
    write_note("docs/good.md", valid_note("```bash\nls\n```\n"))
    write_note("docs/bad.md", "# no frontmatter\n```\nx\n```\n")
    write_note(".obsidian/ignored.md", "# ignored\n")
    write_note("07 - Archive/old.md", "# archived\n")

    result = validate_project(settings)

    assert result.total_files == 2
    assert result.compliant_files == 1
    assert result.non_compliant_files == 1
    assert result.overall_compliance == 50.0
    assert result.summary.frontmatter_compliance == 50.0
    issues = {i.issue: i.count for i in result.summary.common_issues}
    assert issues["Frontmatter: Missing YAML frontmatter delimiter (---)"] == 1
    assert issues["Code Block: Code block missing language specification"] == 1


def test_pattern_limits_files(settings, write_note, valid_note) -> None:
    write_note("root.md", valid_note())
    write_note("docs/a.md", valid_note())
    write_note("docs/nested/b.md", valid_note())

    assert [p.name for p in list_notes(settings, "docs/*.md")] == ["a.md"]
    assert [p.name for p in list_notes(settings, "docs/**/*.md")] == ["a.md", "b.md"]
    assert {p.name for p in list_notes(settings, "**/*.md")} == {"root.md", "a.md", "b.md"}


def test_unreadable_file_is_recorded(settings, write_note, valid_note, vault) -> None:
    write_note("ok.md", valid_note())
    broken = vault / "broken.md"
    broken.write_bytes(b"\xff\xfe\x00bad")

    result = validate_project(settings)

    assert len(result.results) == 1
    assert result.errors and result.errors[0].startswith("broken.md")


def test_compliance_verdict_bands() -> None:
    assert compliance_verdict(95).startswith("EXCELLENT")
    assert compliance_verdict(75).startswith("GOOD")
    assert compliance_verdict(10).startswith("NEEDS WORK")
