from __future__ import annotations

from core.domain.models import Severity
from core.services.frontmatter import CodeBlockValidator, FrontmatterValidator
from core.interfaces.validator import MarkdownValidator


def test_valid_frontmatter_passes(valid_note) -> None:
    result = FrontmatterValidator().validate(valid_note())

    assert result.is_valid
    assert result.has_frontmatter
    assert result.errors == []
    assert result.warnings == []
    assert result.missing_fields == []
    assert "validation_rules" in result.present_fields


def test_missing_opening_delimiter_stops_validation() -> None:
    result = FrontmatterValidator().validate("# Just a heading\n")

    assert not result.is_valid
    assert not result.has_frontmatter
    assert [e.message for e in result.errors] == ["Missing YAML frontmatter delimiter (---)"]
    assert result.errors[0].line == 1


def test_missing_closing_delimiter() -> None:
    result = FrontmatterValidator().validate("---\ntitle: x\n# body\n")

    assert not result.is_valid
    assert result.errors[0].message == "Missing YAML frontmatter closing delimiter (---)"


def test_invalid_yaml_reports_line() -> None:
    content = "---\ntitle: ok\ntags: [a, b\n---\nbody\n"
    result = FrontmatterValidator().validate(content)

    assert not result.is_valid
    assert result.errors[0].message.startswith("Invalid YAML frontmatter")
    assert result.errors[0].line >= 2


def test_missing_required_fields_are_listed() -> None:
    content = "---\ntitle: Only a title\n---\n"
    result = FrontmatterValidator().validate(content)

    assert not result.is_valid
    assert "type" in result.missing_fields
    assert "title" not in result.missing_fields
    assert any(e.message == "Missing required frontmatter field: author" for e in result.errors)
    assert {w.message for w in result.warnings} >= {
        "Missing recommended frontmatter field: template_version",
        "Missing recommended frontmatter field: description",
    }


def test_format_errors_point_at_their_key(valid_note) -> None:
    content = (
        valid_note()
        .replace("version: 1.0.0\ncategory", "version: 1.0\ncategory")
        .replace("priority: medium", "priority: urgent")
        .replace("status: active", "status: wip")
        .replace("created: 2025-01-01T10:00:00Z", "created: yesterday")
    )
    result = FrontmatterValidator().validate(content)

    messages = {e.message.split(":")[0]: e.line for e in result.errors}
    assert not result.is_valid
    assert messages["Invalid version format"] == 4
    assert messages["Invalid priority"] == 6
    assert messages["Invalid status"] == 7
    assert messages["Invalid created format"] == 11


def test_string_tags_produce_warning(valid_note) -> None:
    content = valid_note().replace("tags:\n  - guide\n  - documentation\n", "tags: guide\n")
    result = FrontmatterValidator().validate(content)

    assert result.is_valid
    assert [w.message for w in result.warnings] == ["Tags field should be an array"]


def test_code_block_without_language_is_error() -> None:
    content = "text\n```\nprint('x')\n```\n```python\nprint(1)\n```\n"
    result = CodeBlockValidator().validate(content)

    assert not result.is_valid
    assert result.total_blocks == 2
    assert result.compliant_blocks == 1
    assert result.non_compliant_blocks == 1
    assert result.errors[0].line == 2


def test_code_block_warnings_for_unknown_language_and_empty_body() -> None:
    content = "```brainfuck\n+++\n```\n\n```bash\n\n```\n"
    result = CodeBlockValidator().validate(content)

    assert result.is_valid
    assert result.compliant_blocks == 2
    assert all(w.severity is Severity.WARNING for w in result.warnings)
    assert [w.line for w in result.warnings] == [1, 5]


def test_unterminated_block_runs_to_end_of_file() -> None:
    result = CodeBlockValidator().validate("```ts\nconst a = 1;\n")

    assert result.total_blocks == 1
    assert result.is_valid


def test_validators_satisfy_protocol() -> None:
    assert isinstance(FrontmatterValidator(), MarkdownValidator)
    assert isinstance(CodeBlockValidator(), MarkdownValidator)
