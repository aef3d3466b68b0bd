"""Frontmatter and code block validators.

Both validators implement `core.interfaces.validator.MarkdownValidator`: they
take the full text of a note and return a result model, never raising for
content problems.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import yaml

from core.domain.models import (
    CodeBlockValidationResult,
    FrontmatterValidationResult,
    Severity,
    ValidationIssue,
)
from core.services.markdown import split_frontmatter

REQUIRED_FRONTMATTER_FIELDS: tuple[str, ...] = (
    "type",
    "title",
    "version",
    "category",
    "priority",
    "status",
    "tags",
    "created",
    "updated",
    "author",
    "validation_rules",
)

RECOMMENDED_FRONTMATTER_FIELDS: tuple[str, ...] = (
    "template_version",
    "description",
)

VALID_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")
VALID_STATUSES: tuple[str, ...] = ("draft", "active", "completed", "deprecated")

VALID_CODE_LANGUAGES: frozenset[str] = frozenset(
    {
        "typescript", "javascript", "ts", "js",
        "bash", "shell", "sh",
        "json", "yaml", "yml", "toml",
        "markdown", "md",
        "python", "py",
        "sql",
        "html", "css", "scss",
        "xml", "svg",
        "dockerfile", "docker",
        "gitignore",
        "txt", "text",
    }
)

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+$")
_ISO_UTC_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _is_iso_utc(value: Any) -> bool:
    # YAML turns unquoted timestamps into datetime objects.
    if isinstance(value, datetime):
        return value.tzinfo is not None and value.utcoffset() == timezone.utc.utcoffset(None)
    return isinstance(value, str) and bool(_ISO_UTC_RE.match(value))


class FrontmatterValidator:
    """Validates the YAML frontmatter block of a note."""

    def __init__(
        self,
        required_fields: tuple[str, ...] = REQUIRED_FRONTMATTER_FIELDS,
        recommended_fields: tuple[str, ...] = RECOMMENDED_FRONTMATTER_FIELDS,
    ) -> None:
        self.required_fields = required_fields
        self.recommended_fields = recommended_fields

    def validate(self, content: str) -> FrontmatterValidationResult:
        result = FrontmatterValidationResult()

        lines = content.split("\n")
        if not lines or lines[0].strip() != "---":
            self._error(result, "Missing YAML frontmatter delimiter (---)")
            return result

        block = split_frontmatter(content)
        if block is None:
            self._error(result, "Missing YAML frontmatter closing delimiter (---)")
            return result

        result.has_frontmatter = True

        try:
            fields = yaml.safe_load(block.raw) if block.raw.strip() else {}
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            line = block.start_line + 1 + mark.line if mark is not None else 1
            self._error(result, f"Invalid YAML frontmatter: {getattr(exc, 'problem', exc)}", line=line)
            return result

        if fields is None:
            fields = {}
        if not isinstance(fields, dict):
            self._error(result, "Frontmatter must be a YAML mapping of key: value pairs", line=2)
            return result

        result.fields = {str(k): v for k, v in fields.items()}
        result.present_fields = list(result.fields)

        for name in self.required_fields:
            if _is_empty(result.fields.get(name)):
                result.missing_fields.append(name)
                self._error(result, f"Missing required frontmatter field: {name}")

        for name in self.recommended_fields:
            if _is_empty(result.fields.get(name)):
                result.warnings.append(
                    ValidationIssue(
                        line=1,
                        message=f"Missing recommended frontmatter field: {name}",
                        severity=Severity.WARNING,
                    )
                )

        self._validate_formats(result, block.line_of)
        return result

    def _validate_formats(self, result: FrontmatterValidationResult, line_of) -> None:
        fields = result.fields

        version = fields.get("version")
        if not _is_empty(version) and not _SEMVER_RE.match(str(version).strip("\"'")):
            self._error(
                result,
                f"Invalid version format: {version}. Expected semantic version (x.y.z)",
                line=line_of("version"),
            )

        for name in ("created", "updated"):
            value = fields.get(name)
            if not _is_empty(value) and not _is_iso_utc(value):
                self._error(
                    result,
                    f"Invalid {name} format: {value}. Expected ISO-8601 format (YYYY-MM-DDTHH:MM:SSZ)",
                    line=line_of(name),
                )

        priority = fields.get("priority")
        if not _is_empty(priority) and priority not in VALID_PRIORITIES:
            self._error(
                result,
                f"Invalid priority: {priority}. Must be one of: {', '.join(VALID_PRIORITIES)}",
                line=line_of("priority"),
            )

        status = fields.get("status")
        if not _is_empty(status) and status not in VALID_STATUSES:
            self._error(
                result,
                f"Invalid status: {status}. Must be one of: {', '.join(VALID_STATUSES)}",
                line=line_of("status"),
            )

        tags = fields.get("tags")
        if not _is_empty(tags) and not isinstance(tags, list):
            result.warnings.append(
                ValidationIssue(
                    line=line_of("tags"),
                    message="Tags field should be an array",
                    severity=Severity.WARNING,
                )
            )

    @staticmethod
    def _error(result: FrontmatterValidationResult, message: str, *, line: int = 1) -> None:
        result.errors.append(ValidationIssue(line=line, message=message, severity=Severity.ERROR))
        result.is_valid = False


class CodeBlockValidator:
    """Checks that fenced code blocks declare a (known) language and are not empty."""

    def __init__(self, languages: frozenset[str] = VALID_CODE_LANGUAGES) -> None:
        self.languages = languages

    def validate(self, content: str) -> CodeBlockValidationResult:
        result = CodeBlockValidationResult()
        lines = content.split("\n")
        index = 0

        while index < len(lines):
            stripped = lines[index].strip()
            if not stripped.startswith("```"):
                index += 1
                continue

            result.total_blocks += 1
            language = stripped[3:].strip()
            end = self._find_block_end(lines, index + 1)

            if not language:
                result.errors.append(
                    ValidationIssue(
                        line=index + 1,
                        message="Code block missing language specification",
                        severity=Severity.ERROR,
                    )
                )
                result.is_valid = False
                result.non_compliant_blocks += 1
            else:
                if language.split()[0].lower() not in self.languages:
                    result.warnings.append(
                        ValidationIssue(
                            line=index + 1,
                            message=f"Unknown or uncommon language specification: {language}",
                            severity=Severity.WARNING,
                        )
                    )
                body = lines[index + 1 : end]
                if not any(line.strip() for line in body):
                    result.warnings.append(
                        ValidationIssue(
                            line=index + 1,
                            message="Empty code block detected",
                            severity=Severity.WARNING,
                        )
                    )
                result.compliant_blocks += 1

            index = end + 1

        return result

    @staticmethod
    def _find_block_end(lines: list[str], start: int) -> int:
        for i in range(start, len(lines)):
            if lines[i].strip() == "```":
                return i
        return len(lines)
