"""Contracts for markdown validators.

Why Protocol:
- Defines a structural contract (duck typing) without rigid inheritance.
- Lets the frontmatter and code block checks be swapped or extended and
  tested in isolation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class MarkdownValidator(Protocol):
    """Minimal contract for a per-note check.

    Design rules:
    - `validate` is synchronous and pure: it receives the full note text and
      never touches the filesystem.
    - The returned model exposes `is_valid`, `errors` and `warnings`.
    """

    def validate(self, content: str) -> BaseModel:
        """Validate a note and return the normalized result."""

        ...
