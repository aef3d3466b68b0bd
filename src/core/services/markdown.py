"""Markdown parsing helpers shared by validators, analytics and cleanup.

Everything here is pure: text in, plain values out.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

_WIKI_LINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+?)\.md\)")
_INLINE_TAG_RE = re.compile(r"(?<![\w/`#])#([A-Za-z][\w/-]*)")
_HEADING_RE = re.compile(r"^(#{1,6})\s+\S", re.MULTILINE)
_FENCE = "```"


@dataclass
class FrontmatterBlock:
    """Location and raw text of a `---` delimited YAML block."""

    raw: str
    start_line: int
    end_line: int
    body: str
    lines: list[str] = field(default_factory=list)

    def line_of(self, key: str) -> int:
        """1-based file line of a top-level key, or 1 when not found."""

        prefix = f"{key}:"
        for offset, line in enumerate(self.lines):
            if line.startswith(prefix):
                return self.start_line + 1 + offset
        return 1


def split_frontmatter(content: str) -> FrontmatterBlock | None:
    """Locate the frontmatter block; `None` when the delimiters are missing."""

    lines = content.split("\n")
    if not lines or lines[0].strip() != "---":
        return None
    for index in range(1, len(lines)):
        if lines[index].strip() == "---":
            inner = lines[1:index]
            return FrontmatterBlock(
                raw="\n".join(inner),
                start_line=1,
                end_line=index + 1,
                body="\n".join(lines[index + 1 :]),
                lines=inner,
            )
    return None


def parse_frontmatter(content: str) -> dict[str, Any] | None:
    """Parse the YAML frontmatter of a note.

    Returns `None` when there is no block, the YAML is invalid, or the root is
    not a mapping.
    """

    block = split_frontmatter(content)
    if block is None:
        return None
    try:
        data = yaml.safe_load(block.raw) if block.raw.strip() else {}
    except yaml.YAMLError:
        return None
    return data if isinstance(data, dict) else None


def strip_code(content: str) -> str:
    """Remove fenced blocks and inline code so links/tags inside them are ignored."""

    out: list[str] = []
    in_fence = False
    for line in content.split("\n"):
        if line.strip().startswith(_FENCE):
            in_fence = not in_fence
            continue
        if not in_fence:
            out.append(re.sub(r"`[^`]*`", "", line))
    return "\n".join(out)


def normalize_link_target(target: str) -> str:
    """`[[Folder/Note#Heading|Alias]]` -> `Note`."""

    name = target.split("|", 1)[0].split("#", 1)[0].strip()
    name = name.rsplit("/", 1)[-1]
    if name.endswith(".md"):
        name = name[:-3]
    return name


def extract_wiki_links(content: str) -> list[str]:
    links: list[str] = []
    for match in _WIKI_LINK_RE.finditer(strip_code(content)):
        target = normalize_link_target(match.group(1))
        if target:
            links.append(target)
    return links


def extract_markdown_links(content: str) -> list[str]:
    links: list[str] = []
    for match in _MD_LINK_RE.finditer(strip_code(content)):
        target = match.group(2)
        if "://" in target:
            continue
        links.append(normalize_link_target(target))
    return links


def extract_links(content: str) -> list[str]:
    return extract_wiki_links(content) + extract_markdown_links(content)


def frontmatter_tags(frontmatter: dict[str, Any] | None) -> list[str]:
    if not frontmatter:
        return []
    raw = frontmatter.get("tags")
    if raw is None:
        return []
    if isinstance(raw, str):
        items = [t for t in re.split(r"[,\s]+", raw) if t]
    elif isinstance(raw, list):
        items = [str(t) for t in raw if t is not None]
    else:
        return []
    return [t.strip().lstrip("#") for t in items if t.strip()]


def inline_tags(content: str) -> list[str]:
    block = split_frontmatter(content)
    body = block.body if block else content
    return _INLINE_TAG_RE.findall(strip_code(body))


def extract_tags(content: str, frontmatter: dict[str, Any] | None = None) -> list[str]:
    """Frontmatter tags first, then inline `#tags`, deduplicated in order."""

    if frontmatter is None:
        frontmatter = parse_frontmatter(content)
    seen: dict[str, None] = {}
    for tag in [*frontmatter_tags(frontmatter), *inline_tags(content)]:
        seen.setdefault(tag, None)
    return list(seen)


def heading_levels(content: str) -> list[int]:
    block = split_frontmatter(content)
    body = block.body if block else content
    return [len(m.group(1)) for m in _HEADING_RE.finditer(strip_code(body))]


def count_code_blocks(content: str) -> int:
    return len(re.findall(r"```[\s\S]*?```", content))


def is_kebab_case(tag: str) -> bool:
    return bool(re.fullmatch(r"[a-z0-9]+(?:-[a-z0-9]+)*(?:/[a-z0-9]+(?:-[a-z0-9]+)*)*", tag))
