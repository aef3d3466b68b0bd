from __future__ import annotations

from core.services.markdown import (
    extract_links,
    extract_tags,
    heading_levels,
    is_kebab_case,
    normalize_link_target,
    parse_frontmatter,
    split_frontmatter,
)


def test_split_frontmatter_locates_block() -> None:
    block = split_frontmatter("---\na: 1\nb: 2\n---\nbody\n")

    assert block is not None
    assert block.raw == "a: 1\nb: 2"
    assert block.end_line == 4
    assert block.body == "body\n"
    assert block.line_of("b") == 3
    assert block.line_of("missing") == 1


def test_parse_frontmatter_rejects_non_mapping() -> None:
    assert parse_frontmatter("---\n- a\n- b\n---\n") is None
    assert parse_frontmatter("no frontmatter") is None
    assert parse_frontmatter("---\n---\n") == {}


def test_link_targets_are_normalized() -> None:
    assert normalize_link_target("Folder/Note#Heading|Alias") == "Note"
    assert normalize_link_target("Other.md") == "Other"


def test_links_in_code_are_ignored() -> None:
    content = (
        "See [[Alpha|the alpha]] and [beta](docs/Beta.md) and [web](https://x.io/page.md).\n"
        "`[[Inline]]`\n"
        "```md\n[[Fenced]]\n```\n"
    )

    assert extract_links(content) == ["Alpha", "Beta"]


def test_tags_merge_frontmatter_and_inline() -> None:
    content = "---\ntags: [alpha, beta]\n---\n# Heading\nText #beta and #gamma-ray\n`#code`\n"

    assert extract_tags(content) == ["alpha", "beta", "gamma-ray"]


def test_heading_levels_skip_yaml_comments_and_code() -> None:
    content = "---\n# comment\ntitle: x\n---\n# One\n```bash\n# not a heading\n```\n### Three\n"

    assert heading_levels(content) == [1, 3]


def test_kebab_case() -> None:
    assert is_kebab_case("code-snippet")
    assert is_kebab_case("area/sub-topic")
    assert not is_kebab_case("CodeSnippet")
    assert not is_kebab_case("code_snippet")
