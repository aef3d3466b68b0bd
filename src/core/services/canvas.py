"""Canvas (JSON diagram) analysis: node validation, health scoring, monitoring.

An Obsidian canvas is `{"nodes": [...], "edges": [...]}`. Scores are simple
heuristics over node/edge counts and file size; they are meant for the
dashboard, not as a formal quality metric.
"""

from __future__ import annotations

import json
import logging
import re
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from adapters.vault_files import ensure_vault, iter_vault_files, relative
from core.config import AppSettings
from core.domain.models import (
    BucketStats,
    CanvasDocument,
    CanvasEdge,
    CanvasFile,
    CanvasMetrics,
    CanvasNode,
    CanvasReport,
    DirectoryCanvasStats,
    Severity,
    ValidationIssue,
)
from core.errors import CanvasParseError

logger = logging.getLogger(__name__)

KIB = 1024

# Obsidian preset colors; "0" is the legacy gray.
PRESET_COLORS: dict[str, str] = {
    "0": "#808080",
    "1": "#fb464c",
    "2": "#e9973f",
    "3": "#e0de71",
    "4": "#44cf6e",
    "5": "#53dfdd",
    "6": "#a882ff",
}

NODE_TYPES: frozenset[str] = frozenset({"text", "file", "link", "group"})

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def load_canvas(path: Path) -> CanvasDocument:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise CanvasParseError(path, str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise CanvasParseError(path, f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(raw, dict):
        raise CanvasParseError(path, "root must be a JSON object")

    raw = {
        **raw,
        "nodes": [n for n in raw.get("nodes") or [] if isinstance(n, dict)]
        if isinstance(raw.get("nodes"), list)
        else [],
        "edges": [e for e in raw.get("edges") or [] if isinstance(e, dict)]
        if isinstance(raw.get("edges"), list)
        else [],
    }
    try:
        return CanvasDocument.model_validate(raw)
    except ValidationError as exc:
        raise CanvasParseError(path, str(exc)) from exc


def calculate_complexity(node_count: int, connection_count: int, size: int) -> float:
    return node_count * 1 + connection_count * 2 + size / KIB


def calculate_health(node_count: int, connection_count: int, size: int) -> float:
    health = 100.0

    if node_count == 0:
        health -= 50
    if node_count > 0 and connection_count == 0:
        health -= 30
    if size > 100 * KIB:
        health -= min(20.0, (size - 100 * KIB) / (10 * KIB))
    if node_count > 0 and connection_count > 0:
        ratio = connection_count / node_count
        if 0.5 <= ratio <= 2:
            health += 10

    return max(0.0, min(100.0, health))


def health_status(health: float) -> str:
    if health >= 90:
        return "Excellent"
    if health >= 70:
        return "Good"
    if health >= 50:
        return "Fair"
    return "Poor"


def classify_canvas(document: CanvasDocument) -> str:
    if not document.nodes:
        return "Empty"

    node_types = {n.type for n in document.nodes if n.type}
    if node_types == {"text"}:
        return "Text-Based"
    if "image" in node_types or any(_is_image_file(n) for n in document.nodes):
        return "Visual-Rich"
    if len(node_types) > 3:
        return "Complex-Mixed"
    if document.edges:
        return "Connected-Diagram"
    return "Simple-Collection"


def _is_image_file(node: CanvasNode) -> bool:
    return (
        node.type == "file"
        and isinstance(node.file, str)
        and node.file.lower().endswith((".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"))
    )


def normalize_color(value: Any) -> str | None:
    """Return the hex form of a preset or hex color, `None` when invalid."""

    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if value in PRESET_COLORS:
        return PRESET_COLORS[value]
    if _HEX_COLOR_RE.match(value):
        if len(value) == 4:
            value = "#" + "".join(ch * 2 for ch in value[1:])
        return value.lower()
    return None


def _issue(message: str, severity: Severity, category: str, suggestion: str | None = None) -> ValidationIssue:
    return ValidationIssue(message=message, severity=severity, category=category, suggestion=suggestion)


def validate_node(node: CanvasNode) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    label = node.id if isinstance(node.id, str) else "<no id>"

    if not isinstance(node.id, str) or not node.id:
        issues.append(
            _issue(
                "Node ID is required and must be a string",
                Severity.ERROR,
                "structure",
                "Add a unique identifier to the node",
            )
        )

    if not _is_number(node.x) or not _is_number(node.y):
        issues.append(
            _issue(f"Node {label}: position (x, y) must be numbers", Severity.ERROR, "structure")
        )

    if not _is_number(node.width) or not _is_number(node.height):
        issues.append(
            _issue(
                f"Node {label}: dimensions (width, height) should be numbers",
                Severity.WARNING,
                "layout",
            )
        )

    if node.type is not None and not isinstance(node.type, str):
        issues.append(_issue(f"Node {label}: type must be a string", Severity.ERROR, "structure"))
    elif isinstance(node.type, str) and node.type not in NODE_TYPES:
        issues.append(
            _issue(f"Node {label}: unknown node type '{node.type}'", Severity.WARNING, "structure")
        )

    if node.type == "text":
        if not isinstance(node.text, str) or not node.text:
            issues.append(
                _issue(
                    f"Node {label}: text is required and must be a string",
                    Severity.ERROR,
                    "content",
                    "Add descriptive text content for the node",
                )
            )
        elif len(node.text) < 10:
            issues.append(_issue(f"Node {label}: text is very short", Severity.WARNING, "content"))
        elif len(node.text) > 1000:
            issues.append(
                _issue(
                    f"Node {label}: text is quite long",
                    Severity.WARNING,
                    "content",
                    "Consider splitting long content into multiple nodes",
                )
            )
    elif node.type == "file" and not isinstance(node.file, str):
        issues.append(_issue(f"Node {label}: file node needs a 'file' path", Severity.ERROR, "content"))
    elif node.type == "link" and not isinstance(node.url, str):
        issues.append(_issue(f"Node {label}: link node needs a 'url'", Severity.ERROR, "content"))

    if node.color is not None and normalize_color(node.color) is None:
        issues.append(
            _issue(
                f"Node {label}: invalid color {node.color!r}",
                Severity.WARNING,
                "color",
                "Use a preset '1'-'6' or a hex value like #3b82f6",
            )
        )

    return issues


def validate_edges(edges: list[CanvasEdge], node_ids: set[str]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for edge in edges:
        label = edge.id if isinstance(edge.id, str) else "<no id>"
        for end, ref in (("fromNode", edge.from_node), ("toNode", edge.to_node)):
            if ref not in node_ids:
                issues.append(
                    _issue(
                        f"Edge {label}: {end} references unknown node {ref!r}",
                        Severity.ERROR,
                        "structure",
                    )
                )
        if edge.color is not None and normalize_color(edge.color) is None:
            issues.append(_issue(f"Edge {label}: invalid color {edge.color!r}", Severity.WARNING, "color"))
    return issues


def validate_canvas(document: CanvasDocument) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for node in document.nodes:
        issues.extend(validate_node(node))
        if isinstance(node.id, str):
            if node.id in seen:
                issues.append(_issue(f"Duplicate node id {node.id!r}", Severity.ERROR, "structure"))
            seen.add(node.id)
    issues.extend(validate_edges(document.edges, seen))
    return issues


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def analyze_canvas(path: Path, root: Path) -> CanvasFile:
    """Score a single canvas; parse failures degrade to a neutral entry."""

    stats = path.stat()
    rel = relative(path, root)
    base = {
        "path": rel,
        "name": path.name,
        "directory": relative(path.parent, root) if path.parent != root else ".",
        "size": stats.st_size,
        "last_modified": datetime.fromtimestamp(stats.st_mtime),
    }
    try:
        document = load_canvas(path)
    except CanvasParseError as exc:
        logger.warning("Cannot analyze canvas %s: %s", rel, exc.reason)
        return CanvasFile(
            **base,
            health=50.0,
            status="Unknown",
            canvas_type="Unknown",
            issues=[_issue(exc.reason, Severity.ERROR, "parse")],
        )

    nodes = len(document.nodes)
    edges = len(document.edges)
    health = calculate_health(nodes, edges, stats.st_size)
    return CanvasFile(
        **base,
        node_count=nodes,
        connection_count=edges,
        complexity=calculate_complexity(nodes, edges, stats.st_size),
        health=health,
        status=health_status(health),
        canvas_type=classify_canvas(document),
        issues=validate_canvas(document),
    )


def complexity_bucket(complexity: float) -> str:
    if complexity < 10:
        return "Simple"
    if complexity < 25:
        return "Moderate"
    if complexity < 50:
        return "Complex"
    return "Very Complex"


def size_bucket(size: int) -> str:
    if size < 10 * KIB:
        return "Small"
    if size < 50 * KIB:
        return "Medium"
    if size < 100 * KIB:
        return "Large"
    return "Very Large"


def directory_status(average_health: float) -> str:
    if average_health >= 80:
        return "Healthy"
    if average_health >= 60:
        return "Good"
    return "Needs Attention"


class CanvasMonitor:
    """Walks the vault for `.canvas` files and aggregates their metrics."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.root = ensure_vault(settings.vault_root())

    def scan(self) -> CanvasReport:
        report = CanvasReport()
        for path in iter_vault_files(self.root, suffix=".canvas", skip_dirs=self.settings.skipped_dirs()):
            try:
                report.canvases.append(analyze_canvas(path, self.root))
            except OSError as exc:
                logger.error("Canvas scan failed for %s: %s", path, exc)
                report.errors.append(f"{relative(path, self.root)}: {exc}")

        report.metrics = self._metrics(report.canvases)
        report.by_directory = self._by_directory(report.canvases)
        report.by_complexity = self._buckets(
            report.canvases,
            key=lambda c: complexity_bucket(c.complexity),
            value=lambda c: c.node_count,
            labels=("Simple", "Moderate", "Complex", "Very Complex"),
        )
        report.by_size = self._buckets(
            report.canvases,
            key=lambda c: size_bucket(c.size),
            value=lambda c: c.size,
            labels=("Small", "Medium", "Large", "Very Large"),
        )
        return report

    @staticmethod
    def _metrics(canvases: list[CanvasFile]) -> CanvasMetrics:
        count = len(canvases)
        return CanvasMetrics(
            total_canvases=count,
            total_nodes=sum(c.node_count for c in canvases),
            total_connections=sum(c.connection_count for c in canvases),
            total_size=sum(c.size for c in canvases),
            average_complexity=sum(c.complexity for c in canvases) / count if count else 0.0,
            health_score=sum(c.health for c in canvases) / count if count else 0.0,
        )

    @staticmethod
    def _by_directory(canvases: list[CanvasFile]) -> list[DirectoryCanvasStats]:
        groups: dict[str, list[CanvasFile]] = defaultdict(list)
        for canvas in canvases:
            groups[canvas.directory].append(canvas)

        out: list[DirectoryCanvasStats] = []
        for directory, items in sorted(groups.items()):
            average = sum(c.health for c in items) / len(items)
            out.append(
                DirectoryCanvasStats(
                    directory=directory,
                    canvas_count=len(items),
                    total_nodes=sum(c.node_count for c in items),
                    total_size=sum(c.size for c in items),
                    average_health=average,
                    status=directory_status(average),
                )
            )
        return out

    @staticmethod
    def _buckets(canvases, *, key, value, labels) -> list[BucketStats]:
        total = len(canvases)
        out: list[BucketStats] = []
        for label in labels:
            members = [c for c in canvases if key(c) == label]
            if not members:
                continue
            out.append(
                BucketStats(
                    label=label,
                    count=len(members),
                    percentage=len(members) / total * 100.0,
                    average=sum(value(c) for c in members) / len(members),
                )
            )
        return out
