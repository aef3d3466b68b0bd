from __future__ import annotations

import json

import pytest

from core.domain.models import CanvasDocument, CanvasEdge, CanvasNode, Severity
from core.errors import CanvasParseError
from core.services.canvas import (
    CanvasMonitor,
    calculate_complexity,
    calculate_health,
    classify_canvas,
    complexity_bucket,
    health_status,
    load_canvas,
    normalize_color,
    validate_canvas,
    validate_edges,
    validate_node,
)

KIB = 1024


def _node(node_id: str, node_type: str = "text", **extra) -> dict:
    node = {"id": node_id, "type": node_type, "x": 0, "y": 0, "width": 200, "height": 100}
    if node_type == "text":
        node["text"] = "A reasonably long text"
    node.update(extra)
    return node


def _write_canvas(write_note, rel: str, nodes: list, edges: list) -> None:
    write_note(rel, json.dumps({"nodes": nodes, "edges": edges}))


@pytest.mark.parametrize(
    ("nodes", "edges", "size", "expected"),
    [
        (0, 0, 100, 50.0),
        (4, 0, 100, 70.0),
        (4, 4, 100, 100.0),
        (4, 20, 100, 100.0),
        (4, 0, 150 * KIB, 65.0),
        (4, 0, 400 * KIB, 50.0),
    ],
)
def test_health_formula(nodes, edges, size, expected) -> None:
    assert calculate_health(nodes, edges, size) == pytest.approx(expected)


def test_complexity_and_bands() -> None:
    assert calculate_complexity(3, 2, 2048) == 9.0
    assert health_status(95) == "Excellent"
    assert health_status(70) == "Good"
    assert health_status(50) == "Fair"
    assert health_status(49.9) == "Poor"
    assert complexity_bucket(9.9) == "Simple"
    assert complexity_bucket(24) == "Moderate"
    assert complexity_bucket(49) == "Complex"
    assert complexity_bucket(50) == "Very Complex"


def test_classification() -> None:
    text = CanvasNode(id="a", type="text")
    image = CanvasNode(id="b", type="file", file="img/photo.PNG")
    link = CanvasNode(id="c", type="link", url="https://example.com")
    group = CanvasNode(id="d", type="group")
    edge = CanvasEdge(fromNode="a", toNode="c")

    assert classify_canvas(CanvasDocument()) == "Empty"
    assert classify_canvas(CanvasDocument(nodes=[text, text])) == "Text-Based"
    assert classify_canvas(CanvasDocument(nodes=[text, image])) == "Visual-Rich"
    assert classify_canvas(CanvasDocument(nodes=[text, link], edges=[edge])) == "Connected-Diagram"
    assert classify_canvas(CanvasDocument(nodes=[text, link])) == "Simple-Collection"
    assert (
        classify_canvas(
            CanvasDocument(nodes=[text, link, group, CanvasNode(id="e", type="file", file="a.md"), CanvasNode(id="f", type="custom")])
        )
        == "Complex-Mixed"
    )


def test_colors() -> None:
    assert normalize_color("1") == "#fb464c"
    assert normalize_color("0") == "#808080"
    assert normalize_color(6) == "#a882ff"
    assert normalize_color("#ABC") == "#aabbcc"
    assert normalize_color("#3b82f6") == "#3b82f6"
    assert normalize_color("7") is None
    assert normalize_color("#12345") is None
    assert normalize_color(None) is None


def test_node_validation() -> None:
    issues = validate_node(CanvasNode(id=5, type="text", x="left", y=0, text="short", color="purple"))
    messages = [i.message for i in issues]

    assert "Node ID is required and must be a string" in messages
    assert any("position (x, y) must be numbers" in m for m in messages)
    assert any("dimensions (width, height) should be numbers" in m for m in messages)
    assert any("text is very short" in m for m in messages)
    assert any("invalid color" in m for m in messages)

    long_text = validate_node(CanvasNode(**_node("n1", text="x" * 1001)))
    assert [i.severity for i in long_text] == [Severity.WARNING]


def test_edges_must_reference_nodes() -> None:
    edges = [CanvasEdge(id="e1", fromNode="a", toNode="b"), CanvasEdge(id="e2", fromNode="a", toNode="zzz")]
    issues = validate_edges(edges, {"a", "b"})

    assert len(issues) == 1
    assert "toNode references unknown node 'zzz'" in issues[0].message


def test_duplicate_node_ids() -> None:
    doc = CanvasDocument.model_validate({"nodes": [_node("a"), _node("a")], "edges": []})

    assert any("Duplicate node id" in i.message for i in validate_canvas(doc))


def test_load_canvas_errors(vault) -> None:
    bad = vault / "bad.canvas"
    bad.write_text("{not json", encoding="utf-8")
    listing = vault / "list.canvas"
    listing.write_text("[]", encoding="utf-8")

    with pytest.raises(CanvasParseError):
        load_canvas(bad)
    with pytest.raises(CanvasParseError):
        load_canvas(listing)


def test_load_canvas_keeps_unknown_keys(vault) -> None:
    path = vault / "a.canvas"
    path.write_text(json.dumps({"nodes": [_node("a", styleAttributes={"shape": "pill"})], "edges": []}), encoding="utf-8")

    doc = load_canvas(path)

    assert doc.nodes[0].model_extra == {"styleAttributes": {"shape": "pill"}}


def test_monitor_scan(settings, write_note) -> None:
    _write_canvas(write_note, "maps/a.canvas", [_node("a"), _node("b")], [{"id": "e", "fromNode": "a", "toNode": "b"}])
    _write_canvas(write_note, "maps/empty.canvas", [], [])
    write_note("broken.canvas", "nope")
    write_note(".obsidian/hidden.canvas", "{}")

    report = CanvasMonitor(settings).scan()

    by_name = {c.name: c for c in report.canvases}
    assert set(by_name) == {"a.canvas", "empty.canvas", "broken.canvas"}
    assert by_name["a.canvas"].health == 100.0
    assert by_name["a.canvas"].canvas_type == "Text-Based"
    assert by_name["empty.canvas"].status == "Fair"
    assert by_name["broken.canvas"].health == 50.0
    assert by_name["broken.canvas"].status == "Unknown"

    assert report.metrics.total_canvases == 3
    assert report.metrics.total_nodes == 2
    assert report.metrics.total_connections == 1
    assert report.metrics.health_score == pytest.approx((100 + 50 + 50) / 3)
    assert {d.directory for d in report.by_directory} == {".", "maps"}
    assert sum(b.count for b in report.by_complexity) == 3
    assert sum(b.count for b in report.by_size) == 3
