from __future__ import annotations

import json

import pytest

from adapters.json_exporter import dumps_model, export_json, load_json_object, write_json_object
from adapters.report_exporter import export_health_html, export_health_pdf, render_health_html
from core.domain.models import CategoryScore, HealthMetrics, OverallHealth, VaultStatus


def _metrics() -> HealthMetrics:
    return HealthMetrics(
        overall=OverallHealth(score=72.5, grade="C"),
        categories={
            "links": CategoryScore(score=40, issues=6),
            "yaml": CategoryScore(score=100, issues=0),
        },
        recommendations=["Fix 6 broken wiki links", "<script>"],
        files_checked=12,
    )


def test_dumps_model_uses_aliases_and_sorted_keys() -> None:
    text = dumps_model(VaultStatus(health="good", last_validation="2025-01-01T00:00:00Z"))
    data = json.loads(text)

    assert data["lastValidation"] == "2025-01-01T00:00:00Z"
    assert list(data) == sorted(data)
    assert text.endswith("\n")


def test_export_json_creates_parent(tmp_path) -> None:
    path = export_json(model=_metrics(), output_path=tmp_path / "out" / "health.json")

    assert json.loads(path.read_text(encoding="utf-8"))["overall"] == {"grade": "C", "score": 72.5}


def test_json_object_round_trip(tmp_path) -> None:
    path = tmp_path / "state.json"

    assert load_json_object(path) == {}
    write_json_object(data={"name": "Café"}, output_path=path)
    assert "Café" in path.read_text(encoding="utf-8")
    assert load_json_object(path) == {"name": "Café"}

    path.write_text("[1]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_json_object(path)


def test_health_html(tmp_path) -> None:
    html = render_health_html(metrics=_metrics(), vault_name="Notes")

    assert "72.5" in html
    assert 'class="value grade-C"' in html
    assert html.index("<td>links</td>") < html.index("<td>yaml</td>")
    assert "&lt;script&gt;" in html

    path = export_health_html(metrics=_metrics(), vault_name="Notes", output_path=tmp_path / "health.html")
    written = path.read_text(encoding="utf-8")
    assert "Notes · 12 notes" in written
    assert "<li>Fix 6 broken wiki links</li>" in written


def test_health_pdf_or_html_fallback(tmp_path) -> None:
    path = export_health_pdf(metrics=_metrics(), vault_name="Notes", output_path=tmp_path / "health.pdf")

    assert path.exists()
    assert path.suffix in {".pdf", ".html"}
    if path.suffix == ".pdf":
        assert path.read_bytes().startswith(b"%PDF")
