"""JSON export of result models and the vault's JSON state files.

Why JSON:
- Interoperability with other tooling and CI pipelines.
- `.vault-config.json` / `.vault-status.json` are shared with the Obsidian side,
  so their unknown keys must survive a read/modify/write cycle.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def dumps_model(model: BaseModel) -> str:
    payload = model.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_json(*, model: BaseModel, output_path: Path) -> Path:
    """Write any result model as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps_model(model), encoding="utf-8")
    return output_path


def load_json_object(path: Path) -> dict[str, Any]:
    """Read a JSON object; a missing file yields `{}`.

    Raises `ValueError` when the file holds something other than an object.
    """

    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a JSON object")
    return data


def write_json_object(*, data: dict[str, Any], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return output_path
