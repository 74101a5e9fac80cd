from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from hitcut.model.types import Project

CURRENT_SCHEMA_VERSION = 1


def load_project(path: str | Path) -> Project:
    p = Path(path)
    data: dict[str, Any] = json.loads(p.read_text(encoding="utf-8"))
    schema = int(data.get("schema_version", CURRENT_SCHEMA_VERSION) or CURRENT_SCHEMA_VERSION)
    if schema > CURRENT_SCHEMA_VERSION:
        raise ValueError(f"unsupported project schema_version {schema} (max {CURRENT_SCHEMA_VERSION})")
    project = Project.from_dict(data)
    project.path = str(p)
    return project


def save_project(project: Project, path: str | Path | None = None) -> str:
    out_path = Path(path or project.path or f"{project.name}.json").expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = project.to_dict()
    out_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    project.path = str(out_path)
    return str(out_path)
