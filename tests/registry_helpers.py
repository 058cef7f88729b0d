from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class FakeHashSource:
    """ContentHashSource backed by plain dicts."""

    def __init__(self, trees: dict[str, str] | None = None) -> None:
        self.trees = dict(trees or {})
        self.changed: set[str] = set()
        self.tree_map_calls = 0

    def port_tree_map(self) -> dict[str, str]:
        self.tree_map_calls += 1
        return dict(self.trees)

    def has_local_changes(self, port_name: str) -> bool:
        return port_name in self.changed


def write_manifest(root: Path, name: str, version: str, **fields: Any) -> Path:
    """Write ports/<name>/vcpkg.json in canonical form.

    `version_field` selects the scheme key; `port_version` is emitted only when non-zero.
    Remaining fields are written in the order given.
    """
    version_field = fields.pop("version_field", "version")
    port_version = fields.pop("port_version", 0)
    data: dict[str, Any] = {"name": name, version_field: version}
    if port_version:
        data["port-version"] = port_version
    data.update(fields)

    port_dir = root / "ports" / name
    port_dir.mkdir(parents=True, exist_ok=True)
    path = port_dir / "vcpkg.json"
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


def write_control(root: Path, name: str, text: str) -> Path:
    port_dir = root / "ports" / name
    port_dir.mkdir(parents=True, exist_ok=True)
    path = port_dir / "CONTROL"
    path.write_text(text, encoding="utf-8")
    return path


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def history_path(root: Path, name: str) -> Path:
    return root / "versions" / f"{name[0]}-" / f"{name}.json"


def baseline_path(root: Path) -> Path:
    return root / "versions" / "baseline.json"


def console_output(reconciler) -> str:
    """Text printed by a Reconciler built with a StringIO console."""
    return reconciler._console.file.getvalue()
