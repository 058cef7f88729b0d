"""Canonical serializer for port manifests.

Converts a SourceControlFile back to vcpkg.json text. The output is
deterministic so it can be compared byte-for-byte with the file on disk
to detect formatting drift.
"""

from __future__ import annotations

import json
from typing import Any

from portledger.core.types import FeatureParagraph, SourceControlFile


def serialize_manifest(scf: SourceControlFile) -> dict[str, Any]:
    """Convert a SourceControlFile to a manifest object in canonical key order."""
    data: dict[str, Any] = {k: v for k, v in scf.extra.items() if k.startswith("$")}

    data["name"] = scf.name
    data[scf.schemed_version.scheme.field_name] = scf.version.text
    if scf.version.port_version:
        data["port-version"] = scf.version.port_version
    if scf.maintainers:
        data["maintainers"] = _lines_to_json(scf.maintainers)
    if scf.description:
        data["description"] = _lines_to_json(scf.description)
    if scf.homepage:
        data["homepage"] = scf.homepage
    if scf.documentation:
        data["documentation"] = scf.documentation
    if scf.license is not None:
        data["license"] = scf.license
    if scf.supports:
        data["supports"] = scf.supports
    if "builtin-baseline" in scf.extra:
        data["builtin-baseline"] = scf.extra["builtin-baseline"]
    if scf.dependencies:
        data["dependencies"] = [dep.to_json() for dep in scf.dependencies]
    if scf.default_features:
        data["default-features"] = list(scf.default_features)
    if scf.features:
        data["features"] = {f.name: _serialize_feature(f) for f in scf.features}
    for key in ("overrides", "vcpkg-configuration"):
        if key in scf.extra:
            data[key] = scf.extra[key]

    return data


def format_manifest(scf: SourceControlFile) -> str:
    """Render the canonical vcpkg.json text for a port."""
    return json.dumps(serialize_manifest(scf), indent=2, ensure_ascii=False) + "\n"


def _serialize_feature(feature: FeatureParagraph) -> dict[str, Any]:
    data: dict[str, Any] = dict(feature.extra)
    if feature.description:
        data["description"] = _lines_to_json(feature.description)
    if feature.supports:
        data["supports"] = feature.supports
    if feature.license is not None:
        data["license"] = feature.license
    if feature.dependencies:
        data["dependencies"] = [dep.to_json() for dep in feature.dependencies]
    return data


def _lines_to_json(lines: tuple[str, ...]) -> str | list[str]:
    return lines[0] if len(lines) == 1 else list(lines)
