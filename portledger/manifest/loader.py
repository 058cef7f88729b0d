"""Loading port descriptions from a port catalog.

A port directory holds either a legacy CONTROL file or a vcpkg.json
manifest. Single-port loading raises ManifestParseError; the
registry-wide variant collects errors per port and never fails the batch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from portledger.core.types import FieldDiagnostic, SourceControlFile
from portledger.manifest.paragraphs import ParagraphSyntaxError, parse_paragraphs
from portledger.manifest.validator import (
    ManifestParseError,
    parse_control_paragraphs,
    parse_manifest_object,
)

logger = logging.getLogger(__name__)

CONTROL_FILE = "CONTROL"
MANIFEST_FILE = "vcpkg.json"


@dataclass
class LoadResults:
    """Successfully parsed ports plus one error per port that failed."""

    ports: list[SourceControlFile] = field(default_factory=list)
    errors: list[ManifestParseError] = field(default_factory=list)


def is_port_directory(path: Path) -> bool:
    """Check whether a directory contains a port description."""
    return (path / MANIFEST_FILE).is_file() or (path / CONTROL_FILE).is_file()


def load_port_text(text: str, origin: str, is_manifest: bool) -> SourceControlFile:
    """Parse a port description held in memory.

    Args:
        text: File contents.
        origin: Path or buffer tag used in diagnostics.
        is_manifest: True for vcpkg.json text, False for CONTROL text.
    """
    if is_manifest:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestParseError(
                origin, [FieldDiagnostic(exc.msg, line=exc.lineno, column=exc.colno)]
            ) from exc
        return parse_manifest_object(data, origin)

    try:
        paragraphs = parse_paragraphs(text, origin)
    except ParagraphSyntaxError as exc:
        raise ManifestParseError(
            origin, [FieldDiagnostic(exc.reason, line=exc.line, column=exc.column)]
        ) from exc
    return parse_control_paragraphs(paragraphs, origin)


def load_port(port_dir: Path) -> SourceControlFile:
    """Load the description of the port rooted at `port_dir`.

    The JSON manifest takes precedence when both files are present.
    """
    manifest_path = port_dir / MANIFEST_FILE
    control_path = port_dir / CONTROL_FILE

    if manifest_path.is_file():
        if control_path.is_file():
            logger.warning(
                "%s has both %s and %s; using %s",
                port_dir.name,
                MANIFEST_FILE,
                CONTROL_FILE,
                MANIFEST_FILE,
            )
        return load_port_text(_read_text(manifest_path), str(manifest_path), is_manifest=True)

    if control_path.is_file():
        return load_port_text(_read_text(control_path), str(control_path), is_manifest=False)

    raise ManifestParseError(
        str(port_dir),
        [FieldDiagnostic(f"port directory has neither {MANIFEST_FILE} nor {CONTROL_FILE}")],
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(
            str(path),
            [FieldDiagnostic(f"file is not valid UTF-8: {exc.reason} at byte {exc.start}")],
        ) from exc


def load_all_ports(ports_dir: Path) -> LoadResults:
    """Load every port under `ports_dir`, collecting per-port errors."""
    results = LoadResults()
    for port_dir in sorted(p for p in ports_dir.iterdir() if p.is_dir()):
        try:
            results.ports.append(load_port(port_dir))
        except ManifestParseError as exc:
            logger.debug("Failed to load %s: %s", port_dir.name, exc)
            results.errors.append(exc)

    logger.info(
        "Loaded %d ports from %s (%d errors)", len(results.ports), ports_dir, len(results.errors)
    )
    return results
