"""portledger manifest — CONTROL/vcpkg.json parsing and canonical formatting.

Usage:
    from portledger.manifest import format_manifest, load_port

    scf = load_port(ports_dir / "zlib")
    drifted = format_manifest(scf) != (ports_dir / "zlib" / "vcpkg.json").read_text()
"""

from portledger.manifest.formatter import format_manifest, serialize_manifest
from portledger.manifest.loader import (
    CONTROL_FILE,
    MANIFEST_FILE,
    LoadResults,
    is_port_directory,
    load_all_ports,
    load_port,
    load_port_text,
)
from portledger.manifest.paragraphs import Paragraph, ParagraphSyntaxError, parse_paragraphs
from portledger.manifest.validator import ManifestParseError

__all__ = [
    "CONTROL_FILE",
    "MANIFEST_FILE",
    "LoadResults",
    "ManifestParseError",
    "Paragraph",
    "ParagraphSyntaxError",
    "format_manifest",
    "is_port_directory",
    "load_all_ports",
    "load_port",
    "load_port_text",
    "parse_paragraphs",
    "serialize_manifest",
]
