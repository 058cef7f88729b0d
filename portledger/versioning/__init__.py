"""portledger versioning — the four version schemes and their ordering laws.

Usage:
    from portledger.versioning import compare_versions, suggest_scheme

    ordering = compare_versions(old, new)
    better = suggest_scheme(schemed_version)
"""

from portledger.versioning.schemes import (
    DateVersion,
    DotVersion,
    VersionOrdering,
    VersionParseError,
    compare_versions,
    is_newer,
    make_schemed_version,
    suggest_scheme,
    validate_version_text,
)

__all__ = [
    "DateVersion",
    "DotVersion",
    "VersionOrdering",
    "VersionParseError",
    "compare_versions",
    "is_newer",
    "make_schemed_version",
    "suggest_scheme",
    "validate_version_text",
]
