"""portledger core — shared types, enums, and configuration.

Import the most commonly used types from here for convenience:

    from portledger.core import SchemedVersion, Version, VersionScheme
"""

from portledger.core.config import RegistryConfig, get_config, set_config
from portledger.core.types import (
    VERSION_FIELDS,
    Dependency,
    FeatureParagraph,
    FieldDiagnostic,
    ManifestFormat,
    SchemedVersion,
    SourceControlFile,
    UpdateResult,
    Version,
    VersionHistoryEntry,
    VersionScheme,
)

__all__ = [
    "VERSION_FIELDS",
    "Dependency",
    "FeatureParagraph",
    "FieldDiagnostic",
    "ManifestFormat",
    "RegistryConfig",
    "SchemedVersion",
    "SourceControlFile",
    "UpdateResult",
    "Version",
    "VersionHistoryEntry",
    "VersionScheme",
    "get_config",
    "set_config",
]
