"""Core data types for portledger.

Shared dataclasses and enums used by the manifest parser, the version
scheme model, and the registry layer. Types that are persisted expose
a to_dict method producing the exact on-disk JSON shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class VersionScheme(str, Enum):
    """The ordering discipline a manifest declares for its version."""

    RELAXED = "relaxed"
    SEMVER = "semver"
    DATE = "date"
    STRING = "string"

    @property
    def field_name(self) -> str:
        """JSON key used for this scheme in manifests and history files."""
        return _SCHEME_FIELDS[self]

    @classmethod
    def from_field_name(cls, name: str) -> VersionScheme:
        for scheme, field_name in _SCHEME_FIELDS.items():
            if field_name == name:
                return scheme
        raise ValueError(f"Not a version field: {name!r}")


_SCHEME_FIELDS: dict[VersionScheme, str] = {
    VersionScheme.RELAXED: "version",
    VersionScheme.SEMVER: "version-semver",
    VersionScheme.DATE: "version-date",
    VersionScheme.STRING: "version-string",
}

VERSION_FIELDS: tuple[str, ...] = tuple(_SCHEME_FIELDS.values())


class ManifestFormat(str, Enum):
    """Which on-disk format a port description was parsed from."""

    PARAGRAPH = "paragraph"  # legacy CONTROL file
    MANIFEST = "manifest"  # vcpkg.json


class UpdateResult(str, Enum):
    """Whether a reconciliation step wrote a file."""

    UPDATED = "updated"
    NOT_UPDATED = "not_updated"


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Version:
    """A version text plus the port revision layered on top of it."""

    text: str
    port_version: int = 0

    def __str__(self) -> str:
        if self.port_version:
            return f"{self.text}#{self.port_version}"
        return self.text


@dataclass(frozen=True)
class SchemedVersion:
    """A Version together with the scheme that governs its ordering."""

    scheme: VersionScheme
    version: Version

    def to_dict(self) -> dict[str, Any]:
        return {
            self.scheme.field_name: self.version.text,
            "port-version": self.version.port_version,
        }

    def __str__(self) -> str:
        return str(self.version)


@dataclass(frozen=True)
class VersionHistoryEntry:
    """One recorded (version, content hash) pair of a port's history."""

    schemed_version: SchemedVersion
    content_hash: str

    @property
    def version(self) -> Version:
        return self.schemed_version.version

    def to_dict(self) -> dict[str, Any]:
        return {"git-tree": self.content_hash, **self.schemed_version.to_dict()}


# ---------------------------------------------------------------------------
# Parsed port descriptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependency:
    """A dependency declared by a port or one of its features."""

    name: str
    features: tuple[str, ...] = ()
    default_features: bool = True
    platform: str = ""
    host: bool = False
    version_minimum: str = ""
    extra: dict[str, Any] = field(default_factory=dict, compare=False)  # $-comments

    def to_json(self) -> str | dict[str, Any]:
        """Canonical manifest form: a bare name when nothing else is set."""
        data: dict[str, Any] = {**self.extra, "name": self.name}
        if self.host:
            data["host"] = True
        if not self.default_features:
            data["default-features"] = False
        if self.features:
            data["features"] = list(self.features)
        if self.platform:
            data["platform"] = self.platform
        if self.version_minimum:
            data["version>="] = self.version_minimum
        if len(data) == 1:
            return self.name
        return data


@dataclass(frozen=True)
class FeatureParagraph:
    """An optional feature of a port."""

    name: str
    description: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    supports: str = ""
    license: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)  # $-comments


@dataclass(frozen=True)
class SourceControlFile:
    """The canonical in-memory description of one port."""

    name: str
    schemed_version: SchemedVersion
    origin: ManifestFormat
    path: str = ""
    description: tuple[str, ...] = ()
    maintainers: tuple[str, ...] = ()
    homepage: str = ""
    documentation: str = ""
    license: str | None = None
    supports: str = ""
    dependencies: tuple[Dependency, ...] = ()
    default_features: tuple[str, ...] = ()
    features: tuple[FeatureParagraph, ...] = ()
    # $-comments and passthrough objects (overrides, builtin-baseline, ...)
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def version(self) -> Version:
        return self.schemed_version.version


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


@dataclass
class FieldDiagnostic:
    """A field-level problem found while parsing a port description."""

    message: str
    field: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        loc = f"L{self.line}:{self.column}" if self.line else "-"
        where = f" ({self.field})" if self.field else ""
        return f"{loc}{where}: {self.message}"
