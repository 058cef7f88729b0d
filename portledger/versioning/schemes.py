"""Version scheme parsing, comparison, and scheme suggestion.

Each of the four schemes has its own parser and ordering law:

- relaxed: dotted numeric segments, optional semver-style tags
- semver: strict major.minor.patch with semver 2.0.0 precedence
- date: YYYY-MM-DD with optional .N disambiguators
- string: opaque, equality only
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from portledger.core.types import SchemedVersion, Version, VersionScheme


class VersionParseError(ValueError):
    """Raised when a version text does not satisfy its scheme."""

    def __init__(self, scheme: VersionScheme, text: str, reason: str) -> None:
        self.scheme = scheme
        self.text = text
        self.reason = reason
        super().__init__(f"{text!r} is not a valid {scheme.field_name}: {reason}")


class VersionOrdering(Enum):
    """Result of comparing two schemed versions."""

    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    UNKNOWN = "unknown"  # string scheme or mismatched schemes


_NUMBER = r"(?:0|[1-9][0-9]*)"
_IDENT = r"[0-9A-Za-z-]+"
_TAGS = rf"{_IDENT}(?:\.{_IDENT})*"
_DOT_RE = re.compile(rf"({_NUMBER}(?:\.{_NUMBER})*)(?:-({_TAGS}))?(?:\+({_TAGS}))?")
_DATE_RE = re.compile(rf"([0-9]{{4}})-([0-9]{{2}})-([0-9]{{2}})((?:\.{_NUMBER})*)")


# ---------------------------------------------------------------------------
# Dotted versions (relaxed and semver)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DotVersion:
    """A dotted numeric version with optional prerelease and build tags."""

    segments: tuple[int, ...]
    prerelease: tuple[str, ...] = ()
    build: str = ""

    def __str__(self) -> str:
        text = ".".join(str(s) for s in self.segments)
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text

    @classmethod
    def parse_relaxed(cls, text: str) -> DotVersion:
        """Parse '1', '1.2.3.4', '1.2.3-rc.1+build5', ..."""
        return cls._parse(text, VersionScheme.RELAXED)

    @classmethod
    def parse_semver(cls, text: str) -> DotVersion:
        """Parse a strict semver: exactly major.minor.patch plus tags."""
        parsed = cls._parse(text, VersionScheme.SEMVER)
        if len(parsed.segments) != 3:
            raise VersionParseError(
                VersionScheme.SEMVER, text, "expected exactly three numeric parts"
            )
        return parsed

    @classmethod
    def try_parse_relaxed(cls, text: str) -> DotVersion | None:
        try:
            return cls.parse_relaxed(text)
        except VersionParseError:
            return None

    @classmethod
    def _parse(cls, text: str, scheme: VersionScheme) -> DotVersion:
        match = _DOT_RE.fullmatch(text)
        if not match:
            raise VersionParseError(scheme, text, "expected dot-separated numbers")

        prerelease = tuple(match.group(2).split(".")) if match.group(2) else ()
        for ident in prerelease:
            if ident.isdigit() and len(ident) > 1 and ident.startswith("0"):
                raise VersionParseError(
                    scheme, text, f"numeric prerelease tag {ident!r} has a leading zero"
                )

        return cls(
            segments=tuple(int(s) for s in match.group(1).split(".")),
            prerelease=prerelease,
            build=match.group(3) or "",
        )

    def compare(self, other: DotVersion) -> int:
        """Three-way compare; build metadata never affects ordering."""
        for left, right in zip(self.segments, other.segments):
            if left != right:
                return -1 if left < right else 1
        if len(self.segments) != len(other.segments):
            return -1 if len(self.segments) < len(other.segments) else 1
        return _compare_prerelease(self.prerelease, other.prerelease)


def _compare_prerelease(left: tuple[str, ...], right: tuple[str, ...]) -> int:
    # A release (no tags) has higher precedence than any prerelease.
    if not left or not right:
        if left == right:
            return 0
        return 1 if not left else -1

    for a, b in zip(left, right):
        if a == b:
            continue
        a_num, b_num = a.isdigit(), b.isdigit()
        if a_num and b_num:
            return -1 if int(a) < int(b) else 1
        if a_num != b_num:
            return -1 if a_num else 1
        return -1 if a < b else 1

    if len(left) == len(right):
        return 0
    return -1 if len(left) < len(right) else 1


# ---------------------------------------------------------------------------
# Date versions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateVersion:
    """A calendar date with optional numeric disambiguators."""

    date: datetime.date
    identifiers: tuple[int, ...] = ()

    def __str__(self) -> str:
        return self.date.isoformat() + "".join(f".{i}" for i in self.identifiers)

    @classmethod
    def parse(cls, text: str) -> DateVersion:
        match = _DATE_RE.fullmatch(text)
        if not match:
            raise VersionParseError(VersionScheme.DATE, text, "expected YYYY-MM-DD[.N]*")
        try:
            date = datetime.date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError as exc:
            raise VersionParseError(VersionScheme.DATE, text, str(exc)) from exc

        tail = match.group(4)
        identifiers = tuple(int(part) for part in tail[1:].split(".")) if tail else ()
        return cls(date=date, identifiers=identifiers)

    @classmethod
    def try_parse(cls, text: str) -> DateVersion | None:
        try:
            return cls.parse(text)
        except VersionParseError:
            return None

    def compare(self, other: DateVersion) -> int:
        if self.date != other.date:
            return -1 if self.date < other.date else 1
        for left, right in zip(self.identifiers, other.identifiers):
            if left != right:
                return -1 if left < right else 1
        if len(self.identifiers) == len(other.identifiers):
            return 0
        return -1 if len(self.identifiers) < len(other.identifiers) else 1


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_version_text(scheme: VersionScheme, text: str) -> None:
    """Raise VersionParseError if `text` is not valid under `scheme`."""
    if not text:
        raise VersionParseError(scheme, text, "version text is empty")
    if "#" in text:
        raise VersionParseError(
            scheme, text, "'#' is reserved; use port-version for port revisions"
        )
    if scheme is VersionScheme.RELAXED:
        DotVersion.parse_relaxed(text)
    elif scheme is VersionScheme.SEMVER:
        DotVersion.parse_semver(text)
    elif scheme is VersionScheme.DATE:
        DateVersion.parse(text)


def make_schemed_version(
    scheme: VersionScheme, text: str, port_version: int = 0
) -> SchemedVersion:
    """Validate and build a SchemedVersion."""
    validate_version_text(scheme, text)
    if port_version < 0:
        raise VersionParseError(scheme, text, f"port-version {port_version} is negative")
    return SchemedVersion(scheme=scheme, version=Version(text=text, port_version=port_version))


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def _compare_relaxed(a: str, b: str) -> int | None:
    return DotVersion.parse_relaxed(a).compare(DotVersion.parse_relaxed(b))


def _compare_semver(a: str, b: str) -> int | None:
    return DotVersion.parse_semver(a).compare(DotVersion.parse_semver(b))


def _compare_date(a: str, b: str) -> int | None:
    return DateVersion.parse(a).compare(DateVersion.parse(b))


def _compare_string(a: str, b: str) -> int | None:
    return 0 if a == b else None


_COMPARATORS: dict[VersionScheme, Callable[[str, str], int | None]] = {
    VersionScheme.RELAXED: _compare_relaxed,
    VersionScheme.SEMVER: _compare_semver,
    VersionScheme.DATE: _compare_date,
    VersionScheme.STRING: _compare_string,
}
assert set(_COMPARATORS) == set(VersionScheme)

_ORDERINGS = {-1: VersionOrdering.LESS, 0: VersionOrdering.EQUAL, 1: VersionOrdering.GREATER}


def compare_versions(a: SchemedVersion, b: SchemedVersion) -> VersionOrdering:
    """Compare two versions under their shared scheme.

    Text is compared first; port_version breaks ties. Versions with
    different schemes, or unequal string-scheme versions, are UNKNOWN.
    """
    if a.scheme is not b.scheme:
        return VersionOrdering.UNKNOWN

    result = _COMPARATORS[a.scheme](a.version.text, b.version.text)
    if result is None:
        return VersionOrdering.UNKNOWN
    if result == 0 and a.version.port_version != b.version.port_version:
        result = -1 if a.version.port_version < b.version.port_version else 1
    return _ORDERINGS[result]


def is_newer(a: SchemedVersion, b: SchemedVersion) -> bool:
    """Check if `a` is strictly newer than `b`."""
    return compare_versions(a, b) is VersionOrdering.GREATER


# ---------------------------------------------------------------------------
# Scheme suggestion
# ---------------------------------------------------------------------------


def suggest_scheme(version: SchemedVersion) -> VersionScheme | None:
    """Return a better-fitting scheme for a string-scheme version, if any.

    Date is tried before relaxed: '2023-05-01' also parses as a relaxed
    version with a prerelease tag, but the date reading is the intended one.
    """
    if version.scheme is not VersionScheme.STRING:
        return None
    if DateVersion.try_parse(version.version.text) is not None:
        return VersionScheme.DATE
    if DotVersion.try_parse_relaxed(version.version.text) is not None:
        return VersionScheme.RELAXED
    return None
