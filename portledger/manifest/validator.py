"""Field validation for port descriptions.

Turns either parsed CONTROL paragraphs or a decoded vcpkg.json object
into a SourceControlFile. Every problem found is collected as a
FieldDiagnostic; if any were found a ManifestParseError carrying all of
them is raised, so one run reports everything wrong with a port.
"""

from __future__ import annotations

import re
from typing import Any

from portledger.core.types import (
    VERSION_FIELDS,
    Dependency,
    FeatureParagraph,
    FieldDiagnostic,
    ManifestFormat,
    SchemedVersion,
    SourceControlFile,
    Version,
    VersionScheme,
)
from portledger.manifest.paragraphs import Paragraph
from portledger.versioning.schemes import VersionParseError, validate_version_text

PORT_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_CONTROL_DEPENDENCY_RE = re.compile(
    r"^(?P<name>[a-z0-9]+(?:-[a-z0-9]+)*)"
    r"(?:\[(?P<features>[^\]]*)\])?"
    r"(?:\s*\((?P<platform>[^)]*)\))?$"
)

_SOURCE_FIELDS = {
    "Source",
    "Version",
    "Port-Version",
    "Description",
    "Homepage",
    "Build-Depends",
    "Default-Features",
    "Supports",
    "Maintainer",
    "Type",
}
_FEATURE_FIELDS = {"Feature", "Description", "Build-Depends", "Supports"}

_MANIFEST_FIELDS = {
    "name",
    *VERSION_FIELDS,
    "port-version",
    "maintainers",
    "description",
    "homepage",
    "documentation",
    "license",
    "supports",
    "dependencies",
    "default-features",
    "features",
    "overrides",
    "builtin-baseline",
    "vcpkg-configuration",
}
_MANIFEST_FEATURE_FIELDS = {"name", "description", "dependencies", "supports", "license"}
_DEPENDENCY_FIELDS = {"name", "features", "default-features", "platform", "host", "version>="}


class ManifestParseError(Exception):
    """Raised when a port description has one or more field-level problems."""

    def __init__(self, origin: str, diagnostics: list[FieldDiagnostic]) -> None:
        self.origin = origin
        self.diagnostics = diagnostics
        details = "\n".join(f"    {d}" for d in diagnostics)
        super().__init__(f"Error: while loading {origin}:\n{details}")


# ---------------------------------------------------------------------------
# CONTROL paragraphs
# ---------------------------------------------------------------------------


def parse_control_paragraphs(paragraphs: list[Paragraph], origin: str) -> SourceControlFile:
    """Build a SourceControlFile from the paragraphs of a CONTROL file."""
    errors: list[FieldDiagnostic] = []
    if not paragraphs:
        raise ManifestParseError(origin, [FieldDiagnostic("no paragraphs found")])

    source, *feature_paragraphs = paragraphs
    _check_known_fields(source, _SOURCE_FIELDS, errors)
    for required in ("Source", "Version"):
        if required not in source:
            errors.append(
                FieldDiagnostic(f"missing required field: {required}", required, source.line)
            )

    name = source.get("Source")
    if name and not PORT_NAME_RE.fullmatch(name):
        errors.append(_paragraph_error(source, "Source", f"invalid port name: {name!r}"))

    text = source.get("Version")
    if text:
        try:
            validate_version_text(VersionScheme.STRING, text)
        except VersionParseError as exc:
            errors.append(_paragraph_error(source, "Version", exc.reason))

    port_version = 0
    if "Port-Version" in source:
        raw = source.get("Port-Version")
        if raw.isascii() and raw.isdigit():
            port_version = int(raw)
        else:
            errors.append(
                _paragraph_error(
                    source, "Port-Version", f"expected a non-negative integer, got {raw!r}"
                )
            )

    dependencies = _parse_build_depends(source, errors)
    features: list[FeatureParagraph] = []
    for paragraph in feature_paragraphs:
        _check_known_fields(paragraph, _FEATURE_FIELDS, errors)
        for required in ("Feature", "Description"):
            if required not in paragraph:
                errors.append(
                    FieldDiagnostic(
                        f"missing required field in feature paragraph: {required}",
                        required,
                        paragraph.line,
                    )
                )
        features.append(
            FeatureParagraph(
                name=paragraph.get("Feature"),
                description=_split_lines(paragraph.get("Description")),
                dependencies=_parse_build_depends(paragraph, errors),
                supports=paragraph.get("Supports"),
            )
        )

    if errors:
        raise ManifestParseError(origin, errors)

    maintainer = source.get("Maintainer")
    return SourceControlFile(
        name=name,
        schemed_version=SchemedVersion(VersionScheme.STRING, Version(text, port_version)),
        origin=ManifestFormat.PARAGRAPH,
        path=origin,
        description=_split_lines(source.get("Description")),
        maintainers=(maintainer,) if maintainer else (),
        homepage=source.get("Homepage"),
        supports=source.get("Supports"),
        dependencies=dependencies,
        default_features=_split_list(source.get("Default-Features")),
        features=tuple(features),
    )


def _check_known_fields(
    paragraph: Paragraph, allowed: set[str], errors: list[FieldDiagnostic]
) -> None:
    for name, parsed in paragraph.fields.items():
        if name not in allowed:
            errors.append(
                FieldDiagnostic(f"unexpected field: {name}", name, parsed.line, parsed.column)
            )


def _parse_build_depends(
    paragraph: Paragraph, errors: list[FieldDiagnostic]
) -> tuple[Dependency, ...]:
    dependencies: list[Dependency] = []
    for item in _split_list(paragraph.get("Build-Depends")):
        match = _CONTROL_DEPENDENCY_RE.fullmatch(item)
        if not match:
            errors.append(
                _paragraph_error(paragraph, "Build-Depends", f"invalid dependency: {item!r}")
            )
            continue
        features = _split_list(match.group("features") or "")
        dependencies.append(
            Dependency(
                name=match.group("name"),
                features=tuple(f for f in features if f != "core"),
                default_features="core" not in features,
                platform=(match.group("platform") or "").strip(),
            )
        )
    return tuple(dependencies)


def _split_list(value: str) -> tuple[str, ...]:
    """Split a comma list, ignoring commas nested in [] or ()."""
    items: list[str] = []
    depth = 0
    current = ""
    for ch in value:
        if ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        if ch == "," and depth == 0:
            items.append(current.strip())
            current = ""
        else:
            current += ch
    items.append(current.strip())
    return tuple(item for item in items if item)


def _split_lines(value: str) -> tuple[str, ...]:
    return tuple(value.split("\n")) if value else ()


def _paragraph_error(paragraph: Paragraph, name: str, message: str) -> FieldDiagnostic:
    parsed = paragraph.fields[name]
    return FieldDiagnostic(message, name, parsed.line, parsed.column)


# ---------------------------------------------------------------------------
# JSON manifests
# ---------------------------------------------------------------------------


def parse_manifest_object(data: Any, origin: str) -> SourceControlFile:
    """Build a SourceControlFile from a decoded vcpkg.json document."""
    if not isinstance(data, dict):
        raise ManifestParseError(
            origin, [FieldDiagnostic("manifest must be a JSON object")]
        )

    errors: list[FieldDiagnostic] = []
    extra: dict[str, Any] = {}
    for key, value in data.items():
        if key.startswith("$"):
            extra[key] = value
        elif key not in _MANIFEST_FIELDS:
            errors.append(FieldDiagnostic(f"unexpected field: {key}", key))

    name = _expect_str(data, "name", errors, required=True)
    if name and not PORT_NAME_RE.fullmatch(name):
        errors.append(FieldDiagnostic(f"invalid port name: {name!r}", "name"))

    schemed_version = _parse_manifest_version(data, errors)

    if "builtin-baseline" in data:
        extra["builtin-baseline"] = _expect_str(data, "builtin-baseline", errors)
    if "overrides" in data:
        if isinstance(data["overrides"], list):
            extra["overrides"] = data["overrides"]
        else:
            errors.append(FieldDiagnostic("expected an array", "overrides"))
    if "vcpkg-configuration" in data:
        if isinstance(data["vcpkg-configuration"], dict):
            extra["vcpkg-configuration"] = data["vcpkg-configuration"]
        else:
            errors.append(FieldDiagnostic("expected an object", "vcpkg-configuration"))

    license_value = data.get("license")
    if license_value is not None and not isinstance(license_value, str):
        errors.append(FieldDiagnostic("expected a string or null", "license"))
        license_value = None

    result = SourceControlFile(
        name=name,
        schemed_version=schemed_version,
        origin=ManifestFormat.MANIFEST,
        path=origin,
        description=_expect_lines(data, "description", errors),
        maintainers=_expect_lines(data, "maintainers", errors),
        homepage=_expect_str(data, "homepage", errors),
        documentation=_expect_str(data, "documentation", errors),
        license=license_value,
        supports=_expect_str(data, "supports", errors),
        dependencies=_parse_dependencies(data.get("dependencies", []), "dependencies", errors),
        default_features=_expect_str_list(data, "default-features", errors),
        features=_parse_features(data.get("features", {}), errors),
        extra=extra,
    )
    if errors:
        raise ManifestParseError(origin, errors)
    return result


def _parse_manifest_version(data: dict[str, Any], errors: list[FieldDiagnostic]) -> SchemedVersion:
    present = [key for key in VERSION_FIELDS if key in data]
    placeholder = SchemedVersion(VersionScheme.STRING, Version(""))
    if not present:
        errors.append(
            FieldDiagnostic(
                "missing version field: expected one of " + ", ".join(VERSION_FIELDS)
            )
        )
        return placeholder
    if len(present) > 1:
        errors.append(
            FieldDiagnostic("multiple version fields: " + ", ".join(present), present[1])
        )
        return placeholder

    key = present[0]
    scheme = VersionScheme.from_field_name(key)
    text = _expect_str(data, key, errors)

    port_version = data.get("port-version", 0)
    if isinstance(port_version, bool) or not isinstance(port_version, int) or port_version < 0:
        errors.append(
            FieldDiagnostic(
                f"expected a non-negative integer, got {port_version!r}", "port-version"
            )
        )
        port_version = 0

    if isinstance(data.get(key), str):
        try:
            validate_version_text(scheme, text)
        except VersionParseError as exc:
            errors.append(FieldDiagnostic(exc.reason, key))

    return SchemedVersion(scheme, Version(text, port_version))


def _parse_dependencies(
    value: Any, where: str, errors: list[FieldDiagnostic]
) -> tuple[Dependency, ...]:
    if not isinstance(value, list):
        errors.append(FieldDiagnostic("expected an array", where))
        return ()

    dependencies: list[Dependency] = []
    for item in value:
        if isinstance(item, str):
            if not PORT_NAME_RE.fullmatch(item):
                errors.append(FieldDiagnostic(f"invalid dependency name: {item!r}", where))
                continue
            dependencies.append(Dependency(name=item))
        elif isinstance(item, dict):
            dependency = _parse_dependency_object(item, where, errors)
            if dependency is not None:
                dependencies.append(dependency)
        else:
            errors.append(FieldDiagnostic("dependency must be a string or an object", where))
    return tuple(dependencies)


def _parse_dependency_object(
    item: dict[str, Any], where: str, errors: list[FieldDiagnostic]
) -> Dependency | None:
    for key in item:
        if key not in _DEPENDENCY_FIELDS and not key.startswith("$"):
            errors.append(FieldDiagnostic(f"unexpected field in dependency: {key}", where))

    name = item.get("name")
    if not isinstance(name, str) or not PORT_NAME_RE.fullmatch(name):
        errors.append(FieldDiagnostic(f"invalid dependency name: {name!r}", where))
        return None

    field_path = f"{where}.{name}"
    default_features = item.get("default-features", True)
    host = item.get("host", False)
    if not isinstance(default_features, bool):
        errors.append(FieldDiagnostic("expected a boolean", f"{field_path}.default-features"))
        default_features = True
    if not isinstance(host, bool):
        errors.append(FieldDiagnostic("expected a boolean", f"{field_path}.host"))
        host = False

    return Dependency(
        name=name,
        features=_expect_str_list(item, "features", errors, field_path),
        default_features=default_features,
        platform=_expect_str(item, "platform", errors, prefix=field_path),
        host=host,
        version_minimum=_expect_str(item, "version>=", errors, prefix=field_path),
        extra=_comments(item),
    )


def _parse_features(value: Any, errors: list[FieldDiagnostic]) -> tuple[FeatureParagraph, ...]:
    if isinstance(value, list):
        # Older manifests list features as objects carrying their own name.
        named: dict[str, Any] = {}
        for item in value:
            if isinstance(item, dict) and isinstance(item.get("name"), str):
                named[item["name"]] = {k: v for k, v in item.items() if k != "name"}
            else:
                errors.append(FieldDiagnostic("feature entries need a name", "features"))
        value = named
    if not isinstance(value, dict):
        errors.append(FieldDiagnostic("expected an object", "features"))
        return ()

    features: list[FeatureParagraph] = []
    for name, body in value.items():
        field_path = f"features.{name}"
        if not PORT_NAME_RE.fullmatch(name):
            errors.append(FieldDiagnostic(f"invalid feature name: {name!r}", "features"))
        if not isinstance(body, dict):
            errors.append(FieldDiagnostic("expected an object", field_path))
            continue
        for key in body:
            if key not in _MANIFEST_FEATURE_FIELDS and not key.startswith("$"):
                errors.append(FieldDiagnostic(f"unexpected field: {key}", field_path))
        if "description" not in body:
            errors.append(FieldDiagnostic("missing required field: description", field_path))

        license_value = body.get("license")
        if license_value is not None and not isinstance(license_value, str):
            errors.append(FieldDiagnostic("expected a string or null", f"{field_path}.license"))
            license_value = None

        features.append(
            FeatureParagraph(
                name=name,
                description=_expect_lines(body, "description", errors, field_path),
                dependencies=_parse_dependencies(
                    body.get("dependencies", []), f"{field_path}.dependencies", errors
                ),
                supports=_expect_str(body, "supports", errors, prefix=field_path),
                license=license_value,
                extra=_comments(body),
            )
        )
    return tuple(features)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _qualify(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def _comments(data: dict[str, Any]) -> dict[str, Any]:
    """The `$`-prefixed keys of an object, kept verbatim."""
    return {k: v for k, v in data.items() if k.startswith("$")}


def _expect_str(
    data: dict[str, Any],
    key: str,
    errors: list[FieldDiagnostic],
    required: bool = False,
    prefix: str = "",
) -> str:
    if key not in data:
        if required:
            errors.append(FieldDiagnostic(f"missing required field: {key}", _qualify(prefix, key)))
        return ""
    value = data[key]
    if not isinstance(value, str):
        errors.append(FieldDiagnostic("expected a string", _qualify(prefix, key)))
        return ""
    return value


def _expect_lines(
    data: dict[str, Any], key: str, errors: list[FieldDiagnostic], prefix: str = ""
) -> tuple[str, ...]:
    """Accept a string or an array of strings."""
    value = data.get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    errors.append(
        FieldDiagnostic("expected a string or an array of strings", _qualify(prefix, key))
    )
    return ()


def _expect_str_list(
    data: dict[str, Any], key: str, errors: list[FieldDiagnostic], prefix: str = ""
) -> tuple[str, ...]:
    value = data.get(key, [])
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    errors.append(FieldDiagnostic("expected an array of strings", _qualify(prefix, key)))
    return ()
