"""Per-port version history files.

Each port has one file `versions/<first letter>-/<port>.json` holding
every (version, git-tree) pair ever recorded for it, newest first:

    {"versions": [{"git-tree": "...", "version": "1.2.3", "port-version": 0}, ...]}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from portledger.core.types import (
    SchemedVersion,
    Version,
    VersionHistoryEntry,
    VersionScheme,
)
from portledger.registry.persistence import write_json_file
from portledger.versioning.schemes import validate_version_text

logger = logging.getLogger(__name__)


class HistoryFormatError(Exception):
    """Raised when an existing history file cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"unable to parse versions file {path}\n{reason}")


class RecordAction(str, Enum):
    """How a new entry is placed into a history."""

    PREPEND = "prepend"  # new version, inserted at the front
    REPLACE = "replace"  # existing version, replaced at its position


# ---------------------------------------------------------------------------
# On-disk schema
# ---------------------------------------------------------------------------


class _HistoryEntryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, populate_by_name=True)

    git_tree: str = Field(alias="git-tree", min_length=1)
    version: str | None = None
    version_semver: str | None = Field(default=None, alias="version-semver")
    version_date: str | None = Field(default=None, alias="version-date")
    version_string: str | None = Field(default=None, alias="version-string")
    port_version: int = Field(default=0, alias="port-version", ge=0)

    @model_validator(mode="after")
    def _one_version_field(self) -> _HistoryEntryModel:
        present = [(s, t) for s, t in self._scheme_texts() if t is not None]
        if len(present) != 1:
            raise ValueError("each entry needs exactly one version field")
        scheme, text = present[0]
        validate_version_text(scheme, text)
        return self

    def _scheme_texts(self) -> list[tuple[VersionScheme, str | None]]:
        return [
            (VersionScheme.RELAXED, self.version),
            (VersionScheme.SEMVER, self.version_semver),
            (VersionScheme.DATE, self.version_date),
            (VersionScheme.STRING, self.version_string),
        ]

    def to_entry(self) -> VersionHistoryEntry:
        scheme, text = next((s, t) for s, t in self._scheme_texts() if t is not None)
        return VersionHistoryEntry(
            schemed_version=SchemedVersion(scheme, Version(text, self.port_version)),
            content_hash=self.git_tree,
        )


class _HistoryFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    versions: list[_HistoryEntryModel]


# ---------------------------------------------------------------------------
# In-memory history
# ---------------------------------------------------------------------------


@dataclass
class VersionHistory:
    """The ordered history of one port, newest entry at index 0."""

    port_name: str
    entries: list[VersionHistoryEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def find_by_content_hash(self, content_hash: str) -> VersionHistoryEntry | None:
        for entry in self.entries:
            if entry.content_hash == content_hash:
                return entry
        return None

    def find_by_version(self, version: Version) -> VersionHistoryEntry | None:
        for entry in self.entries:
            if entry.version == version:
                return entry
        return None

    def record(self, entry: VersionHistoryEntry, action: RecordAction) -> None:
        """Insert `entry` at the front, or replace the entry with the same version.

        Raises:
            LookupError: REPLACE was requested but no entry has that version.
        """
        if action is RecordAction.PREPEND:
            self.entries.insert(0, entry)
            return

        for index, existing in enumerate(self.entries):
            if existing.version == entry.version:
                self.entries[index] = entry
                return
        raise LookupError(f"{self.port_name} has no recorded version {entry.version}")

    def to_dict(self) -> dict[str, list[dict[str, object]]]:
        return {"versions": [entry.to_dict() for entry in self.entries]}


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class VersionHistoryStore:
    """Loads and persists history files under a versions directory.

    Loaded histories are cached for the lifetime of the store, so a
    single run always works against one in-memory copy per port.
    """

    def __init__(self, versions_dir: Path) -> None:
        self._dir = versions_dir
        self._histories: dict[str, VersionHistory] = {}

    def path_for(self, port_name: str) -> Path:
        return self._dir / f"{port_name[0]}-" / f"{port_name}.json"

    def load(self, port_name: str) -> VersionHistory | None:
        """Return the port's history, or None if it has no history file yet.

        Raises:
            HistoryFormatError: The file exists but is malformed.
        """
        if port_name in self._histories:
            return self._histories[port_name]

        path = self.path_for(port_name)
        if not path.exists():
            return None

        try:
            model = _HistoryFileModel.model_validate_json(path.read_bytes())
        except ValidationError as exc:
            raise HistoryFormatError(path, str(exc)) from exc

        history = VersionHistory(port_name, [m.to_entry() for m in model.versions])
        self._histories[port_name] = history
        logger.debug("Loaded %d history entries for %s", len(history), port_name)
        return history

    def create(self, port_name: str) -> VersionHistory:
        """Start an empty history for a port with no history file."""
        history = VersionHistory(port_name)
        self._histories[port_name] = history
        return history

    def persist(self, history: VersionHistory) -> Path:
        path = self.path_for(history.port_name)
        write_json_file(path, history.to_dict())
        return path
