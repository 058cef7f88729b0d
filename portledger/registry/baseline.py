"""The baseline file: one recommended version per port.

    {"default": {"zlib": {"baseline": "1.2.11", "port-version": 3}, ...}}

Baseline versions carry no scheme; they are only ever compared for
exact equality against a port's current version.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from portledger.core.types import Version
from portledger.registry.persistence import write_json_file

logger = logging.getLogger(__name__)


class BaselineNotFoundError(Exception):
    """Raised when the baseline file a run depends on does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"couldn't find required file {path}")


class BaselineFormatError(Exception):
    """Raised when the baseline file cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"unable to parse baseline file {path}\n{reason}")


class _BaselineEntryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    baseline: str = Field(min_length=1)
    port_version: int = Field(default=0, alias="port-version", ge=0)


class _BaselineFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    default: dict[str, _BaselineEntryModel] = Field(default_factory=dict)


class BaselineRegistry:
    """In-memory baseline map bound to its file.

    Usage:
        baseline = BaselineRegistry.load(versions_dir / "baseline.json")
        if baseline.get("zlib") != version:
            baseline.set("zlib", version)
            baseline.persist()
    """

    def __init__(self, path: Path, entries: dict[str, Version] | None = None) -> None:
        self._path = path
        self._entries: dict[str, Version] = dict(entries or {})

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def load(cls, path: Path) -> BaselineRegistry:
        """Read the baseline file.

        Raises:
            BaselineNotFoundError: The file does not exist.
            BaselineFormatError: The file is not a valid baseline.
        """
        if not path.exists():
            raise BaselineNotFoundError(path)
        try:
            model = _BaselineFileModel.model_validate_json(path.read_bytes())
        except ValidationError as exc:
            raise BaselineFormatError(path, str(exc)) from exc

        entries = {
            name: Version(entry.baseline, entry.port_version)
            for name, entry in model.default.items()
        }
        logger.debug("Loaded baseline with %d ports from %s", len(entries), path)
        return cls(path, entries)

    def __contains__(self, port_name: str) -> bool:
        return port_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, port_name: str) -> Version | None:
        return self._entries.get(port_name)

    def set(self, port_name: str, version: Version) -> None:
        self._entries[port_name] = version

    def to_dict(self) -> dict[str, dict[str, dict[str, object]]]:
        return {
            "default": {
                name: {"baseline": version.text, "port-version": version.port_version}
                for name, version in sorted(self._entries.items())
            }
        }

    def persist(self) -> None:
        write_json_file(self._path, self.to_dict())
