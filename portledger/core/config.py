"""Global configuration for portledger.

Locates the port catalog and the versions database. Settings can be
overridden via environment variables or explicit configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class RegistryConfig:
    """Top-level configuration for a registry checkout."""

    # Paths
    root_dir: Path = field(default_factory=Path.cwd)
    ports_dir: Path | None = None
    versions_dir: Path | None = None

    # Tools
    git_executable: str = "git"

    # Logging
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.root_dir = Path(self.root_dir)
        if self.ports_dir is None:
            self.ports_dir = self.root_dir / "ports"
        if self.versions_dir is None:
            self.versions_dir = self.root_dir / "versions"

    @property
    def baseline_path(self) -> Path:
        return self.versions_dir / "baseline.json"

    def port_dir(self, port_name: str) -> Path:
        return self.ports_dir / port_name

    def with_root(self, root_dir: Path) -> RegistryConfig:
        """Return a copy rooted elsewhere, with directories re-derived."""
        return RegistryConfig(
            root_dir=root_dir,
            git_executable=self.git_executable,
            log_level=self.log_level,
        )

    @classmethod
    def from_env(cls) -> RegistryConfig:
        """Build config from environment variables, falling back to defaults."""
        config = cls(root_dir=Path(os.environ.get("PORTLEDGER_ROOT") or Path.cwd()))

        if val := os.environ.get("PORTLEDGER_PORTS_DIR"):
            config.ports_dir = Path(val)
        if val := os.environ.get("PORTLEDGER_VERSIONS_DIR"):
            config.versions_dir = Path(val)
        if val := os.environ.get("PORTLEDGER_GIT"):
            config.git_executable = val
        if val := os.environ.get("PORTLEDGER_LOG_LEVEL"):
            config.log_level = val.upper()

        return config


# Module-level singleton
_config: RegistryConfig | None = None


def get_config() -> RegistryConfig:
    """Return the global config, lazily initialized from env."""
    global _config
    if _config is None:
        _config = RegistryConfig.from_env()
    return _config


def set_config(config: RegistryConfig | None) -> None:
    """Override the global config (useful in tests). None resets it."""
    global _config
    _config = config
