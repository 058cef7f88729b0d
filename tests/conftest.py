"""Shared fixtures: a throwaway registry checkout and an in-memory hash source."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from portledger.core.config import RegistryConfig, set_config
from portledger.registry.reconciler import ReconcileOptions, Reconciler
from tests.registry_helpers import FakeHashSource


@pytest.fixture(autouse=True)
def _reset_config():
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def registry_root(tmp_path: Path) -> Path:
    """A registry checkout with an empty ports dir and an empty baseline."""
    (tmp_path / "ports").mkdir()
    versions = tmp_path / "versions"
    versions.mkdir()
    (versions / "baseline.json").write_text('{\n  "default": {}\n}\n', encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(registry_root: Path) -> RegistryConfig:
    return RegistryConfig(root_dir=registry_root)


@pytest.fixture
def hash_source() -> FakeHashSource:
    return FakeHashSource()


@pytest.fixture
def make_reconciler(config: RegistryConfig, hash_source: FakeHashSource):
    """Build a Reconciler over the fixture registry, printing into a StringIO.

    Each call reloads the baseline, like a fresh run of the tool.
    """

    def _make(**option_values: Any) -> Reconciler:
        console = Console(file=io.StringIO(), highlight=False, soft_wrap=True)
        return Reconciler(
            config,
            hash_source,
            options=ReconcileOptions(**option_values),
            console=console,
        )

    return _make
