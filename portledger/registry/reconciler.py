"""Reconcile ports against their version history and the baseline.

For every port the reconciler parses the port description, looks up
the hash of its checked-in tree, and decides one of:

    no-op      the (version, tree) pair is already recorded
    append     a new version, prepended to the history
    overwrite  a recorded version with a new tree (needs overwrite_version)
    reject     the tree is recorded under another version, or the version
               is recorded with another tree and overwriting is off

After a successful history step the baseline entry for the port is set
to the port's current version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from portledger.core.config import RegistryConfig
from portledger.core.types import (
    SchemedVersion,
    SourceControlFile,
    UpdateResult,
    Version,
    VersionHistoryEntry,
    VersionScheme,
)
from portledger.manifest.formatter import format_manifest
from portledger.manifest.loader import MANIFEST_FILE, load_port
from portledger.manifest.validator import ManifestParseError
from portledger.registry.baseline import BaselineRegistry
from portledger.registry.history import (
    HistoryFormatError,
    RecordAction,
    VersionHistoryStore,
)
from portledger.registry.vcs import ContentHashSource, VcsError
from portledger.versioning.schemes import suggest_scheme

logger = logging.getLogger(__name__)

_NO_FILES_UPDATED = "***No files were updated***"
_COMMIT_REMINDER = "Did you remember to commit your changes?"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ReconcileError(Exception):
    """A port could not be reconciled. Fatal for that port only."""

    def __init__(self, port_name: str, message: str) -> None:
        self.port_name = port_name
        super().__init__(message)


class PortNotFoundError(ReconcileError):
    def __init__(self, port_name: str) -> None:
        super().__init__(port_name, f"{port_name} does not exist")


class PortLoadError(ReconcileError):
    def __init__(self, port_name: str, cause: ManifestParseError) -> None:
        self.cause = cause
        super().__init__(port_name, f"can't load port {port_name}\n{cause}")


class FormattingDriftError(ReconcileError):
    def __init__(self, port_name: str, manifest_path: Path) -> None:
        self.manifest_path = manifest_path
        super().__init__(
            port_name,
            f"{port_name} is not properly formatted\n"
            f"Run `portledger format-manifest {port_name}` to format the file\n"
            "Don't forget to commit the result!",
        )


class MissingContentHashError(ReconcileError):
    def __init__(self, port_name: str) -> None:
        super().__init__(
            port_name,
            f"can't obtain SHA for port {port_name}\n-- {_COMMIT_REMINDER}\n{_NO_FILES_UPDATED}",
        )


class MalformedHistoryError(ReconcileError):
    def __init__(self, port_name: str, cause: HistoryFormatError) -> None:
        self.path = cause.path
        super().__init__(port_name, str(cause))


class ContentHashConflictError(ReconcileError):
    """The checked-in tree is already recorded under a different version."""

    def __init__(self, port_name: str, content_hash: str, recorded_version: Version) -> None:
        self.content_hash = content_hash
        self.recorded_version = recorded_version
        super().__init__(
            port_name,
            f"checked-in files for {port_name} are unchanged from version {recorded_version}\n"
            f"-- SHA: {content_hash}\n-- {_COMMIT_REMINDER}\n{_NO_FILES_UPDATED}",
        )


class VersionReuseConflictError(ReconcileError):
    """The version is already recorded for a different tree."""

    def __init__(self, port_name: str, version: Version, old_hash: str, new_hash: str) -> None:
        self.version = version
        self.old_hash = old_hash
        self.new_hash = new_hash
        super().__init__(
            port_name,
            f"checked-in files for {port_name} have changed but the version was not updated\n"
            f"version: {version}\nold SHA: {old_hash}\nnew SHA: {new_hash}\n"
            "Did you remember to update the version or port version?\n"
            "Use --overwrite-version to bypass this check\n"
            f"{_NO_FILES_UPDATED}",
        )


class VersionSchemeError(ReconcileError):
    def __init__(
        self, port_name: str, old_scheme: VersionScheme, new_scheme: VersionScheme
    ) -> None:
        self.old_scheme = old_scheme
        self.new_scheme = new_scheme
        super().__init__(port_name, _scheme_message(port_name, old_scheme, new_scheme))


def _scheme_message(port_name: str, old: VersionScheme, new: VersionScheme) -> str:
    return (
        f'Use the version scheme "{new.field_name}" instead of "{old.field_name}" '
        f'in port "{port_name}".\nUse --skip-version-format-check to disable this check.'
    )


# ---------------------------------------------------------------------------
# Options and results
# ---------------------------------------------------------------------------


@dataclass
class ReconcileOptions:
    """Switches controlling one reconciliation run."""

    overwrite_version: bool = False
    skip_formatting_check: bool = False
    skip_version_format_check: bool = False
    strict_version_scheme: bool = False
    verbose: bool = False
    best_effort: bool = False


@dataclass
class PortOutcome:
    """What happened to the two files for one port."""

    port_name: str
    version: Version
    history: UpdateResult
    baseline: UpdateResult

    @property
    def changed(self) -> bool:
        return UpdateResult.UPDATED in (self.history, self.baseline)


@dataclass
class ReconcileReport:
    """Outcomes of reconciled ports plus the errors of ports that were skipped."""

    outcomes: list[PortOutcome] = field(default_factory=list)
    failures: list[ReconcileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def list_port_names(ports_dir: Path) -> list[str]:
    """Names of all port directories, sorted."""
    return sorted(p.name for p in ports_dir.iterdir() if p.is_dir())


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class Reconciler:
    """Record ports' current versions in the versions database.

    Usage:
        reconciler = Reconciler(config, GitBackend(root, ports_dir))
        report = reconciler.reconcile_ports(["zlib"])
    """

    def __init__(
        self,
        config: RegistryConfig,
        hash_source: ContentHashSource,
        options: ReconcileOptions | None = None,
        console: Console | None = None,
        baseline: BaselineRegistry | None = None,
        history_store: VersionHistoryStore | None = None,
    ) -> None:
        self._config = config
        self._hash_source = hash_source
        self._options = options or ReconcileOptions()
        self._console = console or Console(highlight=False, soft_wrap=True)
        self._baseline = (
            baseline if baseline is not None else BaselineRegistry.load(config.baseline_path)
        )
        self._histories = (
            history_store if history_store is not None else VersionHistoryStore(config.versions_dir)
        )
        self._tree_map: dict[str, str] | None = None

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def reconcile_ports(self, port_names: list[str]) -> ReconcileReport:
        """Reconcile ports in order.

        Without best_effort the first ReconcileError is raised and no
        further port is processed; with it, failures are collected and
        every port is attempted.
        """
        report = ReconcileReport()
        for port_name in port_names:
            try:
                report.outcomes.append(self.reconcile_port(port_name))
            except ReconcileError as exc:
                self._print_error(str(exc))
                if not self._options.best_effort:
                    raise
                report.failures.append(exc)

        logger.info(
            "Reconciled %d ports, %d failed", len(report.outcomes), len(report.failures)
        )
        return report

    def reconcile_port(self, port_name: str) -> PortOutcome:
        port_dir = self._config.port_dir(port_name)
        if not port_dir.is_dir():
            raise PortNotFoundError(port_name)

        try:
            scf = load_port(port_dir)
        except ManifestParseError as exc:
            raise PortLoadError(port_name, exc) from exc

        if not self._options.skip_formatting_check:
            self.check_formatting(port_name, scf, port_dir)

        self._warn_local_changes(port_name)
        content_hash = self._content_hash(port_name)

        schemed_version = scf.schemed_version
        history_result = self.update_history(port_name, schemed_version, content_hash)
        baseline_result = self.update_baseline(port_name, schemed_version.version)

        outcome = PortOutcome(port_name, schemed_version.version, history_result, baseline_result)
        if not outcome.changed:
            self._print_success(f"No files were updated for {port_name}")
        return outcome

    def check_formatting(self, port_name: str, scf: SourceControlFile, port_dir: Path) -> None:
        """Raise FormattingDriftError if vcpkg.json is not in canonical form."""
        manifest_path = port_dir / MANIFEST_FILE
        if not manifest_path.is_file():
            return
        current = manifest_path.read_bytes().decode("utf-8")
        if current != format_manifest(scf):
            raise FormattingDriftError(port_name, manifest_path)

    def check_version_scheme(self, port_name: str, schemed_version: SchemedVersion) -> None:
        """Warn (or fail, when strict) if a string version fits a stricter scheme."""
        if self._options.skip_version_format_check:
            return
        suggested = suggest_scheme(schemed_version)
        if suggested is None:
            return
        if self._options.strict_version_scheme:
            raise VersionSchemeError(port_name, schemed_version.scheme, suggested)
        self._print_warning(_scheme_message(port_name, schemed_version.scheme, suggested))

    def update_history(
        self, port_name: str, schemed_version: SchemedVersion, content_hash: str
    ) -> UpdateResult:
        """Apply the history decision table for one port and persist the result."""
        try:
            history = self._histories.load(port_name)
        except HistoryFormatError as exc:
            raise MalformedHistoryError(port_name, exc) from exc

        path = self._histories.path_for(port_name)
        version = schemed_version.version
        entry = VersionHistoryEntry(schemed_version, content_hash)

        if history is None:
            self.check_version_scheme(port_name, schemed_version)
            history = self._histories.create(port_name)
            history.record(entry, RecordAction.PREPEND)
            self._histories.persist(history)
            self._print_success(f"added version {version} to {path} (new file)")
            return UpdateResult.UPDATED

        same_tree = history.find_by_content_hash(content_hash)
        if same_tree is not None:
            if same_tree.version == version:
                self._print_success(f"version {version} is already in {path}")
                return UpdateResult.NOT_UPDATED
            raise ContentHashConflictError(port_name, content_hash, same_tree.version)

        same_version = history.find_by_version(version)
        if same_version is not None:
            if not self._options.overwrite_version:
                raise VersionReuseConflictError(
                    port_name, version, same_version.content_hash, content_hash
                )
            action = RecordAction.REPLACE
        else:
            action = RecordAction.PREPEND

        self.check_version_scheme(port_name, schemed_version)
        history.record(entry, action)
        self._histories.persist(history)
        logger.debug("%s: %s %s -> %s", port_name, action.value, version, content_hash)
        self._print_success(f"added version {version} to {path}")
        return UpdateResult.UPDATED

    def update_baseline(self, port_name: str, version: Version) -> UpdateResult:
        """Point the port's baseline at `version`, writing the file only on change."""
        path = self._baseline.path
        if self._baseline.get(port_name) == version:
            self._print_success(f"version {version} is already in {path}")
            return UpdateResult.NOT_UPDATED

        self._baseline.set(port_name, version)
        self._baseline.persist()
        self._print_success(f"added version {version} to {path}")
        return UpdateResult.UPDATED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _content_hash(self, port_name: str) -> str:
        if self._tree_map is None:
            self._tree_map = self._hash_source.port_tree_map()
        content_hash = self._tree_map.get(port_name)
        if content_hash is None:
            raise MissingContentHashError(port_name)
        return content_hash

    def _warn_local_changes(self, port_name: str) -> None:
        try:
            changed = self._hash_source.has_local_changes(port_name)
        except VcsError as exc:
            logger.debug("Could not check %s for local changes: %s", port_name, exc)
            return
        if changed:
            self._print_warning(f"there are uncommitted changes for {port_name}")

    def _print_success(self, message: str) -> None:
        if self._options.verbose:
            self._console.print(message, style="green", markup=False)

    def _print_warning(self, message: str) -> None:
        self._console.print(f"warning: {message}", style="yellow", markup=False)

    def _print_error(self, message: str) -> None:
        self._console.print(f"error: {message}", style="bold red", markup=False)
