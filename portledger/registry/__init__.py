"""portledger registry — version history files, the baseline, and reconciliation.

Usage:
    from portledger.registry import GitBackend, Reconciler, ReconcileOptions

    reconciler = Reconciler(config, GitBackend(config.root_dir, config.ports_dir))
    report = reconciler.reconcile_ports(["zlib"])
"""

from portledger.registry.baseline import (
    BaselineFormatError,
    BaselineNotFoundError,
    BaselineRegistry,
)
from portledger.registry.history import (
    HistoryFormatError,
    RecordAction,
    VersionHistory,
    VersionHistoryStore,
)
from portledger.registry.persistence import atomic_write_text, dump_json
from portledger.registry.reconciler import (
    ContentHashConflictError,
    FormattingDriftError,
    MalformedHistoryError,
    MissingContentHashError,
    PortLoadError,
    PortNotFoundError,
    PortOutcome,
    ReconcileError,
    ReconcileOptions,
    ReconcileReport,
    Reconciler,
    VersionReuseConflictError,
    VersionSchemeError,
    list_port_names,
)
from portledger.registry.vcs import ContentHashSource, GitBackend, VcsError

__all__ = [
    "BaselineFormatError",
    "BaselineNotFoundError",
    "BaselineRegistry",
    "ContentHashConflictError",
    "ContentHashSource",
    "FormattingDriftError",
    "GitBackend",
    "HistoryFormatError",
    "MalformedHistoryError",
    "MissingContentHashError",
    "PortLoadError",
    "PortNotFoundError",
    "PortOutcome",
    "ReconcileError",
    "ReconcileOptions",
    "ReconcileReport",
    "Reconciler",
    "RecordAction",
    "VcsError",
    "VersionHistory",
    "VersionHistoryStore",
    "VersionReuseConflictError",
    "VersionSchemeError",
    "atomic_write_text",
    "dump_json",
    "list_port_names",
]
