"""portledger CLI — version history bookkeeping for a port catalog.

Usage:
    portledger add-version <port> [--overwrite-version] [--skip-formatting-check]
                                  [--skip-version-format-check] [--strict-version-scheme]
                                  [--verbose]
    portledger add-version --all [...]
    portledger format-manifest <port>... | --all
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from portledger.core.config import RegistryConfig, get_config

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portledger",
        description="portledger: version history and baseline bookkeeping for a port catalog",
    )
    parser.add_argument("--version", action="version", version="portledger 0.1.0")
    parser.add_argument(
        "--root", type=str, default=None, help="Registry root (default: $PORTLEDGER_ROOT or cwd)"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- add-version ---
    add_parser = subparsers.add_parser(
        "add-version", help="Record ports' current versions in the versions database"
    )
    add_parser.add_argument("port", nargs="?", default=None, help="Port name")
    add_parser.add_argument("--all", action="store_true", help="Process versions for all ports.")
    add_parser.add_argument(
        "--overwrite-version",
        action="store_true",
        help="Overwrite `git-tree` of an existing version.",
    )
    add_parser.add_argument(
        "--skip-formatting-check",
        action="store_true",
        help="Skips the formatting check of vcpkg.json files.",
    )
    add_parser.add_argument(
        "--skip-version-format-check",
        action="store_true",
        help="Skips the version format check.",
    )
    add_parser.add_argument(
        "--strict-version-scheme",
        action="store_true",
        help="Fail instead of warning when a version-string fits a stricter scheme.",
    )
    add_parser.add_argument(
        "--verbose", action="store_true", help="Print success messages instead of just errors."
    )

    # --- format-manifest ---
    fmt_parser = subparsers.add_parser(
        "format-manifest", help="Rewrite port manifests in canonical form"
    )
    fmt_parser.add_argument("ports", nargs="*", help="Port names")
    fmt_parser.add_argument("--all", action="store_true", help="Format every port manifest.")

    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_config(args: argparse.Namespace) -> RegistryConfig:
    config = get_config()
    if args.root:
        config = config.with_root(Path(args.root))
    return config


def cmd_add_version(
    args: argparse.Namespace, parser: argparse.ArgumentParser, console: Console
) -> int:
    """Reconcile one port, or every port with --all."""
    from portledger.registry.baseline import BaselineFormatError, BaselineNotFoundError
    from portledger.registry.reconciler import (
        ReconcileError,
        ReconcileOptions,
        Reconciler,
        list_port_names,
    )
    from portledger.registry.vcs import GitBackend, VcsError

    config = _resolve_config(args)

    if args.port:
        if args.all:
            console.print(
                "warning: ignoring --all since a port name argument was provided", style="yellow"
            )
        port_names = [args.port]
        add_all = False
    elif args.all:
        port_names = list_port_names(config.ports_dir)
        add_all = True
    else:
        parser.error(
            "add-version with no arguments requires passing --all"
            " to update all port versions at once"
        )

    options = ReconcileOptions(
        overwrite_version=args.overwrite_version,
        skip_formatting_check=args.skip_formatting_check,
        skip_version_format_check=args.skip_version_format_check,
        strict_version_scheme=args.strict_version_scheme,
        verbose=not add_all or args.verbose,
        best_effort=add_all,
    )

    try:
        backend = GitBackend(config.root_dir, config.ports_dir, config.git_executable)
        reconciler = Reconciler(config, backend, options=options, console=console)
        report = reconciler.reconcile_ports(port_names)
    except (BaselineNotFoundError, BaselineFormatError, VcsError) as exc:
        console.print(f"error: {exc}", style="bold red", markup=False)
        return 1
    except ReconcileError:
        # Already reported by the reconciler.
        return 1

    if not report.ok:
        console.print(
            f"{len(report.failures)} of {len(port_names)} ports could not be updated",
            style="bold red",
        )
        return 1
    return 0


def cmd_format_manifest(
    args: argparse.Namespace, parser: argparse.ArgumentParser, console: Console
) -> int:
    """Rewrite vcpkg.json files that are not in canonical form."""
    from portledger.core.types import ManifestFormat
    from portledger.manifest.formatter import format_manifest
    from portledger.manifest.loader import MANIFEST_FILE, load_port
    from portledger.manifest.validator import ManifestParseError
    from portledger.registry.persistence import atomic_write_text
    from portledger.registry.reconciler import list_port_names

    config = _resolve_config(args)
    if args.all:
        port_names = list_port_names(config.ports_dir)
    elif args.ports:
        port_names = args.ports
    else:
        parser.error("format-manifest requires port names or --all")

    failures = 0
    for port_name in port_names:
        port_dir = config.port_dir(port_name)
        try:
            scf = load_port(port_dir)
        except ManifestParseError as exc:
            console.print(f"error: {exc}", style="bold red", markup=False)
            failures += 1
            continue

        if scf.origin is ManifestFormat.PARAGRAPH:
            console.print(
                f"warning: {port_name} uses a CONTROL file; only {MANIFEST_FILE} can be formatted",
                style="yellow",
                markup=False,
            )
            continue

        manifest_path = port_dir / MANIFEST_FILE
        formatted = format_manifest(scf)
        if manifest_path.read_bytes().decode("utf-8") == formatted:
            logger.debug("%s is already formatted", manifest_path)
            continue
        atomic_write_text(manifest_path, formatted)
        console.print(f"formatted {manifest_path}", style="green", markup=False)

    return 1 if failures else 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    _configure_logging("DEBUG" if args.debug else get_config().log_level)

    if args.command is None:
        parser.print_help()
        return 0

    console = Console(highlight=False, soft_wrap=True)
    dispatch = {
        "add-version": cmd_add_version,
        "format-manifest": cmd_format_manifest,
    }
    return dispatch[args.command](args, parser, console)


if __name__ == "__main__":
    sys.exit(main())
