"""Version-control facts about ports: tree hashes and local changes.

The reconciler only needs the ContentHashSource protocol; GitBackend
implements it by shelling out to git in the registry checkout.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class VcsError(Exception):
    """Raised when a version-control query fails."""


class ContentHashSource(Protocol):
    """Protocol for anything that can identify a port's checked-in files."""

    def port_tree_map(self) -> dict[str, str]:
        """Map each port name to the hash of its committed directory tree."""
        ...

    def has_local_changes(self, port_name: str) -> bool:
        """Report whether the port's directory has uncommitted changes."""
        ...


class GitBackend:
    """ContentHashSource backed by the git repository containing the ports."""

    def __init__(self, root_dir: Path, ports_dir: Path, git_executable: str = "git") -> None:
        self._root = root_dir
        self._git = git_executable
        try:
            self._ports_rel = ports_dir.resolve().relative_to(root_dir.resolve()).as_posix()
        except ValueError as exc:
            raise VcsError(f"{ports_dir} is not inside the repository at {root_dir}") from exc

    def port_tree_map(self) -> dict[str, str]:
        """Read `git ls-tree -d HEAD <ports>/` into {port name: tree hash}."""
        output = self._run("ls-tree", "-d", "-z", "HEAD", "--", f"{self._ports_rel}/")
        trees: dict[str, str] = {}
        for record in output.split("\0"):
            if not record:
                continue
            # "<mode> <type> <hash>\t<path>"
            meta, _, path = record.partition("\t")
            parts = meta.split()
            if len(parts) != 3 or parts[1] != "tree":
                continue
            trees[path.rsplit("/", 1)[-1]] = parts[2]
        logger.debug("git reports %d port trees", len(trees))
        return trees

    def has_local_changes(self, port_name: str) -> bool:
        output = self._run("status", "--porcelain", "--", f"{self._ports_rel}/{port_name}")
        return bool(output.strip())

    def _run(self, *args: str) -> str:
        cmd = [self._git, "-C", str(self._root), *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise VcsError(f"failed to run {self._git}: {exc}") from exc
        if proc.returncode != 0:
            raise VcsError(f"`{' '.join(cmd)}` failed: {proc.stderr.strip()}")
        return proc.stdout
