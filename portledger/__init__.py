"""portledger — version history and baseline bookkeeping for a port catalog.

Parses port descriptions (CONTROL or vcpkg.json), records each port's
(version, git-tree) pairs in per-port history files, and keeps the
baseline file pointing at every port's current version.
"""

__version__ = "0.1.0"
