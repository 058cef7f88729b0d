"""JSON persistence helpers for the versions database.

Every file is written to a sibling `.tmp` path first and then renamed
over the target, so a reader never observes a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def dump_json(payload: Any) -> str:
    """Serialize with 2-space indentation and a trailing newline."""
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def atomic_write_text(path: Path, text: str) -> None:
    """Replace `path` with `text` via write-temp-then-rename."""
    tmp_path = path.with_name(path.name + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path.write_text(text, encoding="utf-8", newline="\n")
    os.replace(tmp_path, path)
    logger.debug("Wrote %s (%d bytes)", path, len(text))


def write_json_file(path: Path, payload: Any) -> None:
    atomic_write_text(path, dump_json(payload))
