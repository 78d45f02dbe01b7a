# file: src/aqi_precompute/io_utils.py
from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Optional


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def atomic_write_json(payload: Any, path: Path, *, indent: Optional[int] = None) -> None:
    """
    Atomic JSON write: write to temp in same directory, then replace.

    Artifacts are served as-is, so the default is compact output.
    """
    ensure_dir(path.parent)
    # per-thread temp name; two workers never share one
    tmp = path.with_suffix(f"{path.suffix}.{os.getpid()}.{threading.get_ident()}.tmp")
    separators = None if indent else (",", ":")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=indent, separators=separators, allow_nan=False)
    os.replace(tmp, path)


def read_json_if_exists(path: Path) -> Optional[Any]:
    """Parsed JSON, or None when the file does not exist. Other errors propagate."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
