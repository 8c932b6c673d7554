"""Shared helpers: line logger, JSON I/O, timestamps.

Every tool in this package reports progress as plain timestamped lines on
stdout/stderr. The build controller captures those lines from the pipeline
subprocess, so the format doubles as the pipeline's wire protocol.
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, "os.PathLike[str]"]


def log(msg: str, level: str = "INFO") -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    line = f"[{timestamp}] [{level}] {msg}"
    stream = sys.stderr if level in ("WARN", "ERROR") else sys.stdout
    print(line, file=stream, flush=True)


def log_separator(title: str = "") -> None:
    line = f"━━━ {title} " + "━" * max(0, 60 - len(title))
    log(line)


def die(msg: str) -> None:
    print(f"ERROR: {msg}", file=sys.stderr, flush=True)
    sys.exit(1)


def utc_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def read_json(path: PathLike) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json(path: PathLike, obj: Any) -> None:
    """Write JSON atomically: temp file in the same directory, then rename.

    A reader (or a crash) never observes a half-written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            json.dump(obj, f, ensure_ascii=False, indent=2)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def norm_relpath(path: PathLike, start: PathLike) -> str:
    """Relative path from `start`, always with forward slashes."""
    return os.path.relpath(path, start).replace("\\", "/")
