"""Helper functions for artifact ids, timestamps and JSON persistence."""

import json
import os
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

_id_lock = threading.Lock()
_last_id_ms = 0


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def next_timestamp_ms() -> int:
    """
    Millisecond wall-clock timestamp, strictly increasing within the process.

    Two calls in the same millisecond get consecutive values, so ids built
    from it never collide and still sort in creation order.
    """
    global _last_id_ms
    with _id_lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_id_ms:
            now_ms = _last_id_ms + 1
        _last_id_ms = now_ms
        return now_ms


def make_artifact_id(*parts: str) -> str:
    """Build a timestamp-prefixed id: ``<ms>_<part>_<part>...``."""
    return '_'.join([str(next_timestamp_ms())] + [str(p) for p in parts])


def write_json_atomic(filepath: Union[str, Path], payload: Any, overwrite: bool = True) -> Path:
    """
    Write JSON so readers never observe a partially written file.

    The payload goes to a temporary file in the target directory which is
    then renamed over the destination. With ``overwrite=False`` the file is
    published with a hard link instead, which fails with FileExistsError if
    the destination already exists, even when another process created it.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix='.tmp')
    try:
        with os.fdopen(fd, 'w') as f:
            json.dump(payload, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        if overwrite:
            os.replace(tmp_name, path)
        else:
            os.link(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)

    return path


def read_json(filepath: Union[str, Path]) -> Any:
    """Load a JSON artifact."""
    path = Path(filepath)

    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {filepath}")

    with open(path, 'r') as f:
        return json.load(f)
