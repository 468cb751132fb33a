# service/logging_utils.py
from __future__ import annotations

import contextlib
import datetime as _dt
import json
import os
import socket
from collections.abc import Iterable
from typing import Any

# ---- Configuration (env-driven, read at write time) -------------------------
#
#   LOG_DIR                 base directory for JSONL logs (default: local/logs)
#   ACTIVITY_LOG_PREFIX     activity file prefix (default: activity)
#   ERROR_LOG_PREFIX        error file prefix (default: error)
#   ACTIVITY_LOG_MAX_BYTES  size-based rotation threshold; <=0 disables it
#
# Date-based rotation is inherent: one file per prefix per day.

_DEFAULT_LOG_DIR = os.path.join("local", "logs")

# Keys (case-insensitive substrings) whose values are scrubbed
_DEFAULT_REDACT_KEYS = {
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "set-cookie",
    "proxy",
}

# Host + process metadata (fixed per-process)
_HOSTNAME = socket.gethostname()
_PID = os.getpid()


# ---- Public API --------------------------------------------------------------


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Persist a single structured activity record as one JSON line.

    May raise on unrecoverable I/O/serialization errors.
    Never mutates the passed-in dict.
    """
    _write_jsonl(_log_path_for_today(os.getenv("ACTIVITY_LOG_PREFIX", "activity")), record)


def write_error_log(record: dict[str, Any]) -> None:
    """Persist a single structured error record, parallel to the activity log."""
    _write_jsonl(_log_path_for_today(os.getenv("ERROR_LOG_PREFIX", "error")), record)


def get_activity_log_path() -> str:
    """Return the current day's activity log path (<prefix>-YYYY-MM-DD.jsonl)."""
    return _log_path_for_today(os.getenv("ACTIVITY_LOG_PREFIX", "activity"))


# ---- Internal helpers --------------------------------------------------------


def _log_dir() -> str:
    return os.getenv("LOG_DIR") or _DEFAULT_LOG_DIR


def _log_path_for_today(prefix: str) -> str:
    today = _dt.date.today().isoformat()  # YYYY-MM-DD
    return os.path.join(_log_dir(), f"{prefix}-{today}.jsonl")


def _max_bytes() -> int:
    try:
        return int(os.getenv("ACTIVITY_LOG_MAX_BYTES", "0"))
    except ValueError:
        return 0


def _ensure_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def _rotate_file_if_needed(path: str) -> None:
    """Rename the current file aside once it reaches ACTIVITY_LOG_MAX_BYTES."""
    limit = _max_bytes()
    if limit <= 0:
        return
    try:
        if os.path.getsize(path) < limit:
            return
    except FileNotFoundError:
        return
    ts = _dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    with contextlib.suppress(FileNotFoundError):
        os.replace(path, f"{path}.{ts}")


def _key_matches(name: str, patterns: Iterable[str]) -> bool:
    n = name.lower()
    return any(pat in n for pat in patterns)


def _redact_deep(value: Any, patterns: Iterable[str]) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if isinstance(k, str) and _key_matches(k, patterns):
                out[k] = "***REDACTED***"
            else:
                out[k] = _redact_deep(v, patterns)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_deep(v, patterns) for v in value]
    return value


def _with_metadata(record: dict[str, Any]) -> dict[str, Any]:
    meta = record.get("_meta", {})
    if not isinstance(meta, dict):
        meta = {}
    out = dict(record)
    out["_meta"] = {**meta, "host": _HOSTNAME, "pid": _PID}
    return out


def _write_jsonl(path: str, record: dict[str, Any]) -> None:
    """
    Core writer:
      - deep redacted copy + host/pid metadata
      - optional size rotation
      - single O_APPEND write (atomic line on POSIX), retried once on OSError
    """
    _ensure_dir(path)
    _rotate_file_if_needed(path)

    payload = _with_metadata(_redact_deep(record, _DEFAULT_REDACT_KEYS))
    # Serialize first so encoding errors happen before any file op.
    data = (json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

    flags = os.O_CREAT | os.O_APPEND | os.O_WRONLY

    def _append_once() -> None:
        fd = os.open(path, flags, 0o644)
        try:
            os.write(fd, data)
        finally:
            os.close(fd)

    try:
        _append_once()
    except OSError:
        _ensure_dir(path)
        _append_once()
