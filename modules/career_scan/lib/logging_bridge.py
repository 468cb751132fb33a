from __future__ import annotations

import logging
from typing import Any

# Route structured records to the service's JSONL writer when it is importable
# (normal deployment); otherwise stdlib logging. Silent on import.
_logging_backend = None
try:
    from service import logging_utils as _svc_logging  # type: ignore

    _logging_backend = _svc_logging
except ImportError:
    _logging_backend = None

_ACTIVITY_LOG = logging.getLogger("career_scan.activity")
_ERROR_LOG = logging.getLogger("career_scan.error")

# Top-level keys whose values never reach a log line
_REDACT_KEYS = {
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "proxy",
}


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    """Shallow copy with secret-looking top-level fields masked."""
    out = dict(record)
    for k in list(out.keys()):
        lk = str(k).lower()
        if lk in _REDACT_KEYS or lk.endswith("_secret") or lk.endswith("_token"):
            out[k] = "***REDACTED***"
    return out


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record (e.g. {"component": "career_scan.engine", "op": "summary", ...}).
    Falls back to stdlib logging at INFO if the JSONL writer fails.
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_activity_log(payload)
            return
        except Exception:
            _ACTIVITY_LOG.debug("write_activity_log failed; falling back", exc_info=True)
    _ACTIVITY_LOG.info(payload)


def error(record: dict[str, Any]) -> None:
    """Write an error record; falls back to stdlib logging at ERROR."""
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_error_log(payload)
            return
        except Exception:
            _ERROR_LOG.debug("write_error_log failed; falling back", exc_info=True)
    _ERROR_LOG.error(payload)
