from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Sequence

from .logging_bridge import error as log_error
from .models import RunSnapshot, SiteResult

# ---- Public API -------------------------------------------------------------


def load_snapshot(path: str) -> RunSnapshot:
    """
    Read the previous run's snapshot.

    A missing, unreadable or malformed file yields an empty snapshot: prior
    state is advisory and must never abort a run. Individual records that
    cannot be parsed are skipped.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    except (OSError, ValueError, RecursionError) as e:
        log_error({
            "component": "career_scan.state",
            "op": "load_snapshot",
            "path": path,
            "error": repr(e),
        })
        return []

    if not isinstance(data, list):
        log_error({
            "component": "career_scan.state",
            "op": "load_snapshot",
            "path": path,
            "error": f"expected a JSON array, got {type(data).__name__}",
        })
        return []

    out: RunSnapshot = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        try:
            out.append(SiteResult.from_dict(item))
        except ValueError as e:
            log_error({
                "component": "career_scan.state",
                "op": "load_snapshot",
                "path": path,
                "index": i,
                "error": str(e),
            })
    return out


def save_snapshot(path: str, snapshot: Sequence[SiteResult]) -> None:
    """
    Replace the state file with `snapshot`.
    Written to a sibling temp file first, then renamed over the target.
    """
    payload = json.dumps([s.to_dict() for s in snapshot], ensure_ascii=False, indent=2)
    write_text_atomic(path, payload + "\n")


def write_text_atomic(path: str, text: str) -> None:
    _ensure_dir(path)
    tmp = f"{path}.tmp"
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp)
        raise


# ---- Internal utilities -----------------------------------------------------


def _ensure_dir(path: str) -> None:
    d = os.path.dirname(os.path.abspath(path)) or "."
    os.makedirs(d, exist_ok=True)
