# service/config_schema.py
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the service config is invalid."""


_TRIGGER_FIELDS = ("interval", "cron", "daily_time")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

# Used when neither --config nor CONFIG_PATH is given: one scan every morning.
DEFAULT_CONFIG: dict[str, Any] = {
    "jobs": [
        {
            "id": "career_scan",
            "module": "modules.career_scan",
            "trigger": {"daily_time": {"time": "08:00"}},
            "kwargs": {},
            "summary": "Scan configured career pages for new matching jobs",
        }
    ]
}


def load_config(path: str | None = None) -> dict[str, Any]:
    """
    Load the service configuration.

    Resolution order:
      1) Explicit `path` argument
      2) os.environ['CONFIG_PATH']
      3) DEFAULT_CONFIG (daily career scan)

    Shape (JSON or YAML):
        {
          "timezone": "Europe/Amsterdam",          # optional, else $TZ, else UTC
          "jobs": [
            {"id": "career_scan", "module": "modules.career_scan",
             "trigger": {"interval": {"hours": 6}} | {"cron": ...} | {"daily_time": {...}},
             "kwargs": {...}, "timeout_sec": 900, "summary": "..."}
          ]
        }
    """
    resolved_path = path or os.environ.get("CONFIG_PATH")
    if not resolved_path:
        logger.info("CONFIG_PATH not provided; using built-in default config.")
        cfg = json.loads(json.dumps(DEFAULT_CONFIG))  # deep copy
    else:
        cfg = _read_any(resolved_path)

    _apply_top_level_defaults(cfg)
    return cfg


def validate(cfg: dict[str, Any]) -> None:
    """Validate the configuration. Raise ConfigError on any problem."""
    if not isinstance(cfg, dict):
        raise ConfigError("Config must be a dict.")

    jobs = cfg.get("jobs")
    if not isinstance(jobs, list):
        raise ConfigError("Missing required top-level 'jobs' list.")

    tz = cfg.get("timezone")
    if tz is not None and not isinstance(tz, str):
        raise ConfigError("'timezone' must be a string if provided.")

    seen_ids: set[str] = set()
    for idx, job in enumerate(jobs):
        if not isinstance(job, dict):
            raise ConfigError(f"Job at index {idx} must be an object/dict.")

        module = job.get("module")
        if not isinstance(module, str) or not module.strip():
            raise ConfigError(f"Job {idx}: 'module' is required and must be a non-empty string.")

        job_id = _derive_job_id(job, idx)
        if job_id in seen_ids:
            raise ConfigError(f"Duplicate job id '{job_id}'.")
        seen_ids.add(job_id)

        trigger = job.get("trigger")
        if not isinstance(trigger, dict):
            raise ConfigError(f"Job '{job_id}': 'trigger' object is required.")
        present = [k for k in _TRIGGER_FIELDS if trigger.get(k) is not None]
        if len(present) != 1:
            raise ConfigError(f"Job '{job_id}': exactly one trigger required among {', '.join(_TRIGGER_FIELDS)}.")

        kind = present[0]
        value = trigger[kind]
        if kind == "interval":
            if not isinstance(value, dict):
                raise ConfigError(f"Job '{job_id}': interval must be an object of time fields.")
            for k, v in value.items():
                if k in ("timezone", "start_date", "end_date"):
                    continue
                _to_int(v, field=f"interval.{k}", job_id=job_id, allow_zero=True)
        elif kind == "cron":
            if not isinstance(value, (str, dict)):
                raise ConfigError(f"Job '{job_id}': cron must be a crontab string or an object.")
        else:
            _validate_daily_time(value, job_id)

        if "timeout_sec" in job and job["timeout_sec"] is not None:
            _to_int(job["timeout_sec"], field="timeout_sec", job_id=job_id, allow_zero=False)

        if "kwargs" in job and not isinstance(job["kwargs"], dict):
            raise ConfigError(f"Job '{job_id}': 'kwargs' must be a dict if provided.")

        for opt_str in ("summary", "description"):
            if opt_str in job and not isinstance(job[opt_str], str):
                raise ConfigError(f"Job '{job_id}': '{opt_str}' must be a string if provided.")


# ---- Helpers ----------------------------------------------------------------


def _apply_top_level_defaults(cfg: dict[str, Any]) -> None:
    if "jobs" not in cfg or not isinstance(cfg["jobs"], list):
        cfg["jobs"] = []

    tz = cfg.get("timezone")
    if not isinstance(tz, str) or not tz.strip():
        cfg["timezone"] = os.environ.get("TZ", "UTC")

    normalized: list[Any] = []
    for idx, job in enumerate(cfg["jobs"]):
        if isinstance(job, dict):
            job = dict(job)
            job["id"] = _derive_job_id(job, idx)
        normalized.append(job)
    cfg["jobs"] = normalized


def _derive_job_id(job: dict[str, Any], idx: int) -> str:
    # id | name | module → id
    for key in ("id", "name", "module"):
        v = job.get(key)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return f"job_{idx}"


def _validate_daily_time(value: Any, job_id: str) -> None:
    """daily_time is {"time": "HH:MM[:SS]" | [...], "day_of_week"?: str, "timezone"?: str}."""
    if not isinstance(value, dict):
        raise ConfigError(f"Job '{job_id}': daily_time must be an object with a 'time' field.")
    times = value.get("time")
    if isinstance(times, str):
        times = [times]
    if not isinstance(times, list) or not times:
        raise ConfigError(f"Job '{job_id}': daily_time.time must be 'HH:MM' or a list of them.")
    for t in times:
        m = _TIME_RE.match(str(t).strip())
        if not m:
            raise ConfigError(f"Job '{job_id}': daily_time.time {t!r} must match HH:MM[:SS] (24h).")
        hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
        if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
            raise ConfigError(f"Job '{job_id}': daily_time.time {t!r} out of range.")


def _to_int(value: Any, *, field: str, job_id: str, allow_zero: bool) -> int:
    try:
        iv = int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"Job '{job_id}': '{field}' must be an integer.") from err
    if iv < 0 or (iv == 0 and not allow_zero):
        raise ConfigError(f"Job '{job_id}': '{field}' must be >= {'0' if allow_zero else '1'} (got {iv}).")
    return iv


def _read_any(path: str) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path}: {e}") from e

    lower = path.lower()
    if lower.endswith(".yml") or lower.endswith(".yaml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level config in {path} must be an object.")
    return data
