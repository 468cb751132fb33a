from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from .utils import getenv_str


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


# -----------------------------
# Defaults
# -----------------------------
DEFAULT_TARGET_PHRASES: tuple[str, ...] = (
    "pre-sales solution consultant",
    "product manager",
    "program manager",
    "senior project manager",
    "associate product manager",
    "digital consultant",
    "product consultant",
    "ai strategy",
    "digital product manager",
)

DEFAULT_CAREER_URLS: tuple[str, ...] = (
    "https://careers.adyen.com/vacancies?location=Amsterdam",
    "https://www.crobox.com/careers-crobox",
    "https://www.workingatwearebrain.com/",
    "https://www.valtech.com/nl-nl/carriere/vacatures/?country=netherlands",
    "https://commercetools.com/careers/jobs",
    "https://www.contentstack.com/company/careers",
    "https://www.epam.com/careers/job-listings?country=Netherlands&city=Amsterdam",
    "https://www.bloomreach.com/en/careers",
)

DEFAULT_BLOCK_MARKERS: tuple[str, ...] = ("Access denied", "Error 1005")

DEFAULT_STATE_PATH = "job-results.json"
DEFAULT_REPORT_PATH = "job-report.html"

# Listings on most career sites are rendered client-side.
DEFAULT_FETCHER = "browser"


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for one career_scan run.

    Target phrases and career URLs default to the compiled-in lists; a
    `sites_path` JSON file of the form
        {"target_phrases": [...], "career_urls": [...]}
    replaces either list when present. The aggregator receives this object
    explicitly; nothing reads process-wide constants at run time.
    """

    target_phrases: tuple[str, ...] = DEFAULT_TARGET_PHRASES
    career_urls: tuple[str, ...] = DEFAULT_CAREER_URLS
    sites_path: str | None = None

    # Persistence
    state_path: str = DEFAULT_STATE_PATH
    report_path: str = DEFAULT_REPORT_PATH

    # Fetch collaborator
    fetcher: str = DEFAULT_FETCHER  # "browser" | "http" | "stub"
    fetcher_params: dict[str, Any] = field(default_factory=dict)
    timeout_sec: float = 60.0
    block_markers: tuple[str, ...] = DEFAULT_BLOCK_MARKERS

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None = None) -> Settings:
        """
        Build Settings from kwargs, with environment fallbacks, and validate.

        Expected kwargs (all optional):

            target_phrases: list[str]
            career_urls: list[str]
            sites_path: str        # JSON file overriding phrases/urls
            state_path: str        # env CAREER_SCAN_STATE_PATH, default job-results.json
            report_path: str       # env CAREER_SCAN_REPORT_PATH, default job-report.html
            fetcher: str           # env CAREER_SCAN_FETCHER, default "browser"
            fetcher_params: dict
            timeout_sec: float = 60
            block_markers: list[str]
        """
        kw = dict(kwargs or {})

        sites_path = str(kw.get("sites_path") or getenv_str("CAREER_SCAN_SITES_PATH") or "").strip() or None
        phrases = _as_str_tuple(kw.get("target_phrases"), "target_phrases")
        urls = _as_str_tuple(kw.get("career_urls"), "career_urls")

        if sites_path:
            file_phrases, file_urls = _load_sites_file(sites_path)
            phrases = phrases or file_phrases
            urls = urls or file_urls

        fetcher_params = kw.get("fetcher_params") or {}
        if not isinstance(fetcher_params, dict):
            raise ConfigError("'fetcher_params' must be an object.")

        raw_timeout = kw.get("timeout_sec")
        try:
            timeout_sec = float(60.0 if raw_timeout in (None, "") else raw_timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'timeout_sec' must be a number (got {kw.get('timeout_sec')!r}).") from e

        settings = cls(
            target_phrases=phrases or DEFAULT_TARGET_PHRASES,
            career_urls=urls or DEFAULT_CAREER_URLS,
            sites_path=sites_path,
            state_path=str(kw.get("state_path") or getenv_str("CAREER_SCAN_STATE_PATH", DEFAULT_STATE_PATH)),
            report_path=str(kw.get("report_path") or getenv_str("CAREER_SCAN_REPORT_PATH", DEFAULT_REPORT_PATH)),
            fetcher=str(kw.get("fetcher") or getenv_str("CAREER_SCAN_FETCHER", DEFAULT_FETCHER)).strip().lower(),
            fetcher_params=dict(fetcher_params),
            timeout_sec=timeout_sec,
            block_markers=_as_str_tuple(kw.get("block_markers"), "block_markers") or DEFAULT_BLOCK_MARKERS,
        )
        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def _as_str_tuple(value: Any, name: str) -> tuple[str, ...]:
    """Accept a list/tuple of strings (or a JSON array string); empty -> ()."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ConfigError(f"'{name}' must be a list of strings.") from e
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{name}' must be a list of strings.")
    return tuple(str(v).strip() for v in value)


def _load_sites_file(path: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"career_scan sites file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"career_scan sites file is invalid JSON: {path}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected an object with 'target_phrases' and/or 'career_urls'.")
    return (
        _as_str_tuple(data.get("target_phrases"), "target_phrases"),
        _as_str_tuple(data.get("career_urls"), "career_urls"),
    )


def _validate_settings(s: Settings) -> None:
    if not s.target_phrases:
        raise ConfigError("At least one target phrase is required.")
    for i, p in enumerate(s.target_phrases):
        if not p.strip():
            raise ConfigError(f"target_phrases[{i}] cannot be blank.")

    if not s.career_urls:
        raise ConfigError("At least one career URL is required.")
    seen: set[str] = set()
    for u in s.career_urls:
        parsed = urlparse(u)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Career URL must be an absolute http(s) URL: {u!r}")
        if u in seen:
            raise ConfigError(f"Duplicate career URL: {u!r}")
        seen.add(u)

    if s.timeout_sec <= 0:
        raise ConfigError("'timeout_sec' must be > 0.")
    if not s.state_path.strip():
        raise ConfigError("'state_path' cannot be empty.")
    if not s.report_path.strip():
        raise ConfigError("'report_path' cannot be empty.")
    if not s.fetcher:
        raise ConfigError("'fetcher' cannot be empty.")
