from __future__ import annotations

from typing import Any

from .lib import render
from .lib.config import Settings
from .lib.engine import run_once as _run_engine
from .lib.logging_bridge import activity as log_activity


def run(**kwargs: Any) -> tuple[str, dict]:
    """
    Entry point for the 'career_scan' module.

    Accepts kwargs (from scheduler/runner/CLI), including:
      target_phrases: list[str]      # default: compiled-in list
      career_urls: list[str]         # default: compiled-in list
      sites_path: str                # JSON file overriding the two lists
      state_path: str = "job-results.json"
      report_path: str = "job-report.html"
      fetcher: str = "browser"       # "browser" | "http" | "stub"
      fetcher_params: dict
      timeout_sec: float = 60

    Returns:
      (report_html, meta) - meta carries counts, per-site errors and the
      plain-text console summary of new jobs.
    Raises:
      ConfigError for bad settings; anything fatal from the engine.
    """
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "career_scan.main",
        "op": "start",
        "fetcher": settings.fetcher,
        "sites": list(settings.career_urls),
        "state_path": settings.state_path,
        "report_path": settings.report_path,
    })

    outcome = _run_engine(settings)

    new_total = len(outcome.new_jobs)
    meta = {
        "message": f"{render.summary_line(outcome)} {render.new_jobs_line(outcome.new_jobs)}",
        "sites": outcome.site_count,
        "matching_total": outcome.matching_count,
        "new_total": new_total,
        "new_jobs": [j.to_dict() for j in outcome.new_jobs],
        "errors": {s.career_url: s.error for s in outcome.failed_sites},
        "console_summary": render.console_summary(outcome.new_jobs),
        "state_path": settings.state_path,
        "report_path": settings.report_path,
    }
    return outcome.report_html, meta
