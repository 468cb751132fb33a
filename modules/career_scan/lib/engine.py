"""
Engine for one career_scan pass: fetch each career page, extract and filter
listings, detect new ones against the previous snapshot, then persist and
render.

Features:
  - Sequential, configuration-ordered site processing (one page open at a time)
  - Per-site isolation: a failing site becomes an error SiteResult, never aborts the run
  - Explicit SiteOutcome per site from `process_site`
  - Dependency injection for testability (`fetcher` / `get_fetcher`)
  - Structured logging via `logging_bridge`
"""

from __future__ import annotations

import time
from collections.abc import Callable

from . import diff, extractor, logging_bridge, matcher, render, state
from .config import Settings
from .fetchers.base import PageFetcher
from .models import RunOutcome, SiteOutcome, SiteResult
from .utils import now_iso


# =============================================================================
# DEFAULT FETCHER LOOKUP (PRODUCTION)
# =============================================================================
def _default_get_fetcher(kind: str) -> type[PageFetcher]:
    """Resolve fetcher class from registry (only used when no override is injected)."""
    from .fetchers import get as get_fetcher_class

    return get_fetcher_class(kind)


# =============================================================================
# ONE SITE
# =============================================================================
def process_site(
    career_url: str,
    fetcher: PageFetcher,
    settings: Settings,
    prior_site: SiteResult | None,
) -> SiteOutcome:
    """
    Fetch, extract and filter one career page, then diff against its prior result.

    Any exception from fetching or extraction yields a failure outcome with
    zero jobs; the page is released before returning either way.
    """
    try:
        with fetcher.open(career_url) as page:
            raw = extractor.extract(page.root, base_url=page.url)
        matching = matcher.filter_jobs(raw, settings.target_phrases)
    except Exception as e:
        message = str(e).strip() or type(e).__name__
        logging_bridge.error({
            "component": "career_scan.engine",
            "op": "process_site",
            "career_url": career_url,
            "error": repr(e),
        })
        return SiteOutcome(result=SiteResult.failure(career_url, now_iso(), message))

    prior_jobs = prior_site.jobs if prior_site is not None else None
    new = diff.partition_new(matching, prior_jobs)
    return SiteOutcome(
        result=SiteResult.success(career_url, now_iso(), matching),
        new_jobs=diff.enrich_new(new, career_url),
        found=len(raw),
    )


# =============================================================================
# MAIN ORCHESTRATOR
# =============================================================================
def run_once(
    settings: Settings,
    fetcher: PageFetcher | None = None,
    get_fetcher: Callable[[str], type[PageFetcher]] | None = None,
) -> RunOutcome:
    """
    Run one complete pass over all configured career URLs.

    Args:
        settings: Phrases, URLs, paths and fetcher selection for this run.
        fetcher: Optional ready fetcher instance (tests); its session is still opened here.
        get_fetcher: Optional override for resolving the fetcher class by kind.

    Returns:
        RunOutcome with the fresh snapshot and the run-wide new jobs.

    Raises:
        Anything outside the per-site boundary: fetcher session start,
        writing the snapshot or the report.
    """
    start_ns = time.perf_counter_ns()

    prior = state.load_snapshot(settings.state_path)

    if fetcher is None:
        get_fetcher_func = get_fetcher or _default_get_fetcher
        fetcher = get_fetcher_func(settings.fetcher)(settings)

    logging_bridge.activity({
        "component": "career_scan.engine",
        "op": "start",
        "fetcher": fetcher.kind,
        "sites": len(settings.career_urls),
        "phrases": len(settings.target_phrases),
        "prior_sites": len(prior),
    })

    outcomes: list[SiteOutcome] = []
    durations_us: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # SITES, ONE AT A TIME, IN CONFIGURED ORDER
    # -------------------------------------------------------------------------
    with fetcher:
        for url in settings.career_urls:
            t0 = time.perf_counter_ns()
            outcome = process_site(url, fetcher, settings, diff.prior_for(prior, url))
            durations_us[url] = int((time.perf_counter_ns() - t0) // 1000)
            outcomes.append(outcome)

            logging_bridge.activity({
                "component": "career_scan.engine",
                "op": "site_done",
                "career_url": url,
                "ok": outcome.ok,
                "found": outcome.found,
                "matching": len(outcome.result.jobs),
                "new": len(outcome.new_jobs),
                "error": outcome.result.error,
                "duration_us": durations_us[url],
            })

    # -------------------------------------------------------------------------
    # MERGE
    # -------------------------------------------------------------------------
    run = RunOutcome(
        snapshot=[o.result for o in outcomes],
        new_jobs=[j for o in outcomes for j in o.new_jobs],
    )

    # -------------------------------------------------------------------------
    # PERSIST + REPORT (failures here are fatal)
    # -------------------------------------------------------------------------
    run.report_html = render.publish(
        run,
        state_path=settings.state_path,
        report_path=settings.report_path,
        generated_at=now_iso(),
    )
    logging_bridge.activity({
        "component": "career_scan.engine",
        "op": "persisted",
        "state_path": settings.state_path,
        "report_path": settings.report_path,
        "sites": run.site_count,
    })

    total_us = int((time.perf_counter_ns() - start_ns) // 1000)
    logging_bridge.activity({
        "component": "career_scan.engine",
        "op": "summary",
        "found_by_site": {o.result.career_url: o.found for o in outcomes},
        "matching_by_site": {o.result.career_url: len(o.result.jobs) for o in outcomes},
        "new_by_site": {o.result.career_url: len(o.new_jobs) for o in outcomes if o.new_jobs},
        "errors": {s.career_url: s.error for s in run.failed_sites},
        "durations_us": durations_us,
        "total_us": total_us,
    })

    return run
