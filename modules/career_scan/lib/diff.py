from __future__ import annotations

from collections.abc import Sequence

from .models import JobListing, NewJob, SiteResult
from .utils import company_from_url


def partition_new(
    current_jobs: Sequence[JobListing],
    prior_jobs_for_site: Sequence[JobListing] | None,
) -> list[JobListing]:
    """
    Jobs whose link was not seen for this site in the previous run.

    Links are compared as exact strings; a site with no prior record makes
    every current job new. Order follows `current_jobs`.
    """
    seen = {j.link for j in (prior_jobs_for_site or ())}
    return [j for j in current_jobs if j.link not in seen]


def prior_for(snapshot: Sequence[SiteResult], career_url: str) -> SiteResult | None:
    """Previous result for a site, matched by exact careerUrl."""
    return next((s for s in snapshot if s.career_url == career_url), None)


def enrich_new(jobs: Sequence[JobListing], career_url: str) -> list[NewJob]:
    company = company_from_url(career_url)
    return [NewJob.from_listing(j, company=company, career_url=career_url) for j in jobs]
