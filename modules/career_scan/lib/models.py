from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class JobListing:
    """
    One posting found on a career page.
    Extraction never builds a listing without a title and an absolute link.
    """

    title: str
    link: str
    location: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "location": self.location, "link": self.link}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobListing:
        return cls(
            title=str(data.get("title") or "").strip(),
            link=str(data.get("link") or "").strip(),
            location=str(data.get("location") or "").strip(),
        )


@dataclass(frozen=True)
class NewJob:
    """
    A listing whose link was not present in the previous run for its site.
    `company` is derived from the career URL hostname.
    """

    title: str
    link: str
    location: str
    company: str
    career_url: str

    @classmethod
    def from_listing(cls, job: JobListing, *, company: str, career_url: str) -> NewJob:
        return cls(
            title=job.title,
            link=job.link,
            location=job.location,
            company=company,
            career_url=career_url,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "location": self.location,
            "link": self.link,
            "company": self.company,
            "careerUrl": self.career_url,
        }


@dataclass
class SiteResult:
    """
    Outcome of one configured career URL in one run.

    Either a success (error is None; jobs may be empty) or a failure
    (error set; jobs empty). `jobs` is always present.
    """

    career_url: str
    last_checked: str
    jobs: list[JobListing] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def success(cls, career_url: str, last_checked: str, jobs: list[JobListing]) -> SiteResult:
        return cls(career_url=career_url, last_checked=last_checked, jobs=list(jobs))

    @classmethod
    def failure(cls, career_url: str, last_checked: str, error: str) -> SiteResult:
        return cls(career_url=career_url, last_checked=last_checked, jobs=[], error=error or "unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "careerUrl": self.career_url,
            "lastChecked": self.last_checked,
        }
        if self.error is not None:
            out["error"] = self.error
        out["jobs"] = [j.to_dict() for j in self.jobs]
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SiteResult:
        """Build from a persisted record. Raises ValueError on records without careerUrl."""
        career_url = str(data.get("careerUrl") or "").strip()
        if not career_url:
            raise ValueError("record has no 'careerUrl'")
        raw_jobs = data.get("jobs") or []
        if not isinstance(raw_jobs, list):
            raise ValueError(f"{career_url}: 'jobs' must be a list")
        jobs = [JobListing.from_dict(j) for j in raw_jobs if isinstance(j, dict)]
        error = data.get("error")
        return cls(
            career_url=career_url,
            last_checked=str(data.get("lastChecked") or ""),
            jobs=jobs if error is None else [],
            error=str(error) if error is not None else None,
        )


# Ordered, one SiteResult per configured URL.
RunSnapshot = list[SiteResult]


@dataclass
class SiteOutcome:
    """Explicit per-site result returned by engine.process_site."""

    result: SiteResult
    new_jobs: list[NewJob] = field(default_factory=list)
    found: int = 0  # raw listings before the title filter

    @property
    def ok(self) -> bool:
        return self.result.ok


@dataclass
class RunOutcome:
    """Everything one pass produced: the fresh snapshot and the run-wide new jobs."""

    snapshot: RunSnapshot
    new_jobs: list[NewJob] = field(default_factory=list)
    report_html: str = ""

    @property
    def site_count(self) -> int:
        return len(self.snapshot)

    @property
    def matching_count(self) -> int:
        return sum(len(s.jobs) for s in self.snapshot)

    @property
    def failed_sites(self) -> list[SiteResult]:
        return [s for s in self.snapshot if not s.ok]
