# modules/career_scan/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import ConfigError, Settings
from .diff import partition_new
from .engine import process_site, run_once
from .extractor import extract
from .matcher import matches
from .models import JobListing, NewJob, RunOutcome, RunSnapshot, SiteOutcome, SiteResult

__all__ = [
    "ConfigError",
    "JobListing",
    "NewJob",
    "RunOutcome",
    "RunSnapshot",
    "Settings",
    "SiteOutcome",
    "SiteResult",
    "extract",
    "matches",
    "partition_new",
    "process_site",
    "run_once",
]
