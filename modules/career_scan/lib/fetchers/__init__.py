# career_scan/fetchers/__init__.py
from __future__ import annotations

# Importing the concrete fetchers registers them; playwright is only imported
# when a browser session actually starts.
from . import browser as _browser
from . import http_page as _http_page
from . import stub as _stub
from .base import BlockedError, FetchError, Page, PageFetcher, check_blocked
from .registry import all_kinds, get, register

__all__ = [
    "BlockedError",
    "FetchError",
    "Page",
    "PageFetcher",
    "all_kinds",
    "check_blocked",
    "get",
    "register",
]
