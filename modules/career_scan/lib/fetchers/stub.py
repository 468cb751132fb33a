from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..config import Settings
from ..nodes import parse_html
from .base import FetchError, Page, PageFetcher, check_blocked
from .registry import register


@register
class StubPageFetcher(PageFetcher):
    """
    A zero-network fetcher used for tests and dry-runs.

    fetcher_params may contain:
      - pages: {url: html_str | {"html": str, "url": final_url} | {"error": str}}
      - fail_start: str   # OPTIONAL, make the session itself fail to open

    URLs missing from `pages` fail like an unreachable site. `opened` and
    `closed` record page lifecycles so callers can assert release.
    """

    kind = "stub"

    def __init__(self, settings: Settings, pages: dict[str, Any] | None = None) -> None:
        super().__init__(settings)
        params = dict(settings.fetcher_params or {})
        self.pages: dict[str, Any] = dict(pages if pages is not None else params.get("pages") or {})
        self._fail_start = params.get("fail_start")
        self.opened: list[str] = []
        self.closed: list[str] = []
        self.started = False

    def start(self) -> None:
        if self._fail_start:
            raise FetchError(str(self._fail_start))
        self.started = True

    def close(self) -> None:
        self.started = False

    @contextmanager
    def open(self, url: str) -> Iterator[Page]:
        self.opened.append(url)
        try:
            entry = self.pages.get(url)
            if entry is None:
                raise FetchError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
            if isinstance(entry, dict):
                if entry.get("error"):
                    raise FetchError(str(entry["error"]))
                html = str(entry.get("html") or "")
                final_url = str(entry.get("url") or url)
            else:
                html, final_url = str(entry), url
            root = parse_html(html)
            check_blocked(root.visible_text(), self.settings.block_markers)
            yield Page(url=final_url, root=root)
        finally:
            self.closed.append(url)
