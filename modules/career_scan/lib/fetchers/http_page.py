from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..config import Settings
from ..http_client import HttpClient
from ..nodes import parse_html
from .base import Page, PageFetcher, check_blocked
from .registry import register

log = logging.getLogger(__name__)


@register
class HttpPageFetcher(PageFetcher):
    """
    Plain HTTP fetcher: one GET per career page, parsed with html5lib.

    No scripts run, so client-rendered listings are invisible here; use the
    "browser" fetcher for those sites.
    """

    kind = "http"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self._client: HttpClient | None = None

    def start(self) -> None:
        self._client = HttpClient(timeout=self.settings.timeout_sec)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    @contextmanager
    def open(self, url: str) -> Iterator[Page]:
        if self._client is None:
            raise RuntimeError("HttpPageFetcher used outside its session; use 'with fetcher:'")
        html, final_url = self._client.get_page(url)
        log.debug("fetched %s (%d chars, final=%s)", url, len(html), final_url)
        root = parse_html(html)
        check_blocked(root.visible_text(), self.settings.block_markers)
        yield Page(url=final_url, root=root)
