from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..config import Settings
from ..http_client import BROWSER_HEADERS, BROWSER_USER_AGENT
from ..nodes import parse_html
from ..utils import truthy
from .base import Page, PageFetcher, check_blocked
from .registry import register

log = logging.getLogger(__name__)

# Any of these present means the DOM has rendered something worth reading.
_READY_SELECTOR = "a, div, li, tr"


@register
class BrowserPageFetcher(PageFetcher):
    """
    Headless Chromium via Playwright, for career pages rendered client-side.

    fetcher_params:
      headless: bool = True
      ready_timeout_sec: float = 10   # wait for the DOM to show listing-ish elements

    One browser per run (opened in start()); one page per site, always closed.
    Needs a Chromium build once per machine: playwright install chromium
    """

    kind = "browser"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        params = dict(settings.fetcher_params or {})
        self._headless = truthy(params.get("headless", True))
        self._ready_timeout_ms = int(float(params.get("ready_timeout_sec") or 10) * 1000)
        self._nav_timeout_ms = int(settings.timeout_sec * 1000)
        self._pw: Any = None
        self._browser: Any = None
        self._context: Any = None

    def start(self) -> None:
        from playwright.sync_api import sync_playwright  # local import keeps the extra optional

        self._pw = sync_playwright().start()
        try:
            self._browser = self._pw.chromium.launch(
                headless=self._headless,
                args=[
                    "--no-sandbox",
                    "--disable-setuid-sandbox",
                    "--disable-blink-features=AutomationControlled",
                ],
            )
            self._context = self._browser.new_context(
                user_agent=BROWSER_USER_AGENT,
                viewport={"width": 1920, "height": 1080},
                locale="en-US",
                extra_http_headers={k: v for k, v in BROWSER_HEADERS.items() if k != "Connection"},
            )
        except Exception:
            self.close()
            raise
        log.info("Browser session started (headless=%s)", self._headless)

    def close(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception:
                log.debug("browser.close() swallow", exc_info=True)
            self._browser = None
            self._context = None
        if self._pw is not None:
            self._pw.stop()
            self._pw = None

    @contextmanager
    def open(self, url: str) -> Iterator[Page]:
        if self._context is None:
            raise RuntimeError("BrowserPageFetcher used outside its session; use 'with fetcher:'")
        page = self._context.new_page()
        try:
            page.goto(url, wait_until="networkidle", timeout=self._nav_timeout_ms)
            page.wait_for_selector(_READY_SELECTOR, timeout=self._ready_timeout_ms)
            html = page.content()
            root = parse_html(html)
            check_blocked(root.visible_text(), self.settings.block_markers)
            yield Page(url=page.url or url, root=root)
        finally:
            page.close()
