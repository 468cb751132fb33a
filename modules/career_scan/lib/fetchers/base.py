from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from ..config import Settings
from ..nodes import TreeNode


class FetchError(Exception):
    """Base exception for page fetch failures."""


class BlockedError(FetchError):
    """The site answered with an anti-bot / access-denied page."""


@dataclass(frozen=True)
class Page:
    """A loaded career page: final URL (for resolving hrefs) and its DOM root."""

    url: str
    root: TreeNode


class PageFetcher(ABC):
    """
    Abstract page fetch collaborator.

    Lifecycle:
      - `with fetcher:` opens the session (browser, HTTP pool). Failing here
        is fatal for the run.
      - `with fetcher.open(url) as page:` loads one career page and yields a
        Page; the per-page resource is released when the block exits, on
        success or failure. Raises on navigation/HTTP errors and on
        detected block pages.

    Do NOT extract, filter, or touch persisted state here.
    """

    # Concrete subclasses MUST set this to a stable string, e.g. "http", "browser", "stub"
    kind: str = ""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def start(self) -> None:
        """Acquire session-wide resources. Default: nothing."""

    def close(self) -> None:
        """Release session-wide resources. Default: nothing."""

    def __enter__(self) -> PageFetcher:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def open(self, url: str) -> AbstractContextManager[Page]:
        """Load `url` and yield a Page for the duration of the `with` block."""
        raise NotImplementedError


def check_blocked(text: str, markers: Iterable[str]) -> None:
    """
    Raise BlockedError if the page text carries one of the block markers.
    Pass rendered text, not markup: scripts often embed these strings.
    """
    for marker in markers:
        if marker and marker in text:
            raise BlockedError(f"Access denied by website (page contains {marker!r})")
