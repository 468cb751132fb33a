"""
Minimal tree-node capability set the extractor depends on.

Any DOM engine can be plugged in by adapting its elements to `TreeNode`.
`SoupNode` adapts BeautifulSoup elements; it is what both fetchers return
and what tests build from literal HTML.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

# Strings under these never render as page text.
_HIDDEN_TEXT_PARENTS = frozenset({"script", "style", "noscript", "template"})


class TreeNode(Protocol):
    @property
    def tag(self) -> str: ...

    @property
    def classes(self) -> list[str]: ...

    @property
    def parent(self) -> TreeNode | None: ...

    def attr(self, name: str) -> str | None: ...

    def descendants(self) -> Iterator[TreeNode]: ...

    def text(self) -> str: ...


class SoupNode:
    """`TreeNode` over a bs4 Tag (or the BeautifulSoup document itself)."""

    __slots__ = ("_el",)

    def __init__(self, el: Tag) -> None:
        self._el = el

    def __repr__(self) -> str:
        return f"SoupNode(<{self.tag}> classes={self.classes!r})"

    @property
    def element(self) -> Tag:
        return self._el

    @property
    def tag(self) -> str:
        return (self._el.name or "").lower()

    @property
    def classes(self) -> list[str]:
        raw = self._el.get("class")
        if raw is None:
            return []
        if isinstance(raw, str):
            return raw.split()
        return [str(c) for c in raw]

    @property
    def parent(self) -> SoupNode | None:
        p = self._el.parent
        if p is None or isinstance(p, BeautifulSoup):
            return None
        return SoupNode(p)

    def attr(self, name: str) -> str | None:
        """Attribute value as a string; multi-valued attributes are space-joined."""
        val = self._el.get(name)
        if val is None:
            return None
        if isinstance(val, list):
            return " ".join(str(v) for v in val)
        return str(val)

    def descendants(self) -> Iterator[SoupNode]:
        """Element descendants in document order (the node itself excluded)."""
        for d in self._el.descendants:
            if isinstance(d, Tag):
                yield SoupNode(d)

    def text(self) -> str:
        return self._el.get_text()

    def visible_text(self) -> str:
        """Rendered text only: script, style and comment contents are left out."""
        parts = []
        for s in self._el.descendants:
            if not isinstance(s, NavigableString) or isinstance(s, PreformattedString):
                continue
            if s.parent is not None and (s.parent.name or "").lower() in _HIDDEN_TEXT_PARENTS:
                continue
            parts.append(str(s))
        return "".join(parts)


def parse_html(html: str, *, parser: str = "html5lib") -> SoupNode:
    """
    Parse markup into a root node. html5lib builds the same tree a browser
    would (implicit <tbody>, repaired nesting), which the row heuristics expect.
    """
    return SoupNode(BeautifulSoup(html, parser))
