"""
Generic listing extractor.

Career sites share no markup, so instead of per-site parsers we walk the tree
once and apply ordered structural predicates:

  1. candidate containers  (over-inclusive: job-ish classes, table rows, list items, rows/cards)
  2. title element         (priority tiers: headings, title-ish classes, any anchor, generic classes)
  3. location element      (location-ish classes)
  4. link                  (first anchor's href, else the container's own href)

Candidates without a title or a link are dropped. Output keeps document order
and is not deduplicated.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from urllib.parse import urljoin, urlparse

from .models import JobListing
from .nodes import TreeNode

Predicate = Callable[[TreeNode], bool]


# -----------------------------------------------------------------------------
# Predicate builders
# -----------------------------------------------------------------------------
def has_class(*tokens: str) -> Predicate:
    """Element carries one of the given class tokens (CSS `.token`)."""
    wanted = set(tokens)

    def pred(node: TreeNode) -> bool:
        return any(c in wanted for c in node.classes)

    return pred


def class_contains(*fragments: str, tags: Sequence[str] | None = None) -> Predicate:
    """Class attribute contains one of the fragments (CSS `[class*=...]`), optionally tag-restricted."""
    allowed = set(tags) if tags else None

    def pred(node: TreeNode) -> bool:
        if allowed is not None and node.tag not in allowed:
            return False
        cls = node.attr("class") or ""
        return any(f in cls for f in fragments)

    return pred


def tag_in(*names: str) -> Predicate:
    wanted = set(names)

    def pred(node: TreeNode) -> bool:
        return node.tag in wanted

    return pred


def table_row(node: TreeNode) -> bool:
    """A <tr> somewhere inside a <table>."""
    if node.tag != "tr":
        return False
    p = node.parent
    while p is not None:
        if p.tag == "table":
            return True
        p = p.parent
    return False


def list_item(node: TreeNode) -> bool:
    """An <li> that is a direct child of <ul> or <ol>."""
    if node.tag != "li":
        return False
    p = node.parent
    return p is not None and p.tag in ("ul", "ol")


def _div_row(node: TreeNode) -> bool:
    return node.tag == "div" and "row" in node.classes


# -----------------------------------------------------------------------------
# Heuristics
# -----------------------------------------------------------------------------
CONTAINER_PREDICATES: tuple[Predicate, ...] = (
    has_class("job-listing", "job-card", "job-result", "job-item"),
    class_contains("job", tags=("div", "li", "tr")),
    table_row,
    list_item,
    _div_row,
    has_class("card", "listing"),
)

TITLE_TIERS: tuple[Predicate, ...] = (
    tag_in("h1", "h2", "h3", "h4", "h5"),
    class_contains("title", "job", "position", "role", tags=("a", "span", "div")),
    tag_in("a"),
    has_class("name", "position", "role"),
)

# Substring match also covers exact `.location`-style tokens.
LOCATION_TIERS: tuple[Predicate, ...] = (
    class_contains("location", "place", "city", "address", "region", "country"),
)


def is_candidate(node: TreeNode) -> bool:
    return any(pred(node) for pred in CONTAINER_PREDICATES)


def candidates(root: TreeNode) -> list[TreeNode]:
    """Every element under root matching any container predicate, in document order, each once."""
    return [n for n in root.descendants() if is_candidate(n)]


def _first(descendants: Sequence[TreeNode], tiers: Sequence[Predicate]) -> TreeNode | None:
    for tier in tiers:
        for d in descendants:
            if tier(d):
                return d
    return None


def _resolve(href: str | None, base_url: str) -> str:
    href = (href or "").strip()
    if not href:
        return ""
    url = urljoin(base_url, href) if base_url else href
    # Only absolute URLs identify a listing across runs.
    return url if urlparse(url).scheme else ""


def _link_for(container: TreeNode, descendants: Sequence[TreeNode], base_url: str) -> str:
    anchor = next((d for d in descendants if d.tag == "a"), None)
    if anchor is not None:
        link = _resolve(anchor.attr("href"), base_url)
        if link:
            return link
    if container.tag == "a":
        return _resolve(container.attr("href"), base_url)
    return ""


def listing_from(container: TreeNode, base_url: str = "") -> JobListing | None:
    """Build a listing from one candidate container, or None if it has no title or link."""
    desc = list(container.descendants())

    title_el = _first(desc, TITLE_TIERS)
    title = title_el.text().strip() if title_el is not None else ""
    if not title:
        return None

    link = _link_for(container, desc, base_url)
    if not link:
        return None

    loc_el = _first(desc, LOCATION_TIERS)
    location = loc_el.text().strip() if loc_el is not None else ""
    return JobListing(title=title, link=link, location=location)


def extract(root: TreeNode, base_url: str = "") -> list[JobListing]:
    """
    Raw (unfiltered) listings for a page. Relative hrefs are resolved against
    `base_url`; pure function of the tree, so repeated calls agree.
    """
    out: list[JobListing] = []
    for node in candidates(root):
        job = listing_from(node, base_url)
        if job is not None:
            out.append(job)
    return out
