# tests/test_extractor.py
from __future__ import annotations

from modules.career_scan.lib import extractor
from modules.career_scan.lib.models import JobListing
from modules.career_scan.lib.nodes import parse_html

BASE = "https://www.acme.com/careers"


def _extract(html: str, base_url: str = BASE) -> list[JobListing]:
    return extractor.extract(parse_html(html), base_url=base_url)


# ----------------------------------------------------------------------
# Container shapes
# ----------------------------------------------------------------------
def test_job_listing_cards_give_title_location_and_resolved_link():
    html = """
    <div class="job-listing">
      <h3>Senior Product Manager</h3>
      <span class="location">Amsterdam</span>
      <a href="/jobs/1">Apply</a>
    </div>
    """
    assert _extract(html) == [
        JobListing(title="Senior Product Manager", link="https://www.acme.com/jobs/1", location="Amsterdam")
    ]


def test_table_rows_use_anchor_text_as_title():
    html = """
    <table>
      <tr><td><a href="https://jobs.globex.io/p/77">Digital Product Manager</a></td><td class="city">Utrecht</td></tr>
      <tr><td><a href="p/78">Office Manager</a></td></tr>
    </table>
    """
    out = _extract(html, base_url="https://jobs.globex.io/openings")
    assert out == [
        JobListing("Digital Product Manager", "https://jobs.globex.io/p/77", "Utrecht"),
        JobListing("Office Manager", "https://jobs.globex.io/p/78", ""),
    ]


def test_list_items_under_ul_are_candidates():
    html = """
    <ul>
      <li><a href="/a">Program Manager</a> <span class="region">Benelux</span></li>
      <li>Just text, no link</li>
    </ul>
    """
    out = _extract(html)
    assert out == [JobListing("Program Manager", "https://www.acme.com/a", "Benelux")]


def test_anchor_container_uses_its_own_href():
    html = '<a class="card" href="/j/9"><h3>Product Consultant</h3></a>'
    out = _extract(html)
    assert out == [JobListing("Product Consultant", "https://www.acme.com/j/9", "")]


# ----------------------------------------------------------------------
# Title priority and dropping rules
# ----------------------------------------------------------------------
def test_heading_beats_earlier_anchor_for_title():
    html = """
    <div class="job-card">
      <a href="/x">Apply now</a>
      <h4>Product Manager</h4>
    </div>
    """
    out = _extract(html)
    assert [j.title for j in out] == ["Product Manager"]
    assert out[0].link == "https://www.acme.com/x"


def test_title_class_beats_plain_anchor():
    html = """
    <div class="card">
      <a href="/x">Read more</a>
      <span class="posting-title">AI Strategy Lead</span>
    </div>
    """
    assert [j.title for j in _extract(html)] == ["AI Strategy Lead"]


def test_generic_name_class_is_the_last_title_resort():
    # no heading, no title-ish a/span/div, no inner anchor
    html = '<a class="card" href="/j/5"><p class="name">Data Product Manager</p></a>'
    assert _extract(html) == [JobListing("Data Product Manager", "https://www.acme.com/j/5", "")]


def test_first_location_signal_in_document_order_wins():
    html = """
    <div class="job-card">
      <h3>Product Manager</h3>
      <span class="country">Netherlands</span>
      <span class="location">Amsterdam</span>
      <a href="/j/6">Apply</a>
    </div>
    """
    assert [j.location for j in _extract(html)] == ["Netherlands"]


def test_candidate_without_link_is_dropped():
    assert _extract('<div class="job-card"><h3>Product Manager</h3></div>') == []


def test_candidate_with_empty_title_is_dropped():
    assert _extract('<div class="job-card"><a href="/x">   </a></div>') == []


def test_relative_link_without_base_is_dropped():
    html = '<div class="job-card"><h3>Product Manager</h3><a href="/jobs/1">Apply</a></div>'
    assert _extract(html, base_url="") == []


def test_title_and_location_are_trimmed():
    html = """
    <div class="job-item">
      <h2>
         Product Manager
      </h2>
      <div class="job-location">  Rotterdam  </div>
      <a href="https://acme.com/1">Go</a>
    </div>
    """
    out = _extract(html)
    assert out[0].title == "Product Manager"
    assert out[0].location == "Rotterdam"


# ----------------------------------------------------------------------
# Ordering, duplicates, determinism
# ----------------------------------------------------------------------
def test_nested_containers_each_yield_a_listing_in_document_order():
    html = """
    <ul>
      <li><div class="job-item"><h3>Product Manager</h3><a href="/a">x</a></div></li>
    </ul>
    """
    out = _extract(html)
    assert len(out) == 2
    assert {j.link for j in out} == {"https://www.acme.com/a"}


def test_page_without_candidates_yields_nothing():
    assert _extract("<html><body><p>We are not hiring.</p></body></html>") == []


def test_extract_is_repeatable():
    html = '<div class="job-card"><h3>Product Manager</h3><a href="/1">Apply</a></div>'
    root = parse_html(html)
    assert extractor.extract(root, base_url=BASE) == extractor.extract(root, base_url=BASE)


# ----------------------------------------------------------------------
# Any TreeNode implementation works, not only BeautifulSoup
# ----------------------------------------------------------------------
class FakeNode:
    def __init__(self, tag, classes=(), attrs=None, text="", children=()):
        self.tag = tag
        self.classes = list(classes)
        self._attrs = dict(attrs or {})
        if self.classes:
            self._attrs.setdefault("class", " ".join(self.classes))
        self._text = text
        self._children = list(children)
        self.parent = None
        for c in self._children:
            c.parent = self

    def attr(self, name):
        return self._attrs.get(name)

    def descendants(self):
        for c in self._children:
            yield c
            yield from c.descendants()

    def text(self):
        return self._text + "".join(c.text() for c in self._children)


def test_extract_accepts_a_hand_built_tree():
    root = FakeNode(
        "body",
        children=[
            FakeNode(
                "div",
                classes=["job-card"],
                children=[
                    FakeNode("h2", text="Digital Consultant"),
                    FakeNode("a", attrs={"href": "https://example.org/jobs/5"}, text="Apply"),
                ],
            )
        ],
    )
    assert extractor.extract(root) == [JobListing("Digital Consultant", "https://example.org/jobs/5", "")]
