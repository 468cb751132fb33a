# tests/test_matcher.py
import pytest

from modules.career_scan.lib import matcher
from modules.career_scan.lib.models import JobListing


@pytest.mark.parametrize(
    "title, phrases, expected",
    [
        ("Senior Product Manager", ["product manager"], True),
        ("Product Manager, Payments", ["product manager"], True),
        ("Product Management Lead", ["product manager"], False),
        ("Product Managerial Assistant", ["product manager"], False),
        ("PRODUCT   MANAGER", ["product manager"], True),  # case + runs of whitespace
        ("Product\nManager", ["product manager"], True),
        ("Chief AI Strategy Officer", ["ai strategy"], True),
        ("Maintainance Planner", ["ai strategy"], False),
        ("maintainance", ["ai strategy"], False),
        ("maintainance", ["ai"], False),  # "ai" only inside a word
        ("Senior Product Manager", ["program manager", "product manager"], True),
        ("Sales Director", ["product manager", "ai strategy"], False),
        ("", ["product manager"], False),
        ("Anything at all", [], False),
    ],
)
def test_matches_whole_words_case_insensitive(title, phrases, expected):
    assert matcher.matches(title, phrases) is expected


def test_phrase_inside_a_longer_word_does_not_match():
    assert matcher.matches("Productmanager", ["product manager"]) is False
    assert matcher.matches("Superproduct Manager", ["product manager"]) is False


def test_hyphenated_phrase_matches_literally():
    assert matcher.matches("Pre-Sales Solution Consultant (EMEA)", ["pre-sales solution consultant"])
    assert not matcher.matches("Presales Solution Consultant", ["pre-sales solution consultant"])


def test_regex_metacharacters_in_phrases_are_literal():
    assert matcher.matches("Engineer (C++)", ["c++"]) is False  # \b cannot follow '+'
    assert matcher.matches("Data Analyst (Level 2)", ["analyst (level"]) is True
    assert matcher.matches("Analyst Level", ["analyst.level"]) is False


def test_blank_phrase_is_rejected():
    with pytest.raises(ValueError):
        matcher.compile_phrase("   ")


def test_filter_jobs_preserves_order_and_drops_non_matches():
    jobs = [
        JobListing("Senior Product Manager", "https://x/1"),
        JobListing("Backend Engineer", "https://x/2"),
        JobListing("Digital Product Manager", "https://x/3"),
    ]
    out = matcher.filter_jobs(jobs, ["product manager"])
    assert [j.link for j in out] == ["https://x/1", "https://x/3"]
