from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .models import JobListing


def compile_phrase(phrase: str) -> re.Pattern[str]:
    """
    Whole-word, case-insensitive pattern for one target phrase.
    Whitespace inside the phrase matches one or more whitespace characters.
    """
    tokens = phrase.split()
    if not tokens:
        raise ValueError("target phrase cannot be blank")
    body = r"\s+".join(re.escape(t) for t in tokens)
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


def compile_phrases(phrases: Iterable[str]) -> list[re.Pattern[str]]:
    return [compile_phrase(p) for p in phrases]


def matches(title: str, target_phrases: Sequence[str] | Sequence[re.Pattern[str]]) -> bool:
    """True if any target phrase occurs in `title` as a word-bounded substring."""
    patterns = [p if isinstance(p, re.Pattern) else compile_phrase(p) for p in target_phrases]
    return any(p.search(title) for p in patterns)


def filter_jobs(jobs: Iterable[JobListing], target_phrases: Sequence[str]) -> list[JobListing]:
    """Keep listings whose title matches a target phrase; order is preserved."""
    patterns = compile_phrases(target_phrases)
    return [j for j in jobs if matches(j.title, patterns)]
