"""Lexical heuristics that estimate how well file content matches a task."""

from __future__ import annotations

import math
import re

from ..schema import Task

__all__ = [
    "BASE_SCORE",
    "CHANGE_WEIGHT",
    "KEYWORD_WEIGHT",
    "MAX_KEYWORDS",
    "STOP_WORDS",
    "calculate_match_percentage",
    "extract_keywords",
    "round_percentage",
]

BASE_SCORE = 50.0
KEYWORD_WEIGHT = 30.0
CHANGE_WEIGHT = 20.0
MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4

STOP_WORDS = frozenset(
    {
        "the",
        "a",
        "an",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "from",
        "as",
        "is",
        "was",
        "are",
        "be",
        "been",
        "has",
        "have",
        "had",
        "do",
        "does",
        "did",
        "will",
        "would",
        "should",
        "could",
        "this",
        "that",
        "these",
        "those",
        "file",
        "function",
        "class",
    }
)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def extract_keywords(text: str) -> list[str]:
    """Return up to ten lowercase, non-trivial terms from ``text`` in order."""
    normalised = _NON_ALNUM.sub(" ", text.lower())
    keywords = [
        word
        for word in normalised.split()
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]
    return keywords[:MAX_KEYWORDS]


def calculate_match_percentage(content: str, task: Task) -> float:
    """Score ``content`` against ``task`` on a saturating 0-100 scale.

    Existence earns the base score. Description keywords found anywhere in the
    content (case-insensitively) add up to 30 points. When the task lists
    changes, each change whose code snippet shares at least one keyword with
    the content adds its share of 20 points.
    """
    score = BASE_SCORE
    lowered = content.lower()

    keywords = extract_keywords(task.description)
    found = sum(1 for keyword in keywords if keyword in lowered)
    score += (found / max(len(keywords), 1)) * KEYWORD_WEIGHT

    if task.changes:
        matched = 0
        for change in task.changes:
            if not change.code:
                continue
            if any(keyword in content for keyword in extract_keywords(change.code)):
                matched += 1
        score += (matched / len(task.changes)) * CHANGE_WEIGHT

    return min(100.0, max(0.0, score))


def round_percentage(value: float) -> int:
    """Round half up, so 62.5 renders as 63."""
    return int(math.floor(value + 0.5))
