"""Named pattern rules used to pull file paths and headings out of plan markdown."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Pattern, Sequence

__all__ = [
    "ACTION_VERB_RULE",
    "BARE_PATH_RULE",
    "FILES_MENTIONED_RULE",
    "LABELLED_PATH_RULE",
    "PathRule",
    "TASK_PATH_RULES",
    "collect_paths",
]


@dataclass(frozen=True, slots=True)
class PathRule:
    """A single regular expression that yields file paths from its first group."""

    name: str
    pattern: Pattern[str]

    def find(self, text: str) -> Iterator[str]:
        for match in self.pattern.finditer(text):
            candidate = match.group(1)
            if candidate:
                yield candidate


ACTION_VERB_RULE = PathRule(
    name="action-verb",
    pattern=re.compile(
        r"\b(?:Create|Add|Modify|Update|Edit)\s+`([^`\n]+\.[a-z]{2,4})`",
        re.IGNORECASE,
    ),
)

LABELLED_PATH_RULE = PathRule(
    name="labelled-path",
    pattern=re.compile(r"\b(?:File|Path):\s*`([^`\n]+\.[a-z]{2,4})`", re.IGNORECASE),
)

BARE_PATH_RULE = PathRule(
    name="bare-path",
    pattern=re.compile(r"`([a-zA-Z0-9_\-/]+\.[a-z]{2,4})`"),
)

# Whole-document scan for plan metadata; also admits dots inside the path.
FILES_MENTIONED_RULE = PathRule(
    name="files-mentioned",
    pattern=re.compile(r"`([a-zA-Z0-9_\-/.]+\.[a-z]{2,4})`"),
)

TASK_PATH_RULES: tuple[PathRule, ...] = (
    ACTION_VERB_RULE,
    LABELLED_PATH_RULE,
    BARE_PATH_RULE,
)


def collect_paths(text: str, rules: Sequence[PathRule] | Iterable[PathRule] = TASK_PATH_RULES) -> list[str]:
    """Apply ``rules`` in priority order, returning unique paths in first-seen order."""
    seen: dict[str, None] = {}
    for rule in rules:
        for path in rule.find(text):
            if path in seen:
                continue
            seen[path] = None
    return list(seen)
