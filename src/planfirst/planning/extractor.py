"""Convert free-form planning markdown into a structured :class:`Plan`.

The extractor is total over text input: sparse or malformed markdown degrades
to a single ``Implementation`` phase holding one placeholder task rather than
raising. It performs no I/O so it can be exercised directly from tests.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..schema import (
    Complexity,
    Phase,
    PhaseStatus,
    Plan,
    PlanMetadata,
    PlanStatus,
    Task,
    TaskType,
    utc_now,
)
from .rules import FILES_MENTIONED_RULE, TASK_PATH_RULES, collect_paths

LOGGER = logging.getLogger(__name__)

TITLE_FALLBACK_LENGTH = 100
DESCRIPTION_LIMIT = 200
REASONING_LIMIT = 200
MAX_PLAN_DEPENDENCIES = 10

FALLBACK_PHASE_NAME = "Implementation"
FALLBACK_PHASE_DESCRIPTION = "Complete implementation"
FALLBACK_REASONING = "Implement as described in the plan"
PLACEHOLDER_FILE = "implementation"

BASE_HOURS_PER_PHASE = {
    Complexity.LOW: 2,
    Complexity.MEDIUM: 6,
    Complexity.HIGH: 16,
}

_TITLE_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_PHASE_HEADING_RE = re.compile(r"^##[ \t]+(.+)$", re.MULTILINE)
_PHASE_PREFIX_RE = re.compile(r"^Phase\s+\d+(?:\s*:\s*|\s+)(.+)$", re.IGNORECASE)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]\s+")

_CREATE_VERBS = ("create", "new", "add")
_DELETE_VERBS = ("delete", "remove")


@dataclass(frozen=True, slots=True)
class Section:
    """A ``##`` heading together with the text it governs."""

    heading: str
    text: str


def extract_title(markdown: str, description: str) -> str:
    """Return the first top-level heading, or a prefix of the request text."""
    for match in _TITLE_RE.finditer(markdown):
        title = match.group(1).strip()
        if title:
            return title
    return description[:TITLE_FALLBACK_LENGTH]


def split_sections(markdown: str) -> list[Section]:
    """Split ``markdown`` at every second-level heading."""
    matches = [match for match in _PHASE_HEADING_RE.finditer(markdown) if match.group(1).strip()]
    sections: list[Section] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(markdown)
        sections.append(Section(heading=match.group(1).strip(), text=markdown[match.start() : end]))
    return sections


def phase_name_from_heading(heading: str) -> str:
    """Strip a leading ``Phase <N>:`` marker from ``heading`` when present."""
    match = _PHASE_PREFIX_RE.match(heading)
    if match:
        remainder = match.group(1).strip()
        if remainder:
            return remainder
    return heading


def determine_task_type(content: str, file: str) -> TaskType:
    """Classify the work on ``file`` from the verbs that precede it in ``content``."""
    lowered = content.lower()
    target = file.lower()

    def mentions(verbs: Sequence[str]) -> bool:
        for verb in verbs:
            if f"{verb} {target}" in lowered or f"{verb} `{target}`" in lowered:
                return True
        return False

    if mentions(_CREATE_VERBS):
        return TaskType.CREATE
    if mentions(_DELETE_VERBS):
        return TaskType.DELETE
    return TaskType.MODIFY


def extract_reasoning(content: str, file: str) -> str:
    """Return the first sentence that names ``file``, truncated."""
    for sentence in _SENTENCE_SPLIT_RE.split(content):
        if file in sentence:
            return sentence.strip()[:REASONING_LIMIT]
    return FALLBACK_REASONING


def extract_tasks(content: str) -> list[Task]:
    """Build one task per distinct file path mentioned in ``content``."""
    tasks: list[Task] = []
    for index, file in enumerate(collect_paths(content, TASK_PATH_RULES), start=1):
        task_type = determine_task_type(content, file)
        tasks.append(
            Task(
                id=f"task-{index}",
                type=task_type,
                file=file,
                description=f"{task_type.value.capitalize()} {file}",
                reasoning=extract_reasoning(content, file),
                changes=[],
            )
        )

    if not tasks:
        tasks.append(
            Task(
                id="task-1",
                type=TaskType.MODIFY,
                file=PLACEHOLDER_FILE,
                description="Implement the planned changes",
                reasoning="As described in the plan",
                changes=[],
            )
        )
    return tasks


def extract_phases(markdown: str) -> list[Phase]:
    """Segment ``markdown`` into linearly chained phases."""
    sections = split_sections(markdown)
    if not sections:
        return [
            Phase(
                id="phase-1",
                order=1,
                name=FALLBACK_PHASE_NAME,
                description=FALLBACK_PHASE_DESCRIPTION,
                tasks=extract_tasks(markdown),
                dependencies=[],
                status=PhaseStatus.PENDING,
            )
        ]

    phases: list[Phase] = []
    for index, section in enumerate(sections, start=1):
        phases.append(
            Phase(
                id=f"phase-{index}",
                order=index,
                name=phase_name_from_heading(section.heading),
                description=section.text[:DESCRIPTION_LIMIT],
                tasks=extract_tasks(section.text),
                dependencies=[f"phase-{index - 1}"] if index > 1 else [],
                status=PhaseStatus.PENDING,
            )
        )
    return phases


def extract_files_mentioned(markdown: str) -> list[str]:
    """Return every backtick-quoted path in the document, first-seen order."""
    return collect_paths(markdown, (FILES_MENTIONED_RULE,))


def count_words(text: str) -> int:
    return len(text.split())


def estimate_complexity(word_count: int, phase_count: int, file_count: int) -> Complexity:
    if file_count > 10 or phase_count > 5 or word_count > 2000:
        return Complexity.HIGH
    if file_count > 5 or phase_count > 2 or word_count > 1000:
        return Complexity.MEDIUM
    return Complexity.LOW


def estimate_time(complexity: Complexity, phase_count: int) -> str:
    """Render a rough duration for ``phase_count`` phases at ``complexity``."""
    hours = BASE_HOURS_PER_PHASE[Complexity(complexity)] * phase_count
    if hours < 8:
        return f"{hours} hours"
    if hours < 40:
        return f"{math.ceil(hours / 8)} days"
    return f"{math.ceil(hours / 40)} weeks"


def default_plan_id(timestamp: datetime) -> str:
    return f"plan-{int(timestamp.timestamp() * 1000)}"


class PlanExtractor:
    """Map one markdown document and its originating request to a :class:`Plan`."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER

    def extract(
        self,
        markdown: str,
        description: str,
        *,
        dependencies: Sequence[str] = (),
        plan_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Plan:
        created_at = timestamp or utc_now()
        identifier = plan_id or default_plan_id(created_at)

        phases = extract_phases(markdown)
        files_affected = extract_files_mentioned(markdown)
        complexity = estimate_complexity(count_words(markdown), len(phases), len(files_affected))
        extracted = bool(split_sections(markdown))

        self._logger.debug(
            "Extracted %d phase(s), %d task(s), %d file(s) for plan %s",
            len(phases),
            sum(len(phase.tasks) for phase in phases),
            len(files_affected),
            identifier,
        )
        if not extracted:
            self._logger.info("No '##' sections found; using a single %s phase", FALLBACK_PHASE_NAME)

        return Plan(
            id=identifier,
            title=extract_title(markdown, description),
            description=description,
            timestamp=created_at,
            phases=phases,
            metadata=PlanMetadata(
                estimated_complexity=complexity,
                files_affected=files_affected,
                dependencies=list(dependencies)[:MAX_PLAN_DEPENDENCIES],
                estimated_time=estimate_time(complexity, len(phases)),
            ),
            status=PlanStatus.READY if extracted else PlanStatus.DRAFT,
        )


def extract_plan(
    markdown: str,
    description: str,
    *,
    dependencies: Sequence[str] = (),
    plan_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    logger: Optional[logging.Logger] = None,
) -> Plan:
    """Convenience wrapper around :meth:`PlanExtractor.extract`."""
    return PlanExtractor(logger=logger).extract(
        markdown,
        description,
        dependencies=dependencies,
        plan_id=plan_id,
        timestamp=timestamp,
    )


__all__ = [
    "PlanExtractor",
    "Section",
    "determine_task_type",
    "estimate_complexity",
    "estimate_time",
    "extract_files_mentioned",
    "extract_phases",
    "extract_plan",
    "extract_reasoning",
    "extract_tasks",
    "extract_title",
    "phase_name_from_heading",
    "split_sections",
]
