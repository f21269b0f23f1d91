"""Compare the files on disk against the tasks of a structured plan."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..schema import (
    Issue,
    IssueSeverity,
    IssueType,
    Plan,
    Task,
    TaskType,
    TaskVerification,
    VerificationResult,
    VerificationStatus,
    VerificationSummary,
    utc_now,
)
from .scoring import calculate_match_percentage, round_percentage

LOGGER = logging.getLogger(__name__)

CREATE_PASS_THRESHOLD = 80.0
CREATE_PARTIAL_THRESHOLD = 50.0
MODIFY_PASS_THRESHOLD = 70.0
MODIFY_PARTIAL_THRESHOLD = 40.0
MAX_FILE_RECOMMENDATIONS = 3
UNKNOWN_FILE = "unknown"


@dataclass(slots=True)
class VerifyOptions:
    """Filters and switches for one verification run."""

    phase: Optional[int] = None
    task: Optional[str] = None
    strict_mode: bool = False


def resolve_task_path(root: Path, file: str) -> Path:
    """Join a planned file path onto ``root``; leading separators never escape it."""
    return root / file.lstrip("/\\")


def select_tasks(plan: Plan, options: VerifyOptions) -> list[Task]:
    """Return the tasks in scope for ``options``, preserving plan order.

    An out-of-range phase number selects nothing rather than failing.
    """
    if options.phase is not None:
        phase = plan.phase_by_order(options.phase)
        tasks = list(phase.tasks) if phase is not None else []
    else:
        tasks = plan.iter_tasks()

    if options.task:
        tasks = [task for task in tasks if task.id == options.task]
    return tasks


def detect_unplanned_changes(path: Path, task: Task) -> list[str]:
    """Report edits to ``path`` that ``task`` did not plan for.

    Extension point for strict mode. Nothing is inspected yet, so there are
    never findings; a version-control diff would plug in here.
    """
    return []


def summarise(task_results: Sequence[TaskVerification]) -> VerificationSummary:
    issues = [issue for result in task_results for issue in result.issues]
    return VerificationSummary(
        total_tasks=len(task_results),
        tasks_completed=sum(1 for r in task_results if r.status == VerificationStatus.PASS),
        tasks_partial=sum(1 for r in task_results if r.status == VerificationStatus.PARTIAL),
        tasks_missing=sum(1 for r in task_results if r.status == VerificationStatus.FAIL),
        critical_issues=sum(
            1 for issue in issues if issue.severity in {IssueSeverity.CRITICAL, IssueSeverity.ERROR}
        ),
        warnings=sum(1 for issue in issues if issue.severity == IssueSeverity.WARNING),
    )


def overall_status(summary: VerificationSummary) -> VerificationStatus:
    """Any critical/error issue fails the run; missing tasks only once they are a majority."""
    if summary.critical_issues > 0 or summary.tasks_missing > summary.total_tasks / 2:
        return VerificationStatus.FAIL
    if summary.tasks_partial > 0 or summary.tasks_missing > 0:
        return VerificationStatus.PARTIAL
    return VerificationStatus.PASS


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def generate_recommendations(
    task_results: Sequence[TaskVerification], summary: VerificationSummary
) -> list[str]:
    recommendations: list[str] = []
    if summary.tasks_missing > 0:
        recommendations.append(f"Complete the {_plural(summary.tasks_missing, 'missing task')}")
    if summary.tasks_partial > 0:
        recommendations.append(
            f"Review and improve the {_plural(summary.tasks_partial, 'partially implemented task')}"
        )
    if summary.critical_issues > 0:
        recommendations.append("Address critical issues before proceeding")

    failed = [result for result in task_results if result.status == VerificationStatus.FAIL]
    if 0 < len(failed) <= MAX_FILE_RECOMMENDATIONS:
        for result in failed:
            recommendations.append(f"Review implementation of {result.file}")

    if not recommendations:
        recommendations.append("Implementation looks good! Consider code review before merging")
    return recommendations


class Verifier:
    """Heuristic checker that scores each planned task against the project tree."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER

    async def verify(
        self,
        plan: Plan,
        root: Path | str,
        options: Optional[VerifyOptions] = None,
    ) -> VerificationResult:
        """Verify the selected tasks of ``plan`` sequentially under ``root``."""
        options = options or VerifyOptions()
        root_path = Path(root)
        tasks = select_tasks(plan, options)
        self._logger.debug("Verifying %d task(s) of plan %s under %s", len(tasks), plan.id, root_path)

        task_results: List[TaskVerification] = []
        for task in tasks:
            task_results.append(await self.verify_task(task, root_path, strict_mode=options.strict_mode))

        summary = summarise(task_results)
        return VerificationResult(
            plan_id=plan.id,
            phase_id=f"phase-{options.phase}" if options.phase is not None else None,
            timestamp=utc_now(),
            overall_status=overall_status(summary),
            task_results=task_results,
            summary=summary,
            recommendations=generate_recommendations(task_results, summary),
        )

    async def verify_task(self, task: Task, root: Path, *, strict_mode: bool = False) -> TaskVerification:
        """Verify one task; a read failure yields an ``error`` result instead of raising."""
        path = resolve_task_path(root, task.file)
        try:
            return await self._verify_task(task, path, strict_mode)
        except OSError as error:
            self._logger.warning("Failed to inspect %s for task %s: %s", path, task.id, error)
            return TaskVerification(
                task_id=task.id,
                file=task.file,
                status=VerificationStatus.ERROR,
                issues=[
                    Issue(
                        severity=IssueSeverity.CRITICAL,
                        type=IssueType.MISSING_IMPLEMENTATION,
                        message=f"Unable to read {task.file}: {error}",
                        file=task.file,
                        suggestion="Check file permissions and re-run verification",
                    )
                ],
                match_percentage=0.0,
            )

    async def _verify_task(self, task: Task, path: Path, strict_mode: bool) -> TaskVerification:
        exists = await asyncio.to_thread(path.exists)
        issues: list[Issue] = []
        status = VerificationStatus.FAIL
        match_percentage = 0.0

        if task.type == TaskType.CREATE:
            if not exists:
                issues.append(
                    Issue(
                        severity=IssueSeverity.ERROR,
                        type=IssueType.MISSING_IMPLEMENTATION,
                        message=f"File not created: {task.file}",
                        file=task.file,
                        suggestion="Create the file as specified in the plan",
                    )
                )
            else:
                match_percentage = calculate_match_percentage(await self._read(path), task)
                if match_percentage >= CREATE_PASS_THRESHOLD:
                    status = VerificationStatus.PASS
                elif match_percentage >= CREATE_PARTIAL_THRESHOLD:
                    status = VerificationStatus.PARTIAL
                    issues.append(
                        Issue(
                            severity=IssueSeverity.WARNING,
                            type=IssueType.INCORRECT_IMPLEMENTATION,
                            message=(
                                "File created but implementation may be incomplete "
                                f"({round_percentage(match_percentage)}% match)"
                            ),
                            file=task.file,
                            suggestion="Review the plan and ensure all requirements are met",
                        )
                    )
                else:
                    issues.append(
                        Issue(
                            severity=IssueSeverity.ERROR,
                            type=IssueType.INCORRECT_IMPLEMENTATION,
                            message="File created but implementation is significantly different from plan",
                            file=task.file,
                            suggestion="Review and align implementation with the plan",
                        )
                    )

        elif task.type == TaskType.MODIFY:
            if not exists:
                if task.file == UNKNOWN_FILE:
                    suggestion = "This task may need clarification about which file to modify"
                else:
                    suggestion = "Check if the file path is correct or if the file needs to be created"
                issues.append(
                    Issue(
                        severity=IssueSeverity.ERROR,
                        type=IssueType.MISSING_IMPLEMENTATION,
                        message=f"File does not exist: {task.file}",
                        file=task.file,
                        suggestion=suggestion,
                    )
                )
            else:
                match_percentage = calculate_match_percentage(await self._read(path), task)
                if match_percentage >= MODIFY_PASS_THRESHOLD:
                    status = VerificationStatus.PASS
                elif match_percentage >= MODIFY_PARTIAL_THRESHOLD:
                    status = VerificationStatus.PARTIAL
                    issues.append(
                        Issue(
                            severity=IssueSeverity.WARNING,
                            type=IssueType.INCORRECT_IMPLEMENTATION,
                            message=f"Modifications may be incomplete ({round_percentage(match_percentage)}% confidence)",
                            file=task.file,
                            suggestion="Verify that all planned changes have been made",
                        )
                    )
                else:
                    issues.append(
                        Issue(
                            severity=IssueSeverity.ERROR,
                            type=IssueType.MISSING_IMPLEMENTATION,
                            message="Required modifications not detected",
                            file=task.file,
                            suggestion="Review the plan and implement the required changes",
                        )
                    )

        elif task.type == TaskType.DELETE:
            if exists:
                issues.append(
                    Issue(
                        severity=IssueSeverity.ERROR,
                        type=IssueType.EXTRA_CHANGES,
                        message=f"File should have been deleted: {task.file}",
                        file=task.file,
                        suggestion="Remove this file as specified in the plan",
                    )
                )
            else:
                status = VerificationStatus.PASS
                match_percentage = 100.0

        else:
            issues.append(
                Issue(
                    severity=IssueSeverity.ERROR,
                    type=IssueType.LOGIC_ERROR,
                    message=f"Task type '{task.type.value}' is not supported by verification",
                    file=task.file,
                    suggestion="Verify this task manually",
                )
            )

        if strict_mode and exists:
            for finding in detect_unplanned_changes(path, task):
                issues.append(
                    Issue(
                        severity=IssueSeverity.WARNING,
                        type=IssueType.EXTRA_CHANGES,
                        message=finding,
                        file=task.file,
                    )
                )

        self._logger.debug("Task %s (%s) -> %s at %.0f%%", task.id, task.file, status.value, match_percentage)
        return TaskVerification(
            task_id=task.id,
            file=task.file,
            status=status,
            issues=issues,
            match_percentage=match_percentage,
        )

    @staticmethod
    async def _read(path: Path) -> str:
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")


def verify_plan(
    plan: Plan,
    root: Path | str,
    options: Optional[VerifyOptions] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> VerificationResult:
    """Run :meth:`Verifier.verify` to completion from synchronous code."""
    return asyncio.run(Verifier(logger=logger).verify(plan, root, options))


__all__ = [
    "Verifier",
    "VerifyOptions",
    "detect_unplanned_changes",
    "generate_recommendations",
    "overall_status",
    "resolve_task_path",
    "select_tasks",
    "summarise",
    "verify_plan",
]
