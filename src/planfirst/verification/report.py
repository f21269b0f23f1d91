"""Render verification results for the terminal and as a markdown report."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from ..schema import IssueSeverity, VerificationResult, VerificationStatus
from .scoring import round_percentage

__all__ = [
    "exit_code_for",
    "render_markdown_report",
    "render_summary",
    "write_markdown_report",
]

STATUS_ICONS = {
    VerificationStatus.PASS: "✅",
    VerificationStatus.PARTIAL: "⚠️",
    VerificationStatus.FAIL: "❌",
    VerificationStatus.ERROR: "🔥",
}

ISSUE_ICONS = {
    IssueSeverity.CRITICAL: "🔥",
    IssueSeverity.ERROR: "❌",
}


def exit_code_for(result: VerificationResult) -> int:
    """Return the shell exit code for ``result``: non-zero for fail/error."""
    if result.overall_status in {VerificationStatus.FAIL, VerificationStatus.ERROR}:
        return 1
    return 0


def render_summary(result: VerificationResult, *, include_warnings: bool = True) -> list[str]:
    """Return terminal-friendly lines summarising ``result``."""
    summary = result.summary
    lines = [
        f"{STATUS_ICONS[result.overall_status]} Overall Status: {result.overall_status.value.upper()}",
        "",
        f"  Total Tasks: {summary.total_tasks}",
        f"  Completed: {summary.tasks_completed} ✓",
        f"  Partial: {summary.tasks_partial} ⚠",
        f"  Missing: {summary.tasks_missing} ✗",
    ]
    if summary.critical_issues:
        lines.append(f"  Critical Issues: {summary.critical_issues}")
    if summary.warnings:
        lines.append(f"  Warnings: {summary.warnings}")

    if result.task_results:
        lines.extend(["", "Task Details:"])
        for task_result in result.task_results:
            lines.append(
                f"  {STATUS_ICONS[task_result.status]} {task_result.file} "
                f"({round_percentage(task_result.match_percentage)}% match)"
            )
            if task_result.status == VerificationStatus.PASS:
                continue
            for issue in task_result.issues:
                if not include_warnings and issue.severity == IssueSeverity.WARNING:
                    continue
                icon = ISSUE_ICONS.get(issue.severity, "⚠️")
                lines.append(f"      {icon} {issue.message}")

    if result.recommendations:
        lines.extend(["", "Recommendations:"])
        lines.extend(f"  - {item}" for item in result.recommendations)
    return lines


def render_markdown_report(result: VerificationResult, generated_at: Optional[datetime] = None) -> str:
    """Render the persisted verification report.

    Other tooling parses this layout: keep the headings, the ``Metric | Count``
    table and the ``**[SEVERITY]**`` bullet tags stable.
    """
    summary = result.summary
    parts = [
        "# Verification Report\n\n",
        f"**Plan ID**: {result.plan_id}\n",
        f"**Timestamp**: {result.timestamp.isoformat()}\n",
        f"**Overall Status**: {result.overall_status.value.upper()}\n\n",
        "## Summary\n\n",
        "| Metric | Count |\n",
        "|--------|-------|\n",
        f"| Total Tasks | {summary.total_tasks} |\n",
        f"| Completed | {summary.tasks_completed} |\n",
        f"| Partial | {summary.tasks_partial} |\n",
        f"| Missing | {summary.tasks_missing} |\n",
        f"| Critical Issues | {summary.critical_issues} |\n",
        f"| Warnings | {summary.warnings} |\n\n",
    ]

    if result.task_results:
        parts.append("## Task Results\n\n")
        for task_result in result.task_results:
            icon = {
                VerificationStatus.PASS: "✅",
                VerificationStatus.PARTIAL: "⚠️",
            }.get(task_result.status, "❌")
            parts.append(f"### {icon} {task_result.file}\n\n")
            parts.append(f"- **Status**: {task_result.status.value}\n")
            parts.append(f"- **Match**: {round_percentage(task_result.match_percentage)}%\n")
            parts.append(f"- **Task ID**: {task_result.task_id}\n\n")

            if task_result.issues:
                parts.append("**Issues:**\n\n")
                for issue in task_result.issues:
                    parts.append(f"- **[{issue.severity.value.upper()}]** {issue.message}\n")
                    if issue.line:
                        parts.append(f"  - Line: {issue.line}\n")
                    if issue.suggestion:
                        parts.append(f"  - Suggestion: {issue.suggestion}\n")
                parts.append("\n")

    if result.recommendations:
        parts.append("## Recommendations\n\n")
        parts.extend(f"- {item}\n" for item in result.recommendations)
        parts.append("\n")

    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    parts.append("---\n")
    parts.append(f"*Generated by PlanFirst CLI on {stamp}*\n")
    return "".join(parts)


def write_markdown_report(result: VerificationResult, path: Path | str) -> Path:
    report_path = Path(path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(render_markdown_report(result), encoding="utf-8")
    return report_path
