from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from planfirst.schema import (
    Issue,
    IssueSeverity,
    IssueType,
    TaskVerification,
    VerificationResult,
    VerificationStatus,
    VerificationSummary,
)
from planfirst.verification.report import (
    exit_code_for,
    render_markdown_report,
    render_summary,
    write_markdown_report,
)


def _result(overall: VerificationStatus = VerificationStatus.PARTIAL) -> VerificationResult:
    return VerificationResult(
        plan_id="plan-1",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        overall_status=overall,
        task_results=[
            TaskVerification(task_id="task-1", file="src/a.py", status=VerificationStatus.PASS, match_percentage=80),
            TaskVerification(
                task_id="task-2",
                file="src/b.py",
                status=VerificationStatus.PARTIAL,
                match_percentage=62.5,
                issues=[
                    Issue(
                        severity=IssueSeverity.WARNING,
                        type=IssueType.INCORRECT_IMPLEMENTATION,
                        message="Modifications may be incomplete (63% confidence)",
                        file="src/b.py",
                        line=12,
                        suggestion="Verify that all planned changes have been made",
                    )
                ],
            ),
        ],
        summary=VerificationSummary(total_tasks=2, tasks_completed=1, tasks_partial=1, warnings=1),
        recommendations=["Review and improve the 1 partially implemented task"],
    )


def test_exit_code_follows_overall_status() -> None:
    assert exit_code_for(_result(VerificationStatus.PASS)) == 0
    assert exit_code_for(_result(VerificationStatus.PARTIAL)) == 0
    assert exit_code_for(_result(VerificationStatus.FAIL)) == 1
    assert exit_code_for(_result(VerificationStatus.ERROR)) == 1


def test_markdown_report_layout() -> None:
    report = render_markdown_report(_result(), generated_at=datetime(2024, 5, 2, 9, 30, 0))

    assert report.startswith("# Verification Report\n\n**Plan ID**: plan-1\n")
    assert "**Timestamp**: 2024-05-01T12:00:00+00:00\n" in report
    assert "**Overall Status**: PARTIAL\n" in report
    assert "| Metric | Count |\n|--------|-------|\n| Total Tasks | 2 |\n" in report
    assert "| Warnings | 1 |\n" in report
    assert "### ✅ src/a.py\n" in report
    assert "### ⚠️ src/b.py\n" in report
    assert "- **Match**: 63%\n" in report
    assert "- **[WARNING]** Modifications may be incomplete (63% confidence)\n" in report
    assert "  - Line: 12\n" in report
    assert "  - Suggestion: Verify that all planned changes have been made\n" in report
    assert "## Recommendations\n\n- Review and improve the 1 partially implemented task\n" in report
    assert report.endswith("---\n*Generated by PlanFirst CLI on 2024-05-02 09:30:00*\n")


def test_markdown_report_without_tasks_skips_task_section() -> None:
    empty = VerificationResult(plan_id="plan-2", overall_status=VerificationStatus.PASS)

    report = render_markdown_report(empty)

    assert "## Task Results" not in report
    assert "| Total Tasks | 0 |" in report


def test_write_markdown_report_creates_parent_dirs(tmp_path: Path) -> None:
    target = tmp_path / "reports" / "verify.md"

    written = write_markdown_report(_result(), target)

    assert written == target
    assert target.read_text(encoding="utf-8").startswith("# Verification Report")


def test_render_summary_lists_issues_for_non_passing_tasks() -> None:
    lines = render_summary(_result())

    assert lines[0] == "⚠️ Overall Status: PARTIAL"
    assert "  Warnings: 1" in lines
    assert "  ✅ src/a.py (80% match)" in lines
    assert "  ⚠️ src/b.py (63% match)" in lines
    assert "      ⚠️ Modifications may be incomplete (63% confidence)" in lines
    assert lines[-1] == "  - Review and improve the 1 partially implemented task"
    assert not any("Critical Issues" in line for line in lines)


def test_render_summary_can_hide_warning_lines() -> None:
    lines = render_summary(_result(), include_warnings=False)

    assert "  ⚠️ src/b.py (63% match)" in lines
    assert not any("Modifications may be incomplete" in line for line in lines)
