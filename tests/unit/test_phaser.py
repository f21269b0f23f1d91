from __future__ import annotations

import pytest

from planfirst.planning.phaser import (
    PhaseNotFoundError,
    all_phases_completed,
    executable_phases,
    mark_verified,
    update_phase_status,
)
from planfirst.schema import (
    Phase,
    PhaseStatus,
    Plan,
    PlanStatus,
    Task,
    TaskType,
    VerificationResult,
    VerificationStatus,
    VerificationSummary,
)


def _plan(count: int = 3, status: PlanStatus = PlanStatus.READY) -> Plan:
    phases = [
        Phase(
            id=f"phase-{index}",
            order=index,
            name=f"Phase {index}",
            tasks=[Task(id="task-1", type=TaskType.MODIFY, file=f"src/step_{index}.py", description="Modify step")],
            dependencies=[f"phase-{index - 1}"] if index > 1 else [],
        )
        for index in range(1, count + 1)
    ]
    return Plan(id="plan-1", title="t", description="d", phases=phases, status=status)


def test_only_first_phase_is_executable_initially() -> None:
    plan = _plan()

    assert [phase.id for phase in executable_phases(plan.phases)] == ["phase-1"]


def test_completing_a_phase_unlocks_the_next() -> None:
    plan = _plan()

    update_phase_status(plan, 1, PhaseStatus.COMPLETED)

    assert [phase.id for phase in executable_phases(plan.phases)] == ["phase-2"]
    assert plan.status == PlanStatus.IN_PROGRESS


def test_plan_completes_when_every_phase_completes() -> None:
    plan = _plan(2)

    update_phase_status(plan, 1, "completed")
    update_phase_status(plan, 2, "completed")

    assert all_phases_completed(plan.phases)
    assert plan.status == PlanStatus.COMPLETED
    assert executable_phases(plan.phases) == []


def test_update_phase_status_rejects_unknown_order() -> None:
    with pytest.raises(PhaseNotFoundError):
        update_phase_status(_plan(), 9, PhaseStatus.COMPLETED)


def _run(plan_id: str = "plan-1", *, total: int = 3, **kwargs) -> VerificationResult:
    kwargs.setdefault("overall_status", VerificationStatus.PASS)
    summary = VerificationSummary(total_tasks=total, tasks_completed=total)
    return VerificationResult(plan_id=plan_id, summary=summary, **kwargs)


def test_mark_verified_only_for_whole_plan_pass() -> None:
    plan = _plan()

    assert not mark_verified(plan, _run(overall_status=VerificationStatus.PARTIAL))
    assert not mark_verified(plan, _run(total=1, phase_id="phase-1"))
    assert not mark_verified(plan, _run("other"))
    assert plan.status == PlanStatus.READY

    assert mark_verified(plan, _run())
    assert plan.status == PlanStatus.VERIFIED


@pytest.mark.parametrize("total", [0, 1])
def test_mark_verified_ignores_runs_that_skipped_tasks(total: int) -> None:
    plan = _plan()

    assert not mark_verified(plan, _run(total=total))
    assert plan.status == PlanStatus.READY


def test_mark_verified_never_promotes_a_plan_without_tasks() -> None:
    plan = Plan(id="plan-1", title="t", description="d")

    assert not mark_verified(plan, _run(total=0))
    assert plan.status != PlanStatus.VERIFIED
