"""Phase bookkeeping: which phases may run next and how plan status follows."""

from __future__ import annotations

from typing import Sequence

from ..schema import Phase, PhaseStatus, Plan, PlanStatus, VerificationResult, VerificationStatus

__all__ = [
    "PhaseNotFoundError",
    "all_phases_completed",
    "executable_phases",
    "mark_verified",
    "update_phase_status",
]


class PhaseNotFoundError(LookupError):
    """Raised when a phase order does not exist in the plan."""


def executable_phases(phases: Sequence[Phase]) -> list[Phase]:
    """Return pending phases whose dependencies have all completed."""
    status_by_id = {phase.id: phase.status for phase in phases}
    return [
        phase
        for phase in phases
        if phase.status == PhaseStatus.PENDING
        and all(status_by_id.get(dep) == PhaseStatus.COMPLETED for dep in phase.dependencies)
    ]


def all_phases_completed(phases: Sequence[Phase]) -> bool:
    return all(phase.status == PhaseStatus.COMPLETED for phase in phases)


def update_phase_status(plan: Plan, order: int, status: PhaseStatus | str) -> Phase:
    """Set the status of the phase at ``order`` and roll the plan status forward."""
    phase = plan.phase_by_order(order)
    if phase is None:
        raise PhaseNotFoundError(f"Plan {plan.id} has no phase {order}")
    phase.status = PhaseStatus(status)

    if all_phases_completed(plan.phases):
        plan.status = PlanStatus.COMPLETED
    elif any(item.status != PhaseStatus.PENDING for item in plan.phases):
        if plan.status in {PlanStatus.DRAFT, PlanStatus.READY}:
            plan.status = PlanStatus.IN_PROGRESS
    return phase


def mark_verified(plan: Plan, result: VerificationResult) -> bool:
    """Promote ``plan`` to verified when a passing run covered every one of its tasks.

    Phase-scoped, task-filtered and empty runs never promote the plan.
    """
    if result.plan_id != plan.id or result.phase_id is not None:
        return False
    planned = len(plan.iter_tasks())
    if planned == 0 or result.summary.total_tasks != planned:
        return False
    if result.overall_status != VerificationStatus.PASS:
        return False
    plan.status = PlanStatus.VERIFIED
    return True
