"""Render stored plans in formats a coding agent can consume."""

from __future__ import annotations

import json
from typing import Optional

import yaml

from ..schema import Plan

__all__ = ["EXPORT_FORMATS", "ExportError", "export_plan"]

EXPORT_FORMATS = ("markdown", "json", "yaml")


class ExportError(ValueError):
    """Raised when a plan cannot be rendered in the requested shape."""


def _scoped(plan: Plan, phase: Optional[int]) -> Plan:
    if phase is None:
        return plan
    selected = plan.phase_by_order(phase)
    if selected is None:
        raise ExportError(f"Plan {plan.id} has no phase {phase} (phases: 1-{len(plan.phases)})")
    return plan.model_copy(update={"phases": [selected]})


def _render_markdown(plan: Plan) -> str:
    lines = [f"# {plan.title}", ""]
    if plan.description:
        lines.extend([f"> {plan.description}", ""])
    lines.append(f"- **Plan ID**: {plan.id}")
    lines.append(f"- **Complexity**: {plan.metadata.estimated_complexity.value}")
    if plan.metadata.estimated_time:
        lines.append(f"- **Estimated Time**: {plan.metadata.estimated_time}")
    lines.append("")
    lines.append(
        "Work through the phases in order. Finish every task in a phase before starting the next one."
    )

    for phase in plan.phases:
        lines.extend(["", f"## Phase {phase.order}: {phase.name}", ""])
        if phase.dependencies:
            lines.append(f"_Requires: {', '.join(phase.dependencies)}_")
            lines.append("")
        for task in phase.tasks:
            lines.append(f"- [ ] **{task.type.value}** `{task.file}` ({task.id})")
            if task.reasoning:
                lines.append(f"  - Why: {task.reasoning}")
            for change in task.changes:
                lines.append(f"  - {change.action.value} {change.location}: {change.description}")
    return "\n".join(lines) + "\n"


def export_plan(plan: Plan, fmt: str = "markdown", *, phase: Optional[int] = None) -> str:
    """Render ``plan`` (optionally one phase) as ``markdown``, ``json`` or ``yaml``."""
    key = (fmt or "").strip().lower()
    if key not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format '{fmt}'. Choose from: {', '.join(EXPORT_FORMATS)}")

    scoped = _scoped(plan, phase)
    if key == "markdown":
        return _render_markdown(scoped)
    payload = scoped.model_dump(mode="json", by_alias=True, exclude_none=True)
    if key == "json":
        return json.dumps(payload, indent=2) + "\n"
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
