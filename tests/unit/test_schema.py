from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from planfirst.schema import Phase, Plan, PlanMetadata, Task, TaskType, TaskVerification, VerificationStatus


def test_plan_json_uses_camel_case_field_names() -> None:
    plan = Plan(
        id="plan-1",
        title="t",
        description="d",
        phases=[Phase(id="phase-1", order=1, name="One", tasks=[Task(id="task-1", file="a.py", description="x")])],
        metadata=PlanMetadata(files_affected=["a.py"], estimated_time="2 hours"),
    )

    data = json.loads(plan.to_json())

    assert data["metadata"]["filesAffected"] == ["a.py"]
    assert data["metadata"]["estimatedComplexity"] == "low"
    assert data["metadata"]["estimatedTime"] == "2 hours"
    assert data["phases"][0]["tasks"][0]["type"] == "modify"
    assert "dependencies" not in data["phases"][0]["tasks"][0]
    assert Plan.model_validate_json(plan.to_json()) == plan


def test_records_accept_python_field_names_too() -> None:
    result = TaskVerification(task_id="task-1", file="a.py", status=VerificationStatus.PASS, match_percentage=80)

    assert json.loads(result.to_json())["matchPercentage"] == 80.0


def test_unknown_fields_and_bad_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Task.model_validate({"id": "t", "file": "a.py", "description": "x", "priority": 1})
    with pytest.raises(ValidationError):
        Task(id="t", type="copy", file="a.py", description="x")
    with pytest.raises(ValidationError):
        Phase(id="phase-0", order=0, name="zero")
    with pytest.raises(ValidationError):
        TaskVerification(task_id="t", file="a.py", status=VerificationStatus.PASS, match_percentage=120)


def test_iter_tasks_walks_phases_in_order() -> None:
    plan = Plan(
        id="p",
        title="t",
        description="d",
        phases=[
            Phase(id="phase-1", order=1, name="A", tasks=[Task(id="task-1", file="a.py", description="x")]),
            Phase(
                id="phase-2",
                order=2,
                name="B",
                tasks=[
                    Task(id="task-1", type=TaskType.CREATE, file="b.py", description="x"),
                    Task(id="task-2", type=TaskType.DELETE, file="c.py", description="x"),
                ],
            ),
        ],
    )

    assert [task.file for task in plan.iter_tasks()] == ["a.py", "b.py", "c.py"]
    assert plan.phase_by_order(2).name == "B"
    assert plan.phase_by_order(3) is None
