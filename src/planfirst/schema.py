"""Typed records for plans and verification results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class RecordModel(BaseModel):
    """Base Pydantic model with strict field handling and camelCase JSON keys."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self, *, indent: int | None = 2) -> str:
        """Serialise the record using its persisted (camelCase) field names."""
        return self.model_dump_json(by_alias=True, indent=indent, exclude_none=True)


class PlanStatus(str, Enum):
    """Lifecycle states for a plan."""

    DRAFT = "draft"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    VERIFIED = "verified"


class PhaseStatus(str, Enum):
    """Lifecycle states for a phase."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskType(str, Enum):
    """Kind of file-level work a task describes."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"
    MOVE = "move"


class ChangeAction(str, Enum):
    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    REPLACE = "replace"
    REFACTOR = "refactor"
    COMMENT = "comment"


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VerificationStatus(str, Enum):
    """Outcome of verifying a task or a whole plan."""

    PASS = "pass"
    PARTIAL = "partial"
    FAIL = "fail"
    ERROR = "error"


class IssueSeverity(str, Enum):
    """Severity classification for verification findings."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(str, Enum):
    MISSING_IMPLEMENTATION = "missing-implementation"
    INCORRECT_IMPLEMENTATION = "incorrect-implementation"
    REGRESSION = "regression"
    EXTRA_CHANGES = "extra-changes"
    DEPENDENCY_ISSUE = "dependency-issue"
    SYNTAX_ERROR = "syntax-error"
    LOGIC_ERROR = "logic-error"


class Change(RecordModel):
    """Individual edit inside a task, used as verification evidence."""

    location: str
    action: ChangeAction
    description: str
    code: Optional[str] = None
    rationale: str = ""


class Task(RecordModel):
    """Single file-level unit of planned work within a phase."""

    id: str
    type: TaskType = TaskType.MODIFY
    file: str
    description: str
    reasoning: str = ""
    changes: List[Change] = Field(default_factory=list)
    dependencies: Optional[List[str]] = None


class Phase(RecordModel):
    """Ordered, dependency-chained group of tasks."""

    id: str
    order: int = Field(ge=1)
    name: str
    description: str = ""
    tasks: List[Task] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    status: PhaseStatus = PhaseStatus.PENDING


class PlanMetadata(RecordModel):
    """Aggregates derived from the plan content."""

    estimated_complexity: Complexity = Complexity.LOW
    files_affected: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    estimated_time: Optional[str] = None
    tags: Optional[List[str]] = None


class Plan(RecordModel):
    """Top-level structured plan derived from a feature request."""

    id: str
    title: str
    description: str
    timestamp: datetime = Field(default_factory=utc_now)
    phases: List[Phase] = Field(default_factory=list)
    metadata: PlanMetadata = Field(default_factory=PlanMetadata)
    status: PlanStatus = PlanStatus.DRAFT

    def phase_by_order(self, order: int) -> Optional[Phase]:
        for phase in self.phases:
            if phase.order == order:
                return phase
        return None

    def iter_tasks(self) -> List[Task]:
        """Return every task in phase order, then task order."""
        return [task for phase in self.phases for task in phase.tasks]


class Issue(RecordModel):
    """Single verification finding attached to a task result."""

    severity: IssueSeverity
    type: IssueType
    message: str
    file: str
    line: Optional[int] = None
    suggestion: Optional[str] = None


class TaskVerification(RecordModel):
    """Per-task verification outcome."""

    task_id: str
    file: str
    status: VerificationStatus
    issues: List[Issue] = Field(default_factory=list)
    match_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class VerificationSummary(RecordModel):
    total_tasks: int = 0
    tasks_completed: int = 0
    tasks_partial: int = 0
    tasks_missing: int = 0
    critical_issues: int = 0
    warnings: int = 0


class VerificationResult(RecordModel):
    """Aggregate verdict for a plan, or one phase of it, against a project tree."""

    plan_id: str
    phase_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    overall_status: VerificationStatus
    task_results: List[TaskVerification] = Field(default_factory=list)
    summary: VerificationSummary = Field(default_factory=VerificationSummary)
    recommendations: List[str] = Field(default_factory=list)


__all__ = [
    "Change",
    "ChangeAction",
    "Complexity",
    "Issue",
    "IssueSeverity",
    "IssueType",
    "Phase",
    "PhaseStatus",
    "Plan",
    "PlanMetadata",
    "PlanStatus",
    "RecordModel",
    "Task",
    "TaskType",
    "TaskVerification",
    "VerificationResult",
    "VerificationStatus",
    "VerificationSummary",
    "utc_now",
]
