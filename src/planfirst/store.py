"""Durable storage for generated plans and their source markdown."""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .schema import Plan

LOGGER = logging.getLogger(__name__)

__all__ = ["PlanNotFoundError", "PlanStore", "PlanStoreError"]


class PlanStoreError(RuntimeError):
    """Raised when a stored plan cannot be read or written."""


class PlanNotFoundError(PlanStoreError):
    """Raised when no plan exists for the requested identifier."""


def _checked_id(plan_id: str) -> str:
    if not plan_id or plan_id in {".", ".."} or any(sep in plan_id for sep in ("/", "\\")):
        raise PlanStoreError(f"Invalid plan id: {plan_id!r}")
    return plan_id


def _sort_key(plan: Plan) -> float:
    """Order by creation time; naive timestamps from hand-edited files count as UTC."""
    stamp: datetime = plan.timestamp
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.timestamp()


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` next to ``path`` and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class PlanStore:
    """Directory of ``<plan-id>.json`` plans with ``<plan-id>.md`` sources alongside."""

    def __init__(self, plans_dir: Path | str) -> None:
        self.plans_dir = Path(plans_dir)

    def json_path(self, plan_id: str) -> Path:
        return self.plans_dir / f"{_checked_id(plan_id)}.json"

    def markdown_path(self, plan_id: str) -> Path:
        return self.plans_dir / f"{_checked_id(plan_id)}.md"

    def save(self, plan: Plan, markdown: str) -> tuple[Path, Path]:
        """Persist the structured plan and the raw markdown it came from."""
        json_path = self.json_path(plan.id)
        markdown_path = self.markdown_path(plan.id)
        _atomic_write(json_path, plan.to_json() + "\n")
        _atomic_write(markdown_path, markdown)
        LOGGER.debug("Saved plan %s to %s", plan.id, json_path)
        return json_path, markdown_path

    def update(self, plan: Plan) -> Path:
        """Rewrite the JSON for an existing plan, leaving its markdown untouched."""
        json_path = self.json_path(plan.id)
        if not json_path.exists():
            raise PlanNotFoundError(f"Plan not found: {plan.id}")
        _atomic_write(json_path, plan.to_json() + "\n")
        return json_path

    def load(self, plan_id: str) -> Plan:
        json_path = self.json_path(plan_id)
        if not json_path.exists():
            raise PlanNotFoundError(f"Plan not found: {plan_id}")
        return self._read(json_path)

    def load_markdown(self, plan_id: str) -> Optional[str]:
        path = self.markdown_path(plan_id)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def list_plans(self) -> List[Plan]:
        """Return every readable plan, oldest first; unreadable files are skipped."""
        if not self.plans_dir.is_dir():
            return []
        plans: List[Plan] = []
        for path in sorted(self.plans_dir.glob("*.json")):
            try:
                plans.append(self._read(path))
            except PlanStoreError as error:
                LOGGER.warning("Skipping unreadable plan %s: %s", path, error)
        plans.sort(key=_sort_key)
        return plans

    def latest(self) -> Optional[Plan]:
        plans = self.list_plans()
        return plans[-1] if plans else None

    @staticmethod
    def _read(path: Path) -> Plan:
        try:
            return Plan.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as error:
            raise PlanStoreError(f"Failed to load plan from {path}: {error}") from error
