from __future__ import annotations

import json

import pytest
import yaml

from planfirst.planning.export import ExportError, export_plan
from planfirst.planning.extractor import extract_plan


@pytest.fixture()
def plan(sample_markdown: str):
    return extract_plan(sample_markdown, "Add a config loader", plan_id="plan-42")


def test_markdown_export_is_a_checklist(plan) -> None:
    rendered = export_plan(plan)

    assert rendered.startswith("# Add configuration loader\n")
    assert "- **Plan ID**: plan-42" in rendered
    assert "## Phase 1: Foundation" in rendered
    assert "_Requires: phase-1_" in rendered
    assert "- [ ] **create** `src/config/loader.py` (task-1)" in rendered
    assert "- [ ] **delete** `src/legacy_config.py` (task-2)" in rendered
    assert "  - Why: Remove `src/legacy_config.py` once callers move over" in rendered


def test_json_export_round_trips_camel_case(plan) -> None:
    data = json.loads(export_plan(plan, "json"))

    assert data["id"] == "plan-42"
    assert data["metadata"]["filesAffected"][0] == "src/config/loader.py"


def test_yaml_export_keeps_field_order(plan) -> None:
    data = yaml.safe_load(export_plan(plan, "YAML"))

    assert list(data)[:3] == ["id", "title", "description"]
    assert len(data["phases"]) == 3


def test_phase_scoped_export(plan) -> None:
    rendered = export_plan(plan, "markdown", phase=3)

    assert "## Phase 3: Testing" in rendered
    assert "Phase 1" not in rendered
    assert json.loads(export_plan(plan, "json", phase=2))["phases"][0]["order"] == 2


def test_export_errors(plan) -> None:
    with pytest.raises(ExportError, match="Unsupported export format"):
        export_plan(plan, "xml")
    with pytest.raises(ExportError, match="no phase 4"):
        export_plan(plan, phase=4)
