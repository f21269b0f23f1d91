"""Ask a model for planning markdown and turn it into a structured plan."""

from __future__ import annotations

import logging
from typing import Optional

from ..analysis import ProjectSummary, render_context
from ..models.llm_client import LLMClient, LLMRequest
from ..prompts import PLANNER_SYSTEM_PROMPT, render_plan_prompt
from ..schema import Plan
from .extractor import PlanExtractor

LOGGER = logging.getLogger(__name__)

PLAN_MAX_TOKENS = 8000
PLAN_TEMPERATURE = 0.7

__all__ = ["generate_plan"]


def generate_plan(
    client: LLMClient,
    description: str,
    summary: Optional[ProjectSummary] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> tuple[Plan, str]:
    """Return ``(plan, markdown)`` for ``description``.

    LLM client errors propagate; extraction itself never fails.
    """
    log = logger or LOGGER
    request = LLMRequest(
        prompt=render_plan_prompt(description),
        context=render_context(summary) if summary is not None else None,
        system_prompt=PLANNER_SYSTEM_PROMPT,
        max_tokens=PLAN_MAX_TOKENS,
        temperature=PLAN_TEMPERATURE,
        metadata={"phase": "plan", "description": description},
    )
    log.debug("Requesting plan from %s (%s)", client.provider, client.model)
    response = client.complete(request)

    dependencies = summary.dependencies if summary is not None else []
    plan = PlanExtractor(logger=log).extract(response.content, description, dependencies=dependencies)
    return plan, response.content
