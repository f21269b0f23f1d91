"""Local stub that synthesises a deterministic markdown plan for demos/tests."""

from __future__ import annotations

import re
from typing import Any, Dict

from .llm_client import LLMClient, LLMRequest, LLMResponse

__all__ = ["OfflineClient"]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _slug(text: str, fallback: str = "feature") -> str:
    words = _SLUG_RE.sub(" ", text.lower()).split()[:3]
    return "_".join(words) or fallback


class OfflineClient(LLMClient):
    """Returns a fixed three-phase plan shaped around the request description."""

    provider = "offline"

    def __init__(self) -> None:
        super().__init__("offline", max_attempts=1, retry_delay=0.0)

    def _build_payload(self, request: LLMRequest) -> Dict[str, Any]:
        return {
            "model": self._model,
            "prompt": request.render_user_prompt(),
            "metadata": dict(request.metadata),
        }

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        metadata = payload.get("metadata") or {}
        description = str(metadata.get("description") or "the requested feature").strip()
        module = _slug(description)
        return "\n".join(
            [
                f"# Plan: {description}",
                "",
                f"This plan delivers {description} in three small phases.",
                "",
                "## Phase 1: Foundation",
                "",
                f"Create `src/{module}.py` to hold the core logic for {description}.",
                f"File: `src/{module}.py`",
                "",
                "## Phase 2: Integration",
                "",
                f"Update `src/main.py` so the entry point wires in the new {module} module.",
                "",
                "## Phase 3: Testing",
                "",
                f"Add `tests/test_{module}.py` covering the main behaviour and its edge cases.",
                "",
            ]
        )

    def _parse_response(self, raw: str) -> LLMResponse:
        return LLMResponse(content=raw, model=self._model, usage={})
