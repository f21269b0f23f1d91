"""Anthropic client that speaks the Messages API."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from .http import post_json, resolve_timeout
from .llm_client import LLMClient, LLMRequest, LLMResponse, LLMResponseFormatError, Transport

__all__ = ["ANTHROPIC_VERSION", "AnthropicClient", "DEFAULT_ANTHROPIC_MODEL"]

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicClient(LLMClient):
    """Thin adapter around ``POST /v1/messages``."""

    provider = "anthropic"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: str = "https://api.anthropic.com/v1",
        model: str = DEFAULT_ANTHROPIC_MODEL,
        system_prompt: str = "",
        transport: Optional[Transport] = None,
        timeout: float = 120.0,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        super().__init__(
            model,
            max_tokens=max_tokens,
            temperature=temperature,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
        )
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._base_url = base_url.rstrip("/")
        self._system_prompt = system_prompt
        self._timeout = resolve_timeout(timeout)
        self._transport = transport or self._http_transport

        if transport is None and not self._api_key:
            raise ValueError("Anthropic API key not found. Set ANTHROPIC_API_KEY.")

    def _build_payload(self, request: LLMRequest) -> Dict[str, Any]:
        return {
            "model": self._model,
            "max_tokens": request.max_tokens or self._max_tokens,
            "temperature": request.temperature if request.temperature is not None else self._temperature,
            "system": request.system_prompt or self._system_prompt,
            "messages": [{"role": "user", "content": request.render_user_prompt()}],
        }

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        return self._transport(payload)

    def _http_transport(self, payload: Dict[str, Any]) -> str:
        return post_json(
            f"{self._base_url}/messages",
            payload,
            {"x-api-key": str(self._api_key), "anthropic-version": ANTHROPIC_VERSION},
            timeout=self._timeout,
            label="Anthropic",
        )

    def _parse_response(self, raw: str) -> LLMResponse:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as error:
            raise LLMResponseFormatError(f"Anthropic returned invalid JSON: {raw[:200]}") from error
        if not isinstance(data, dict):
            raise LLMResponseFormatError("Anthropic response was not a JSON object.")

        # Messages API returns ordered content blocks; keep the text ones.
        texts = [
            str(block.get("text") or "")
            for block in data.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        usage_data = data.get("usage") or {}
        usage: Dict[str, int] = {}
        if isinstance(usage_data, dict):
            prompt_tokens = int(usage_data.get("input_tokens") or 0)
            completion_tokens = int(usage_data.get("output_tokens") or 0)
            usage = {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            }
        return LLMResponse(content="".join(texts), model=str(data.get("model") or self._model), usage=usage)
