"""OpenAI client that speaks the Chat Completions API."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from .http import post_json, resolve_timeout
from .llm_client import LLMClient, LLMRequest, LLMResponse, LLMResponseFormatError, Transport

__all__ = ["DEFAULT_OPENAI_MODEL", "OpenAIClient"]

DEFAULT_OPENAI_MODEL = "gpt-4o"


class OpenAIClient(LLMClient):
    """Thin adapter around ``POST /v1/chat/completions``."""

    provider = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = DEFAULT_OPENAI_MODEL,
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
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._base_url = base_url.rstrip("/")
        self._system_prompt = system_prompt
        self._timeout = resolve_timeout(timeout)
        self._transport = transport or self._http_transport

        if transport is None and not self._api_key:
            raise ValueError("OpenAI API key not found. Set OPENAI_API_KEY.")

    def _build_payload(self, request: LLMRequest) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": request.system_prompt or self._system_prompt},
            {"role": "user", "content": request.render_user_prompt()},
        ]
        return {
            "model": self._model,
            "messages": messages,
            "max_tokens": request.max_tokens or self._max_tokens,
            "temperature": request.temperature if request.temperature is not None else self._temperature,
        }

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        return self._transport(payload)

    def _http_transport(self, payload: Dict[str, Any]) -> str:
        return post_json(
            f"{self._base_url}/chat/completions",
            payload,
            {"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
            label="OpenAI",
        )

    def _parse_response(self, raw: str) -> LLMResponse:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as error:
            raise LLMResponseFormatError(f"OpenAI returned invalid JSON: {raw[:200]}") from error
        if not isinstance(data, dict):
            raise LLMResponseFormatError("OpenAI response was not a JSON object.")

        content = ""
        choices = data.get("choices") or []
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            if isinstance(message, dict):
                content = str(message.get("content") or "")

        usage_data = data.get("usage") or {}
        usage: Dict[str, int] = {}
        if isinstance(usage_data, dict):
            usage = {
                "prompt_tokens": int(usage_data.get("prompt_tokens") or 0),
                "completion_tokens": int(usage_data.get("completion_tokens") or 0),
                "total_tokens": int(usage_data.get("total_tokens") or 0),
            }
        return LLMResponse(content=content, model=str(data.get("model") or self._model), usage=usage)
