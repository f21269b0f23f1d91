"""Language-model clients and the factory that selects one from configuration."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from .anthropic import AnthropicClient
from .llm_client import (
    LLMClient,
    LLMClientError,
    LLMRequest,
    LLMResponse,
    LLMResponseFormatError,
    LLMRetryError,
    LLMTransportError,
)
from .offline import OfflineClient
from .openai import OpenAIClient

__all__ = [
    "AnthropicClient",
    "LLMClient",
    "LLMClientError",
    "LLMRequest",
    "LLMResponse",
    "LLMResponseFormatError",
    "LLMRetryError",
    "LLMTransportError",
    "OfflineClient",
    "OpenAIClient",
    "available_provider",
    "build_client",
]

PROVIDERS = ("openai", "anthropic", "offline")


def available_provider() -> Optional[str]:
    """Return the hosted provider whose API key is present, preferring OpenAI."""
    if os.getenv("OPENAI_API_KEY"):
        return "openai"
    if os.getenv("ANTHROPIC_API_KEY"):
        return "anthropic"
    return None


def build_client(ai_config: Mapping[str, Any] | None, *, system_prompt: str = "") -> LLMClient:
    """Select a client from the ``ai`` configuration section.

    Raises ``ValueError`` when no provider can be chosen or its API key is
    missing.
    """
    cfg = dict(ai_config or {})
    provider = str(cfg.get("provider") or "").strip().lower() or available_provider()
    if provider is None:
        raise ValueError("No API key found. Set OPENAI_API_KEY or ANTHROPIC_API_KEY.")
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown AI provider '{provider}'. Choose from: {', '.join(PROVIDERS)}")
    if provider == "offline":
        return OfflineClient()

    kwargs: dict[str, Any] = {"system_prompt": system_prompt}
    model = cfg.get("model")
    if isinstance(model, str) and model.strip():
        kwargs["model"] = model.strip()
    api_key = cfg.get("api_key")
    if isinstance(api_key, str) and api_key.strip():
        kwargs["api_key"] = api_key.strip()
    max_tokens = cfg.get("max_tokens")
    if isinstance(max_tokens, int) and max_tokens > 0:
        kwargs["max_tokens"] = max_tokens
    temperature = cfg.get("temperature")
    if isinstance(temperature, (int, float)) and temperature >= 0:
        kwargs["temperature"] = float(temperature)
    timeout = cfg.get("timeout")
    if isinstance(timeout, (int, float)) and timeout > 0:
        kwargs["timeout"] = float(timeout)
    max_attempts = cfg.get("max_attempts")
    if isinstance(max_attempts, int) and max_attempts > 0:
        kwargs["max_attempts"] = max_attempts

    if provider == "openai":
        return OpenAIClient(**kwargs)
    return AnthropicClient(**kwargs)
