"""Client base class shared by all language-model integrations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

__all__ = [
    "LLMClient",
    "LLMClientError",
    "LLMRequest",
    "LLMResponse",
    "LLMResponseFormatError",
    "LLMRetryError",
    "LLMTransportError",
    "Transport",
]

LOGGER = logging.getLogger(__name__)

Transport = Callable[[Dict[str, Any]], str]


class LLMClientError(RuntimeError):
    """Base error raised for language-model client failures."""


class LLMTransportError(LLMClientError):
    """Raised when the underlying transport fails to return a response."""


class LLMResponseFormatError(LLMClientError):
    """Raised when the provider response carries no usable text."""


class LLMRetryError(LLMClientError):
    """Raised after exhausting retries due to repeated transport failures."""


@dataclass(slots=True)
class LLMRequest:
    """Prompt sent to a model; ``context`` is prepended as its own section."""

    prompt: str
    context: Optional[str] = None
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def render_user_prompt(self) -> str:
        parts: list[str] = []
        if self.context:
            parts.append(f"# Context\n\n{self.context}\n\n")
        parts.append(f"# Task\n\n{self.prompt}")
        return "".join(parts)


@dataclass(slots=True)
class LLMResponse:
    """Text returned by a model plus token accounting when the provider reports it."""

    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)


class LLMClient:
    """High-level helper that retries transport failures and normalises responses."""

    provider = "base"

    def __init__(
        self,
        model: str,
        *,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay

    @property
    def model(self) -> str:
        """Return the default model name configured for this client."""
        return self._model

    def complete(self, request: LLMRequest) -> LLMResponse:
        """Invoke the underlying model and return its text response."""
        last_error: Optional[Exception] = None
        payload = self._build_payload(request)

        for attempt in range(1, self._max_attempts + 1):
            try:
                raw = self._raw_invoke(payload)
                response = self._parse_response(raw)
            except LLMTransportError as error:
                last_error = error
                LOGGER.warning(
                    "%s request failed (attempt %d/%d): %s",
                    self.provider,
                    attempt,
                    self._max_attempts,
                    error,
                )
                if attempt >= self._max_attempts:
                    break
                time.sleep(self._retry_delay)
                continue

            if not response.content.strip():
                raise LLMResponseFormatError(f"{self.provider} returned an empty response.")
            LOGGER.debug("Received %d character(s) from %s", len(response.content), response.model)
            return response

        raise LLMRetryError(
            f"Failed to get a response after {self._max_attempts} attempt(s) for model {self._model}"
        ) from last_error

    def _build_payload(self, request: LLMRequest) -> Dict[str, Any]:
        """Render a transport-ready payload. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement _build_payload().")

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        """Perform the transport call. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement _raw_invoke().")

    def _parse_response(self, raw: str) -> LLMResponse:
        """Extract text from a raw transport response. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement _parse_response().")
