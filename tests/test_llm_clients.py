from __future__ import annotations

import json
from typing import Any

import pytest

from planfirst.models import (
    AnthropicClient,
    LLMRequest,
    LLMResponseFormatError,
    LLMRetryError,
    LLMTransportError,
    OfflineClient,
    OpenAIClient,
    available_provider,
    build_client,
)
from planfirst.models.http import resolve_timeout


def _openai_payload(text: str) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-mock",
            "model": "gpt-4o-2024-08-06",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": text}}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
        }
    )


def _anthropic_payload(*texts: str) -> str:
    return json.dumps(
        {
            "id": "msg_mock",
            "model": "claude-sonnet-4-20250514",
            "content": [{"type": "text", "text": text} for text in texts] + [{"type": "tool_use", "id": "x"}],
            "usage": {"input_tokens": 10, "output_tokens": 4},
        }
    )


def test_openai_client_builds_chat_payload_and_parses_choice() -> None:
    seen: list[dict[str, Any]] = []

    def transport(payload: dict[str, Any]) -> str:
        seen.append(payload)
        return _openai_payload("# Plan")

    client = OpenAIClient(model="gpt-4o", system_prompt="default system", transport=transport)
    response = client.complete(LLMRequest(prompt="Do it", context="Project: demo", max_tokens=100))

    assert response.content == "# Plan"
    assert response.model == "gpt-4o-2024-08-06"
    assert response.usage["total_tokens"] == 17
    payload = seen[0]
    assert payload["max_tokens"] == 100
    assert payload["temperature"] == 0.7
    assert payload["messages"][0] == {"role": "system", "content": "default system"}
    assert payload["messages"][1]["content"] == "# Context\n\nProject: demo\n\n# Task\n\nDo it"


def test_anthropic_client_joins_text_blocks() -> None:
    seen: list[dict[str, Any]] = []

    def transport(payload: dict[str, Any]) -> str:
        seen.append(payload)
        return _anthropic_payload("# Plan\n", "## Phase 1: A\n")

    client = AnthropicClient(transport=transport)
    response = client.complete(LLMRequest(prompt="Do it", system_prompt="override"))

    assert response.content == "# Plan\n## Phase 1: A\n"
    assert response.usage == {"prompt_tokens": 10, "completion_tokens": 4, "total_tokens": 14}
    assert seen[0]["system"] == "override"
    assert seen[0]["messages"] == [{"role": "user", "content": "# Task\n\nDo it"}]


def test_transport_failures_are_retried_then_surface_retry_error() -> None:
    calls = {"count": 0}

    def flaky(_: dict[str, Any]) -> str:
        calls["count"] += 1
        if calls["count"] < 3:
            raise LLMTransportError("boom")
        return _openai_payload("ok")

    client = OpenAIClient(transport=flaky, max_attempts=3, retry_delay=0)
    assert client.complete(LLMRequest(prompt="x")).content == "ok"

    def always_down(_: dict[str, Any]) -> str:
        raise LLMTransportError("down")

    failing = OpenAIClient(transport=always_down, max_attempts=2, retry_delay=0)
    with pytest.raises(LLMRetryError) as excinfo:
        failing.complete(LLMRequest(prompt="x"))
    assert isinstance(excinfo.value.__cause__, LLMTransportError)


def test_empty_or_invalid_responses_raise_format_error() -> None:
    empty = OpenAIClient(transport=lambda _: _openai_payload("   "))
    with pytest.raises(LLMResponseFormatError):
        empty.complete(LLMRequest(prompt="x"))

    garbage = AnthropicClient(transport=lambda _: "<html>")
    with pytest.raises(LLMResponseFormatError):
        garbage.complete(LLMRequest(prompt="x"))


def test_missing_api_keys_raise_value_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        OpenAIClient()
    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        AnthropicClient()


def test_offline_client_returns_phased_markdown() -> None:
    response = OfflineClient().complete(LLMRequest(prompt="x", metadata={"description": "Add user login"}))

    assert response.content.startswith("# Plan: Add user login\n")
    assert "## Phase 1: Foundation" in response.content
    assert "Create `src/add_user_login.py`" in response.content
    assert "Add `tests/test_add_user_login.py`" in response.content


def test_build_client_selects_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    assert available_provider() is None
    with pytest.raises(ValueError, match="No API key"):
        build_client({"provider": ""})
    with pytest.raises(ValueError, match="Unknown AI provider"):
        build_client({"provider": "mystery"})
    assert isinstance(build_client({"provider": "offline"}), OfflineClient)

    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    assert available_provider() == "anthropic"
    client = build_client({"provider": "", "model": "claude-test", "timeout": 5})
    assert isinstance(client, AnthropicClient)
    assert client.model == "claude-test"

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert isinstance(build_client(None), OpenAIClient)
    assert isinstance(build_client({"provider": "anthropic"}), AnthropicClient)


def test_resolve_timeout_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PLANFIRST_TIMEOUT", raising=False)
    assert resolve_timeout(30.0) == 30.0

    monkeypatch.setenv("PLANFIRST_TIMEOUT", "45")
    assert resolve_timeout(30.0) == 45.0

    monkeypatch.setenv("PLANFIRST_TIMEOUT", "soon")
    assert resolve_timeout(30.0) == 30.0
