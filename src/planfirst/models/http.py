"""Minimal JSON-over-HTTPS transport shared by the hosted model clients."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from typing import Any, Dict, Mapping, Optional

from .llm_client import LLMTransportError

__all__ = ["post_json", "resolve_timeout"]


def resolve_timeout(timeout: float) -> float:
    """Apply the ``PLANFIRST_TIMEOUT`` override when it holds a positive number."""
    override = os.getenv("PLANFIRST_TIMEOUT")
    if override:
        try:
            parsed = float(override)
        except ValueError:
            return timeout
        if parsed > 0:
            return parsed
    return timeout


def post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Mapping[str, str],
    *,
    timeout: float,
    label: str,
) -> str:
    """POST ``payload`` as JSON and return the decoded response body."""
    data = json.dumps(payload).encode("utf-8")
    request_headers = {"Content-Type": "application/json", **headers}
    request = urllib.request.Request(url, data=data, headers=request_headers, method="POST")

    status: Optional[int]
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            raw = response.read()
            status = getattr(response, "status", 200)
    except TimeoutError as error:  # pragma: no cover - network-dependent
        raise LLMTransportError(f"{label} response timed out.") from error
    except urllib.error.HTTPError as error:  # pragma: no cover - network-dependent
        message = error.read().decode("utf-8", errors="ignore")
        raise LLMTransportError(f"{label} API request failed: HTTP {error.code} - {message}") from error
    except urllib.error.URLError as error:  # pragma: no cover - network-dependent
        raise LLMTransportError(f"Failed to reach {label} endpoint: {error.reason}") from error

    if status is not None and status >= 400:
        raise LLMTransportError(f"Unexpected HTTP status {status}")
    return raw.decode("utf-8")
