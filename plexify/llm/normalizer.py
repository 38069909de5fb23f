"""Convert raw provider payloads into a single StandardResponse shape."""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Literal, Union


@dataclass(frozen=True)
class AnthropicRaw:
    payload: dict[str, Any]
    kind: Literal["anthropic"] = "anthropic"


@dataclass(frozen=True)
class OpenAIRaw:
    payload: dict[str, Any]
    kind: Literal["openai"] = "openai"


RawResponse = Union[AnthropicRaw, OpenAIRaw]


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        # Both spellings are kept; older clients read the snake_case keys.
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cost": self.cost,
        }


@dataclass(frozen=True)
class StandardResponse:
    content: str
    provider: str
    model: str
    usage: Usage
    latency: int
    metadata: dict[str, Any] = field(default_factory=dict)
    raw: Any = None

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        data = {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "usage": self.usage.to_dict(),
            "latency": self.latency,
            "metadata": dict(self.metadata),
        }
        if include_raw:
            data["raw"] = self.raw
        return data


def tag_response(raw: Any, provider: str) -> RawResponse | None:
    """Wrap an untyped vendor payload in its tagged variant (None if unknown)."""
    if isinstance(raw, (AnthropicRaw, OpenAIRaw)):
        return raw
    if not isinstance(raw, dict):
        return None
    if provider == "anthropic":
        return AnthropicRaw(payload=raw)
    if provider == "openai":
        return OpenAIRaw(payload=raw)
    return None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _normalize_anthropic(raw: AnthropicRaw, latency: int) -> StandardResponse:
    payload = raw.payload
    blocks = payload.get("content") or []
    texts = [
        str(b.get("text", ""))
        for b in blocks
        if isinstance(b, dict) and b.get("type") == "text"
    ]
    usage = payload.get("usage") or {}
    return StandardResponse(
        content="\n".join(texts),
        provider="anthropic",
        model=str(payload.get("model", "")),
        usage=Usage(
            input_tokens=_as_int(usage.get("input_tokens")),
            output_tokens=_as_int(usage.get("output_tokens")),
        ),
        latency=latency,
        metadata={"stopReason": payload.get("stop_reason"), "id": payload.get("id")},
        raw=payload,
    )


def _normalize_openai(raw: OpenAIRaw, latency: int) -> StandardResponse:
    payload = raw.payload
    choices = payload.get("choices") or []
    choice = choices[0] if choices and isinstance(choices[0], dict) else {}
    message = choice.get("message") or {}
    usage = payload.get("usage") or {}
    return StandardResponse(
        content=message.get("content") or "",
        provider="openai",
        model=str(payload.get("model", "")),
        usage=Usage(
            input_tokens=_as_int(usage.get("prompt_tokens")),
            output_tokens=_as_int(usage.get("completion_tokens")),
        ),
        latency=latency,
        metadata={"finishReason": choice.get("finish_reason"), "id": payload.get("id")},
        raw=payload,
    )


def normalize_response(raw: Any, provider: str, start_time: float) -> StandardResponse:
    """Normalize a raw provider response.

    ``start_time`` is a ``time.monotonic()`` reading taken before the call;
    latency is reported in milliseconds. Unknown providers are passed through
    with the payload stringified and zero usage. This function never raises on
    shape problems.
    """
    latency = max(int((time.monotonic() - start_time) * 1000), 0)
    tagged = tag_response(raw, provider)

    if isinstance(tagged, AnthropicRaw):
        return _normalize_anthropic(tagged, latency)
    if isinstance(tagged, OpenAIRaw):
        return _normalize_openai(tagged, latency)

    return StandardResponse(
        content=str(raw),
        provider=provider,
        model="unknown",
        usage=Usage(),
        latency=latency,
        metadata={},
        raw=raw,
    )


_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def extract_json(text: str) -> Any:
    """Parse JSON that may be wrapped in a markdown code fence.

    Raises ``json.JSONDecodeError`` when the stripped text is not valid JSON.
    """
    stripped = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)).strip()
    return json.loads(stripped)
