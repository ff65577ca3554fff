"""Parse Converse response envelopes into LLMResponse."""

from __future__ import annotations

from collections.abc import Mapping

from .data_structures import FinishReason, LLMResponse, UsageInfo
from .errors import MalformedResponse
from .tool_codec import decode_content_blocks

__all__ = ["STOP_REASONS", "map_stop_reason", "parse_usage", "parse_converse_response"]

STOP_REASONS: Mapping[str, FinishReason] = {
    "tool_use": FinishReason.TOOL_CALLS,
    "max_tokens": FinishReason.LENGTH,
    "end_turn": FinishReason.STOP,
}

USAGE_KEYS = ("inputTokens", "outputTokens", "totalTokens")


def map_stop_reason(stop_reason: object) -> FinishReason:
    """Map a Converse stopReason to a FinishReason.

    Total: unset, empty and unrecognized signals all map to STOP.
    """
    if not isinstance(stop_reason, str):
        return FinishReason.STOP
    return STOP_REASONS.get(stop_reason, FinishReason.STOP)


def _count(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    return 0


def parse_usage(raw: object) -> UsageInfo | None:
    """Copy token counts verbatim; None when the backend reported nothing."""
    if not isinstance(raw, Mapping) or not any(key in raw for key in USAGE_KEYS):
        return None
    prompt_tokens = _count(raw.get("inputTokens"))
    completion_tokens = _count(raw.get("outputTokens"))
    total = raw.get("totalTokens")
    return UsageInfo(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=(
            _count(total) if total is not None else prompt_tokens + completion_tokens
        ),
    )


def parse_converse_response(
    data: Mapping[str, object], provider: str = "Bedrock"
) -> LLMResponse:
    """Parse one Converse response envelope.

    Converse response structure:
    {
        "output": {
            "message": {
                "role": "assistant",
                "content": [{"text": "..."}, {"toolUse": {...}}]
            }
        },
        "stopReason": "end_turn",
        "usage": {"inputTokens": 10, "outputTokens": 20, "totalTokens": 30}
    }

    Raises:
        MalformedResponse: If the envelope has no assistant message
    """
    output = data.get("output")
    message = output.get("message") if isinstance(output, Mapping) else None
    if not isinstance(message, Mapping):
        raise MalformedResponse(
            f"unexpected output type: expected a message, got {output!r}",
            provider=provider,
        )

    raw_content = message.get("content", [])
    if not isinstance(raw_content, list):
        raise MalformedResponse(
            f"message content must be a list, got {type(raw_content).__name__}",
            provider=provider,
        )

    content, tool_calls = decode_content_blocks(raw_content)

    return LLMResponse(
        content=content,
        tool_calls=tool_calls,
        finish_reason=map_stop_reason(data.get("stopReason")),
        usage=parse_usage(data.get("usage")),
    )
