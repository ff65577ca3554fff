"""Tool-call encoding and decoding between canonical turns and Converse blocks.

Encoding turns one canonical Message into the content blocks it contributes
to a backend turn. Decoding walks the blocks of a backend reply and recovers
the response text and tool calls.

Both directions are best-effort about argument payloads: a legacy argument
string that does not parse, or a reply document that does not decode,
leaves that one call with empty arguments and never fails the whole
request or response.
"""

from __future__ import annotations

import json
import logging
import warnings
from collections.abc import Mapping, Sequence

from .data_structures import (
    ContentBlock,
    JSONValue,
    Message,
    Role,
    TextBlock,
    ToolCall,
    ToolDefinition,
    ToolResultBlock,
    ToolSpecDict,
    ToolUseBlock,
    assert_never,
)
from .errors import DecodeWarning

__all__ = [
    "resolve_arguments",
    "resolve_name",
    "encode_tool_call",
    "encode_message",
    "encode_tool_definitions",
    "decode_document",
    "parse_content_block",
    "decode_content_blocks",
]

logger = logging.getLogger(__name__)


# =============================================================================
# Encoding (canonical -> backend)
# =============================================================================


def resolve_arguments(call: ToolCall) -> dict[str, JSONValue]:
    """Return the call's arguments, hydrating them from the legacy string.

    The legacy string is only consulted when ``arguments`` is empty. It must
    parse to a JSON object; anything else leaves the arguments empty.
    """
    if call.arguments or call.function is None or not call.function.arguments:
        return call.arguments
    try:
        parsed = json.loads(call.function.arguments)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.debug("Ignoring unparsable legacy arguments for %s: %s", call.id, e)
        return {}
    if not isinstance(parsed, dict):
        logger.debug("Ignoring non-object legacy arguments for %s", call.id)
        return {}
    return parsed


def resolve_name(call: ToolCall) -> str:
    """Return the call's name, falling back to the legacy function name."""
    if call.name or call.function is None:
        return call.name
    return call.function.name


def encode_tool_call(call: ToolCall) -> ToolUseBlock:
    """Encode one canonical tool call as a ``toolUse`` block.

    Raises:
        ValueError: If the call has no id or no name
    """
    return ToolUseBlock(
        tool_use_id=call.id,
        name=resolve_name(call),
        input=resolve_arguments(call),
    )


def encode_message(msg: Message) -> list[ContentBlock]:
    """Build the content blocks one canonical turn contributes.

    - user turn with a tool_call_id -> one ToolResultBlock
    - plain user turn -> one TextBlock (even if empty)
    - assistant turn without tool calls -> one TextBlock (even if empty)
    - assistant turn with tool calls -> optional TextBlock, then one
      ToolUseBlock per call in order
    - tool turn -> one ToolResultBlock

    System turns and unrecognized roles contribute nothing.
    """
    match msg.known_role:
        case Role.USER:
            if msg.tool_call_id:
                return [
                    ToolResultBlock(tool_use_id=msg.tool_call_id, content=msg.content)
                ]
            return [TextBlock(text=msg.content)]
        case Role.ASSISTANT:
            if not msg.tool_calls:
                return [TextBlock(text=msg.content)]
            blocks: list[ContentBlock] = []
            if msg.content:
                blocks.append(TextBlock(text=msg.content))
            blocks.extend(encode_tool_call(call) for call in msg.tool_calls)
            return blocks
        case Role.TOOL:
            return [
                ToolResultBlock(tool_use_id=msg.tool_call_id or "", content=msg.content)
            ]
        case Role.SYSTEM | None:
            return []
        case _ as unreachable:
            assert_never(unreachable)


def encode_tool_definitions(tools: Sequence[ToolDefinition]) -> list[ToolSpecDict]:
    """Translate tool definitions 1:1, in declaration order."""
    return [tool.to_tool_spec() for tool in tools]


# =============================================================================
# Decoding (backend -> canonical)
# =============================================================================


def decode_document(document: object) -> dict[str, JSONValue]:
    """Decode a tool input document into a plain mapping.

    Accepts an already-decoded mapping or JSON text (str/bytes) holding an
    object.

    Raises:
        ValueError: If the document is not a JSON object
    """
    if isinstance(document, Mapping):
        return dict(document)
    if isinstance(document, (str, bytes, bytearray)):
        parsed = json.loads(document)
        if not isinstance(parsed, dict):
            raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
        return parsed
    raise ValueError(f"unsupported document type: {type(document).__name__}")


def _decode_tool_input(tool_use_id: str, document: object) -> dict[str, JSONValue]:
    if document is None:
        return {}
    try:
        return decode_document(document)
    except (ValueError, RecursionError) as e:
        warnings.warn(
            f"Could not decode input for tool call {tool_use_id!r}: {e}",
            DecodeWarning,
            stacklevel=3,
        )
        return {}


def parse_content_block(raw: object) -> ContentBlock | None:
    """Parse one Converse content block dict into a ContentBlock.

    Returns None for block kinds the bridge does not model (images,
    reasoning, documents) and for tool-use blocks without an id or name.
    """
    if not isinstance(raw, Mapping):
        return None

    if "text" in raw:
        text = raw["text"]
        return TextBlock(text=text if isinstance(text, str) else "")

    tool_use = raw.get("toolUse")
    if isinstance(tool_use, Mapping):
        tool_use_id = tool_use.get("toolUseId")
        name = tool_use.get("name")
        if not (isinstance(tool_use_id, str) and tool_use_id) or not (
            isinstance(name, str) and name
        ):
            logger.warning("Dropping toolUse block without id or name: %r", tool_use)
            return None
        return ToolUseBlock(
            tool_use_id=tool_use_id,
            name=name,
            input=_decode_tool_input(tool_use_id, tool_use.get("input")),
        )

    tool_result = raw.get("toolResult")
    if isinstance(tool_result, Mapping):
        parts = tool_result.get("content", [])
        texts = [
            str(part.get("text", ""))
            for part in (parts if isinstance(parts, list) else [])
            if isinstance(part, Mapping)
        ]
        return ToolResultBlock(
            tool_use_id=str(tool_result.get("toolUseId", "")),
            content="".join(texts),
        )

    return None


def decode_content_blocks(raw_blocks: Sequence[object]) -> tuple[str, list[ToolCall]]:
    """Recover response text and tool calls from a backend message's blocks.

    Text blocks are joined with a single newline. Each toolUse block becomes
    one ToolCall in encountered order.
    """
    texts: list[str] = []
    tool_calls: list[ToolCall] = []

    for raw in raw_blocks:
        block = parse_content_block(raw)
        match block:
            case None:
                continue
            case TextBlock(text=text):
                texts.append(text)
            case ToolUseBlock(tool_use_id=tool_use_id, name=name, input=tool_input):
                tool_calls.append(
                    ToolCall(id=tool_use_id, name=name, arguments=tool_input)
                )
            case ToolResultBlock():
                # Results only travel caller -> backend
                continue
            case _ as unreachable:
                assert_never(unreachable)

    return "\n".join(texts), tool_calls
