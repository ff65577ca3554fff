"""
Core data structures for the conversation bridge.

This module defines the dataclasses shared by every part of the library:
canonical (backend-agnostic) conversation turns on one side, and the
Converse-shaped content blocks and turns built from them on the other.

Content blocks are an algebraic data type (sum type via Union) so that
decoding can pattern match exhaustively.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Never, NotRequired, TypeAlias, TypedDict

# =============================================================================
# JSON Type Aliases
# =============================================================================

# Recursive JSON value type (for strict JSON typing)
JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)

# JSON object type
JSONObject: TypeAlias = dict[str, JSONValue]


# =============================================================================
# Serialization TypedDicts (canonical, OpenAI-style)
# =============================================================================


class FunctionCallDict(TypedDict):
    """Legacy function payload: arguments encoded as a JSON string."""

    name: str
    arguments: str


class ToolCallDict(TypedDict, total=False):
    """Serialized form of ToolCall."""

    id: str
    type: str
    name: str
    arguments: JSONObject
    function: FunctionCallDict


class MessageDict(TypedDict):
    """Serialized form of Message."""

    role: str
    content: str
    tool_call_id: NotRequired[str]
    tool_calls: NotRequired[list[ToolCallDict]]


class FunctionDefinitionDict(TypedDict):
    name: str
    description: str
    parameters: dict[str, object]


class ToolDefinitionDict(TypedDict):
    """Serialized form of ToolDefinition (OpenAI function format)."""

    type: str
    function: FunctionDefinitionDict


class UsageDict(TypedDict):
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


# =============================================================================
# Serialization TypedDicts (Converse wire shape)
# =============================================================================


class TextBlockDict(TypedDict):
    text: str


class ToolUseDict(TypedDict):
    toolUseId: str
    name: str
    input: JSONObject


class ToolUseBlockDict(TypedDict):
    toolUse: ToolUseDict


class ToolResultDict(TypedDict):
    toolUseId: str
    content: list[TextBlockDict]


class ToolResultBlockDict(TypedDict):
    toolResult: ToolResultDict


ContentBlockDict = TextBlockDict | ToolUseBlockDict | ToolResultBlockDict


class BackendTurnDict(TypedDict):
    """Serialized form of BackendTurn (a Converse message)."""

    role: str
    content: list[ContentBlockDict]


class InputSchemaDict(TypedDict):
    json: dict[str, object]


class ToolSpecificationDict(TypedDict):
    name: str
    description: str
    inputSchema: InputSchemaDict


class ToolSpecDict(TypedDict):
    """Converse tool entry."""

    toolSpec: ToolSpecificationDict


class ConverseRequestDict(TypedDict, total=False):
    """Converse request body (model id travels in the URL)."""

    messages: list[BackendTurnDict]
    system: list[TextBlockDict]
    toolConfig: dict[str, list[ToolSpecDict]]
    inferenceConfig: dict[str, object]


# =============================================================================
# Exhaustiveness Helper
# =============================================================================


def assert_never(value: Never) -> Never:
    """Assert that a value is never reached (for exhaustive pattern matching).

    Usage:
        def handle(block: ContentBlock) -> str:
            match block:
                case TextBlock(text=t):
                    return t
                case ToolUseBlock(name=n):
                    return f"tool:{n}"
                case ToolResultBlock():
                    return "result"
                case _ as unreachable:
                    assert_never(unreachable)  # Type error if cases missed
    """
    raise AssertionError(f"Unexpected value: {value!r}")


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Canonical message role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationRole(str, Enum):
    """Backend-native turn role. Converse only knows these two."""

    USER = "user"
    ASSISTANT = "assistant"


class FinishReason(str, Enum):
    """Normalized reason the backend stopped generating."""

    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    LENGTH = "length"


# =============================================================================
# Canonical Conversation Types
# =============================================================================


@dataclass(frozen=True)
class FunctionCall:
    """Legacy tool-call payload carrying JSON-encoded arguments."""

    name: str = ""
    arguments: str = ""

    def to_dict(self) -> FunctionCallDict:
        return {"name": self.name, "arguments": self.arguments}


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the assistant.

    ``function`` is the legacy form: older callers only fill in
    ``function.arguments`` (a JSON string) and leave ``arguments`` empty.
    """

    id: str
    name: str = ""
    arguments: dict[str, JSONValue] = field(default_factory=dict)
    function: FunctionCall | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.arguments, dict):
            raise TypeError(
                f"arguments must be dict, got {type(self.arguments).__name__}"
            )

    def to_dict(self) -> ToolCallDict:
        result: ToolCallDict = {
            "id": self.id,
            "type": "function",
            "name": self.name,
            "arguments": self.arguments,
        }
        if self.function is not None:
            result["function"] = self.function.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "ToolCall":
        """Build a ToolCall from either the structured or the legacy shape.

        A string ``arguments`` value is treated as the legacy JSON encoding.
        """
        function: FunctionCall | None = None
        raw_function = data.get("function")
        if isinstance(raw_function, Mapping):
            function = FunctionCall(
                name=str(raw_function.get("name") or ""),
                arguments=str(raw_function.get("arguments") or ""),
            )

        raw_arguments = data.get("arguments")
        arguments: dict[str, JSONValue] = {}
        if isinstance(raw_arguments, dict):
            arguments = dict(raw_arguments)
        elif isinstance(raw_arguments, str) and function is None:
            function = FunctionCall(
                name=str(data.get("name") or ""), arguments=raw_arguments
            )

        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            arguments=arguments,
            function=function,
        )


@dataclass(frozen=True)
class Message:
    """One canonical conversation turn.

    ``role`` is kept exactly as given. Values outside :class:`Role` are not
    rejected here; normalization skips them (see ``known_role``).
    """

    role: str
    content: str = ""
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.role, Role):
            object.__setattr__(self, "role", self.role.value)
        if not isinstance(self.content, str):
            raise TypeError(f"content must be str, got {type(self.content).__name__}")
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @property
    def known_role(self) -> Role | None:
        """The role as a :class:`Role`, or None when unrecognized."""
        try:
            return Role(self.role)
        except ValueError:
            return None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: Sequence[ToolCall] = ()
    ) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> "Message":
        """Build the ``tool`` turn answering a previous tool call."""
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> MessageDict:
        result: MessageDict = {"role": self.role, "content": self.content}
        if self.tool_call_id:
            result["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Message":
        raw_calls = data.get("tool_calls")
        tool_calls: tuple[ToolCall, ...] = ()
        if isinstance(raw_calls, list):
            tool_calls = tuple(
                ToolCall.from_dict(c) for c in raw_calls if isinstance(c, Mapping)
            )
        content = data.get("content")
        tool_call_id = data.get("tool_call_id")
        return cls(
            role=str(data.get("role", "")),
            content=content if isinstance(content, str) else "",
            tool_call_id=tool_call_id if isinstance(tool_call_id, str) else None,
            tool_calls=tool_calls,
        )


@dataclass(frozen=True)
class ToolDefinition:
    """Declares a tool the assistant may invoke."""

    name: str
    description: str
    parameters: Mapping[str, object]  # JSON Schema

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name cannot be empty")
        if not isinstance(self.description, str):
            raise TypeError(
                f"description must be str, got {type(self.description).__name__}"
            )
        if not isinstance(self.parameters, Mapping):
            raise TypeError(
                f"parameters must be Mapping, got {type(self.parameters).__name__}"
            )

    def to_dict(self) -> ToolDefinitionDict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": dict(self.parameters),
            },
        }

    def to_tool_spec(self) -> ToolSpecDict:
        """Converse ``toolSpec`` entry; the schema is passed through verbatim."""
        return {
            "toolSpec": {
                "name": self.name,
                "description": self.description,
                "inputSchema": {"json": dict(self.parameters)},
            }
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "ToolDefinition":
        """Accept the flat form or the OpenAI ``{"function": {...}}`` form."""
        raw_function = data.get("function")
        source = raw_function if isinstance(raw_function, Mapping) else data
        parameters = source.get("parameters")
        if parameters is None:
            parameters = source.get("input_schema", {})
        return cls(
            name=str(source.get("name") or ""),
            description=str(source.get("description") or ""),
            parameters=parameters if isinstance(parameters, Mapping) else {},
        )


# =============================================================================
# Content Blocks (Converse message content)
# =============================================================================


@dataclass(frozen=True)
class TextBlock:
    """Plain text content block."""

    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError(f"text must be str, got {type(self.text).__name__}")

    def to_dict(self) -> TextBlockDict:
        return {"text": self.text}


@dataclass(frozen=True)
class ToolUseBlock:
    """Tool invocation content block."""

    tool_use_id: str
    name: str
    input: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.tool_use_id:
            raise ValueError("tool_use_id cannot be empty")
        if not self.name:
            raise ValueError("name cannot be empty")
        if not isinstance(self.input, dict):
            raise TypeError(f"input must be dict, got {type(self.input).__name__}")

    def to_dict(self) -> ToolUseBlockDict:
        return {
            "toolUse": {
                "toolUseId": self.tool_use_id,
                "name": self.name,
                "input": self.input,
            }
        }


@dataclass(frozen=True)
class ToolResultBlock:
    """Tool result content block."""

    tool_use_id: str
    content: str

    def to_dict(self) -> ToolResultBlockDict:
        return {
            "toolResult": {
                "toolUseId": self.tool_use_id,
                "content": [{"text": self.content}],
            }
        }


# Sum type for content blocks (algebraic data type)
# Use class-based pattern matching: match block: case TextBlock(): ...
ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


@dataclass
class BackendTurn:
    """One backend message: a role plus the blocks coalesced under it."""

    role: ConversationRole
    blocks: list[ContentBlock] = field(default_factory=list)

    def to_dict(self) -> BackendTurnDict:
        return {
            "role": self.role.value,
            "content": [block.to_dict() for block in self.blocks],
        }


@dataclass
class ConverseRequest:
    """Backend-native request envelope, ready for the transport."""

    model_id: str
    system: list[str] = field(default_factory=list)
    messages: list[BackendTurn] = field(default_factory=list)
    tools: list[ToolDefinition] = field(default_factory=list)
    inference_config: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> ConverseRequestDict:
        body: ConverseRequestDict = {
            "messages": [turn.to_dict() for turn in self.messages],
        }
        if self.system:
            body["system"] = [{"text": text} for text in self.system]
        if self.tools:
            body["toolConfig"] = {"tools": [t.to_tool_spec() for t in self.tools]}
        if self.inference_config:
            body["inferenceConfig"] = dict(self.inference_config)
        return body


# =============================================================================
# API Response Types
# =============================================================================


@dataclass
class UsageInfo:
    """Token usage statistics reported by the backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> UsageDict:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class LLMResponse:
    """Canonical result of one backend reply.

    ``usage`` is None when the backend did not report counts, which is not
    the same as a report of zero tokens.
    """

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: FinishReason = FinishReason.STOP
    usage: UsageInfo | None = None

    def has_tool_calls(self) -> bool:
        """Check if the response requested any tool calls."""
        return bool(self.tool_calls)

    def to_message(self) -> Message:
        """Assistant turn to append to the history before the next call."""
        return Message.assistant(self.content, self.tool_calls)

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "content": self.content,
            "tool_calls": [call.to_dict() for call in self.tool_calls],
            "finish_reason": self.finish_reason.value,
        }
        if self.usage is not None:
            result["usage"] = self.usage.to_dict()
        return result
