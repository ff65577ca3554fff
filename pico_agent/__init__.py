"""pico_agent: conversation normalization and tool-calling bridge

A Python library that converts a canonical, backend-agnostic conversation
(ordered turns with roles, text, tool calls and tool results) into a model
backend's request shape, and that backend's reply back into a canonical
response. The bundled backend is the Amazon Bedrock Converse API.
"""

# Cancellation support
from .cancellation import CancellationToken

# Channels
from .channels import WeComCrypto, WeComCryptoError

# Configuration
from .config import BedrockSettings

# Data structures - Core types
from .data_structures import (  # Enums; Canonical turns; Content blocks (sum type: ContentBlock); Response types; Exhaustiveness helper; JSON type aliases
    BackendTurn,
    ContentBlock,
    ConversationRole,
    ConverseRequest,
    FinishReason,
    FunctionCall,
    JSONObject,
    JSONValue,
    LLMResponse,
    Message,
    Role,
    TextBlock,
    ToolCall,
    ToolDefinition,
    ToolResultBlock,
    ToolUseBlock,
    UsageInfo,
    assert_never,
)

# Errors
from .errors import (
    APIError,
    ConfigurationError,
    DecodeWarning,
    MalformedResponse,
    TransportError,
)

# Normalization and codecs
from .normalizer import NormalizedConversation, normalize_messages

# Backend clients
from .providers import APIClientMixin, BedrockAPI, LLMProvider
from .response_parser import map_stop_reason, parse_converse_response
from .tool_codec import decode_content_blocks, encode_message, encode_tool_definitions

__version__ = "0.1.0"

__all__ = [
    # Core
    "Message",
    "Role",
    "ToolCall",
    "FunctionCall",
    "ToolDefinition",
    "LLMResponse",
    "UsageInfo",
    "FinishReason",
    # Content blocks
    "ContentBlock",
    "TextBlock",
    "ToolUseBlock",
    "ToolResultBlock",
    "BackendTurn",
    "ConversationRole",
    "ConverseRequest",
    "assert_never",
    "JSONValue",
    "JSONObject",
    # Normalization and codecs
    "NormalizedConversation",
    "normalize_messages",
    "encode_message",
    "encode_tool_definitions",
    "decode_content_blocks",
    "parse_converse_response",
    "map_stop_reason",
    # Errors
    "APIError",
    "ConfigurationError",
    "TransportError",
    "MalformedResponse",
    "DecodeWarning",
    # Backend clients
    "LLMProvider",
    "APIClientMixin",
    "BedrockAPI",
    "BedrockSettings",
    # Cancellation support
    "CancellationToken",
    # Channels
    "WeComCrypto",
    "WeComCryptoError",
]
