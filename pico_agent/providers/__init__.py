"""Backend clients for pico_agent.

Every client implements LLMProvider, so callers can swap backends freely.
"""

from .base import APIClientMixin, LLMProvider
from .bedrock import BedrockAPI, describe_invoke_error

__all__ = [
    # Base classes
    "APIClientMixin",
    "LLMProvider",
    # Backend clients
    "BedrockAPI",
    "describe_invoke_error",
]
