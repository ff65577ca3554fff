"""Shared infrastructure for backend clients.

This module provides:
- LLMProvider: Type-safe protocol for interchangeable backends
- APIClientMixin: HTTP error checking and resource cleanup
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import Any, Protocol, Self

import httpx

from ..cancellation import CancellationToken
from ..data_structures import LLMResponse, Message, ToolDefinition
from ..errors import MalformedResponse, TransportError

__all__ = ["LLMProvider", "APIClientMixin"]


class LLMProvider(Protocol):
    """Protocol defining the interface for all backend clients.

    Callers depend only on this protocol, so adding a backend never touches
    them.

    Example:
        >>> async def ask(api: LLMProvider, messages: list[Message]) -> str:
        ...     response = await api.chat(messages)
        ...     return response.content
    """

    def get_default_model(self) -> str:
        """Model identifier used when ``chat`` is not given one."""
        ...

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        model: str | None = None,
        options: Mapping[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> LLMResponse:
        """Send one conversation and return the canonical response.

        Args:
            messages: Ordered canonical turns (treated as read-only)
            tools: Tools the assistant may call
            model: Model identifier (defaults to get_default_model())
            options: Opaque request options
            cancel_token: Cancels the in-flight network call

        Returns:
            LLMResponse for the backend reply
        """
        ...


class APIClientMixin:
    """Mixin providing shared HTTP client functionality.

    Provides:
    - Consistent HTTP error checking across backends
    - Async context manager support for proper resource cleanup
    - close() method for explicit cleanup

    Clients passed in by the caller stay open; only clients the mixin user
    created itself are closed.
    """

    _client: httpx.AsyncClient
    _owns_client: bool = True

    def _check_response(
        self,
        response: httpx.Response,
        provider: str = "API",
    ) -> dict[str, Any]:
        """Check HTTP response and raise unified errors.

        AWS services report failures as a non-2xx status with a JSON body
        ``{"message": "..."}`` and the error type in ``x-amzn-ErrorType``.

        Args:
            response: The httpx Response object
            provider: Name of the backend for error messages

        Returns:
            Parsed JSON response if successful

        Raises:
            TransportError: If the status code indicates an error
            MalformedResponse: If a successful response is not a JSON object
        """
        try:
            response_json: object = response.json()
        except ValueError:
            response_json = None

        if not 200 <= response.status_code < 300:
            error_type = _error_type(response, response_json)
            diagnostic = _error_message(response, response_json)
            raise TransportError(
                message=f"HTTP {response.status_code}: {diagnostic}",
                status_code=response.status_code,
                error_type=error_type,
                provider=provider,
                diagnostic=diagnostic,
            )

        if not isinstance(response_json, dict):
            raise MalformedResponse(
                "response body is not a JSON object",
                status_code=response.status_code,
                provider=provider,
            )
        return response_json

    async def close(self) -> None:
        """Close the HTTP client and release resources.

        Example:
            >>> api = BedrockAPI()
            >>> try:
            ...     response = await api.chat(messages)
            ... finally:
            ...     await api.close()
        """
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        """Async context manager entry.

        Example:
            >>> async with BedrockAPI() as api:
            ...     response = await api.chat(messages)
        """
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the client."""
        await self.close()


def _error_type(response: httpx.Response, body: object) -> str:
    header = response.headers.get("x-amzn-ErrorType", "")
    if header:
        # "ValidationException:http://internal.amazon.com/coral/..."
        return header.split(":", 1)[0]
    if isinstance(body, dict):
        for key in ("__type", "type"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value.rsplit("#", 1)[-1]
    return "unknown"


def _error_message(response: httpx.Response, body: object) -> str:
    if isinstance(body, dict):
        for key in ("message", "Message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body:
            return str(body)
    return response.text or response.reason_phrase or "no response body"
