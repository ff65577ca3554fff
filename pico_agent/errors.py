"""Error taxonomy shared by the bridge core and the provider clients.

This module provides:
- APIError: Base exception with structured error context
- ConfigurationError: Credentials, region or endpoint unavailable
- TransportError: The backend call failed
- MalformedResponse: The response envelope has no assistant message
- DecodeWarning: A tool-call argument document could not be decoded
"""

from __future__ import annotations

__all__ = [
    "APIError",
    "ConfigurationError",
    "TransportError",
    "MalformedResponse",
    "DecodeWarning",
]


class APIError(Exception):
    """Unified API error with structured context.

    Provides consistent error handling across backends with:
    - HTTP status code (when applicable)
    - Backend-specific error type
    - Provider name for debugging

    Example:
        >>> try:
        ...     response = await api.chat(messages)
        ... except APIError as e:
        ...     if e.status_code == 429:
        ...         await asyncio.sleep(60)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        provider: str = "unknown",
    ):
        """Initialize APIError.

        Args:
            message: Human-readable error description
            status_code: HTTP status code (e.g., 400, 403, 429, 500)
            error_type: Backend error type (e.g., "ValidationException")
            provider: Name of the backend (e.g., "Bedrock")
        """
        self.status_code = status_code
        self.error_type = error_type
        self.provider = provider
        super().__init__(f"[{provider}] {message}")

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{type(self).__name__}(message={str(self)!r}, "
            f"status_code={self.status_code}, "
            f"error_type={self.error_type!r}, "
            f"provider={self.provider!r})"
        )


class ConfigurationError(APIError, ValueError):
    """Backend client or credentials unavailable.

    Raised while constructing a client, never during a call. Not retried.
    """


class TransportError(APIError):
    """The backend call failed.

    The message carries guidance text for recognized failures; the raw
    diagnostic from the HTTP layer or the backend is kept on ``diagnostic``.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        provider: str = "unknown",
        diagnostic: str | None = None,
    ):
        super().__init__(
            message,
            status_code=status_code,
            error_type=error_type,
            provider=provider,
        )
        self.diagnostic = diagnostic if diagnostic is not None else message


class MalformedResponse(APIError):
    """Response envelope lacks the assistant message variant.

    Retrying reproduces it, so callers should report rather than retry.
    """


class DecodeWarning(UserWarning):
    """A tool call's argument document failed to decode.

    The call keeps an empty argument mapping; the rest of the response is
    unaffected.
    """
