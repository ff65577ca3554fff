"""Amazon Bedrock client for the Converse API."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote

import httpx

from ..cancellation import CancellationToken
from ..config import BedrockSettings
from ..data_structures import ConverseRequest, LLMResponse, Message, ToolDefinition
from ..errors import ConfigurationError, TransportError
from ..normalizer import normalize_messages
from ..response_parser import parse_converse_response
from .base import APIClientMixin

__all__ = ["BedrockAPI", "build_inference_config", "describe_invoke_error"]

logger = logging.getLogger(__name__)

PROVIDER = "Bedrock"

# Substrings of DNS failures as reported by the OS resolver / httpx
HOST_RESOLUTION_MARKERS = (
    "no such host",
    "Name or service not known",
    "nodename nor servname provided",
    "Temporary failure in name resolution",
    "getaddrinfo failed",
)
UNRESOLVED_MODEL_MARKER = "Could not resolve the foundation model"

# options key -> Converse inferenceConfig key
INFERENCE_OPTIONS = {
    "max_tokens": "maxTokens",
    "temperature": "temperature",
    "top_p": "topP",
    "stop_sequences": "stopSequences",
}


def build_inference_config(options: Mapping[str, Any] | None) -> dict[str, object]:
    """Pick the Converse inferenceConfig out of caller options.

    Keys the backend does not understand are left alone.
    """
    if not options:
        return {}
    return {
        wire_key: options[key]
        for key, wire_key in INFERENCE_OPTIONS.items()
        if options.get(key) is not None
    }


def describe_invoke_error(
    diagnostic: str, model_id: str, invoked: bool = True
) -> str:
    """Rewrite a backend failure into guidance text.

    Args:
        diagnostic: Underlying error text
        model_id: Model identifier the call targeted
        invoked: Whether the backend answered (False for failures that
            never reached it)

    Returns:
        Guidance for host-resolution failures, unresolvable model ids and
        failed invocations; otherwise the diagnostic unchanged.
    """
    if any(marker in diagnostic for marker in HOST_RESOLUTION_MARKERS):
        return (
            "The Bedrock service is not available in the selected region. "
            "Please double-check the service availability for your region at "
            "https://aws.amazon.com/about-aws/global-infrastructure/regional-product-services/."
        )
    if UNRESOLVED_MODEL_MARKER in diagnostic:
        return (
            f'Could not resolve the foundation model from model identifier: "{model_id}". '
            "Please verify that the requested model exists and is accessible "
            "within the specified region."
        )
    if invoked:
        return f'Couldn\'t invoke model: "{model_id}". Here\'s why: {diagnostic}'
    return diagnostic


class BedrockAPI(APIClientMixin):
    """Bedrock Converse client.

    The HTTP client is an explicit handle: pass your own
    ``httpx.AsyncClient`` to share a connection pool (it is left open on
    close), or let the client create one. Credentials are resolved once
    here; a call never reads process configuration.

    Bedrock differences from the canonical model:
    - Only `user` and `assistant` roles, strictly alternating
    - System text travels in a separate `system` list
    - Tool results are `toolResult` blocks inside a `user` message
    - Authentication uses a Bedrock API key as a bearer token

    Supports async context manager for proper resource cleanup:
        >>> async with BedrockAPI(api_key="...") as api:
        ...     response = await api.chat([Message.user("Hi")])
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        settings: BedrockSettings | None = None,
    ):
        """Initialize Bedrock client.

        Args:
            api_key: Bedrock API key. Falls back to AWS_BEARER_TOKEN_BEDROCK
                or the config file.
            model: Default model identifier
            region: AWS region (default: us-east-1)
            endpoint: Runtime endpoint URL, derived from region when unset
            timeout: Request timeout in seconds for a client created here
            client: Caller-owned HTTP client
            settings: Pre-resolved settings (skips environment lookup)

        Raises:
            ConfigurationError: If no API key can be resolved
        """
        resolved = settings if settings is not None else BedrockSettings.load()

        api_key = api_key or resolved.api_key
        if not api_key:
            raise ConfigurationError(
                "Bedrock API key required. Pass api_key or set "
                "AWS_BEARER_TOKEN_BEDROCK env var.",
                provider=PROVIDER,
            )
        self.api_key: str = api_key
        self.model = model or resolved.model
        self.region = region or resolved.region
        if endpoint:
            self.endpoint = endpoint.rstrip("/")
        elif region:
            self.endpoint = BedrockSettings(region=region).resolved_endpoint
        else:
            self.endpoint = resolved.resolved_endpoint
        self.timeout = timeout if timeout is not None else resolved.timeout

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            # Create reusable HTTP client for connection pooling
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True

    def __repr__(self) -> str:
        """Return a clean representation of the API client configuration."""
        token_preview = (
            self.api_key[:15] + "..." if len(self.api_key) > 15 else self.api_key
        )
        return (
            f"BedrockAPI(\n"
            f"  model={self.model!r},\n"
            f"  region={self.region!r},\n"
            f"  endpoint={self.endpoint!r},\n"
            f"  token={token_preview!r}\n"
            f")"
        )

    def get_default_model(self) -> str:
        return self.model

    def build_request(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        model: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> ConverseRequest:
        """Assemble the Converse request for a conversation."""
        conversation = normalize_messages(messages)
        return ConverseRequest(
            model_id=model or self.model,
            system=conversation.system,
            messages=conversation.turns,
            tools=list(tools or ()),
            inference_config=build_inference_config(options),
        )

    def _url(self, model_id: str) -> str:
        return f"{self.endpoint}/model/{quote(model_id, safe='')}/converse"

    async def chat(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition] | None = None,
        model: str | None = None,
        options: Mapping[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> LLMResponse:
        """Send a conversation to the Converse API.

        Args:
            messages: Ordered canonical turns
            tools: Tools the assistant may call
            model: Model identifier (defaults to self.model)
            options: Request options; max_tokens, temperature, top_p and
                stop_sequences are forwarded as inferenceConfig
            cancel_token: Cancels the in-flight HTTP call

        Returns:
            LLMResponse object

        Raises:
            TransportError: If the HTTP call fails or Bedrock returns an error
            MalformedResponse: If the reply has no assistant message
            asyncio.CancelledError: If cancel_token was cancelled
        """
        request = self.build_request(messages, tools, model, options)
        model_id = request.model_id
        body = request.to_dict()

        logger.debug(
            "Converse request: model=%s turns=%d system=%d tools=%d",
            model_id,
            len(request.messages),
            len(request.system),
            len(request.tools),
        )

        post = self._client.post(
            self._url(model_id),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json=body,
        )

        if cancel_token is not None:
            pending = cancel_token.run(post, label=f"model call {model_id}")
        else:
            pending = post

        try:
            http_response = await pending
        except httpx.RequestError as e:
            diagnostic = str(e) or type(e).__name__
            raise self._transport_error(diagnostic, model_id, invoked=False) from e

        try:
            data = self._check_response(http_response, provider=PROVIDER)
        except TransportError as e:
            raise self._transport_error(
                e.diagnostic,
                model_id,
                status_code=e.status_code,
                error_type=e.error_type,
            ) from e

        return parse_converse_response(data, provider=PROVIDER)

    def _transport_error(
        self,
        diagnostic: str,
        model_id: str,
        invoked: bool = True,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> TransportError:
        message = describe_invoke_error(diagnostic, model_id, invoked=invoked)
        logger.warning("Bedrock call to %s failed: %s", model_id, diagnostic)
        return TransportError(
            message=message,
            status_code=status_code,
            error_type=error_type,
            provider=PROVIDER,
            diagnostic=diagnostic,
        )
