"""Tests for shared API infrastructure (errors and providers.base)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pico_agent import (
    APIClientMixin,
    APIError,
    ConfigurationError,
    MalformedResponse,
    TransportError,
)


class TestAPIError:
    """Tests for APIError exception class."""

    def test_basic_error(self) -> None:
        error = APIError("Something went wrong")
        assert str(error) == "[unknown] Something went wrong"
        assert error.status_code is None
        assert error.error_type is None
        assert error.provider == "unknown"

    def test_error_with_all_fields(self) -> None:
        error = APIError(
            message="Too many requests",
            status_code=429,
            error_type="ThrottlingException",
            provider="Bedrock",
        )
        assert str(error) == "[Bedrock] Too many requests"
        assert error.status_code == 429
        assert error.error_type == "ThrottlingException"

    def test_error_repr(self) -> None:
        error = TransportError(
            message="Denied", status_code=403, error_type="AccessDeniedException"
        )
        repr_str = repr(error)
        assert "TransportError" in repr_str
        assert "403" in repr_str
        assert "AccessDeniedException" in repr_str

    def test_hierarchy(self) -> None:
        assert issubclass(ConfigurationError, APIError)
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(TransportError, APIError)
        assert issubclass(MalformedResponse, APIError)

    def test_transport_diagnostic_defaults_to_message(self) -> None:
        assert TransportError("boom").diagnostic == "boom"
        assert TransportError("guidance", diagnostic="raw").diagnostic == "raw"


class ConcreteAPIClient(APIClientMixin):
    """Concrete implementation of APIClientMixin for testing."""

    def __init__(self, owns_client: bool = True) -> None:
        self._client = MagicMock(spec=httpx.AsyncClient)
        self._owns_client = owns_client


class TestCheckResponse:
    def test_success(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(200, json={"output": {}})
        assert client._check_response(response, provider="Test") == {"output": {}}

    def test_aws_error_header(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(
            400,
            json={"message": "The provided model identifier is invalid."},
            headers={
                "x-amzn-ErrorType": "ValidationException:http://internal.amazon.com/"
            },
        )

        with pytest.raises(TransportError) as exc_info:
            client._check_response(response, provider="Bedrock")

        error = exc_info.value
        assert error.status_code == 400
        assert error.error_type == "ValidationException"
        assert error.provider == "Bedrock"
        assert error.diagnostic == "The provided model identifier is invalid."

    def test_error_type_from_body(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(
            429,
            json={
                "__type": "com.amazon.bedrock#ThrottlingException",
                "Message": "Too many requests",
            },
        )

        with pytest.raises(TransportError) as exc_info:
            client._check_response(response)

        assert exc_info.value.error_type == "ThrottlingException"
        assert exc_info.value.diagnostic == "Too many requests"

    def test_error_without_json(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(502, text="Bad Gateway")

        with pytest.raises(TransportError) as exc_info:
            client._check_response(response)

        assert exc_info.value.error_type == "unknown"
        assert exc_info.value.diagnostic == "Bad Gateway"

    def test_nested_error_message(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(500, json={"error": {"message": "internal"}})

        with pytest.raises(TransportError) as exc_info:
            client._check_response(response)

        assert exc_info.value.diagnostic == "internal"

    def test_success_must_be_object(self) -> None:
        client = ConcreteAPIClient()
        response = httpx.Response(200, json=[1, 2])

        with pytest.raises(MalformedResponse):
            client._check_response(response)


class TestResourceCleanup:
    async def test_close(self) -> None:
        client = ConcreteAPIClient()
        mock_aclose = AsyncMock()

        with patch.object(client._client, "aclose", mock_aclose):
            await client.close()
            mock_aclose.assert_called_once()

    async def test_borrowed_client_left_open(self) -> None:
        client = ConcreteAPIClient(owns_client=False)
        mock_aclose = AsyncMock()

        with patch.object(client._client, "aclose", mock_aclose):
            await client.close()
            mock_aclose.assert_not_called()

    async def test_context_manager_on_exception(self) -> None:
        client = ConcreteAPIClient()
        mock_aclose = AsyncMock()

        with patch.object(client._client, "aclose", mock_aclose):
            with pytest.raises(ValueError):
                async with client as ctx:
                    assert ctx is client
                    raise ValueError("Test error")

            mock_aclose.assert_called_once()
