"""Configuration loading for backend clients.

Settings resolve once, when a client is constructed. Precedence, lowest
first: built-in defaults, the JSON config file, environment variables,
explicit constructor arguments.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MODEL",
    "DEFAULT_REGION",
    "BedrockSettings",
    "load_config_file",
    "default_endpoint",
]

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.pico-agent.json")
DEFAULT_MODEL = "anthropic.claude-haiku-4-5-20251001-v1:0"
DEFAULT_REGION = "us-east-1"
DEFAULT_TIMEOUT = 120.0


def load_config_file(path: str = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """Load config from disk. Returns empty dict if not found or invalid."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def default_endpoint(region: str) -> str:
    """Bedrock runtime endpoint for a region."""
    return f"https://bedrock-runtime.{region}.amazonaws.com"


def _str_or_none(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass(frozen=True)
class BedrockSettings:
    """Resolved settings for the Bedrock client.

    Attributes:
        api_key: Bedrock API key sent as a bearer token (None if unset)
        region: AWS region hosting the runtime endpoint
        model: Default model identifier
        endpoint: Runtime endpoint URL (derived from region when unset)
        timeout: HTTP timeout in seconds
    """

    api_key: str | None = None
    region: str = DEFAULT_REGION
    model: str = DEFAULT_MODEL
    endpoint: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def resolved_endpoint(self) -> str:
        return (self.endpoint or default_endpoint(self.region)).rstrip("/")

    @classmethod
    def load(
        cls,
        path: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "BedrockSettings":
        """Resolve settings from the config file and the environment.

        Config file keys (all optional): ``bedrock_api_key``, ``region``,
        ``model``, ``endpoint``, ``timeout``.

        Environment variables: ``AWS_BEARER_TOKEN_BEDROCK``, ``AWS_REGION``
        (or ``AWS_DEFAULT_REGION``), ``PICO_AGENT_BEDROCK_MODEL``,
        ``PICO_AGENT_BEDROCK_ENDPOINT``.
        """
        env = os.environ if environ is None else environ
        file_config = load_config_file(path or DEFAULT_CONFIG_PATH)

        timeout = file_config.get("timeout", DEFAULT_TIMEOUT)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool):
            timeout = DEFAULT_TIMEOUT

        return cls(
            api_key=_str_or_none(env.get("AWS_BEARER_TOKEN_BEDROCK"))
            or _str_or_none(file_config.get("bedrock_api_key")),
            region=_str_or_none(env.get("AWS_REGION"))
            or _str_or_none(env.get("AWS_DEFAULT_REGION"))
            or _str_or_none(file_config.get("region"))
            or DEFAULT_REGION,
            model=_str_or_none(env.get("PICO_AGENT_BEDROCK_MODEL"))
            or _str_or_none(file_config.get("model"))
            or DEFAULT_MODEL,
            endpoint=_str_or_none(env.get("PICO_AGENT_BEDROCK_ENDPOINT"))
            or _str_or_none(file_config.get("endpoint")),
            timeout=float(timeout),
        )
