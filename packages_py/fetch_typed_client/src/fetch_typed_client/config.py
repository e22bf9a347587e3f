"""
Configuration for fetch_typed_client.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse
import json
import logging
import os

from pydantic import BaseModel, TypeAdapter
from rich.console import Console

from .types import (
    ApiKeyAuth,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    NoAuth,
    Serializer,
    StreamFraming,
    TimeoutConfig,
)

logger = logging.getLogger("fetch_typed_client.config")

DEFAULT_CONTENT_TYPE = "application/json; charset=utf-8"
DEFAULT_TIMEOUT = TimeoutConfig()
STREAM_FRAMINGS = ("ndjson", "sse", "chunk")


def _default_headers() -> Dict[str, str]:
    return {"Content-Type": DEFAULT_CONTENT_TYPE}


@dataclass
class LoggingConfig:
    """Request/response console logging toggles.

    Output is redacted unless the matching *_public flag is set.
    """

    log_requests: bool = True
    log_responses: bool = True
    request_public: bool = False
    response_public: bool = False
    console: Optional[Console] = None


@dataclass
class ClientConfig:
    """Client configuration."""

    base_url: str
    auth: AuthStrategy = field(default_factory=NoAuth)
    headers: Dict[str, str] = field(default_factory=_default_headers)
    timeout: Union[TimeoutConfig, float, None] = None
    serializer: Optional[Serializer] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    stream_framing: StreamFraming = "ndjson"
    verify_ssl: Optional[bool] = None


@lru_cache(maxsize=256)
def _type_adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


class DefaultSerializer:
    """Default JSON serializer backed by pydantic.

    Decodes into pydantic models, dataclasses, TypedDicts and builtin
    containers; without a model, returns plain JSON values.
    """

    def encode(self, value: Any) -> bytes:
        """Encode value to JSON bytes."""
        if isinstance(value, BaseModel):
            return value.model_dump_json(by_alias=True).encode("utf-8")
        return TypeAdapter(type(value)).dump_json(value)

    def decode(self, data: bytes, model: Any = None) -> Any:
        """Decode JSON bytes, validating against model when given."""
        if model is None:
            return json.loads(data)
        return _type_adapter(model).validate_json(data)


def normalize_timeout(timeout: Union[TimeoutConfig, float, None]) -> TimeoutConfig:
    """Normalize timeout config."""
    if timeout is None:
        return DEFAULT_TIMEOUT
    if isinstance(timeout, (int, float)):
        return TimeoutConfig(connect=timeout, read=timeout, write=timeout)
    return timeout


def is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


def validate_config(config: ClientConfig) -> None:
    """Validate client configuration."""
    if not config.base_url:
        raise ValueError("base_url is required")

    parsed = urlparse(config.base_url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid base_url: {config.base_url}")

    if config.stream_framing not in STREAM_FRAMINGS:
        raise ValueError(
            f"Invalid stream_framing: {config.stream_framing}. Must be one of: {list(STREAM_FRAMINGS)}"
        )

    validate_auth_strategy(config.auth)


def validate_auth_strategy(auth: AuthStrategy) -> None:
    """Validate auth strategy."""
    if isinstance(auth, NoAuth):
        return
    if isinstance(auth, ApiKeyAuth):
        if not auth.key:
            raise ValueError("key is required for api key auth")
        return
    if isinstance(auth, BasicAuth):
        if not auth.username:
            raise ValueError("username is required for basic auth")
        return
    if isinstance(auth, BearerAuth):
        if not auth.token:
            raise ValueError("token is required for bearer auth")
        return
    raise TypeError(f"Unknown auth strategy: {type(auth).__name__}")


@dataclass
class ResolvedConfig:
    """Resolved client configuration with defaults applied."""

    base_url: str
    auth: AuthStrategy
    headers: Dict[str, str]
    timeout: TimeoutConfig
    serializer: Serializer
    logging: LoggingConfig
    console: Console
    stream_framing: StreamFraming
    verify_ssl: bool


def resolve_config(config: ClientConfig) -> ResolvedConfig:
    """Resolve client configuration with defaults."""
    validate_config(config)

    verify_ssl = config.verify_ssl
    if verify_ssl is None:
        verify_ssl = not is_ssl_verify_disabled_by_env()
    if not verify_ssl:
        logger.warning(f"SSL verification disabled for {config.base_url}")

    return ResolvedConfig(
        base_url=config.base_url,
        auth=config.auth,
        headers=dict(config.headers),
        timeout=normalize_timeout(config.timeout),
        serializer=config.serializer or DefaultSerializer(),
        logging=config.logging,
        console=config.logging.console or Console(stderr=True),
        stream_framing=config.stream_framing,
        verify_ssl=verify_ssl,
    )
