"""
Auth handlers for fetch_typed_client.

Each auth strategy maps to one handler that reports what it contributes to
the request headers, the URL query and the request body.
"""
import base64
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..errors import RequestBuildError, UnsupportedAuthPlacementError
from ..types import (
    ApiKeyAuth,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    NoAuth,
    Placement,
)

logger = logging.getLogger("fetch_typed_client.auth_handler")

AUTHORIZATION_HEADER = "Authorization"


def _mask_value(val: Optional[str]) -> str:
    """Mask sensitive value for logging, showing first 4 chars."""
    if not val:
        return "<empty>"
    if len(val) <= 4:
        return "*" * len(val)
    return val[:4] + "*" * (len(val) - 4)


def encode_basic_credentials(username: str, password: str) -> str:
    """Return base64(username:password) using UTF-8."""
    try:
        raw = f"{username}:{password}".encode("utf-8")
    except UnicodeEncodeError as e:
        logger.error("Basic Auth: unable to encode given credentials")
        raise RequestBuildError("Unable to encode basic auth credentials") from e
    return base64.b64encode(raw).decode("ascii")


class AuthHandler(ABC):
    """Auth handler interface."""

    @abstractmethod
    def get_header(self) -> Dict[str, str]:
        """Header fields to merge into the request."""
        ...

    def get_query(self) -> Dict[str, str]:
        """URL query fields to append to the request."""
        return {}

    def get_body_fields(self) -> Dict[str, str]:
        """Body fields to inject into the request."""
        return {}


class NoAuthHandler(AuthHandler):
    """Contributes nothing."""

    def get_header(self) -> Dict[str, str]:
        return {}


class ApiKeyAuthHandler(AuthHandler):
    """API key auth handler."""

    def __init__(self, key: str, value: str, placement: Placement):
        self._key = key
        self._value = value
        self._placement = placement

    def get_header(self) -> Dict[str, str]:
        if self._placement is not Placement.HEADER:
            return {}
        logger.debug(f"ApiKeyAuthHandler.get_header: {self._key}={_mask_value(self._value)}")
        return {self._key: self._value}

    def get_query(self) -> Dict[str, str]:
        if self._placement is not Placement.URL:
            return {}
        logger.debug(f"ApiKeyAuthHandler.get_query: {self._key}={_mask_value(self._value)}")
        return {self._key: self._value}

    def get_body_fields(self) -> Dict[str, str]:
        if self._placement is not Placement.BODY:
            return {}
        raise UnsupportedAuthPlacementError(
            f"API key placement 'body' is not supported (key={self._key!r})"
        )


class BasicAuthHandler(AuthHandler):
    """Basic auth handler."""

    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password

    def get_header(self) -> Dict[str, str]:
        encoded = encode_basic_credentials(self._username, self._password)
        logger.debug(
            f"BasicAuthHandler.get_header: username={self._username} -> "
            f"Authorization=Basic {_mask_value(encoded)}"
        )
        return {AUTHORIZATION_HEADER: f"Basic {encoded}"}


class BearerAuthHandler(AuthHandler):
    """Bearer token auth handler."""

    def __init__(self, token: str):
        self._token = token

    def get_header(self) -> Dict[str, str]:
        logger.debug(f"BearerAuthHandler.get_header: token={_mask_value(self._token)}")
        return {AUTHORIZATION_HEADER: f"Bearer {self._token}"}


def create_auth_handler(strategy: Optional[AuthStrategy]) -> AuthHandler:
    """Create auth handler from strategy."""
    if strategy is None or isinstance(strategy, NoAuth):
        return NoAuthHandler()
    if isinstance(strategy, ApiKeyAuth):
        return ApiKeyAuthHandler(strategy.key, strategy.value, Placement(strategy.placement))
    if isinstance(strategy, BasicAuth):
        return BasicAuthHandler(strategy.username, strategy.password)
    if isinstance(strategy, BearerAuth):
        return BearerAuthHandler(strategy.token)
    raise TypeError(f"Unknown auth strategy: {type(strategy).__name__}")


def header_contribution(strategy: Optional[AuthStrategy]) -> Dict[str, str]:
    """Header fields contributed by strategy."""
    return create_auth_handler(strategy).get_header()


def url_contribution(strategy: Optional[AuthStrategy]) -> Dict[str, str]:
    """URL query fields contributed by strategy."""
    return create_auth_handler(strategy).get_query()


def body_contribution(strategy: Optional[AuthStrategy]) -> Dict[str, str]:
    """Body fields contributed by strategy. Raises for unsupported placements."""
    return create_auth_handler(strategy).get_body_fields()
