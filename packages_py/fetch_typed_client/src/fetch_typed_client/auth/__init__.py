"""
Auth handlers for fetch_typed_client.
"""
from .auth_handler import (
    AuthHandler,
    NoAuthHandler,
    ApiKeyAuthHandler,
    BasicAuthHandler,
    BearerAuthHandler,
    create_auth_handler,
    header_contribution,
    url_contribution,
    body_contribution,
    encode_basic_credentials,
)

__all__ = [
    "AuthHandler",
    "NoAuthHandler",
    "ApiKeyAuthHandler",
    "BasicAuthHandler",
    "BearerAuthHandler",
    "create_auth_handler",
    "header_contribution",
    "url_contribution",
    "body_contribution",
    "encode_basic_credentials",
]
