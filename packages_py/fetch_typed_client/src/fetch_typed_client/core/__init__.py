"""
Core modules for fetch_typed_client.
"""
from .base_client import TypedFetchClient, outcome_pair
from .request_builder import (
    build_url,
    build_headers,
    build_body,
    build_request,
    merge_headers,
)
from .response_resolver import is_success_status, resolve_response

__all__ = [
    "TypedFetchClient",
    "outcome_pair",
    "build_url",
    "build_headers",
    "build_body",
    "build_request",
    "merge_headers",
    "is_success_status",
    "resolve_response",
]
