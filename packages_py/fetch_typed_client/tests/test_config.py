"""
Tests for config.py
Logic testing: Decision/Branch, Boundary Value, Error Path coverage
"""
import logging
from dataclasses import dataclass

import pytest
from pydantic import BaseModel, Field
from rich.console import Console

from fetch_typed_client.config import (
    ClientConfig,
    DefaultSerializer,
    LoggingConfig,
    is_ssl_verify_disabled_by_env,
    normalize_timeout,
    resolve_config,
    validate_auth_strategy,
    validate_config,
)
from fetch_typed_client.types import ApiKeyAuth, BasicAuth, BearerAuth, NoAuth, Serializer, TimeoutConfig


class Aliased(BaseModel):
    user_name: str = Field(alias="userName")


@dataclass
class Point:
    x: int
    y: int


class TestDefaultSerializer:
    """Tests for DefaultSerializer."""

    def test_is_serializer(self):
        assert isinstance(DefaultSerializer(), Serializer)

    # Decision: pydantic model encoded by alias
    def test_encode_model(self):
        assert DefaultSerializer().encode(Aliased(userName="x")) == b'{"userName":"x"}'

    # Decision: dataclass and dict
    def test_encode_dataclass_and_dict(self):
        serializer = DefaultSerializer()
        assert serializer.encode(Point(1, 2)) == b'{"x":1,"y":2}'
        assert serializer.encode({"a": [1, None]}) == b'{"a":[1,null]}'

    # Decision: decode without model
    def test_decode_plain(self):
        assert DefaultSerializer().decode(b'{"a":1}') == {"a": 1}

    # Decision: decode into model types
    def test_decode_models(self):
        serializer = DefaultSerializer()
        assert serializer.decode(b'{"userName":"x"}', Aliased) == Aliased(userName="x")
        assert serializer.decode(b'{"x":1,"y":2}', Point) == Point(1, 2)
        assert serializer.decode(b"[1,2]", list[int]) == [1, 2]

    # Error Path: invalid payload
    def test_decode_invalid(self):
        with pytest.raises(ValueError):
            DefaultSerializer().decode(b'{"x":"a"}', Point)


class TestNormalizeTimeout:
    """Tests for normalize_timeout."""

    def test_none(self):
        assert normalize_timeout(None) == TimeoutConfig(60.0, 60.0, 60.0)

    def test_number(self):
        assert normalize_timeout(5) == TimeoutConfig(5, 5, 5)

    def test_config(self):
        timeout = TimeoutConfig(connect=1)
        assert normalize_timeout(timeout) is timeout


class TestSslEnv:
    """Tests for is_ssl_verify_disabled_by_env."""

    @pytest.mark.parametrize(
        "name,value,expected",
        [
            ("SSL_CERT_VERIFY", "0", True),
            ("NODE_TLS_REJECT_UNAUTHORIZED", "0", True),
            ("SSL_CERT_VERIFY", "1", False),
        ],
    )
    def test_env(self, monkeypatch, name, value, expected):
        monkeypatch.delenv("SSL_CERT_VERIFY", raising=False)
        monkeypatch.delenv("NODE_TLS_REJECT_UNAUTHORIZED", raising=False)
        monkeypatch.setenv(name, value)
        assert is_ssl_verify_disabled_by_env() is expected


class TestValidateConfig:
    """Tests for validate_config."""

    # Error Path: missing base url
    def test_missing_base_url(self):
        with pytest.raises(ValueError, match="base_url is required"):
            validate_config(ClientConfig(base_url=""))

    # Error Path: base url without scheme
    def test_invalid_base_url(self):
        with pytest.raises(ValueError, match="Invalid base_url"):
            validate_config(ClientConfig(base_url="api.example.com"))

    # Error Path: unknown framing
    def test_invalid_framing(self):
        with pytest.raises(ValueError, match="Invalid stream_framing"):
            validate_config(ClientConfig(base_url="https://api.example.com", stream_framing="xml"))

    # Decision: auth strategies
    @pytest.mark.parametrize(
        "auth,message",
        [
            (ApiKeyAuth("", "v"), "key is required"),
            (BasicAuth("", "p"), "username is required"),
            (BearerAuth(""), "token is required"),
        ],
    )
    def test_invalid_auth(self, auth, message):
        with pytest.raises(ValueError, match=message):
            validate_auth_strategy(auth)

    def test_valid_auth(self):
        for auth in (NoAuth(), ApiKeyAuth("k", "v"), BasicAuth("u", ""), BearerAuth("t")):
            validate_auth_strategy(auth)

    # Error Path: unknown strategy
    def test_unknown_auth(self):
        with pytest.raises(TypeError):
            validate_auth_strategy("token")


class TestResolveConfig:
    """Tests for resolve_config."""

    # Happy Path: defaults
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SSL_CERT_VERIFY", raising=False)
        monkeypatch.delenv("NODE_TLS_REJECT_UNAUTHORIZED", raising=False)
        resolved = resolve_config(ClientConfig(base_url="https://api.example.com"))

        assert resolved.auth == NoAuth()
        assert resolved.headers == {"Content-Type": "application/json; charset=utf-8"}
        assert resolved.timeout == TimeoutConfig()
        assert isinstance(resolved.serializer, DefaultSerializer)
        assert isinstance(resolved.console, Console)
        assert resolved.stream_framing == "ndjson"
        assert resolved.verify_ssl is True

    # Path: provided console and serializer kept
    def test_overrides(self):
        console = Console()
        serializer = DefaultSerializer()
        resolved = resolve_config(
            ClientConfig(
                base_url="https://api.example.com",
                serializer=serializer,
                logging=LoggingConfig(console=console),
                timeout=3,
            )
        )
        assert resolved.console is console
        assert resolved.serializer is serializer
        assert resolved.timeout == TimeoutConfig(3, 3, 3)

    # Decision: ssl disabled by env, warning logged
    def test_ssl_disabled(self, monkeypatch, caplog):
        monkeypatch.setenv("SSL_CERT_VERIFY", "0")
        with caplog.at_level(logging.WARNING, logger="fetch_typed_client.config"):
            resolved = resolve_config(ClientConfig(base_url="https://api.example.com"))
        assert resolved.verify_ssl is False
        assert any("SSL verification disabled" in r.getMessage() for r in caplog.records)

    # Decision: explicit verify wins over env
    def test_ssl_explicit(self, monkeypatch):
        monkeypatch.setenv("SSL_CERT_VERIFY", "0")
        assert resolve_config(ClientConfig(base_url="https://api.example.com", verify_ssl=True)).verify_ssl is True

    # Path: headers copied
    def test_headers_copied(self):
        config = ClientConfig(base_url="https://api.example.com")
        resolved = resolve_config(config)
        resolved.headers["X-New"] = "1"
        assert "X-New" not in config.headers
