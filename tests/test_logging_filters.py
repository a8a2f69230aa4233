"""Tests for sensitive data filtering and JSON log formatting."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from gatekeeper.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_key,
    redact,
    set_request_id,
)


@pytest.fixture
def capture() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials(capture):
    logger, stream = capture

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "rate_limit_key": "ip:203.0.113.9",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "203.0.113.9" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.exceeded",
        extra={
            "key_hash": hash_key("ip:203.0.113.9"),
            "limit": 100,
            "remaining": 0,
            "retry_after_s": 42,
        },
    )

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "rate_limit.exceeded"
    assert payload["level"] == "info"
    assert payload["limit"] == 100
    assert payload["retry_after_s"] == 42
    assert "[REDACTED]" not in stream.getvalue()


def test_nested_sensitive_fields_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"authorization": "Bearer abc", "user-agent": "pytest"},
            "items": [{"token": "t-1"}, {"count": 5}],
        },
    )

    output = stream.getvalue()
    assert "Bearer abc" not in output
    assert "t-1" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture

    set_request_id("req-123")
    try:
        logger.info("with_request_id")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_hash_key_is_stable_and_short():
    assert hash_key("ip:1.2.3.4") == hash_key("ip:1.2.3.4")
    assert hash_key("ip:1.2.3.4") != hash_key("ip:1.2.3.5")
    assert len(hash_key("anything")) == 16


def test_redact_preserves_sequence_types():
    value = redact({"password": "x", "list": [{"secret": 1}], "tuple": ("a",)})

    assert value == {"password": "[REDACTED]", "list": [{"secret": "[REDACTED]"}], "tuple": ("a",)}
