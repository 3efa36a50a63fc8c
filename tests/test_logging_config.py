from __future__ import annotations

import json
import logging

import pytest

from traechan.logging_config import (
    JsonLogFormatter,
    PrettyLogFormatter,
    RequestContextFilter,
    bind_user_id,
    configure_logging,
    format_log_fields,
    get_log_context,
    log_context,
    log_security_audit_event,
    log_with_fields,
    normalize_log_level,
    reset_log_context,
)
from traechan.settings import AppEnv, LoggerType, Settings


def _record(message: str, **fields: object) -> logging.LogRecord:
    logger = logging.getLogger("traechan.test")
    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        __file__,
        1,
        "%s %s",
        (message, format_log_fields(**fields)),
        None,
        extra={"log_fields": {k: str(v) for k, v in fields.items()}, "log_message": message},
    )
    RequestContextFilter().filter(record)
    return record


def test_format_log_fields_escapes_control_characters() -> None:
    fields = format_log_fields(actor_email="evil@example.com\nforged", note="a\rb\tc\x00")

    assert "actor_email=evil@example.com\\nforged" in fields
    assert "note=a\\rb\\tc\\x00" in fields
    assert "\n" not in fields.replace("\\n", "")
    assert "\r" not in fields.replace("\\r", "")


def test_format_log_fields_sorts_keys_and_skips_none() -> None:
    assert format_log_fields(b=2, a=1, c=None) == "a=1 b=2"


def test_log_security_audit_event_sanitizes_user_controlled_values(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="traechan.security.audit")
    log_security_audit_event(
        audit_event="auth.google_callback",
        outcome="denied",
        email="user@example.com\nforged_line",
        reason="oauth_error\rroot",
    )

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 1

    message = messages[0]
    assert "email=user@example.com\\nforged_line" in message
    assert "reason=oauth_error\\rroot" in message
    assert "\n" not in message
    assert "\r" not in message


def test_configure_logging_keeps_security_audit_logger_at_info() -> None:
    configure_logging(Settings(log_level="WARNING"))

    audit_logger = logging.getLogger("traechan.security.audit")
    assert audit_logger.getEffectiveLevel() == logging.INFO
    assert logging.getLogger().getEffectiveLevel() == logging.WARNING


@pytest.mark.parametrize(
    ("raw", "env", "expected"),
    [
        ("warning", AppEnv.dev, "WARNING"),
        ("", AppEnv.dev, "DEBUG"),
        ("", AppEnv.prd, "INFO"),
        ("verbose", AppEnv.prd, "INFO"),
    ],
)
def test_normalize_log_level(raw: str, env: AppEnv, expected: str) -> None:
    assert normalize_log_level(raw, env) == expected


@pytest.mark.parametrize(
    ("logger_type", "formatter_cls"),
    [(LoggerType.json, JsonLogFormatter), (LoggerType.pretty, PrettyLogFormatter)],
)
def test_configure_logging_selects_formatter_from_logger_type(
    logger_type: LoggerType, formatter_cls: type[logging.Formatter]
) -> None:
    configure_logging(Settings(logger_type=logger_type))

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, formatter_cls)


def test_log_context_is_scoped_and_restored() -> None:
    assert get_log_context() is None

    with log_context(request_id="req-1") as context:
        assert bind_user_id(42) is None
        assert get_log_context() is context
        assert context.user_id == 42

        with log_context(request_id="req-2"):
            current = get_log_context()
            assert current is not None
            assert current.request_id == "req-2"

        assert get_log_context() is context

    assert get_log_context() is None


def test_bind_user_id_outside_request_returns_reset_token() -> None:
    token = bind_user_id(5)

    assert token is not None
    context = get_log_context()
    assert context is not None
    assert context.user_id == 5

    reset_log_context(token)

    assert get_log_context() is None


def test_request_context_filter_stamps_context_values() -> None:
    with log_context(request_id="req-9", user_id=7):
        record = _record("hello")

    assert record.request_id == "req-9"
    assert record.user_id == 7

    outside = _record("hello")
    assert outside.request_id == "-"
    assert outside.user_id == "-"


def test_json_formatter_emits_fields_as_keys() -> None:
    with log_context(request_id="req-json", user_id=3):
        record = _record("new user created", user_id_field=3, provider="google")

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["message"] == "new user created"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-json"
    assert payload["user_id"] == 3
    assert payload["provider"] == "google"
    assert payload["user_id_field"] == "3"


def test_pretty_formatter_lists_fields_on_their_own_lines() -> None:
    record = _record("existing user found", user_id=42)

    lines = PrettyLogFormatter().format(record).splitlines()

    assert "existing user found" in lines[0]
    assert "req=-" in lines[0]
    assert lines[1] == "    user_id: 42"


def test_log_with_fields_writes_message_and_fields(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="traechan.test")
    logger = logging.getLogger("traechan.test")

    log_with_fields(logger, logging.INFO, "plain")
    log_with_fields(logger, logging.INFO, "with fields", user_id=1, email=None)

    assert [r.getMessage() for r in caplog.records] == ["plain", "with fields user_id=1"]
    assert caplog.records[1].log_fields == {"user_id": "1"}
