from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.config import dictConfig
from typing import Any

from traechan.settings import AppEnv, LoggerType, Settings, get_settings

_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}

AUDIT_LOGGER_NAME = "traechan.security.audit"


@dataclass
class LogContext:
    """Per-request values stamped onto every log record.

    The middleware installs one instance per request. Dependencies that learn
    more about the caller (the authenticated user id) mutate it in place so the
    middleware's completion log sees the update too.
    """

    request_id: str | None = None
    user_id: object | None = None


_log_context: ContextVar[LogContext | None] = ContextVar("traechan_log_context", default=None)


def normalize_log_level(raw_level: str, app_env: AppEnv = AppEnv.dev) -> str:
    level = raw_level.strip().upper()
    if level in _VALID_LOG_LEVELS:
        return level
    return "INFO" if app_env == AppEnv.prd else "DEBUG"


def get_log_context() -> LogContext | None:
    return _log_context.get()


def set_log_context(context: LogContext) -> Token[LogContext | None]:
    return _log_context.set(context)


def reset_log_context(token: Token[LogContext | None]) -> None:
    _log_context.reset(token)


@contextmanager
def log_context(
    *, request_id: str | None = None, user_id: object | None = None
) -> Iterator[LogContext]:
    context = LogContext(request_id=request_id, user_id=user_id)
    token = set_log_context(context)
    try:
        yield context
    finally:
        reset_log_context(token)


def bind_user_id(user_id: object) -> Token[LogContext | None] | None:
    """Attach ``user_id`` to the active log context.

    Inside a request the context already exists and is updated in place, and
    ``None`` is returned. Otherwise a fresh context is installed and its token
    is returned; the caller must pass it to ``reset_log_context``.
    """
    context = get_log_context()
    if context is None:
        return set_log_context(LogContext(user_id=user_id))
    context.user_id = user_id
    return None


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = get_log_context()
        request_id = context.request_id if context is not None else None
        user_id = context.user_id if context is not None else None
        record.request_id = request_id if request_id else "-"
        record.user_id = user_id if user_id is not None else "-"
        return True


def _record_fields(record: logging.LogRecord) -> dict[str, object]:
    fields = getattr(record, "log_fields", None)
    if isinstance(fields, dict):
        return fields
    return {}


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
            "message": getattr(record, "log_message", None) or record.getMessage(),
        }
        for key, value in _record_fields(record).items():
            payload.setdefault(key, value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


class PrettyLogFormatter(logging.Formatter):
    """Human-oriented layout: one header line, then one indented line per field."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        message = getattr(record, "log_message", None) or record.getMessage()
        lines = [
            f"{timestamp} {record.levelname:<8} {record.name} "
            f"(req={getattr(record, 'request_id', '-')} user={getattr(record, 'user_id', '-')}) "
            f"{message}"
        ]
        fields = _record_fields(record)
        for key in sorted(fields):
            lines.append(f"    {key}: {fields[key]}")
        if record.exc_info:
            lines.append(self.formatException(record.exc_info))
        return "\n".join(lines)


def _format_log_value(value: object) -> str:
    text = value if isinstance(value, str) else str(value)
    escaped: list[str] = []
    for char in text:
        if char in _CONTROL_ESCAPES:
            escaped.append(_CONTROL_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            escaped.append(f"\\x{ord(char):02x}")
        else:
            escaped.append(char)
    return "".join(escaped)


def format_log_fields(**fields: object) -> str:
    parts: list[str] = []
    for key in sorted(fields):
        value = fields[key]
        if value is None:
            continue
        parts.append(f"{key}={_format_log_value(value)}")
    return " ".join(parts)


def log_with_fields(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    exc_info: Any | None = None,
    **fields: object,
) -> None:
    sanitized = {key: _format_log_value(value) for key, value in fields.items() if value is not None}
    extra = {"log_fields": sanitized, "log_message": message}
    field_text = format_log_fields(**fields)
    if field_text:
        logger.log(level, "%s %s", message, field_text, exc_info=exc_info, extra=extra)
        return
    logger.log(level, "%s", message, exc_info=exc_info, extra=extra)


def log_security_audit_event(
    *,
    audit_event: str,
    outcome: str,
    **fields: object,
) -> None:
    event_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    selected_level = logging.INFO
    provided_level = fields.get("audit_level")
    if isinstance(provided_level, int):
        selected_level = provided_level

    sanitized_fields = dict(fields)
    sanitized_fields.pop("audit_level", None)

    log_with_fields(
        event_logger,
        selected_level,
        "security audit event",
        audit_event=audit_event,
        outcome=outcome,
        **sanitized_fields,
    )


_FORMATTER_NAMES: dict[LoggerType, str] = {
    LoggerType.console: "console",
    LoggerType.pretty: "pretty",
    LoggerType.json: "json",
}


def configure_logging(settings: Settings | None = None) -> None:
    selected_settings = settings if settings is not None else get_settings()
    level = normalize_log_level(selected_settings.log_level, selected_settings.app_env)
    formatter_name = _FORMATTER_NAMES[selected_settings.logger_type]

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {
                    "()": "traechan.logging_config.RequestContextFilter",
                }
            },
            "formatters": {
                "console": {
                    "format": (
                        "%(asctime)s %(levelname)s [%(name)s] "
                        "[req=%(request_id)s user=%(user_id)s] %(message)s"
                    ),
                },
                "pretty": {
                    "()": "traechan.logging_config.PrettyLogFormatter",
                },
                "json": {
                    "()": "traechan.logging_config.JsonLogFormatter",
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "filters": ["request_context"],
                    "formatter": formatter_name,
                }
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                AUDIT_LOGGER_NAME: {"level": "INFO"},
                "uvicorn": {"level": level},
                "uvicorn.error": {"level": level},
                "uvicorn.access": {"level": level},
            },
        }
    )
