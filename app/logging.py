import logging
import json
import os
from typing import Any
from opentelemetry.trace import get_current_span


SENSITIVE_KEYS = {"password", "token", "authorization", "email", "phone"}
REDACTED = "[REDACTED]"


def _g_value(name: str) -> str:
    """Attribute of flask.g for the current request, or "n/a" outside one."""
    from flask import g, has_app_context

    if not has_app_context():
        return "n/a"
    return getattr(g, name, None) or "n/a"


def current_request_id() -> str:
    return _g_value("request_id")


def current_cart_owner() -> str:
    return _g_value("user_id")


class RequestContextFilter(logging.Filter):
    """Attach the request id and the cart owner to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        record.user_id = current_cart_owner()
        return True


def current_trace_ids():
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return "n/a", "n/a"
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id, record.span_id = current_trace_ids()
        return True


def mask(value: Any) -> Any:
    """Redact sensitive keys, including inside nested payloads such as product snapshots."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else mask(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [mask(item) for item in value]
    return value


class MaskingFilter(logging.Filter):
    """Redacts dict log payloads; DEBUG records stay readable outside production."""

    def filter(self, record: logging.LogRecord) -> bool:
        env = os.getenv("APP_ENV", "development").lower()
        if record.levelno == logging.DEBUG and env != "production":
            return True
        if isinstance(record.msg, dict):
            record.msg = mask(record.msg)
        if isinstance(record.args, dict):
            record.args = mask(record.args)
        return True


class JsonFormatter(logging.Formatter):
    CONTEXT_FIELDS = ("request_id", "user_id", "trace_id", "span_id")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
        }
        for field in self.CONTEXT_FIELDS:
            entry[field] = getattr(record, field, "n/a")
        if isinstance(record.msg, dict):
            entry.update(record.msg)
        else:
            entry["message"] = record.getMessage()
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_level(app) -> int:
    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        return getattr(logging, level_name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z"))
    for log_filter in (RequestContextFilter(), TraceIdFilter(), MaskingFilter()):
        handler.addFilter(log_filter)
    level = _resolve_level(app)

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    werkzeug_logger = logging.getLogger("werkzeug")
    werkzeug_logger.setLevel(level)
    werkzeug_logger.handlers.clear()
    werkzeug_logger.addHandler(handler)
