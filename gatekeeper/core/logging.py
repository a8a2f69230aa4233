"""Logging utilities: JSON formatting, redaction and request correlation.

Limiter keys are client identities (IP addresses, API keys), so they are
never written to logs verbatim: callers log ``hash_key(key)`` and any field
named like a credential is replaced with ``[REDACTED]``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from gatekeeper.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "x-api-key",
        "authorization",
        "token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
        "client_ip",
        "rate_limit_key",
    }
)

# Built-in LogRecord attributes that are not user-supplied extras
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def set_request_id(request_id: str | None) -> None:
    """Bind a correlation id to the current context."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_key(key: str) -> str:
    """Short, stable fingerprint of a limiter key that is safe to log."""

    return hashlib.sha256(key.encode()).hexdigest()[:16]


def redact(value: Any, sensitive_keys: frozenset[str] = SENSITIVE_KEYS_DEFAULT) -> Any:
    """Recursively replace values stored under sensitive keys.

    Args:
        value: Arbitrary value from log record extras.
        sensitive_keys: Lower-case field names that must be hidden.

    Returns:
        A copy of ``value`` with sensitive entries replaced by ``[REDACTED]``.
    """

    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in sensitive_keys else redact(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v, sensitive_keys) for v in value)
    return value


def _record_extras(record: LogRecord, sensitive_keys: frozenset[str]) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        extras[key] = REDACTED if key.lower() in sensitive_keys else redact(value, sensitive_keys)
    return extras


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive extras in place before any formatter sees them."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in _record_extras(record, self.sensitive_keys).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(_record_extras(record, self.sensitive_keys))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Return a stdout handler, or a (rotating) file handler when configured."""

    if log_settings.output == "file":
        file_path = Path(log_settings.file_path or "logs/gatekeeper.log")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if log_settings.max_bytes:
            return RotatingFileHandler(
                file_path,
                maxBytes=log_settings.max_bytes,
                backupCount=log_settings.backup_count,
                encoding="utf-8",
            )
        return logging.FileHandler(file_path, encoding="utf-8")

    return logging.StreamHandler(sys.stdout)


def configure_logging(log_settings: LogSettings | None = None, *, debug: bool | None = None) -> None:
    """Configure the root logger with redaction and the selected formatter.

    Args:
        log_settings: Optional log settings; defaults to global settings.
        debug: Force DEBUG level; defaults to ``settings.app.debug``.
    """

    cfg = log_settings or settings.log
    debug = settings.app.debug if debug is None else debug

    level = logging.DEBUG if debug else getattr(logging, cfg.level.upper(), logging.INFO)
    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())

    if cfg.format == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
