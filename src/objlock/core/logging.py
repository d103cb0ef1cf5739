"""Logging helpers for objlock."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import sys
from datetime import UTC, datetime
from pathlib import Path

from objlock.core.constants import LOG_LEVEL_ENV, VALID_LOG_LEVELS

_LOG_RECORD_RESERVED_FIELDS = set(logging.makeLogRecord({}).__dict__.keys()) | {"message", "asctime", "extra_fields"}
_REDACTION_FLAG_ATTR = "_objlock_redacted"
_REDACTED_VALUE = "[REDACTED]"

# Credential names used by the storage SDKs (boto3, google-cloud-storage)
_SENSITIVE_FIELD_NAMES = {
    "password",
    "secret",
    "token",
    "session_token",
    "access_token",
    "refresh_token",
    "aws_secret_access_key",
    "aws_session_token",
    "private_key",
    "private_key_id",
    "api_key",
    "authorization",
}
_SENSITIVE_KEY_REGEX = (
    r"aws[_-]?secret[_-]?access[_-]?key|aws[_-]?session[_-]?token|private[_-]?key(?:[_-]?id)?|"
    r"access[_-]?token|refresh[_-]?token|session[_-]?token|api[_-]?key|authorization|password|secret|token"
)
_SENSITIVE_KEY_VALUE_PATTERN = re.compile(
    rf"""(?ix)
    (?P<key>["']?(?<![A-Za-z0-9_])(?:{_SENSITIVE_KEY_REGEX})(?![A-Za-z0-9_])["']?)
    (?P<separator>\s*[:=]\s*)
    (?P<value>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^,\s;}}\]]+)
    """
)
_BEARER_PATTERN = re.compile(r"(?i)\b(bearer)\s+([A-Za-z0-9._~+/=-]+)")


def _normalize_field_name(name: str) -> str:
    separated = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
    return re.sub(r"[^a-z0-9]+", "_", separated.lower()).strip("_")


def _is_sensitive_field(name: str) -> bool:
    normalized = _normalize_field_name(name)
    if normalized in _SENSITIVE_FIELD_NAMES:
        return True
    parts = normalized.split("_")
    return "secret" in parts or "token" in parts or "password" in parts


def _redact_key_value_match(match: re.Match[str]) -> str:
    value = match.group("value")
    if len(value) >= 2 and value[0] in {"'", '"'} and value[-1] == value[0]:
        redacted = f"{value[0]}{_REDACTED_VALUE}{value[0]}"
    else:
        redacted = _REDACTED_VALUE
    return f"{match.group('key')}{match.group('separator')}{redacted}"


def redact_message(message: str) -> str:
    """Mask credential-looking ``key=value`` pairs and bearer tokens in free text."""
    redacted = _BEARER_PATTERN.sub(lambda m: f"{m.group(1)} {_REDACTED_VALUE}", message)
    return _SENSITIVE_KEY_VALUE_PATTERN.sub(_redact_key_value_match, redacted)


def _redact_value(value: object) -> object:
    if isinstance(value, dict):
        return {
            key: _REDACTED_VALUE if _is_sensitive_field(str(key)) else _redact_value(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(item) for item in value)
    if isinstance(value, str):
        return redact_message(value)
    return value


def _safe_record_message(record: logging.LogRecord) -> str:
    try:
        return record.getMessage()
    except Exception:
        # Broken placeholders must not take the caller down with them.
        return f"{record.msg!s} [log-message-format-error]"


def _record_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    explicit = getattr(record, "extra_fields", None)
    if isinstance(explicit, dict):
        extras.update(explicit)
    for key, value in record.__dict__.items():
        if key in _LOG_RECORD_RESERVED_FIELDS or key.startswith("_"):
            continue
        extras.setdefault(key, value)
    return extras


class SensitiveDataFilter(logging.Filter):
    """Best-effort redaction for credentials in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.__dict__.get(_REDACTION_FLAG_ATTR):
            return True

        record.msg = redact_message(_safe_record_message(record))
        record.args = ()
        for key, value in list(record.__dict__.items()):
            if key in _LOG_RECORD_RESERVED_FIELDS or key.startswith("_"):
                continue
            if _is_sensitive_field(key):
                record.__dict__[key] = _REDACTED_VALUE
            else:
                record.__dict__[key] = _redact_value(value)
        record.__dict__[_REDACTION_FLAG_ATTR] = True
        return True


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging output.

    Each log record is a single JSON object on one line, with contextual
    fields such as ``lock_name`` and ``key`` merged in at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = _safe_record_message(record)
        if not record.__dict__.get(_REDACTION_FLAG_ATTR):
            message = redact_message(message)

        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = _record_extras(record)
        if extras:
            log_entry.update(_redact_value(extras))

        return json.dumps(log_entry, default=str)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges contextual fields into record extras."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        merged_extra = dict(self.extra)
        extra = kwargs.get("extra")
        if isinstance(extra, dict):
            merged_extra.update(extra)
        kwargs["extra"] = merged_extra
        return msg, kwargs


def with_log_context(
    logger: logging.Logger | logging.LoggerAdapter, **context: object
) -> logging.Logger | logging.LoggerAdapter:
    """Return a logger enriched with persistent contextual fields."""
    base_logger = logger
    existing_context: dict[str, object] = {}
    if isinstance(logger, logging.LoggerAdapter):
        existing_context = dict(logger.extra or {})
        base_logger = logger.logger

    existing_context.update({k: v for k, v in context.items() if v is not None})
    return ContextLoggerAdapter(base_logger, existing_context)


def setup_logging(
    log_level: str | None = None,
    log_format: str = "text",
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure root logging for the objlock CLI.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "text" (default) or "json" for structured logging
        log_file: Optional file receiving the same records as the console

    Returns:
        The ``objlock`` package logger

    Priority: 1) Passed parameter, 2) Environment variable LOG_LEVEL, 3) Default INFO
    """
    if log_level is None:
        log_level = os.environ.get(LOG_LEVEL_ENV, "INFO")

    if log_level.upper() not in VALID_LOG_LEVELS:
        print(f"Warning: Invalid log level '{log_level}', using INFO", file=sys.stderr)
        log_level = "INFO"
    numeric_level = getattr(logging, log_level.upper())

    for handler in logging.root.handlers[:]:
        handler.close()
        logging.root.removeHandler(handler)

    # Log to stderr so command output on stdout stays machine-readable
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    if log_format.lower() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(numeric_level)
        handler.addFilter(SensitiveDataFilter())
        logging.root.addHandler(handler)

    logging.root.setLevel(numeric_level)

    logger = logging.getLogger("objlock")
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    return logger


def flush_logging_handlers() -> None:
    """Flush root handlers before the process exits."""
    for handler in logging.root.handlers:
        with contextlib.suppress(Exception):
            handler.flush()
