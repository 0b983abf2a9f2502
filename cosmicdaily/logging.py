import dataclasses
import enum
import json
import logging
import os
import traceback
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
import queue
import sys
from typing import Any, Dict, Optional, Tuple, List
from logging import Handler

from .config import Settings
from .constants import LOG_STRING_MAX_LENGTH


_REDACT_KEYS: set[str] = set()

_logger: Optional[logging.Logger] = None
_log_listener: Optional[QueueListener] = None


def _json_dumps_compact(obj: Any) -> str:
    """Compact JSON serialization with minimal separators."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def _is_json_serializable(obj: Any) -> bool:
    try:
        json.dumps(obj)
        return True
    except (TypeError, ValueError):
        return False


def _sanitize_for_json(obj: Any) -> Any:
    """Recursively sanitize an object for JSON serialization.

    Converts non-serializable types (bytes, dataclasses, etc.) into
    JSON-compatible structures while redacting sensitive fields. Handles:
    - Bytes: summarised by length, image payloads are never logged
    - Dataclasses: Converted to dictionaries
    - Dictionaries: Redacts keys listed in _REDACT_KEYS and removes null values
    - Lists/sets/tuples: Recursively sanitizes each element
    - Non-serializable objects: Converted via repr()

    Args:
        obj (Any): Input object to sanitize.

    Returns:
        Any: JSON-serializable structure with sensitive data redacted and null values removed.
    """
    if isinstance(obj, (bytes, bytearray)):
        return f"<{len(obj)} bytes>"
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _sanitize_for_json(dataclasses.asdict(obj))
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        redacted = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in _REDACT_KEYS:
                redacted[k] = "***REDACTED***"
            else:
                sanitized_value = _sanitize_for_json(v)
                # Only include non-null values
                if sanitized_value is not None:
                    redacted[k] = sanitized_value
        return redacted
    if isinstance(obj, (list, tuple, set)):
        return [_sanitize_for_json(x) for x in obj if x is not None]
    if _is_json_serializable(obj):
        return obj
    return repr(obj)


class LogEvent(enum.Enum):
    """Enumeration of structured log events emitted throughout Cosmic Daily.

    Each value marks a distinct milestone or error category while fetching,
    caching, pre-fetching images or translating. These constants are used in
    ``LogRecord.event`` for consistent analytics and monitoring.
    """

    FETCH_START = "fetch_start"
    FETCH_COMPLETED = "fetch_completed"
    FETCH_FAILURE = "fetch_failure"
    FETCH_OFFLINE_FALLBACK = "fetch_offline_fallback"
    BACKGROUND_REFRESH = "background_refresh"
    SINGLE_FLIGHT = "single_flight"
    UPSTREAM_REQUEST = "upstream_request"
    UPSTREAM_RESPONSE = "upstream_response"
    UPSTREAM_FAILURE = "upstream_failure"
    RECORD_CACHE_EVENT = "record_cache_event"
    BLOB_CACHE_EVENT = "blob_cache_event"
    IMAGE_PREFETCH = "image_prefetch"
    TRANSLATION_EVENT = "translation_event"
    CACHE_CLEARED = "cache_cleared"
    CONFIGURATION = "configuration"


@dataclasses.dataclass
class LogError:
    """Structured representation of an exception attached to a log entry.

    Attributes:
        name: Exception class name.
        message: Human-readable description.
        stack_trace: Full traceback string (may be ``None`` when suppressed).
        args: JSON-safe serialization of ``Exception.args``.
    """

    name: str
    message: str
    stack_trace: Optional[str] = None
    args: Optional[Tuple[Any, ...]] = None


@dataclasses.dataclass
class LogRecord:
    """Primary payload transported via the logging system.

    Attributes:
        event: Identifier from :class:`LogEvent` or custom tag.
        message: Short human-readable summary.
        key: Cache key or URL the entry is about, when there is one.
        data: Arbitrary contextual dictionary (sanitized/truncated).
        error: Optional :class:`LogError` with exception details.
    """

    event: str
    message: str
    key: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[LogError] = None


class JSONFormatter(logging.Formatter):
    """Formatter that outputs log records as compact JSON lines.

    Injects timestamp, level and logger name around the attached
    :class:`LogRecord`. Long strings in ``data`` are truncated.
    """

    include_stack_trace = True

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        payload = getattr(record, "log_record", None)
        if isinstance(payload, LogRecord):
            entry["detail"] = self._detail(payload)
        else:
            entry["message"] = record.getMessage()
            if record.exc_info:
                entry["error"] = self._exc_info_error(record.exc_info)
        return _json_dumps_compact(_sanitize_for_json(entry))

    def _detail(self, payload: LogRecord) -> Dict[str, Any]:
        detail = _sanitize_for_json(dataclasses.asdict(payload))
        for key, value in detail.get("data", {}).items():
            if isinstance(value, str) and len(value) > LOG_STRING_MAX_LENGTH:
                detail["data"][key] = value[:LOG_STRING_MAX_LENGTH] + "...[truncated]"
        if not self.include_stack_trace and "error" in detail:
            detail["error"].pop("stack_trace", None)
        return detail

    def _exc_info_error(self, exc_info: Any) -> Dict[str, Any]:
        exc_type, exc_value, exc_tb = exc_info
        error_entry: Dict[str, Any] = {
            "name": exc_type.__name__ if exc_type else "UnknownError",
            "message": str(exc_value),
            "args": getattr(exc_value, "args", []),
        }
        if self.include_stack_trace:
            error_entry["stack_trace"] = "".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            )
        return error_entry


class ConsoleJSONFormatter(JSONFormatter):
    """JSON lines without stack traces, for interactive consoles."""

    include_stack_trace = False


def init_logging(settings: Settings) -> logging.Logger:
    global _logger
    global _log_listener
    shutdown_logging()

    log_queue: queue.Queue = queue.Queue(-1)
    queue_handler = QueueHandler(log_queue)

    console_handler = logging.StreamHandler(stream=sys.stderr)
    console_handler.setFormatter(
        ConsoleJSONFormatter() if settings.log_pretty_console else JSONFormatter()
    )

    handlers: List[Handler] = [console_handler]

    if settings.log_file_path:
        try:
            log_dir = os.path.dirname(settings.log_file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                settings.log_file_path, mode="a", encoding="utf-8"
            )
            file_handler.setFormatter(JSONFormatter())
            handlers.append(file_handler)
        except OSError as e:
            logging.getLogger(settings.app_name).warning(
                "Failed to configure file logging: %s", e
            )

    if settings.error_log_file_path:
        try:
            err_dir = os.path.dirname(settings.error_log_file_path)
            if err_dir:
                os.makedirs(err_dir, exist_ok=True)
            err_handler = logging.FileHandler(
                settings.error_log_file_path, mode="a", encoding="utf-8"
            )
            err_handler.setLevel(logging.ERROR)
            err_handler.setFormatter(JSONFormatter())
            handlers.append(err_handler)
        except OSError as e:
            logging.getLogger(settings.app_name).warning(
                "Failed to configure error file logging: %s", e
            )

    _log_listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _log_listener.start()

    for logger_name in ["", settings.app_name, "httpx"]:
        logger = logging.getLogger(logger_name)
        logger.handlers = [queue_handler]
        logger.propagate = False if logger_name != "" else True
        logger.setLevel(
            logging.WARNING
            if logger_name in ("", "httpx")
            else settings.log_level.upper()
        )
    _logger = logging.getLogger(settings.app_name)
    global _REDACT_KEYS
    _REDACT_KEYS = {k.lower() for k in settings.redact_log_fields}
    return _logger


def shutdown_logging() -> None:
    """Safely shutdown logging system, flushing all messages."""
    global _log_listener
    if _log_listener:
        _log_listener.stop()
        _log_listener = None


def _log(level: int, record: LogRecord, exc: Optional[BaseException] = None) -> None:
    """Internal helper to log structured messages with exception handling.

    Processes the exception (if provided) into the LogRecord's error field
    and emits the log entry at the specified level.

    Args:
        level: The logging level (e.g., logging.DEBUG, logging.ERROR)
        record: The structured log record containing event details
        exc: Optional exception to include in error details
    """
    if exc:
        stack_str = None
        if level >= logging.ERROR:
            stack_str = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        sanitized = _sanitize_for_json(exc.args)
        sanitized_args = (
            tuple(sanitized) if isinstance(sanitized, (list, tuple)) else (sanitized,)
        )

        record.error = LogError(
            name=type(exc).__name__,
            message=str(exc),
            stack_trace=stack_str,
            args=sanitized_args,
        )
        if not record.message and str(exc):
            record.message = str(exc)
        elif not record.message:
            record.message = "An unspecified error occurred"

    if _logger:
        _logger.log(level=level, msg=record.message, extra={"log_record": record})


def debug(record: LogRecord) -> None:
    _log(logging.DEBUG, record)


def info(record: LogRecord) -> None:
    _log(logging.INFO, record)


def warning(record: LogRecord, exc: Optional[BaseException] = None) -> None:
    _log(logging.WARNING, record, exc=exc)


def error(record: LogRecord, exc: Optional[BaseException] = None) -> None:
    _log(logging.ERROR, record, exc=exc)
