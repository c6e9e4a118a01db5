"""Loggers that send debug and info to one stream and warnings and errors to another."""

from __future__ import annotations

import inspect
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional, Sequence, TextIO

from .handler import (
    BAD_KEY,
    LEVEL_KEY,
    MESSAGE_KEY,
    SOURCE_KEY,
    TIME_KEY,
    JSONHandler,
    Level,
    Record,
    SpanContext,
    SpanContextHandler,
    ValueTextHandler,
)

DEBUG = "DEBUG"
INFO = "INFO"
WARN = "WARN"
ERROR = "ERROR"

_SEVERITY_LEVELS = {
    DEBUG: Level.DEBUG,
    INFO: Level.INFO,
    WARN: Level.WARN,
    ERROR: Level.ERROR,
}

_LEVEL_SEVERITIES = {str(level): severity for severity, level in _SEVERITY_LEVELS.items()}


def severity_to_level(severity: str) -> Level:
    """Map a severity name, in any case, to its level."""
    try:
        return _SEVERITY_LEVELS[severity.upper()]
    except KeyError:
        raise ValueError("invalid log level") from None


def level_to_severity(name: str) -> str:
    """Map a level's printed name to its severity name."""
    try:
        return _LEVEL_SEVERITIES[name]
    except KeyError:
        raise ValueError("invalid slog level") from None


class Logger(ABC):
    """Interface for reporting messages at four severities."""

    @abstractmethod
    def debug(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Report additional information about internal operations."""

    @abstractmethod
    def info(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Report an informational message."""

    @abstractmethod
    def warn(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Report a warning."""

    @abstractmethod
    def error(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Report an error."""


def _attrs_from_args(args: Sequence[Any]) -> list:
    """Turn alternating keys and values, or (key, value) pairs, into attributes."""
    attrs = []
    items = iter(args)
    for item in items:
        if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
            attrs.append(item)
        elif isinstance(item, str):
            try:
                attrs.append((item, next(items)))
            except StopIteration:
                attrs.append((BAD_KEY, item))
        else:
            attrs.append((BAD_KEY, item))
    return attrs


def _log(handler, level: Level, msg: str, args: Sequence[Any], ctx: Optional[SpanContext]) -> None:
    """Build a record for the caller of a logger method and hand it on."""
    if not handler.enabled(level):
        return
    caller = sys._getframe(2)
    filename = caller.f_code.co_filename
    module = inspect.getmodulename(filename) or ""
    source = {
        "function": f"{module}.{caller.f_code.co_name}",
        "file": filename,
        "line": caller.f_lineno,
    }
    record = Record(level, msg, time=datetime.now().astimezone(), source=source)
    record.add_attrs(*_attrs_from_args(args))
    handler.handle(record, ctx)


class StdLogger(Logger):
    """Writes space-separated value lines."""

    def __init__(self, out: TextIO, err: TextIO, log_level: str) -> None:
        level = severity_to_level(log_level)
        self._out = ValueTextHandler(out, level)
        self._err = ValueTextHandler(err, level)

    def debug(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log a debug message to the output stream."""
        _log(self._out, Level.DEBUG, msg, args, ctx)

    def info(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log an informational message to the output stream."""
        _log(self._out, Level.INFO, msg, args, ctx)

    def warn(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log a warning to the error stream."""
        _log(self._err, Level.WARN, msg, args, ctx)

    def error(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log an error to the error stream."""
        _log(self._err, Level.ERROR, msg, args, ctx)


def _cloud_replace(groups: Sequence[str], key: str, value: Any):
    if key == LEVEL_KEY:
        try:
            severity = level_to_severity(str(value))
        except ValueError:
            severity = ""
        return "severity", severity
    if key == MESSAGE_KEY:
        return "message", value
    if key == SOURCE_KEY:
        return "logging.googleapis.com/sourceLocation", value
    if key == TIME_KEY:
        return "timestamp", value
    return key, value


class StructuredLogger(Logger):
    """Writes JSON lines in a structured cloud log-entry layout."""

    def __init__(self, out: TextIO, err: TextIO, log_level: str) -> None:
        level = severity_to_level(log_level)
        self._out = SpanContextHandler(JSONHandler(out, level, add_source=True, replace_attr=_cloud_replace))
        self._err = SpanContextHandler(JSONHandler(err, level, add_source=True, replace_attr=_cloud_replace))

    def debug(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log a debug message to the output stream."""
        _log(self._out, Level.DEBUG, msg, args, ctx)

    def info(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log an informational message to the output stream."""
        _log(self._out, Level.INFO, msg, args, ctx)

    def warn(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log a warning to the error stream."""
        _log(self._err, Level.WARN, msg, args, ctx)

    def error(self, msg: str, *args: Any, ctx: Optional[SpanContext] = None) -> None:
        """Log an error to the error stream."""
        _log(self._err, Level.ERROR, msg, args, ctx)