"""Record handlers: space-separated value text, JSON, and span-context enrichment."""

from __future__ import annotations

import copy
import json
import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import IntEnum
from typing import Any, Callable, Optional, Protocol, Sequence, TextIO, Tuple

TIME_KEY = "time"
LEVEL_KEY = "level"
MESSAGE_KEY = "msg"
SOURCE_KEY = "source"
BAD_KEY = "!BADKEY"

TRACE_KEY = "logging.googleapis.com/trace"
SPAN_ID_KEY = "logging.googleapis.com/spanId"
TRACE_SAMPLED_KEY = "logging.googleapis.com/trace_sampled"

ReplaceAttr = Callable[[Sequence[str], str, Any], Tuple[str, Any]]


class Level(IntEnum):
    """Importance of a log record; higher is more severe."""

    DEBUG = -4
    INFO = 0
    WARN = 4
    ERROR = 8

    def __str__(self) -> str:
        return self.name


@dataclass
class Record:
    """A single log event: when, how severe, what, and extra attributes."""

    level: Level
    message: str
    time: Optional[datetime] = None
    attrs: list = field(default_factory=list)
    source: Optional[dict] = None

    def add_attrs(self, *args: Tuple[str, Any]) -> None:
        """Append (key, value) attributes, dropping empty groups."""
        for key, value in args:
            if isinstance(value, dict) and not value:
                continue
            self.attrs.append((key, value))


@dataclass(frozen=True)
class SpanContext:
    """Identifies the trace span a log record belongs to."""

    trace_id: str = "0" * 32
    span_id: str = "0" * 16
    sampled: bool = False

    def is_valid(self) -> bool:
        return _nonzero_hex(self.trace_id) and _nonzero_hex(self.span_id)


class _Handler(Protocol):
    def enabled(self, level: Level) -> bool: ...

    def handle(self, record: Record, ctx: Optional[SpanContext] = None) -> None: ...


def _nonzero_hex(text: str) -> bool:
    try:
        return int(text, 16) != 0
    except ValueError:
        return False


_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


def _quote(text: str) -> str:
    parts = ['"']
    for ch in text:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            parts.append(escaped)
        elif ch.isprintable():
            parts.append(ch)
        else:
            code = ord(ch)
            if code < 0x80:
                parts.append(f"\\x{code:02x}")
            elif code < 0x10000:
                parts.append(f"\\u{code:04x}")
            else:
                parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def _format_time(moment: datetime) -> str:
    """Format as RFC 3339 with trailing fractional zeros removed."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if seconds == 0:
        return text + "Z"
    sign = "-" if seconds < 0 else "+"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _format_float(value: float) -> str:
    """Shortest representation, switching to exponent form outside [1e-4, 1e6)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(map(str, digits))
    decimal_exp = exponent + len(digits) - 1
    prefix = "-" if sign else ""
    if decimal_exp < -4 or decimal_exp >= 6:
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        exp_sign = "-" if decimal_exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(decimal_exp):02d}"
    if decimal_exp >= 0:
        whole = text[: decimal_exp + 1].ljust(decimal_exp + 1, "0")
        fraction = text[decimal_exp + 1:]
        return prefix + whole + ("." + fraction if fraction else "")
    return prefix + "0." + "0" * (-decimal_exp - 1) + text


def _text_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, Level):
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return str(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, Level):
        return str(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


class ValueTextHandler:
    """Writes each record as one line of space-separated values.

    Strings are quoted, times use RFC 3339, and group attributes are
    flattened into their members.
    """

    def __init__(self, out: TextIO, level: Level = Level.INFO, add_source: bool = False) -> None:
        self.out = out
        self.level = Level(level)
        self.add_source = add_source
        self.attrs: tuple = ()
        self.groups: tuple = ()
        self._lock = threading.Lock()

    def enabled(self, level: Level) -> bool:
        return level >= self.level

    def with_attrs(self, attrs) -> "ValueTextHandler":
        """Return a handler sharing this output, carrying extra attributes."""
        clone = copy.copy(self)
        clone.attrs = self.attrs + tuple(attrs)
        return clone

    def with_group(self, name: str) -> "ValueTextHandler":
        """Return a handler sharing this output, inside the named group."""
        clone = copy.copy(self)
        clone.groups = self.groups + (name,)
        return clone

    def handle(self, record: Record, ctx: Optional[SpanContext] = None) -> None:
        parts: list[str] = []
        if record.time is not None:
            self._append(parts, TIME_KEY, record.time)
        self._append(parts, LEVEL_KEY, record.level)
        self._append(parts, MESSAGE_KEY, record.message)
        for key, value in record.attrs:
            self._append(parts, key, value)
        line = "".join(parts) + "\n"
        with self._lock:
            self.out.write(line)

    def _append(self, parts: list, key: str, value: Any) -> None:
        if key == "" and value is None:
            return
        if isinstance(value, str):
            parts.append(_quote(value) + " ")
        elif isinstance(value, datetime):
            parts.append(_format_time(value) + " ")
        elif isinstance(value, dict):
            for sub_key, sub_value in value.items():
                self._append(parts, sub_key, sub_value)
        else:
            parts.append(_text_value(value) + " ")


class JSONHandler:
    """Writes each record as one JSON object per line."""

    def __init__(
        self,
        out: TextIO,
        level: Level = Level.INFO,
        add_source: bool = False,
        replace_attr: Optional[ReplaceAttr] = None,
    ) -> None:
        self.out = out
        self.level = Level(level)
        self.add_source = add_source
        self.replace_attr = replace_attr
        self._lock = threading.Lock()

    def enabled(self, level: Level) -> bool:
        return level >= self.level

    def handle(self, record: Record, ctx: Optional[SpanContext] = None) -> None:
        obj: dict = {}
        if record.time is not None:
            self._put(obj, (), TIME_KEY, record.time)
        self._put(obj, (), LEVEL_KEY, record.level)
        if self.add_source and record.source is not None:
            self._put(obj, (), SOURCE_KEY, dict(record.source), as_group=False)
        self._put(obj, (), MESSAGE_KEY, record.message)
        for key, value in record.attrs:
            self._put(obj, (), key, value)
        line = json.dumps(obj, ensure_ascii=False, separators=(",", ":")) + "\n"
        with self._lock:
            self.out.write(line)

    def _put(self, obj: dict, groups: tuple, key: str, value: Any, *, as_group: bool = True) -> None:
        if as_group and isinstance(value, dict):
            if not value:
                return
            target = obj if key == "" else {}
            inner_groups = groups if key == "" else groups + (key,)
            for sub_key, sub_value in value.items():
                self._put(target, inner_groups, sub_key, sub_value)
            if key and target:
                obj[key] = target
            return
        if self.replace_attr is not None:
            key, value = self.replace_attr(list(groups), key, value)
        if key == "" and value is None:
            return
        obj[key] = _jsonable(value)


class SpanContextHandler:
    """Wraps a handler, adding trace attributes when a valid span is given."""

    def __init__(self, handler: _Handler) -> None:
        self.handler = handler

    def enabled(self, level: Level) -> bool:
        return self.handler.enabled(level)

    def handle(self, record: Record, ctx: Optional[SpanContext] = None) -> None:
        if isinstance(ctx, SpanContext) and ctx.is_valid():
            record = replace(record, attrs=list(record.attrs))
            record.add_attrs(
                (TRACE_KEY, ctx.trace_id),
                (SPAN_ID_KEY, ctx.span_id),
                (TRACE_SAMPLED_KEY, ctx.sampled),
            )
        self.handler.handle(record, ctx)