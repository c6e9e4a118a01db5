# toolboxlog

This package provides two small loggers that share one interface, `toolboxlog.loggers.Logger`. Informational messages go to one stream and problems go to another.

- `StdLogger` writes one line of space-separated values for each record. The line holds the RFC 3339 timestamp, the level, the quoted message and then any extra attribute values.
- `StructuredLogger` writes one JSON object for each record. It uses the keys `timestamp`, `severity`, `message` and `logging.googleapis.com/sourceLocation`. The source location holds the function, file and line of the call. When a valid span context is passed, the object also gets `logging.googleapis.com/trace`, `logging.googleapis.com/spanId` and `logging.googleapis.com/trace_sampled`.

Records from `debug` and `info` go to the *out* stream. Records from `warn` and `error` go to the *err* stream. A record below the configured level is dropped.

## Installation

```
pip install toolboxlog
```

## Usage

```python
import sys
from toolboxlog.loggers import StdLogger, StructuredLogger

log = StdLogger(sys.stdout, sys.stderr, "info")
log.info("Initialized 3 sources.")
# 2024-11-12T15:08:11.451377-08:00 INFO "Initialized 3 sources."
log.debug("not shown at info level")
log.warn("something looks off")          # written to stderr

jlog = StructuredLogger(sys.stdout, sys.stderr, "debug")
jlog.error("query failed", "tool", "my-tool")
```

You can pass extra attributes after the message in either of two forms:

- alternating keys and values, for example `"tool", "my-tool"`;
- `(key, value)` tuples.

A key that has no value is kept under the key `!BADKEY`. So is any other argument that is not a key.

Level names are not case-sensitive. The accepted names are `DEBUG`, `INFO`, `WARN` and `ERROR`. Any other name raises `ValueError`, both in the logger constructors and in the helper functions:

```python
from toolboxlog.loggers import severity_to_level, level_to_severity

severity_to_level("Warn")    # Level.WARN
level_to_severity("ERROR")   # "ERROR"
```

### Trace context

To add trace fields to structured records, pass a `SpanContext` as `ctx`. A span context counts as valid only when both its trace id and its span id are non-zero hexadecimal. `StdLogger` accepts `ctx` but does not write it.

```python
from toolboxlog.handler import SpanContext

span = SpanContext(trace_id="4bf92f3577b34da6a3ce929d0e0e4736",
                   span_id="00f067aa0ba902b7", sampled=True)
jlog.info("handled request", ctx=span)
```

### Handlers

You can also use the handlers in `toolboxlog.handler` directly. Build a `Record(level, message, time=..., attrs=[...], source=...)` and call `handle(record, ctx)`.

- `ValueTextHandler(out, level=Level.INFO)` writes the space-separated text format:
  - strings are quoted;
  - datetimes are written as RFC 3339;
  - dictionary values are flattened into their members.

  `with_attrs` and `with_group` return copies that share the same output stream. The copies store the given attributes in `attrs` and the group names in `groups`. Neither is written to the output.
- `JSONHandler(out, level=Level.INFO, add_source=False, replace_attr=None)` writes one JSON object per line. The optional `replace_attr(groups, key, value)` callback returns a new `(key, value)` pair for each attribute.
- `SpanContextHandler(handler)` wraps another handler and adds the trace fields when it is given a valid `SpanContext`.

## What it does not do

This is a small library with no command-line program. It writes only to the text streams you give it. It does not rotate or manage log files. It does not connect to Python's standard `logging` module, and it does not send records to any collector.