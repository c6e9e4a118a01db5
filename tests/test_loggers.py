import io
import json

import pytest

from toolboxlog.handler import Level, SpanContext
from toolboxlog.loggers import (
    Logger,
    StdLogger,
    StructuredLogger,
    level_to_severity,
    severity_to_level,
)


@pytest.mark.parametrize(
    "text,want",
    [("Debug", Level.DEBUG), ("Info", Level.INFO), ("Warn", Level.WARN), ("Error", Level.ERROR)],
)
def test_severity_to_level(text, want):
    assert severity_to_level(text) == want


def test_severity_to_level_error():
    with pytest.raises(ValueError):
        severity_to_level("fail")


@pytest.mark.parametrize(
    "level,want",
    [(Level.DEBUG, "DEBUG"), (Level.INFO, "INFO"), (Level.WARN, "WARN"), (Level.ERROR, "ERROR")],
)
def test_level_to_severity(level, want):
    assert level_to_severity(str(level)) == want


def test_level_to_severity_error():
    with pytest.raises(ValueError):
        level_to_severity("fail")


def _run(logger, log_msg):
    {
        "info": lambda: logger.info("log info"),
        "debug": lambda: logger.debug("log debug"),
        "warn": lambda: logger.warn("log warn"),
        "error": lambda: logger.error("log error"),
    }[log_msg]()


def _after_first_space(text):
    return text[text.find(" ") + 1:]


STD_CASES = [
    ("debug", "debug", 'DEBUG "log debug" \n', ""),
    ("info", "debug", "", ""),
    ("warn", "debug", "", ""),
    ("error", "debug", "", ""),
    ("debug", "info", 'INFO "log info" \n', ""),
    ("info", "info", 'INFO "log info" \n', ""),
    ("warn", "info", "", ""),
    ("error", "info", "", ""),
    ("debug", "warn", "", 'WARN "log warn" \n'),
    ("info", "warn", "", 'WARN "log warn" \n'),
    ("warn", "warn", "", 'WARN "log warn" \n'),
    ("error", "warn", "", ""),
    ("debug", "error", "", 'ERROR "log error" \n'),
    ("info", "error", "", 'ERROR "log error" \n'),
    ("warn", "error", "", 'ERROR "log error" \n'),
    ("error", "error", "", 'ERROR "log error" \n'),
]


@pytest.mark.parametrize("log_level,log_msg,want_out,want_err", STD_CASES)
def test_std_logger(log_level, log_msg, want_out, want_err):
    out, err = io.StringIO(), io.StringIO()
    logger = StdLogger(out, err, log_level)
    _run(logger, log_msg)
    assert _after_first_space(out.getvalue()) == want_out
    assert _after_first_space(err.getvalue()) == want_err


STRUCTURED_CASES = [
    ("debug", "debug", {"severity": "DEBUG", "message": "log debug"}, {}),
    ("info", "debug", {}, {}),
    ("warn", "debug", {}, {}),
    ("error", "debug", {}, {}),
    ("debug", "info", {"severity": "INFO", "message": "log info"}, {}),
    ("info", "info", {"severity": "INFO", "message": "log info"}, {}),
    ("warn", "info", {}, {}),
    ("error", "info", {}, {}),
    ("debug", "warn", {}, {"severity": "WARN", "message": "log warn"}),
    ("info", "warn", {}, {"severity": "WARN", "message": "log warn"}),
    ("warn", "warn", {}, {"severity": "WARN", "message": "log warn"}),
    ("error", "warn", {}, {}),
    ("debug", "error", {}, {"severity": "ERROR", "message": "log error"}),
    ("info", "error", {}, {"severity": "ERROR", "message": "log error"}),
    ("warn", "error", {}, {"severity": "ERROR", "message": "log error"}),
    ("error", "error", {}, {"severity": "ERROR", "message": "log error"}),
]


@pytest.mark.parametrize("log_level,log_msg,want_out,want_err", STRUCTURED_CASES)
def test_structured_logger(log_level, log_msg, want_out, want_err):
    out, err = io.StringIO(), io.StringIO()
    logger = StructuredLogger(out, err, log_level)
    _run(logger, log_msg)
    for stream, want in ((out, want_out), (err, want_err)):
        if want:
            got = json.loads(stream.getvalue())
            assert got["severity"] == want["severity"]
            assert got["message"] == want["message"]
        else:
            assert stream.getvalue() == ""


@pytest.mark.parametrize("factory", [StdLogger, StructuredLogger])
def test_invalid_level_rejected(factory):
    with pytest.raises(ValueError):
        factory(io.StringIO(), io.StringIO(), "fail")


def test_logger_interface_is_abstract():
    with pytest.raises(TypeError):
        Logger()


def test_std_logger_writes_attribute_values():
    out = io.StringIO()
    StdLogger(out, io.StringIO(), "info").info("msg", "key", "value", "count", 3)
    assert _after_first_space(out.getvalue()) == 'INFO "msg" "value" 3 \n'


def test_std_logger_dangling_key_is_kept_as_value():
    out = io.StringIO()
    StdLogger(out, io.StringIO(), "info").info("msg", "alone")
    assert _after_first_space(out.getvalue()) == 'INFO "msg" "alone" \n'


def test_structured_logger_layout():
    out = io.StringIO()
    StructuredLogger(out, io.StringIO(), "info").info("hello", "user", "someone")
    got = json.loads(out.getvalue())
    assert list(got)[:4] == ["timestamp", "severity", "logging.googleapis.com/sourceLocation", "message"]
    assert got["user"] == "someone"
    location = got["logging.googleapis.com/sourceLocation"]
    assert location["file"] == __file__
    assert location["function"].endswith("test_structured_logger_layout")


def test_structured_logger_adds_span_context():
    span = SpanContext(trace_id="0af7651916cd43dd8448eb211c80319c", span_id="b7ad6b7169203331", sampled=True)
    err = io.StringIO()
    StructuredLogger(io.StringIO(), err, "info").error("boom", ctx=span)
    got = json.loads(err.getvalue())
    assert got["logging.googleapis.com/trace"] == span.trace_id
    assert got["logging.googleapis.com/spanId"] == span.span_id
    assert got["logging.googleapis.com/trace_sampled"] is True


def test_structured_logger_ignores_invalid_span():
    err = io.StringIO()
    StructuredLogger(io.StringIO(), err, "info").warn("careful", ctx=SpanContext())
    got = json.loads(err.getvalue())
    assert "logging.googleapis.com/trace" not in got
    assert got["message"] == "careful"