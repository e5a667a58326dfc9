"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys

from notionwire.observability import MetricsHook, NoopMetricsHook, StructuredFormatter, get_logger


class TestStructuredFormatter:
    def _get_record(
        self,
        msg,
        level=logging.INFO,
        exc_info=None,
        stack_info=None,
        extra_fields=None,
    ):
        record = logging.LogRecord(
            name="notionwire.test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        if stack_info is not None:
            record.stack_info = stack_info
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "notionwire.test"
        assert result["ts"].endswith("+00:00")

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"pages_fetched": 3, "max_pages": 5})
        result = json.loads(StructuredFormatter().format(record))
        assert result["pages_fetched"] == 3
        assert result["max_pages"] == 5

    def test_extra_fields_cannot_override_reserved_keys(self):
        record = self._get_record("real", extra_fields={"message": "fake", "level": "X"})
        result = json.loads(StructuredFormatter().format(record))
        assert result["message"] == "real"
        assert result["level"] == "INFO"

    def test_exception_serialised(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("err", exc_info=exc_info)))
        assert result["exc_type"] == "ValueError"
        assert "bad value" in result["exception"]

    def test_stack_info(self):
        record = self._get_record("s", stack_info="Stack (most recent call last):\n  here")
        assert "stack_info" in json.loads(StructuredFormatter().format(record))

    def test_non_json_values_stringified(self):
        record = self._get_record("m", extra_fields={"obj": object()})
        assert json.loads(StructuredFormatter().format(record))["obj"].startswith("<object")


class TestGetLogger:
    def test_child_loggers_share_root_handler(self):
        stream = io.StringIO()
        root = get_logger("obsvtest", level="DEBUG", stream=stream)
        child = get_logger("obsvtest.child")
        get_logger("obsvtest.other")

        child.debug("Rate limit wait", extra={"extra_fields": {"waited_ms": 12.5}})

        assert len(root.handlers) == 1
        line = json.loads(stream.getvalue().strip())
        assert line["logger"] == "obsvtest.child"
        assert line["waited_ms"] == 12.5

    def test_level_applied_once(self):
        stream = io.StringIO()
        get_logger("obsvlevel", level=logging.ERROR, stream=stream)
        log = get_logger("obsvlevel.sub", level=logging.DEBUG)
        log.warning("suppressed")
        assert stream.getvalue() == ""

    def test_library_logger_does_not_propagate(self):
        assert get_logger("notionwire.transport").parent.propagate is False


class TestMetrics:
    def test_noop_accepts_all_calls(self):
        hook = NoopMetricsHook()
        assert hook.increment("x") is None
        assert hook.increment("x", 2, tags={"a": "b"}) is None
        assert hook.timing("t", 1.5) is None
        assert hook.gauge("g", 3.0, tags=None) is None

    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_custom_backend_satisfies_protocol(self):
        class Recorder:
            def __init__(self):
                self.points = []

            def increment(self, name, value=1, tags=None):
                self.points.append(("inc", name, value))

            def timing(self, name, ms, tags=None):
                self.points.append(("time", name, ms))

            def gauge(self, name, value, tags=None):
                self.points.append(("gauge", name, value))

        assert isinstance(Recorder(), MetricsHook)

    def test_incomplete_backend_rejected(self):
        class OnlyCounts:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(OnlyCounts(), MetricsHook)
