from __future__ import annotations

import json
import logging

import pytest

from universal_events import (
    ConfigurationError,
    EventFailedError,
    EventHubError,
    InvalidArgumentError,
    UnknownEventError,
)
from universal_events.logging import _JsonFormatter, get_logger, log_event


pytestmark = pytest.mark.unit


def test_error_hierarchy() -> None:
    for exc_type in (InvalidArgumentError, UnknownEventError, ConfigurationError, EventFailedError):
        assert issubclass(exc_type, EventHubError)
    assert issubclass(InvalidArgumentError, ValueError)
    assert issubclass(UnknownEventError, LookupError)


def test_unknown_event_error_message() -> None:
    err = UnknownEventError("missing")
    assert err.event_name == "missing"
    assert "Unknown event name: missing" in str(err)


def test_event_failed_error_keeps_data() -> None:
    err = EventFailedError("job:failed", {"code": 3})
    assert err.event_name == "job:failed"
    assert err.data == {"code": 3}


def test_get_logger_is_namespaced_and_cached() -> None:
    logger = get_logger("hub")
    assert logger.name == "universal_events.hub"
    assert get_logger("hub") is logger
    assert len(logger.handlers) == 1
    assert get_logger().name == "universal_events"


def test_json_formatter_includes_extras() -> None:
    record = logging.LogRecord("universal_events.hub", logging.DEBUG, __file__, 1, "emit event=%s", ("e",), None)
    record.handlers = 2
    record.payload = {"k": object}
    line = json.loads(_JsonFormatter().format(record))
    assert line["msg"] == "emit event=e"
    assert line["level"] == "DEBUG"
    assert line["handlers"] == 2
    assert "k" in line["payload"]


def test_log_event_attaches_event_and_payload(caplog) -> None:
    logger = get_logger("test")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    log_event(logger, "race:settled", {"succeeded": True})
    record = caplog.records[-1]
    assert record.event == "race:settled"
    assert record.payload == {"succeeded": True}


def test_json_formatter_ignores_unknown_extras() -> None:
    record = logging.LogRecord("universal_events.hub", logging.DEBUG, __file__, 1, "emit", (), None)
    record.mode = "immediate"
    record.hub_id = "0x1"
    line = json.loads(_JsonFormatter().format(record))
    assert line["mode"] == "immediate"
    assert "hub_id" not in line
