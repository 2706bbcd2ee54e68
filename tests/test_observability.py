from __future__ import annotations

import json
import logging

from observability import JsonLogFormatter, log_event


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_log_event_emits_one_json_object_with_fields() -> None:
    logger = logging.getLogger("repofinder.test.observability")
    capture = _Capture()
    logger.addHandler(capture)
    logger.setLevel(logging.INFO)
    try:
        log_event(logger, logging.WARNING, "recommend.tier.failed", tier="legacy", error_code=None, count=2)
    finally:
        logger.removeHandler(capture)

    payload = json.loads(JsonLogFormatter().format(capture.records[0]))
    assert payload["event"] == "recommend.tier.failed"
    assert payload["level"] == "warning"
    assert payload["service"] == "repofinder"
    assert payload["logger"] == "repofinder.test.observability"
    assert payload["tier"] == "legacy"
    assert payload["count"] == 2
    assert "error_code" not in payload
    assert "taskName" not in payload
