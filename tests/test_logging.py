from __future__ import annotations

import json
import logging

from claimsync.core.logging import (
    JsonFormatter,
    get_logger,
    log_event,
    reset_row_context,
    set_row_context,
)


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines: list[dict] = []
        self.setFormatter(JsonFormatter())

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def test_log_event_includes_row_context_and_drops_empty_fields():
    logger = get_logger("claimsync.tests")
    capture = _Capture()
    logger.addHandler(capture)
    try:
        tokens = set_row_context(sheet="IVA", row=7)
        try:
            log_event(logger, "status.toggle.done", status="Claimed 15-01-2026", file_id=None)
        finally:
            reset_row_context(tokens)
        log_event(logger, "outside.row")
    finally:
        logger.removeHandler(capture)

    inside, outside = capture.lines
    assert inside["event"] == "status.toggle.done"
    assert inside["sheet"] == "IVA"
    assert inside["row"] == 7
    assert inside["status"] == "Claimed 15-01-2026"
    assert "file_id" not in inside
    assert "sheet" not in outside
