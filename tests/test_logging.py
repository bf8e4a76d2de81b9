"""Tests for the structured log formatter."""

import logging

from context_engine.core.logging import StructuredFormatter, get_logger, log_with_context


def _record(**extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 10, "Reindexed course", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_key_value_output():
    line = StructuredFormatter().format(_record())

    assert "level=INFO" in line
    assert "message=Reindexed course" in line


def test_formatter_promotes_context_fields():
    line = StructuredFormatter().format(_record(course_id=7, extra_data={"count": 3}))

    assert "course_id=7" in line
    assert "count=3" in line


def test_log_with_context_splits_fields(caplog):
    logger = get_logger("context_engine.tests.logging")
    logger.propagate = True

    with caplog.at_level(logging.INFO, logger="context_engine.tests.logging"):
        log_with_context(logger, logging.INFO, "done", org_id="org-a", model="m")

    record = caplog.records[-1]
    assert record.org_id == "org-a"
    assert record.extra_data == {"model": "m"}
