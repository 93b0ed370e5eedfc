"""Tests for the structured log formatter."""

import logging

from paperwriter.core.logging import StructuredFormatter


def _record(**extra_data) -> logging.LogRecord:
    record = logging.LogRecord("paperwriter.test", logging.INFO, __file__, 1, "Autofill complete", None, None)
    if extra_data:
        record.extra_data = extra_data
    return record


def test_context_fields_follow_message_in_fixed_order():
    line = StructuredFormatter().format(
        _record(fields_updated=3, question_id="thesis", target_layer="paragraphComponents", draft_id="draft-1-a")
    )

    tail = line.split("message=Autofill complete ", 1)[1]
    assert tail == "draft_id=draft-1-a target_layer=paragraphComponents question_id=thesis fields_updated=3"


def test_plain_record_has_no_context():
    line = StructuredFormatter().format(_record())
    assert line.endswith("message=Autofill complete")
    assert "draft_id" not in line
