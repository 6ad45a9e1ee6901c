"""Tests for structured logging and request_id propagation."""

import json
import logging

from habitstreak.core.logging import JsonFormatter, log_event, request_id_ctx_var


def test_transition_logs_carry_user(streaks, add_habit, caplog):
    add_habit("u1", "h1")
    with caplog.at_level(logging.INFO, logger="habitstreak"):
        streaks.on_habit_completion_changed("h1", ["2024-03-10"])
    credited = [r for r in caplog.records if r.getMessage() == "streak.credited"]
    assert credited
    assert credited[0].user_id == "u1"
    assert credited[0].event_type == "streak.credited"


def test_log_event_uses_context_request_id(caplog):
    token = request_id_ctx_var.set("rid-123")
    try:
        with caplog.at_level(logging.INFO, logger="habitstreak"):
            log_event("info", "group.credited", group_id="g1", extra={"day": "2024-03-10"})
    finally:
        request_id_ctx_var.reset(token)
    record = [r for r in caplog.records if r.getMessage() == "group.credited"][0]
    assert record.request_id == "rid-123"
    assert record.group_id == "g1"


def test_json_formatter_includes_domain_fields():
    record = logging.LogRecord("habitstreak", logging.INFO, __file__, 1, "streak.reverted", None, None)
    record.request_id = "rid-1"
    record.user_id = "u1"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "streak.reverted"
    assert payload["request_id"] == "rid-1"
    assert payload["user_id"] == "u1"


def test_log_event_truncates_long_values(caplog):
    with caplog.at_level(logging.INFO, logger="habitstreak"):
        log_event("info", "streak.noop", extra={"blob": "x" * 1000})
    record = [r for r in caplog.records if r.getMessage() == "streak.noop"][0]
    assert record.blob.endswith("...<truncated>")
