import json
import logging

from homework_bot.platform.logging import JsonFormatter
from homework_bot.platform.request_context import reset_candidate_id, set_candidate_id, set_request_id


def _record(message="hello", exc_info=None):
    return logging.LogRecord("homework_bot.test", logging.INFO, __file__, 1, message, None, exc_info)


def test_json_line_has_core_keys():
    payload = json.loads(JsonFormatter().format(_record()))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "homework_bot.test"
    assert payload["message"] == "hello"
    assert payload["timestamp"].endswith("Z")


def test_candidate_id_from_context():
    token = set_candidate_id(42)
    try:
        payload = json.loads(JsonFormatter().format(_record()))
    finally:
        reset_candidate_id(token)

    assert payload["candidate_id"] == 42


def test_request_id_from_record_extra():
    record = _record()
    record.request_id = "req-1"
    set_request_id(None)

    assert json.loads(JsonFormatter().format(record))["request_id"] == "req-1"
