"""Tests for the JSON log formatter."""

import json
import logging

from pricecache.logging_conf import JsonFormatter


def make_record(**extra):
    record = logging.LogRecord(
        "request", logging.INFO, __file__, 1, "%s %s -> %s", ("GET", "/x", "200"), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_request_fields_become_top_level_keys():
    record = make_record(
        route="/api/price-history/{coin_id}",
        status_code=200,
        duration_s=0.0,
        client=None,
        coin_id="bitcoin",
    )
    line = JsonFormatter().format(record)
    payload = json.loads(line)
    assert payload["message"] == "GET /x -> 200"
    assert payload["logger"] == "request"
    assert payload["route"] == "/api/price-history/{coin_id}"
    assert payload["status_code"] == 200
    assert payload["duration_s"] == 0.0
    assert payload["coin_id"] == "bitcoin"
    assert "client" not in payload
