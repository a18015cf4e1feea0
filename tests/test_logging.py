from __future__ import annotations

import json
import logging

from s3_gateway.common.logging import JsonFormatter, build_logging_config


def _record(msg: str, **kwargs) -> logging.LogRecord:
    record = logging.LogRecord("http", logging.INFO, __file__, 1, msg, (), None)
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_structured_fields():
    record = _record("request done", extra={"status": 200, "route": "/list-buckets"})

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "request done"
    assert payload["logger"] == "http"
    assert payload["status"] == 200
    assert payload["route"] == "/list-buckets"
    assert "ts" in payload


def test_json_formatter_serializes_unknown_types():
    record = _record("x", extra={"cause": ValueError("boom")})

    payload = json.loads(JsonFormatter().format(record))

    assert payload["cause"] == "boom"


def test_config_quiets_boto_loggers():
    config = build_logging_config("debug", "plain")

    assert config["root"]["level"] == "DEBUG"
    assert config["handlers"]["console"]["formatter"] == "plain"
    assert config["loggers"]["botocore"] == {"level": "WARNING"}
    assert config["loggers"]["s3_gateway.startup"]["propagate"] is False
