"""Tests for safecontract.core.config and core.logging."""

from __future__ import annotations

import io
import json
import logging
import os
import sys
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from safecontract.core.config import Settings, get_settings
from safecontract.core.logging import DevFormatter, JSONFormatter, record_extras, setup_logging


class TestSettings:
    """Verify settings defaults and environment overrides."""

    def test_default_app_env(self):
        assert Settings().app_env == "development"

    def test_default_debug(self):
        assert Settings().debug is False

    def test_input_limits(self):
        s = Settings()
        assert s.max_source_bytes == 200_000
        assert s.scan_timeout_seconds == 30.0
        assert s.max_request_bytes == 1024 * 1024

    def test_verification_method(self):
        assert Settings().verification_method == "Heuristic pattern analysis"

    def test_env_override(self):
        with patch.dict(os.environ, {"SAFECONTRACT_MAX_SOURCE_BYTES": "1234"}):
            assert Settings().max_source_bytes == 1234

    def test_env_override_app_env(self):
        with patch.dict(os.environ, {"SAFECONTRACT_APP_ENV": "production"}):
            assert Settings().app_env == "production"

    def test_invalid_app_env(self):
        with patch.dict(os.environ, {"SAFECONTRACT_APP_ENV": "qa"}):
            with pytest.raises(ValidationError):
                Settings()

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("safecontract.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogging:
    def test_json_formatter_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "safecontract.test"
        assert entry["message"] == "hello"

    def test_json_formatter_promotes_scan_extras(self):
        record = _record(contract_hash="abcdef0123456789", total_checks=9, request_id="r-1")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["contract_hash"] == "abcdef0123456789"
        assert entry["total_checks"] == 9
        assert entry["request_id"] == "r-1"

    def test_dev_formatter_includes_request_id(self):
        out = DevFormatter().format(_record(request_id="0123456789"))
        assert "[01234567]" in out
        assert "hello" in out

    def test_setup_logging_json_in_production(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            setup_logging(env="production", log_level="WARNING")
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)

    def test_setup_logging_dev_formatter(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            setup_logging(env="development")
            assert isinstance(root.handlers[0].formatter, DevFormatter)
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)

    def test_extras_are_collected_without_a_fixed_list(self):
        record = _record(contract_hash="abc", custom_field=[1, 2])
        assert record_extras(record) == {"contract_hash": "abc", "custom_field": [1, 2]}
        assert record_extras(_record()) == {}

    def test_json_timestamp_is_record_time(self):
        record = _record()
        record.created = 0.0
        entry = json.loads(JSONFormatter().format(record))
        assert entry["timestamp"] == "1970-01-01T00:00:00+00:00"

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad input")
        except ValueError:
            record = logging.LogRecord(
                "safecontract.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        entry = json.loads(JSONFormatter().format(record))
        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad input"

    def test_dev_formatter_appends_scan_extras(self):
        out = DevFormatter().format(_record(contract_hash="abcdef", total_checks=4))
        assert "hello" in out
        assert "contract_hash=abcdef" in out
        assert "total_checks=4" in out

    def test_setup_logging_custom_stream(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        buf = io.StringIO()
        try:
            setup_logging(env="production", stream=buf)
            logging.getLogger("safecontract.test").info("scanned", extra={"total_checks": 2})
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)
        entry = json.loads(buf.getvalue().splitlines()[-1])
        assert entry["message"] == "scanned"
        assert entry["total_checks"] == 2
