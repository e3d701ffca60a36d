"""Tests for configuration parsing and the JSON log format."""

import json
import logging
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from portal.core.config import AppSettings, parse_pool_spec
from portal.core.logging import JsonLogFormatter
from portal.middlewares import request_id_ctx_var


def test_parse_pool_spec():
    assert parse_pool_spec("HWSET1:250, HWSET2:300,") == {"HWSET1": 250, "HWSET2": 300}
    assert parse_pool_spec("") == {}


@pytest.mark.parametrize("value", ["HWSET1", "HWSET1:many", ":10"])
def test_parse_pool_spec_rejects_malformed_entries(value):
    with pytest.raises(ValueError):
        parse_pool_spec(value)


def test_settings_defaults_and_env(monkeypatch, tmp_path):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("DB_URL", raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HARDWARE_POOLS", "LAPTOPS:12")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test")

    configured = AppSettings(_env_file=None)

    assert configured.database_url == f"sqlite:///{tmp_path / 'portal.db'}"
    assert configured.hardware_pools == {"LAPTOPS": 12}
    assert configured.allowed_origins == ["http://a.test", "http://b.test"]
    assert configured.SESSION_MAX_AGE == 8 * 60 * 60


def test_json_log_formatter_includes_context_and_extra():
    record = logging.LogRecord("portal.crud.hardware", logging.INFO, __file__, 1, "hardware.checkout", None, None)
    record.extra_data = {"pool": "HWSET1", "quantity": 5}

    token = request_id_ctx_var.set("req-1")
    try:
        payload = json.loads(JsonLogFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "hardware.checkout"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["pool"] == "HWSET1"
    assert payload["quantity"] == 5
    assert payload["timestamp"].endswith("Z")
