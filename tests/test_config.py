"""
Settings loader tests.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from rowstore.config import DEFAULT_DATA_FILE, load_settings, load_settings_file

_ENV_KEYS = (
    "CONFIG_FILE",
    "ENV",
    "BACKEND",
    "DATA_FILE",
    "SPREADSHEET_ID",
    "CREDENTIALS_FILE",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "HOST",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(f"ROWSTORE_{key}", raising=False)


# ---------------------------------------------------------------------------
# load_settings_file
# ---------------------------------------------------------------------------

def test_no_file_configured_returns_empty():
    assert load_settings_file() == {}


def test_missing_file_returns_empty(tmp_path):
    assert load_settings_file(tmp_path / "nope.yaml") == {}


def test_json_file(tmp_path):
    f = tmp_path / "settings.json"
    f.write_text(json.dumps({"backend": "file", "port": 9000}), encoding="utf-8")
    assert load_settings_file(f) == {"backend": "file", "port": 9000}


def test_yaml_file_drops_unknown_keys(tmp_path, caplog):
    f = tmp_path / "settings.yaml"
    f.write_text("backend: sheets\nspreadsheet_id: abc\ncolour: blue\n", encoding="utf-8")
    assert load_settings_file(f) == {"backend": "sheets", "spreadsheet_id": "abc"}
    assert "colour" in caplog.text


def test_malformed_file_returns_empty(tmp_path):
    f = tmp_path / "bad.yaml"
    f.write_text("this: is: not: valid: yaml:\n  {{{{", encoding="utf-8")
    assert load_settings_file(f) == {}


def test_non_mapping_file_returns_empty(tmp_path):
    f = tmp_path / "list.json"
    f.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_settings_file(f) == {}


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------

def test_defaults():
    s = load_settings()
    assert s.backend == "memory"
    assert s.env == "dev"
    assert s.data_file == DEFAULT_DATA_FILE
    assert s.cors_origins == ["*"]
    assert s.log_level == "INFO"
    assert s.port == 8001


def test_env_overrides_file(tmp_path, monkeypatch):
    f = tmp_path / "settings.yaml"
    f.write_text("backend: file\ndata_file: /tmp/a.json\nport: 9000\n", encoding="utf-8")
    monkeypatch.setenv("ROWSTORE_CONFIG_FILE", str(f))
    monkeypatch.setenv("ROWSTORE_DATA_FILE", str(tmp_path / "b.json"))
    monkeypatch.setenv("ROWSTORE_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("ROWSTORE_LOG_LEVEL", "debug")

    s = load_settings()
    assert s.backend == "file"
    assert s.data_file == Path(tmp_path / "b.json")
    assert s.port == 9000
    assert s.cors_origins == ["https://a.example", "https://b.example"]
    assert s.log_level == "DEBUG"


def test_cors_origins_list_in_file(tmp_path):
    f = tmp_path / "settings.json"
    f.write_text(json.dumps({"cors_origins": ["https://a.example", " "]}), encoding="utf-8")
    assert load_settings(f).cors_origins == ["https://a.example"]


def test_unknown_backend_fails(monkeypatch):
    monkeypatch.setenv("ROWSTORE_BACKEND", "postgres")
    with pytest.raises(ValueError, match="postgres"):
        load_settings()
