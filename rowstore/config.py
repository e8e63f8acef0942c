"""
Runtime settings.

Values come from an optional YAML/JSON settings file overlaid by environment
variables (environment wins).

Settings file format (YAML or JSON), keys as below without the prefix:
    backend: file
    data_file: /var/lib/rowstore/workbook.json
    cors_origins: "https://example.org,https://admin.example.org"

Environment variables:
    ROWSTORE_CONFIG_FILE      path to the settings file (optional)
    ROWSTORE_ENV              dev | prod
    ROWSTORE_BACKEND          memory | file | sheets
    ROWSTORE_DATA_FILE        workbook path for the file backend
    ROWSTORE_SPREADSHEET_ID   spreadsheet key for the sheets backend
    ROWSTORE_CREDENTIALS_FILE service-account JSON for the sheets backend
    ROWSTORE_CORS_ORIGINS     comma-separated origins, default "*"
    ROWSTORE_LOG_LEVEL        default INFO
    ROWSTORE_HOST / ROWSTORE_PORT
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

_log = logging.getLogger("rowstore.config")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_FILE = PROJECT_ROOT / "workspace" / "rowstore.json"

BACKENDS = ("memory", "file", "sheets")

_KEYS = (
    "env",
    "backend",
    "data_file",
    "spreadsheet_id",
    "credentials_file",
    "cors_origins",
    "log_level",
    "host",
    "port",
)


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    backend: str = "memory"
    data_file: Path = DEFAULT_DATA_FILE
    spreadsheet_id: Optional[str] = None
    credentials_file: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8001


def _split_origins(raw: Any) -> List[str]:
    if isinstance(raw, (list, tuple)):
        items = [str(o).strip() for o in raw]
    else:
        items = [o.strip() for o in str(raw or "").split(",")]
    items = [o for o in items if o]
    return items or ["*"]


def load_settings_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read the settings file.

    Returns an empty dict if the file is absent, unreadable or malformed;
    the caller falls back to environment and defaults in that case.
    """
    resolved = path
    if resolved is None:
        env_path = os.getenv("ROWSTORE_CONFIG_FILE", "").strip()
        if not env_path:
            return {}
        resolved = Path(env_path)
    resolved = Path(resolved)
    if not resolved.exists():
        _log.warning("Settings file %s does not exist", resolved)
        return {}

    try:
        raw_text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        _log.warning("Cannot read settings file %s: %s", resolved, exc)
        return {}

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            _log.warning("Failed to parse settings file %s as JSON or YAML: %s", resolved, exc)
            return {}

    if not isinstance(data, dict):
        _log.warning("Settings file %s must be a mapping, got %s", resolved, type(data).__name__)
        return {}

    out = {k: v for k, v in data.items() if k in _KEYS}
    unknown = sorted(set(data) - set(_KEYS))
    if unknown:
        _log.warning("Ignoring unknown settings keys %s in %s", unknown, resolved)
    return out


def load_settings(path: Optional[Path] = None) -> Settings:
    values: Dict[str, Any] = load_settings_file(path)
    for key in _KEYS:
        env_val = os.getenv(f"ROWSTORE_{key.upper()}")
        if env_val is not None and env_val.strip():
            values[key] = env_val.strip()

    backend = str(values.get("backend") or "memory").strip().lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown ROWSTORE_BACKEND {backend!r} (expected one of {', '.join(BACKENDS)})")

    return Settings(
        env=str(values.get("env") or "dev").strip().lower(),
        backend=backend,
        data_file=Path(values.get("data_file") or DEFAULT_DATA_FILE),
        spreadsheet_id=values.get("spreadsheet_id") or None,
        credentials_file=values.get("credentials_file") or None,
        cors_origins=_split_origins(values.get("cors_origins")),
        log_level=str(values.get("log_level") or "INFO").strip().upper(),
        host=str(values.get("host") or "0.0.0.0"),
        port=int(values.get("port") or 8001),
    )
