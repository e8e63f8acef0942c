import asyncio
import json
from unittest.mock import MagicMock

from fastapi.exceptions import RequestValidationError
from starlette.requests import Request

from rowstore.api.main import app
from rowstore.api.middleware.error_shaping import validation_error_handler
from rowstore.core.engine import RowStore


class _BrokenWorkbook:
    backend = "broken"

    def table(self, name=None):
        raise RuntimeError("disk on fire at /srv/secret/path")


def test_unexpected_failure_is_a_200_error_envelope(client):
    app.state.store = RowStore(_BrokenWorkbook())

    r = client.get("/exec", headers={"X-Request-Id": "rid-boom"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"error": "Internal error", "request_id": "rid-boom"}
    assert r.headers["X-Request-Id"] == "rid-boom"

    # ensure response doesn't leak tracebacks
    assert "Traceback" not in r.text
    assert "secret" not in r.text


def test_unexpected_failure_on_write(client):
    app.state.store = RowStore(_BrokenWorkbook())
    r = client.post("/exec", json={"name": "x"})
    assert r.status_code == 200
    assert r.json()["error"] == "Internal error"


def test_validation_errors_are_reshaped():
    scope = {"type": "http", "scheme": "http", "method": "GET", "path": "/exec", "headers": [], "query_string": b""}
    exc = RequestValidationError([{"loc": ("query", "fields"), "msg": "bad value", "type": "value_error"}])

    resp = asyncio.run(validation_error_handler(Request(scope), exc))
    assert resp.status_code == 200
    assert json.loads(resp.body) == {"error": "Invalid parameter 'fields': bad value"}


def test_health(client):
    assert client.get("/health/live").json() == {"status": "alive"}
    assert client.get("/api/v1/health/ready").json() == {"status": "ready", "backend": "memory"}


def test_health_not_ready(client):
    workbook = MagicMock()
    workbook.backend = "sheets"
    workbook.table.side_effect = ConnectionError("unreachable")
    app.state.store = RowStore(workbook)

    r = client.get("/health/ready")
    assert r.status_code == 503
    j = r.json()
    assert j["status"] == "not_ready"
    assert j["problems"] == ["backend_unavailable:sheets err=ConnectionError"]
