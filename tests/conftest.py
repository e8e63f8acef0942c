import os

import pytest
from fastapi.testclient import TestClient

# Import-time settings for rowstore.api.main must not pick up a developer's env
os.environ.setdefault("ROWSTORE_BACKEND", "memory")

from rowstore.api.main import app  # noqa: E402
from rowstore.core.engine import RowStore  # noqa: E402
from rowstore.core.grid.memory import MemoryWorkbook  # noqa: E402

HEADER = ["is_enabled", "name", "value", "id", "created_at", "updated_at"]


@pytest.fixture()
def workbook():
    """Fresh in-memory workbook: one table with the standard header and no data."""
    return MemoryWorkbook({"Sheet1": [list(HEADER)]})


@pytest.fixture()
def grid(workbook):
    return workbook.table()


@pytest.fixture()
def store(workbook):
    return RowStore(workbook)


@pytest.fixture()
def client(store):
    previous = app.state.store
    app.state.store = store
    try:
        yield TestClient(app)
    finally:
        app.state.store = previous
