from __future__ import annotations

from typing import Any

from .errors import NotFound
from .grid.base import Grid
from .schema import Schema


def id_key(value: Any) -> str:
    """String form used to compare and store ids (123, 123.0 and "123" agree)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _has_value(v: Any) -> bool:
    return v is not None and v != ""


def true_last_row(grid: Grid, schema: Schema) -> int:
    """
    Row number of the last row that holds data (1 when only the header exists).

    Uses the backend's data extent when it keeps one. Otherwise scans the id
    column bottom-up, because checkbox formatting makes the backend's own
    last row overshoot. Tables without an id column fall back to last_row().
    """
    count = grid.data_row_count()
    if count is not None:
        return count + 1

    idx = schema.id_index
    if idx is None:
        return max(grid.last_row(), 1)

    values = grid.column_values(idx + 1, start_row=2)
    for i in range(len(values) - 1, -1, -1):
        if _has_value(values[i]):
            return i + 2
    return 1


def locate_by_id(grid: Grid, schema: Schema, record_id: Any) -> int:
    """Top-down scan of the id column; first match wins. Returns the row number."""
    idx = schema.require_id()
    last = grid.last_row()
    if last <= 1:
        raise NotFound(record_id)

    target = id_key(record_id)
    ids = grid.column_values(idx + 1, start_row=2)[: last - 1]
    for i, stored in enumerate(ids):
        if _has_value(stored) and id_key(stored) == target:
            return i + 2
    raise NotFound(record_id)
