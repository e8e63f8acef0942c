from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from .grid.base import Grid
from .schema import ID, IS_ENABLED, Schema

Record = Dict[str, Any]

_FIELD_SEP = re.compile(r"[,\s+]+")


def parse_fields(raw: Optional[str]) -> Optional[List[str]]:
    """
    Split a projection list on commas, whitespace or '+'.

    None or "" means no projection. A non-empty string that yields no names
    still projects (down to `id` only).
    """
    if not raw:
        return None
    return [f.strip() for f in _FIELD_SEP.split(raw) if f and f.strip()]


def is_enabled_value(value: Any) -> bool:
    return value is not False and value != "FALSE"


def load_schema(grid: Grid) -> Schema:
    return Schema.from_header(grid.header(), grid.column_types())


def project(schema: Schema, row: Sequence[Any], fields: Optional[Sequence[str]]) -> Record:
    allowed = set(fields) if fields is not None else None
    out: Record = {}
    for col in schema.columns:
        if col.name == IS_ENABLED:
            continue
        if allowed is not None and col.name != ID and col.name not in allowed:
            continue
        out[col.name] = row[col.index] if col.index < len(row) else ""
    return out


def read_records(grid: Grid, fields: Optional[Sequence[str]] = None) -> List[Record]:
    """Enabled records in row order, projected to `fields` plus `id`."""
    last = grid.last_row()
    if last <= 1:
        return []

    schema = load_schema(grid)
    if schema.is_empty:
        return []

    rows = grid.read_rows(2, last - 1, schema.width)
    enabled = schema.enabled_index
    if enabled is not None:
        rows = [r for r in rows if is_enabled_value(r[enabled])]
    return [project(schema, r, fields) for r in rows]
