"""
Table creation.

A new table gets a fixed layout: `is_enabled`, then the user columns, then
`id`, `created_at`, `updated_at`. Column types are declared here once and
stored with the table; one demonstration record is written through the
normal create path.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ValidationError

from .errors import InvalidPayload
from .grid.base import Workbook
from .mutation import create
from .schema import CREATED_AT, ID, IS_ENABLED, RESERVED_COLUMNS, UPDATED_AT, ColumnType, infer_type

log = logging.getLogger("rowstore.engine")


class ColumnSpec(BaseModel):
    name: str
    type: Optional[ColumnType] = None


DEFAULT_COLUMNS: List[ColumnSpec] = [
    ColumnSpec(name="name", type=ColumnType.STRING),
    ColumnSpec(name="value", type=ColumnType.NUMBER),
]

SAMPLE_DEFAULTS: Dict[ColumnType, Any] = {
    ColumnType.STRING: "Sample",
    ColumnType.NUMBER: 0,
    ColumnType.BOOLEAN: False,
}

ColumnInput = Union[str, Mapping[str, Any], ColumnSpec]


def normalize_columns(
    columns: Optional[Sequence[ColumnInput]],
    sample: Optional[Mapping[str, Any]] = None,
) -> List[Tuple[str, ColumnType]]:
    """User columns with resolved types; reserved names are dropped."""
    sample = sample or {}
    specs: List[ColumnSpec] = []
    for raw in columns or DEFAULT_COLUMNS:
        try:
            if isinstance(raw, ColumnSpec):
                spec = raw
            elif isinstance(raw, str):
                spec = ColumnSpec(name=raw)
            else:
                spec = ColumnSpec.model_validate(dict(raw))
        except (ValidationError, TypeError, ValueError) as exc:
            raise InvalidPayload(f"Invalid column definition: {raw!r}", debug=str(exc))
        specs.append(spec)

    out: List[Tuple[str, ColumnType]] = []
    seen = set()
    for spec in specs:
        name = spec.name.strip()
        if not name:
            raise InvalidPayload("Column names must not be empty")
        if name in RESERVED_COLUMNS:
            continue
        if name in seen:
            raise InvalidPayload(f"Duplicate column: {name}")
        seen.add(name)
        ctype = spec.type
        if ctype is None:
            ctype = infer_type(sample[name]) if name in sample else ColumnType.STRING
        out.append((name, ctype))
    return out


def table_layout(user_columns: Sequence[Tuple[str, ColumnType]]) -> List[Tuple[str, ColumnType]]:
    return (
        [(IS_ENABLED, ColumnType.BOOLEAN)]
        + list(user_columns)
        + [(ID, ColumnType.STRING), (CREATED_AT, ColumnType.STRING), (UPDATED_AT, ColumnType.STRING)]
    )


def create_table(
    workbook: Workbook,
    name: str,
    columns: Optional[Sequence[ColumnInput]] = None,
    sample: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    if not name or not name.strip():
        raise InvalidPayload("Table name must not be empty")

    layout = table_layout(normalize_columns(columns, sample))
    header = [col for col, _ in layout]
    types = {col: ctype for col, ctype in layout}

    grid = workbook.create_table(name, header, types)

    demo = {col: (sample or {}).get(col, SAMPLE_DEFAULTS[ctype]) for col, ctype in layout if col not in RESERVED_COLUMNS}
    result = create(grid, demo, now=now)

    log.info("created table=%s columns=%s demo_id=%s", name, header, result.created_ids[0])
    return {
        "table": name,
        "columns": header,
        "types": {k: v.value for k, v in types.items()},
        "demoId": result.created_ids[0],
    }
