"""
Write path: Create, Update and SoftDelete against one table.

Callers pick the operation with a `WriteOp`; the wire-level method string
is mapped once by `WriteOp.from_method` and never inspected again.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import EmptyBatch, InvalidPayload, MissingField, NoData
from .grid.base import Grid, Row
from .locator import id_key, locate_by_id, true_last_row
from .query import load_schema
from .schema import CREATED_AT, ID, IS_ENABLED, UPDATED_AT

log = logging.getLogger("rowstore.engine")

Payload = Dict[str, Any]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid.uuid4())


class WriteOp(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def from_method(cls, method: Optional[str]) -> "WriteOp":
        if method in ("PUT", "UPDATE"):
            return cls.UPDATE
        if method == "DELETE":
            return cls.DELETE
        return cls.CREATE


@dataclass
class CreateResult:
    created_ids: List[str] = field(default_factory=list)
    count: int = 0

    def to_payload(self) -> Payload:
        return {
            "status": "success",
            "message": f"{self.count} row(s) appended",
            "createdIds": self.created_ids,
        }


@dataclass
class UpdateResult:
    id: Any
    updated_fields: List[str] = field(default_factory=list)

    def to_payload(self) -> Payload:
        return {
            "status": "success",
            "message": "Row updated",
            "updatedFields": self.updated_fields,
            "id": self.id,
        }


@dataclass
class DeleteResult:
    id: Any

    def to_payload(self) -> Payload:
        return {
            "status": "success",
            "message": "Row soft deleted (is_enabled=false)",
            "id": self.id,
        }


Result = Union[CreateResult, UpdateResult, DeleteResult]

_INVALID_JSON = {
    WriteOp.CREATE: "Invalid JSON",
    WriteOp.UPDATE: "Invalid JSON for update",
    WriteOp.DELETE: "Invalid JSON for delete",
}


def parse_body(body: Union[str, bytes, None], op: WriteOp) -> Any:
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        return json.loads(body or "")
    except (TypeError, ValueError) as exc:
        raise InvalidPayload(_INVALID_JSON[op], debug=str(exc))


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _require_id(payload: Any, verb: str) -> Any:
    record_id = payload.get(ID) if isinstance(payload, dict) else None
    if record_id is None or record_id == "":
        raise MissingField(f'{verb} requires an "id" field')
    return record_id


def _shape_row(names: List[str], record: Payload, ts: str, make_id: Callable[[], str]) -> Row:
    row: Row = []
    for name in names:
        value = record.get(name)
        if name == ID:
            value = id_key(value) if value else make_id()
        elif name in (CREATED_AT, UPDATED_AT) and not value:
            value = ts
        elif name == IS_ENABLED and (value is None or value == ""):
            value = True
        row.append(_cell(value))
    return row


def create(
    grid: Grid,
    payload: Any,
    *,
    now: Optional[str] = None,
    make_id: Callable[[], str] = new_id,
) -> CreateResult:
    incoming = payload if isinstance(payload, list) else [payload]
    if not incoming:
        raise EmptyBatch()

    schema = load_schema(grid)
    schema.require_columns()

    for rec in incoming:
        if not isinstance(rec, dict):
            raise InvalidPayload("Each record must be a JSON object")

    ts = now or utc_now_iso()
    names = schema.names
    new_rows = [_shape_row(names, rec, ts, make_id) for rec in incoming]

    id_idx = schema.id_index
    created_ids: List[str] = []
    if id_idx is not None:
        created_ids = [r[id_idx] for r in new_rows]
        existing = {id_key(v) for v in grid.column_values(id_idx + 1, start_row=2) if v not in (None, "")}
        seen = set()
        for rid in created_ids:
            if rid in existing or rid in seen:
                raise InvalidPayload(f"Duplicate id: {rid}")
            seen.add(rid)

    start = true_last_row(grid, schema) + 1
    grid.write_rows(start, new_rows)

    for idx in schema.boolean_columns(new_rows[0]):
        grid.apply_checkbox(start, idx + 1, len(new_rows))

    log.info("create table=%s start_row=%d rows=%d", grid.name, start, len(new_rows))
    return CreateResult(created_ids=created_ids, count=len(new_rows))


def update(grid: Grid, payload: Any, *, now: Optional[str] = None) -> UpdateResult:
    """
    Patch the first row whose id matches.

    Keys that are not columns are ignored, and so are `id` and `is_enabled`:
    a record only leaves the enabled state through soft delete and is never
    re-enabled through an update. `updated_at` is always set to `now`.
    """
    record_id = _require_id(payload, "Update")
    if grid.last_row() <= 1:
        raise NoData("No data to update")

    schema = load_schema(grid)
    schema.require_columns()
    row = locate_by_id(grid, schema, record_id)

    updated: List[str] = []
    for key, value in payload.items():
        # id is immutable and is_enabled only moves through soft delete
        if key in (ID, IS_ENABLED):
            continue
        idx = schema.index(key)
        if idx is None:
            continue
        grid.write_cell(row, idx + 1, _cell(value))
        updated.append(key)

    ua = schema.updated_at_index
    if ua is not None:
        grid.write_cell(row, ua + 1, now or utc_now_iso())

    log.info("update table=%s row=%d id=%s fields=%s", grid.name, row, record_id, updated)
    return UpdateResult(id=record_id, updated_fields=updated)


def soft_delete(grid: Grid, payload: Any, *, now: Optional[str] = None) -> DeleteResult:
    record_id = _require_id(payload, "Delete")
    if grid.last_row() <= 1:
        raise NoData("No data to delete")

    schema = load_schema(grid)
    schema.require_columns()
    schema.require_id()
    enabled = schema.require_enabled()
    row = locate_by_id(grid, schema, record_id)

    grid.write_cell(row, enabled + 1, False)
    ua = schema.updated_at_index
    if ua is not None:
        grid.write_cell(row, ua + 1, now or utc_now_iso())

    log.info("soft_delete table=%s row=%d id=%s", grid.name, row, record_id)
    return DeleteResult(id=record_id)


HANDLERS: Dict[WriteOp, Callable[..., Result]] = {
    WriteOp.CREATE: create,
    WriteOp.UPDATE: update,
    WriteOp.DELETE: soft_delete,
}


def apply(grid: Grid, op: WriteOp, body: Union[str, bytes, None]) -> Result:
    payload = parse_body(body, op)
    return HANDLERS[op](grid, payload)
