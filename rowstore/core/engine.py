from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .errors import EmptyBatch, RowStoreError
from .grid.base import Workbook
from .mutation import WriteOp, apply
from .query import parse_fields, read_records

log = logging.getLogger("rowstore.engine")


@dataclass(frozen=True)
class Outcome:
    operation: str
    payload: Dict[str, Any]
    code: str = "ok"

    @property
    def ok(self) -> bool:
        return self.code == "ok"


class RowStore:
    """
    The two request handlers of the engine.

    Both return an `Outcome` and never raise `RowStoreError`; the failure is
    rendered into the payload instead. Anything else propagates.

    Calls against one table are serialized with a per-table lock held for the
    whole operation, so row placement (locate the end, then write) never
    interleaves within this process.
    """

    def __init__(self, workbook: Workbook):
        self.workbook = workbook
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _table_lock(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def _failed(self, operation: str, exc: RowStoreError, sheet: Optional[str]) -> Outcome:
        if isinstance(exc, EmptyBatch):
            log.info("%s table=%s no-op: %s", operation, sheet or "<default>", exc.message)
        else:
            log.warning("%s table=%s failed code=%s: %s", operation, sheet or "<default>", exc.code, exc.message)
        return Outcome(operation=operation, payload=exc.to_payload(), code=exc.code)

    def read(self, *, sheet: Optional[str] = None, fields: Optional[str] = None) -> Outcome:
        try:
            grid = self.workbook.table(sheet)
            with self._table_lock(grid.name):
                records = read_records(grid, parse_fields(fields))
        except RowStoreError as exc:
            return self._failed("read", exc, sheet)
        return Outcome(operation="read", payload={"data": records})

    def write(
        self,
        op: WriteOp,
        body: Union[str, bytes, None],
        *,
        sheet: Optional[str] = None,
    ) -> Outcome:
        try:
            grid = self.workbook.table(sheet)
            with self._table_lock(grid.name):
                result = apply(grid, op, body)
        except RowStoreError as exc:
            return self._failed(op.value, exc, sheet)
        return Outcome(operation=op.value, payload=result.to_payload())
