from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence

from rowstore.core.errors import TableExists, TableNotFound
from rowstore.core.schema import ColumnType

from .base import Grid, Row, Workbook
from .memory import DEFAULT_MAX_ROWS, DEFAULT_TABLE, MemoryGrid

try:
    import fcntl as _fcntl
    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False
    logging.getLogger("rowstore.locking").warning(
        "fcntl not available (non-POSIX). File locking is disabled. "
        "Do not point several processes at the same workbook file on this platform."
    )

log = logging.getLogger("rowstore.grid")


@contextmanager
def _locked_file(path: Path, mode: str) -> Generator:
    """Open a file and apply an exclusive flock (POSIX only). No-op on Windows."""
    with open(path, mode, encoding="utf-8") as fh:
        if _HAS_FCNTL:
            _fcntl.flock(fh, _fcntl.LOCK_EX)
        try:
            yield fh
        finally:
            if _HAS_FCNTL:
                _fcntl.flock(fh, _fcntl.LOCK_UN)


def _empty_doc(default_table: str, max_rows: int) -> Dict[str, Any]:
    return {
        "kind": "rowstore.workbook",
        "tables": [MemoryGrid(default_table, [], max_rows=max_rows).to_dict()],
    }


class FileWorkbook(Workbook):
    """
    JSON workbook on local disk.

    Layout: {"kind": "rowstore.workbook", "tables": [<grid dict>, ...]}
    Every load and every read-modify-write of the file holds an exclusive
    lock; a whole engine operation (locate, then write) does not.
    """

    backend = "file"

    def __init__(self, *, path: Path, default_table: str = DEFAULT_TABLE, max_rows: int = DEFAULT_MAX_ROWS):
        self.path = Path(path)
        self.max_rows = max_rows
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(_empty_doc(default_table, max_rows), indent=2), encoding="utf-8")
            log.info("Initialised workbook file %s", self.path)

    def _load(self) -> Dict[str, Any]:
        with _locked_file(self.path, "r") as fh:
            raw = fh.read()
        obj = json.loads(raw) if raw.strip() else {}
        if not isinstance(obj.get("tables"), list):
            obj["tables"] = []
        return obj

    @contextmanager
    def _mutate(self) -> Generator[Dict[str, Any], None, None]:
        with _locked_file(self.path, "r+") as fh:
            raw = fh.read()
            obj = json.loads(raw) if raw.strip() else {}
            if not isinstance(obj.get("tables"), list):
                obj["tables"] = []
            yield obj
            obj["kind"] = "rowstore.workbook"
            fh.seek(0)
            fh.truncate()
            fh.write(json.dumps(obj, indent=2, sort_keys=True))
            # on disk before the lock is released; readers must never see the truncated file
            fh.flush()
            os.fsync(fh.fileno())

    def table_names(self) -> List[str]:
        return [t.get("name") for t in self._load()["tables"]]

    def table(self, name: Optional[str] = None) -> "FileGrid":
        names = self.table_names()
        if name:
            if name not in names:
                raise TableNotFound(name)
            return FileGrid(self, name)
        if not names:
            raise TableNotFound(DEFAULT_TABLE)
        return FileGrid(self, names[0])

    def create_table(
        self,
        name: str,
        header: Sequence[str],
        column_types: Dict[str, ColumnType],
    ) -> "FileGrid":
        with self._mutate() as obj:
            tables = obj["tables"]
            for i, t in enumerate(tables):
                if t.get("name") != name:
                    continue
                grid = MemoryGrid.from_dict(t)
                if grid.header():
                    raise TableExists(name)
                grid.write_rows(1, [list(header)])
                grid.set_column_types(column_types)
                tables[i] = grid.to_dict()
                break
            else:
                grid = MemoryGrid(name, [list(header)], max_rows=self.max_rows, column_types=column_types)
                tables.append(grid.to_dict())
        log.info("Created table %s in %s", name, self.path)
        return FileGrid(self, name)


class FileGrid(Grid):
    """Reads work on a locked snapshot; writes are locked read-modify-write."""

    def __init__(self, workbook: FileWorkbook, name: str):
        self.workbook = workbook
        self.name = name

    def _snapshot(self) -> MemoryGrid:
        for t in self.workbook._load()["tables"]:
            if t.get("name") == self.name:
                return MemoryGrid.from_dict(t)
        raise TableNotFound(self.name)

    @contextmanager
    def _editing(self) -> Generator[MemoryGrid, None, None]:
        with self.workbook._mutate() as obj:
            tables = obj["tables"]
            for i, t in enumerate(tables):
                if t.get("name") == self.name:
                    grid = MemoryGrid.from_dict(t)
                    yield grid
                    tables[i] = grid.to_dict()
                    return
            raise TableNotFound(self.name)

    def header(self) -> Row:
        return self._snapshot().header()

    def read_rows(self, start_row: int, count: int, width: int) -> List[Row]:
        return self._snapshot().read_rows(start_row, count, width)

    def column_values(self, col: int, start_row: int = 2) -> Row:
        return self._snapshot().column_values(col, start_row)

    def last_row(self) -> int:
        return self._snapshot().last_row()

    def max_rows(self) -> int:
        return self._snapshot().max_rows()

    def data_row_count(self) -> Optional[int]:
        return self._snapshot().data_row_count()

    def column_types(self) -> Dict[str, ColumnType]:
        return self._snapshot().column_types()

    def write_rows(self, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        with self._editing() as grid:
            grid.write_rows(start_row, rows)

    def write_cell(self, row: int, col: int, value: Any) -> None:
        with self._editing() as grid:
            grid.write_cell(row, col, value)

    def apply_checkbox(self, start_row: int, col: int, count: int) -> None:
        with self._editing() as grid:
            grid.apply_checkbox(start_row, col, count)
