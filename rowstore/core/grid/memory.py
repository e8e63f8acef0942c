from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from rowstore.core.errors import TableExists, TableNotFound
from rowstore.core.schema import ColumnType

from .base import Grid, Row, Workbook, pad_row, trim_trailing

DEFAULT_TABLE = "Sheet1"
DEFAULT_MAX_ROWS = 1000


def _blank(v: Any) -> bool:
    return v is None or v == ""


class MemoryGrid(Grid):
    """
    In-process grid that behaves like a spreadsheet tab.

    Cells carrying checkbox validation count as occupied and an empty one
    reads back as False, which is what inflates last_row() on real sheets.
    With track_extent the grid also keeps the data extent as metadata.
    """

    def __init__(
        self,
        name: str,
        rows: Optional[Sequence[Sequence[Any]]] = None,
        *,
        max_rows: int = DEFAULT_MAX_ROWS,
        track_extent: bool = True,
        column_types: Optional[Dict[str, ColumnType]] = None,
        checkboxes: Iterable[Tuple[int, int]] = (),
        extent: Optional[int] = None,
    ):
        self.name = name
        self._rows: List[Row] = [list(r) for r in (rows or [])]
        self._max_rows = max(int(max_rows), len(self._rows), 1)
        self._checkboxes: Set[Tuple[int, int]] = {(int(r), int(c)) for r, c in checkboxes}
        self._types: Dict[str, ColumnType] = dict(column_types or {})
        self.track_extent = track_extent
        self._extent = len(self._rows) if extent is None else int(extent)

    # -- reads -----------------------------------------------------------

    def _get(self, row: int, col: int) -> Any:
        if row - 1 < len(self._rows):
            r = self._rows[row - 1]
            if col - 1 < len(r) and not _blank(r[col - 1]):
                return r[col - 1]
        if (row, col) in self._checkboxes:
            return False
        return ""

    def header(self) -> Row:
        if not self._rows:
            return []
        return trim_trailing(self._rows[0])

    def read_rows(self, start_row: int, count: int, width: int) -> List[Row]:
        out: List[Row] = []
        for row in range(start_row, start_row + max(count, 0)):
            out.append(pad_row([self._get(row, c) for c in range(1, width + 1)], width))
        return out

    def column_values(self, col: int, start_row: int = 2) -> Row:
        return [self._get(row, col) for row in range(start_row, self._max_rows + 1)]

    def last_row(self) -> int:
        last = 0
        for i, r in enumerate(self._rows, start=1):
            if any(not _blank(v) for v in r):
                last = i
        if self._checkboxes:
            last = max(last, max(r for r, _ in self._checkboxes))
        return last

    def max_rows(self) -> int:
        return self._max_rows

    def data_row_count(self) -> Optional[int]:
        if not self.track_extent:
            return None
        return max(self._extent - 1, 0)

    def column_types(self) -> Dict[str, ColumnType]:
        return dict(self._types)

    # -- writes ----------------------------------------------------------

    def _ensure(self, row: int, col: int) -> None:
        while len(self._rows) < row:
            self._rows.append([])
        r = self._rows[row - 1]
        if len(r) < col:
            r.extend([""] * (col - len(r)))
        self._max_rows = max(self._max_rows, row)

    def write_rows(self, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        for offset, values in enumerate(rows):
            row = start_row + offset
            self._ensure(row, len(values))
            for c, v in enumerate(values):
                self._rows[row - 1][c] = v
        if rows:
            self._extent = max(self._extent, start_row + len(rows) - 1)

    def write_cell(self, row: int, col: int, value: Any) -> None:
        self._ensure(row, col)
        self._rows[row - 1][col - 1] = value

    def apply_checkbox(self, start_row: int, col: int, count: int) -> None:
        for row in range(start_row, start_row + count):
            self._checkboxes.add((row, col))
        self._max_rows = max(self._max_rows, start_row + count - 1)

    def set_column_types(self, column_types: Dict[str, ColumnType]) -> None:
        self._types = dict(column_types)

    # -- persistence helpers (used by the file workbook) -------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rows": self._rows,
            "max_rows": self._max_rows,
            "extent": self._extent,
            "checkboxes": sorted([r, c] for r, c in self._checkboxes),
            "column_types": {k: v.value for k, v in self._types.items()},
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MemoryGrid":
        return MemoryGrid(
            d["name"],
            d.get("rows") or [],
            max_rows=int(d.get("max_rows") or DEFAULT_MAX_ROWS),
            column_types={k: ColumnType(v) for k, v in (d.get("column_types") or {}).items()},
            checkboxes=[tuple(x) for x in d.get("checkboxes") or []],
            extent=d.get("extent"),
        )


class MemoryWorkbook(Workbook):
    backend = "memory"

    def __init__(
        self,
        tables: Optional[Dict[str, Sequence[Sequence[Any]]]] = None,
        *,
        max_rows: int = DEFAULT_MAX_ROWS,
        track_extent: bool = True,
    ):
        self.max_rows = max_rows
        self.track_extent = track_extent
        self._tables: "OrderedDict[str, MemoryGrid]" = OrderedDict()
        for name, rows in (tables or {DEFAULT_TABLE: []}).items():
            self._tables[name] = MemoryGrid(name, rows, max_rows=max_rows, track_extent=track_extent)

    def table_names(self) -> List[str]:
        return list(self._tables)

    def table(self, name: Optional[str] = None) -> MemoryGrid:
        if name:
            grid = self._tables.get(name)
            if grid is None:
                raise TableNotFound(name)
            return grid
        if not self._tables:
            raise TableNotFound(DEFAULT_TABLE)
        return next(iter(self._tables.values()))

    def create_table(
        self,
        name: str,
        header: Sequence[str],
        column_types: Dict[str, ColumnType],
    ) -> MemoryGrid:
        existing = self._tables.get(name)
        if existing is not None:
            if existing.header():
                raise TableExists(name)
            existing.write_rows(1, [list(header)])
            existing.set_column_types(column_types)
            return existing
        grid = MemoryGrid(
            name,
            [list(header)],
            max_rows=self.max_rows,
            track_extent=self.track_extent,
            column_types=column_types,
        )
        self._tables[name] = grid
        return grid
