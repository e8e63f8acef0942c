from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from rowstore.core.schema import ColumnType

Row = List[Any]


def trim_trailing(values: Sequence[Any]) -> List[Any]:
    out = list(values)
    while out and (out[-1] is None or out[-1] == ""):
        out.pop()
    return out


def pad_row(values: Sequence[Any], width: int) -> Row:
    row = list(values)[:width]
    if len(row) < width:
        row.extend([""] * (width - len(row)))
    return row


class Grid(ABC):
    """One table. Coordinates are 1-based, row 1 is the header."""

    name: str

    @abstractmethod
    def header(self) -> Row:
        """Row 1 without trailing empty cells."""

    @abstractmethod
    def read_rows(self, start_row: int, count: int, width: int) -> List[Row]:
        """Rectangular read; missing cells come back as ""."""

    @abstractmethod
    def column_values(self, col: int, start_row: int = 2) -> Row:
        """One column from start_row down to max_rows()."""

    @abstractmethod
    def last_row(self) -> int:
        """Last occupied row as the backend reports it.

        Cell formatting (checkbox validation) can push this past the real data.
        """

    @abstractmethod
    def max_rows(self) -> int:
        ...

    @abstractmethod
    def write_rows(self, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        ...

    @abstractmethod
    def write_cell(self, row: int, col: int, value: Any) -> None:
        ...

    @abstractmethod
    def apply_checkbox(self, start_row: int, col: int, count: int) -> None:
        """Attach a boolean (checkbox) input constraint to a column range."""

    def data_row_count(self) -> Optional[int]:
        """Number of data rows when the backend tracks it reliably, else None."""
        return None

    def column_types(self) -> Dict[str, ColumnType]:
        return {}


class Workbook(ABC):
    backend: str

    @abstractmethod
    def table_names(self) -> List[str]:
        ...

    @abstractmethod
    def table(self, name: Optional[str] = None) -> Grid:
        """Named table, or the first one when name is empty.

        Raises TableNotFound.
        """

    @abstractmethod
    def create_table(
        self,
        name: str,
        header: Sequence[str],
        column_types: Dict[str, ColumnType],
    ) -> Grid:
        """Add a table holding only its header row.

        An existing table whose header row is still empty is initialised in
        place. Raises TableExists otherwise.
        """
