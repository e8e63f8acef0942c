"""
Schema resolution for header-row tables.

Row one of a table is its schema. `Schema.from_header` reads it once per
request and classifies the reserved columns; declared column types (fixed when
the table was created) ride along when the backend knows them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import MissingColumn

ID = "id"
CREATED_AT = "created_at"
UPDATED_AT = "updated_at"
IS_ENABLED = "is_enabled"

RESERVED_COLUMNS = (ID, CREATED_AT, UPDATED_AT, IS_ENABLED)


class ColumnType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


def infer_type(value: Any) -> ColumnType:
    # bool is an int subclass, check it first
    if isinstance(value, bool):
        return ColumnType.BOOLEAN
    if isinstance(value, (int, float)):
        return ColumnType.NUMBER
    return ColumnType.STRING


@dataclass(frozen=True)
class ColumnDef:
    name: str
    index: int
    type: Optional[ColumnType] = None

    @property
    def reserved(self) -> bool:
        return self.name in RESERVED_COLUMNS


@dataclass(frozen=True)
class Schema:
    columns: List[ColumnDef] = field(default_factory=list)

    @staticmethod
    def from_header(
        header: Sequence[Any],
        declared_types: Optional[Mapping[str, ColumnType]] = None,
    ) -> "Schema":
        declared = dict(declared_types or {})
        cols: List[ColumnDef] = []
        for i, raw in enumerate(header):
            name = str(raw) if raw is not None else ""
            ctype = declared.get(name)
            if ctype is None and name == IS_ENABLED:
                ctype = ColumnType.BOOLEAN
            cols.append(ColumnDef(name=name, index=i, type=ctype))
        return Schema(columns=cols)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.columns

    def index(self, name: str) -> Optional[int]:
        # first match wins, same as a header lookup
        for c in self.columns:
            if c.name == name:
                return c.index
        return None

    def has(self, name: str) -> bool:
        return self.index(name) is not None

    @property
    def id_index(self) -> Optional[int]:
        return self.index(ID)

    @property
    def enabled_index(self) -> Optional[int]:
        return self.index(IS_ENABLED)

    @property
    def created_at_index(self) -> Optional[int]:
        return self.index(CREATED_AT)

    @property
    def updated_at_index(self) -> Optional[int]:
        return self.index(UPDATED_AT)

    def require_columns(self) -> None:
        if self.is_empty:
            raise MissingColumn("Sheet is empty (no headers)")

    def require_id(self) -> int:
        idx = self.id_index
        if idx is None:
            raise MissingColumn('Sheet needs an "id" column')
        return idx

    def require_enabled(self) -> int:
        idx = self.enabled_index
        if idx is None:
            raise MissingColumn('Sheet needs an "is_enabled" column for soft delete')
        return idx

    def boolean_columns(self, sample_row: Optional[Sequence[Any]] = None) -> List[int]:
        """
        Indices of columns that hold booleans.

        Declared types win. Columns without a declared type fall back to the
        first written value of the batch (`sample_row`).
        """
        out: List[int] = []
        for c in self.columns:
            ctype = c.type
            if ctype is None and sample_row is not None and c.index < len(sample_row):
                if isinstance(sample_row[c.index], bool):
                    ctype = ColumnType.BOOLEAN
            if ctype == ColumnType.BOOLEAN:
                out.append(c.index)
        return out

    def types(self) -> Dict[str, str]:
        return {c.name: c.type.value for c in self.columns if c.type is not None}
