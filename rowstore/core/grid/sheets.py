"""
Google Sheets backend.

Talks to a spreadsheet through gspread with service-account credentials.
Sheets reports a worksheet's last row including cells that only carry
checkbox validation, and it keeps no data-extent metadata, so the engine
locates the true end of data by scanning the id column.

Declared column types live in a hidden `_rowstore_schema` worksheet with
rows of (table, column, type).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import ValueInputOption, ValueRenderOption, rowcol_to_a1

from rowstore.core.errors import TableExists, TableNotFound
from rowstore.core.schema import ColumnType

from .base import Grid, Row, Workbook, pad_row, trim_trailing

log = logging.getLogger("rowstore.grid")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
SCHEMA_SHEET = "_rowstore_schema"
NEW_SHEET_ROWS = 1000


class SheetsGrid(Grid):
    def __init__(self, worksheet: gspread.Worksheet, *, column_types: Optional[Dict[str, ColumnType]] = None):
        self.ws = worksheet
        self.name = worksheet.title
        self._types = dict(column_types or {})

    def header(self) -> Row:
        return trim_trailing(self.ws.row_values(1, value_render_option=ValueRenderOption.unformatted))

    def read_rows(self, start_row: int, count: int, width: int) -> List[Row]:
        if count <= 0 or width <= 0:
            return []
        rng = f"{rowcol_to_a1(start_row, 1)}:{rowcol_to_a1(start_row + count - 1, width)}"
        values = self.ws.get(rng, value_render_option=ValueRenderOption.unformatted)
        out = [pad_row(r, width) for r in values]
        # the API drops trailing empty rows
        while len(out) < count:
            out.append([""] * width)
        return out

    def column_values(self, col: int, start_row: int = 2) -> Row:
        end = self.max_rows()
        if end < start_row:
            return []
        rng = f"{rowcol_to_a1(start_row, col)}:{rowcol_to_a1(end, col)}"
        values = self.ws.get(rng, value_render_option=ValueRenderOption.unformatted)
        out = [r[0] if r else "" for r in values]
        out.extend([""] * (end - start_row + 1 - len(out)))
        return out

    def last_row(self) -> int:
        return len(self.ws.get_all_values())

    def max_rows(self) -> int:
        return int(self.ws.row_count)

    def column_types(self) -> Dict[str, ColumnType]:
        return dict(self._types)

    def _grow_to(self, row: int) -> None:
        missing = row - self.max_rows()
        if missing > 0:
            self.ws.add_rows(missing)

    def write_rows(self, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
        if not rows:
            return
        self._grow_to(start_row + len(rows) - 1)
        self.ws.update(
            values=[list(r) for r in rows],
            range_name=rowcol_to_a1(start_row, 1),
            value_input_option=ValueInputOption.raw,
        )

    def write_cell(self, row: int, col: int, value: Any) -> None:
        self._grow_to(row)
        self.ws.update(
            values=[[value]],
            range_name=rowcol_to_a1(row, col),
            value_input_option=ValueInputOption.raw,
        )

    def apply_checkbox(self, start_row: int, col: int, count: int) -> None:
        rule = {
            "setDataValidation": {
                "range": {
                    "sheetId": self.ws.id,
                    "startRowIndex": start_row - 1,
                    "endRowIndex": start_row - 1 + count,
                    "startColumnIndex": col - 1,
                    "endColumnIndex": col,
                },
                "rule": {"condition": {"type": "BOOLEAN"}, "strict": True},
            }
        }
        self.ws.spreadsheet.batch_update({"requests": [rule]})


class SheetsWorkbook(Workbook):
    backend = "sheets"

    def __init__(self, spreadsheet: gspread.Spreadsheet):
        self.sh = spreadsheet

    @classmethod
    def from_service_account(cls, spreadsheet_id: str, credentials_file: str) -> "SheetsWorkbook":
        creds = Credentials.from_service_account_file(credentials_file, scopes=SCOPES)
        gc = gspread.authorize(creds)
        log.info("Opening spreadsheet %s", spreadsheet_id)
        return cls(gc.open_by_key(spreadsheet_id))

    def _worksheets(self) -> List[gspread.Worksheet]:
        return [w for w in self.sh.worksheets() if w.title != SCHEMA_SHEET]

    def table_names(self) -> List[str]:
        return [w.title for w in self._worksheets()]

    def _declared_types(self, table: str) -> Dict[str, ColumnType]:
        try:
            ws = self.sh.worksheet(SCHEMA_SHEET)
        except gspread.WorksheetNotFound:
            return {}
        out: Dict[str, ColumnType] = {}
        for row in ws.get_all_values():
            if len(row) < 3 or row[0] != table:
                continue
            try:
                out[row[1]] = ColumnType(row[2])
            except ValueError:
                log.warning("Ignoring unknown column type %r for %s.%s", row[2], table, row[1])
        return out

    def table(self, name: Optional[str] = None) -> SheetsGrid:
        if name:
            if name == SCHEMA_SHEET:
                raise TableNotFound(name)
            try:
                ws = self.sh.worksheet(name)
            except gspread.WorksheetNotFound:
                raise TableNotFound(name)
        else:
            sheets = self._worksheets()
            if not sheets:
                raise TableNotFound("Sheet1")
            ws = sheets[0]
        return SheetsGrid(ws, column_types=self._declared_types(ws.title))

    def _record_types(self, table: str, column_types: Dict[str, ColumnType]) -> None:
        try:
            ws = self.sh.worksheet(SCHEMA_SHEET)
        except gspread.WorksheetNotFound:
            ws = self.sh.add_worksheet(title=SCHEMA_SHEET, rows=100, cols=3)
            ws.hide()
        rows = [[table, col, ctype.value] for col, ctype in column_types.items()]
        if rows:
            ws.append_rows(rows, value_input_option=ValueInputOption.raw)

    def create_table(
        self,
        name: str,
        header: Sequence[str],
        column_types: Dict[str, ColumnType],
    ) -> SheetsGrid:
        try:
            ws = self.sh.worksheet(name)
        except gspread.WorksheetNotFound:
            ws = self.sh.add_worksheet(title=name, rows=NEW_SHEET_ROWS, cols=max(len(header), 1))
        else:
            if trim_trailing(ws.row_values(1)):
                raise TableExists(name)
        ws.update(values=[list(header)], range_name="A1", value_input_option=ValueInputOption.raw)
        self._record_types(name, column_types)
        log.info("Created table %s in spreadsheet %s", name, self.sh.id)
        return SheetsGrid(ws, column_types=column_types)
