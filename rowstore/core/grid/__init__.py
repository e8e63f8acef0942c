from rowstore.config import Settings

from .base import Grid, Workbook
from .file import FileWorkbook
from .memory import MemoryGrid, MemoryWorkbook
from .sheets import SheetsWorkbook


def _open_sheets(settings: Settings) -> SheetsWorkbook:
    if not settings.spreadsheet_id or not settings.credentials_file:
        raise ValueError("sheets backend needs ROWSTORE_SPREADSHEET_ID and ROWSTORE_CREDENTIALS_FILE")
    return SheetsWorkbook.from_service_account(settings.spreadsheet_id, settings.credentials_file)


BACKENDS = {
    "memory": lambda settings: MemoryWorkbook(),
    "file": lambda settings: FileWorkbook(path=settings.data_file),
    "sheets": _open_sheets,
}


def open_workbook(settings: Settings) -> Workbook:
    factory = BACKENDS.get(settings.backend)
    if factory is None:
        raise ValueError(f"Unknown backend: {settings.backend}")
    return factory(settings)


__all__ = [
    "BACKENDS",
    "FileWorkbook",
    "Grid",
    "MemoryGrid",
    "MemoryWorkbook",
    "SheetsWorkbook",
    "Workbook",
    "open_workbook",
]
