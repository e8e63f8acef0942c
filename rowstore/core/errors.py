from __future__ import annotations

from typing import Any, Dict, Optional


class RowStoreError(Exception):
    """
    Base for every failure the engine reports to callers.

    The message is user-facing and goes verbatim into the `error` envelope.
    """

    code = "row_store_error"

    def __init__(self, message: str, *, debug: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.debug = debug

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.debug:
            payload["debug"] = self.debug
        return payload


class TableNotFound(RowStoreError):
    code = "table_not_found"

    def __init__(self, name: str):
        super().__init__(f'Sheet "{name}" not found')
        self.name = name


class TableExists(RowStoreError):
    code = "table_exists"

    def __init__(self, name: str):
        super().__init__(f'Sheet "{name}" already exists')
        self.name = name


class InvalidPayload(RowStoreError):
    code = "invalid_payload"


class MissingColumn(RowStoreError):
    code = "missing_column"


class MissingField(RowStoreError):
    code = "missing_field"


class NotFound(RowStoreError):
    code = "not_found"

    def __init__(self, record_id: Any):
        super().__init__(f"ID not found: {record_id}")
        self.record_id = record_id


class NoData(RowStoreError):
    code = "no_data"


class EmptyBatch(RowStoreError):
    """Benign no-op: rendered without an `error` key."""

    code = "empty_batch"

    def __init__(self, message: str = "No data to insert"):
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message}
