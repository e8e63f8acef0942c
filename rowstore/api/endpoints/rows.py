from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Query, Request
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from rowstore.api.models.responses import (
    CreateResponse,
    DeleteResponse,
    ErrorResponse,
    ReadResponse,
    UpdateResponse,
)
from rowstore.api.observability.metrics import OPERATIONS_TOTAL
from rowstore.core.engine import Outcome, RowStore
from rowstore.core.mutation import WriteOp

router = APIRouter(tags=["rows"])

ReadEnvelope = Union[ReadResponse, ErrorResponse]
WriteEnvelope = Union[CreateResponse, UpdateResponse, DeleteResponse, ErrorResponse]


def _store(request: Request) -> RowStore:
    return request.app.state.store


def _respond(outcome: Outcome) -> JSONResponse:
    OPERATIONS_TOTAL.labels(operation=outcome.operation, outcome=outcome.code).inc()
    # Failures stay 200: callers branch on the `error` key, not on status.
    return JSONResponse(status_code=200, content=outcome.payload)


@router.get(
    "/exec",
    responses={200: {"model": ReadEnvelope, "description": "Records, or an error envelope"}},
)
async def read_rows(
    request: Request,
    sheet: Optional[str] = Query(default=None, description="Table name; the first table when omitted"),
    fields: Optional[str] = Query(default=None, description="Comma- or space-separated columns; id is always kept"),
) -> JSONResponse:
    outcome = await run_in_threadpool(_store(request).read, sheet=sheet or None, fields=fields)
    return _respond(outcome)


@router.post(
    "/exec",
    responses={200: {"model": WriteEnvelope, "description": "Operation result, or an error envelope"}},
)
async def write_rows(
    request: Request,
    sheet: Optional[str] = Query(default=None, description="Table name; the first table when omitted"),
    method: Optional[str] = Query(default=None, description="PUT or UPDATE updates, DELETE soft-deletes, anything else creates"),
    action: Optional[str] = Query(default=None, description="Alias of method"),
) -> JSONResponse:
    # Raw body: callers post JSON as text/plain to skip CORS preflight.
    body = await request.body()
    op = WriteOp.from_method(method or action)
    outcome = await run_in_threadpool(_store(request).write, op, body, sheet=sheet or None)
    return _respond(outcome)
