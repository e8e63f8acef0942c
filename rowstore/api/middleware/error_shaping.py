from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

log = logging.getLogger("rowstore.errors")


def _error_payload(request: Request, message: str) -> dict:
    payload = {"error": message}
    rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    if rid:
        payload["request_id"] = rid
    return payload


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Failures still answer 200 with a JSON `error` envelope
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            log.error(
                "Unhandled error: %s path=%s\n%s",
                str(e),
                request.url.path,
                traceback.format_exc(),
            )
            payload = _error_payload(request, "Internal error")
            resp = JSONResponse(status_code=200, content=payload)
            if "request_id" in payload:
                resp.headers["X-Request-Id"] = payload["request_id"]
            return resp


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = (exc.errors() or [{}])[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("query", "body"))
    msg = first.get("msg", "invalid request")
    log.warning("Request validation failed path=%s loc=%s msg=%s", request.url.path, loc, msg)
    return JSONResponse(
        status_code=200,
        content=_error_payload(request, f"Invalid parameter '{loc}': {msg}" if loc else msg),
    )
