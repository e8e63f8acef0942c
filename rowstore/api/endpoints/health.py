from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = logging.getLogger("rowstore.request")

router = APIRouter(tags=["health"])


@router.get("/health/live")
def live():
    return {"status": "alive"}


@router.get("/health/ready")
def ready(request: Request):
    """
    Readiness reflects ability to serve traffic: the default table must open.
    """
    problems: list[str] = []
    store = getattr(request.app.state, "store", None)
    if store is None:
        problems.append("store_not_configured")
    else:
        try:
            store.workbook.table(None)
        except Exception as e:
            log.warning("Readiness probe failed: %s", e)
            problems.append(f"backend_unavailable:{store.workbook.backend} err={type(e).__name__}")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready", "backend": store.workbook.backend}
