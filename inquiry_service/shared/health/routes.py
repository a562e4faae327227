"""Health check backed by a trivial store probe."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from inquiry_service.shared.contact.database import probe
from inquiry_service.shared.security.dependencies import admission

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", dependencies=[Depends(admission("public"))])
async def health(request: Request):
    try:
        await run_in_threadpool(probe, request.app.state.engine)
    except Exception as e:
        logging.error(f"[api/health] store probe failed: {str(e)}")
        return JSONResponse(status_code=500, content={"status": "error"})
    return {"status": "ok"}
