"""Liveness and readiness probes."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules import __version__
from txnrules.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@router.get("/health/ready")
async def health_ready(db: AsyncSession = Depends(get_db)):
    """Ready once the database answers; rules can't be loaded without it."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        # Error text can carry the connection URL; report only the type.
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "database": "disconnected", "error": type(e).__name__},
        )
    return {"status": "ready", "database": "connected"}
