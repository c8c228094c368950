# medslot/routers/health.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.db.sql import get_session, ping_db

router = APIRouter()

@router.get("/health")
async def health_root():
    return {"status": "ok"}

@router.get("/health/db")
async def health_db(session: AsyncSession = Depends(get_session)):
    """
    Validates database connectivity with SELECT 1.
    Returns 503 if no connectivity (useful for readiness/liveness checks).
    """
    try:
        await ping_db(session)
    except SQLAlchemyError as exc:
        # Don't expose internal details
        raise HTTPException(status_code=503, detail="database_unavailable") from exc
    return {"status": "ok", "database": session.bind.dialect.name}
