from time import perf_counter

import sqlalchemy as sa
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutorledger.api.dependencies import get_db_session_factory
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/_health/db", status_code=status.HTTP_200_OK)
async def health_db(factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory)):
    t0 = perf_counter()
    try:
        async with factory() as session:
            await session.execute(sa.text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed", error=type(e).__name__)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "checks": {"db": "SELECT 1 failed"}, "error": type(e).__name__},
        )
    dt_ms = int((perf_counter() - t0) * 1000)
    return {"ok": True, "checks": {"db_select_1_ms": dt_ms}}
