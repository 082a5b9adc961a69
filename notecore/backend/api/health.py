"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (database reachable, search index present)
"""

from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.core.dependencies import DbSession
from notecore.backend.core.logging import get_logger
from notecore.backend.core.utils import utc_now
from notecore.backend.models.note import FTS_TABLE

router = APIRouter()
logger = get_logger(__name__)


async def check_database(session: AsyncSession) -> dict[str, Any]:
    """
    Check database connectivity and the presence of the search index.

    Returns:
        Dict with status, latency, and optional error message
    """
    start = utc_now()
    try:
        await session.execute(text("SELECT 1"))
        await session.execute(text(f"SELECT count(*) FROM {FTS_TABLE}"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    latency_ms = int((utc_now() - start).total_seconds() * 1000)
    return {"status": "healthy", "latency_ms": latency_ms}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(db: DbSession) -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 if the database or the search index is unavailable.
    """
    checks = {"database": await check_database(db)}

    if checks["database"]["status"] != "healthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
