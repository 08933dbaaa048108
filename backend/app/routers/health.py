"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.config import settings
from app.database import engine

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight health check for load balancer (no DB check).

    Returns 200 OK if the service is running.
    """
    return {
        "status": "ok",
        "service": "ChemTrace",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: the database must answer and hold an initialised ledger.

    Returns 200 OK only if all dependencies are healthy, 503 otherwise.
    """
    checks = {
        "service": "ok",
        "database": "unknown",
        "ledger": "unknown",
    }
    overall_healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
            initialised = await conn.scalar(text("SELECT COUNT(*) FROM ledger_state"))
            checks["ledger"] = "ok" if initialised else "not initialised"
            overall_healthy = bool(initialised)
    except Exception as e:
        if checks["database"] == "unknown":
            checks["database"] = f"error: {str(e)[:100]}"
        else:
            checks["ledger"] = f"error: {str(e)[:100]}"
        overall_healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if overall_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if overall_healthy else "unhealthy",
            "service": "ChemTrace",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
