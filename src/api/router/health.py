from datetime import datetime
from typing import Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.core.logger.logger import logger
from src.infra.config.redis import get_redis
from src.infra.config.settings import settings
from src.infra.database import get_database_manager

router = APIRouter(tags=["Health"])


async def check_database_health() -> Dict[str, str]:
    """Check database connection health."""
    try:
        engine = await get_database_manager().connect()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "message": f"Connection failed: {str(e)}"}


async def check_redis_health() -> Dict[str, str]:
    """Check Redis connection health."""
    try:
        await get_redis()
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        # Only feature flags depend on Redis and they fall back to defaults
        return {"status": "degraded", "message": f"Connection failed: {str(e)}"}


@router.get("/health")
async def health_check():
    """
    Health of the API and its backing stores.

    Answers 503 when the database is unreachable; a missing Redis only
    degrades the service.
    """
    services = {
        "database": await check_database_health(),
        "redis": await check_redis_health(),
    }

    overall_status = "healthy"
    if services["database"]["status"] == "unhealthy":
        overall_status = "unhealthy"
    elif any(service["status"] != "healthy" for service in services.values()):
        overall_status = "degraded"

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if overall_status == "unhealthy" else status.HTTP_200_OK,
        content={
            "status": overall_status,
            "services": services,
            "version": settings.APP_VERSION,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        }
    )
