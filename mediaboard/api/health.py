"""Health check and system info routes."""

import asyncio

import redis
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard import __version__
from mediaboard.api.dependencies import get_blob_store
from mediaboard.config import get_settings
from mediaboard.db.models import FileType
from mediaboard.db.session import get_db
from mediaboard.schemas.schemas import HealthResponse
from mediaboard.services.storage import StorageService

router = APIRouter(tags=["System"])

settings = get_settings()


def _ping_redis() -> bool:
    try:
        redis.from_url(settings.redis_url, socket_connect_timeout=2).ping()
        return True
    except redis.RedisError:
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the service and its dependencies.",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_blob_store),
):
    """
    Health check endpoint.

    Returns the status of:
    - API server
    - Database connection
    - Redis connection
    - Object storage connection
    """
    redis_status = "ok" if await asyncio.to_thread(_ping_redis) else "error"

    storage_status = "ok" if await asyncio.to_thread(storage.health_check) else "error"

    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    overall_status = "healthy"
    if any(s == "error" for s in [redis_status, storage_status, db_status]):
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        database=db_status,
        redis=redis_status,
        storage=storage_status,
    )


@router.get(
    "/v1/info",
    summary="Service information",
    description="Get general information about the service.",
)
async def service_info():
    """Get service information."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "environment": settings.app_env,
        "chunkSize": settings.upload_chunk_size,
        "maxUploadSize": settings.max_upload_size,
        "sessionTtlHours": settings.upload_session_ttl_hours,
        "fileTypes": [t.value for t in FileType],
        "documentation": "/docs",
        "redoc": "/redoc",
    }
