"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from garden_catalog.config import settings
from garden_catalog.database import get_db
from garden_catalog.models.schemas import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with database status and whether the Gemini
        assistant and Plant.id identification are configured
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        db_status = "error"

    gemini_status = "configured" if settings.gemini_configured else "not_configured"
    plant_id_status = "configured" if settings.plantid_configured else "not_configured"

    # The assistant degrades to a canned reply without Gemini, so only the
    # database decides overall health
    overall_status = "healthy" if db_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        gemini=gemini_status,
        plant_id=plant_id_status,
        timestamp=datetime.now(timezone.utc),
    )
