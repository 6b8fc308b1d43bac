import logging
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from arcadeboard.cache import cache
from arcadeboard.config import get_settings
from arcadeboard.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", summary="Health check")
async def health_check(db: Session = Depends(get_db)):
    """
    Report database and cache connectivity.

    Always answers 200; a failing dependency turns the status to "degraded".
    A disabled cache is reported as "disabled" and does not degrade status.
    """
    health_status = {
        "status": "healthy",
        "database": "ok",
        "cache": "ok",
        "gamesVersion": get_settings().games_version,
        "timestamp": datetime.now().isoformat()
    }

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        health_status["database"] = "error"
        health_status["status"] = "degraded"

    if not get_settings().cache_enabled:
        health_status["cache"] = "disabled"
    elif not cache.ping():
        health_status["cache"] = "error"
        health_status["status"] = "degraded"

    return health_status
