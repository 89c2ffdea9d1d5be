from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from edugate.config import settings
from edugate.infrastructure.cache.redis_client import redis_is_available


def get_health_status(db: Session, redis_client) -> dict:
    try:
        db.execute(text("SELECT 1"))
        db_connected = True
    except SQLAlchemyError:
        db_connected = False

    return {
        "message": f"{settings.app_name} is running",
        "db_connected": db_connected,
        "redis_connected": redis_is_available(redis_client),
        "demo_mode_enabled": settings.demo_mode_enabled,
    }
