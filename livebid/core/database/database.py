from typing import Optional

from tortoise import Tortoise
from loguru import logger
from livebid.core.config import settings

MODEL_MODULES = ["livebid.models"]


def get_tortoise_config(db_url: Optional[str] = None) -> dict:
    """Tortoise config shared by the app and the test suite"""
    return {
        "connections": {"default": db_url or settings.database_url},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": settings.db_timezone,
    }


class DatabaseManager:
    @staticmethod
    async def init(db_url: Optional[str] = None):
        """Initialize database connections and schema"""
        await Tortoise.init(config=get_tortoise_config(db_url))
        await Tortoise.generate_schemas(safe=True)
        logger.info("✅ Database schema initialized")

    @staticmethod
    async def close():
        """Close database connections"""
        await Tortoise.close_connections()
        logger.info("🛑 Database connections closed")
