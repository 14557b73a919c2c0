from .database import DatabaseManager, get_tortoise_config
