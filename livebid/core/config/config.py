from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from .env and the environment"""

    # Main settings
    app_name: str = "LiveBid API"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite://db.sqlite3"
    db_timezone: str = "UTC"

    # App Security
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # CORS settings
    CORS_ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_sweep_interval: float = 30.0

    # Bidding
    bid_lock_timeout: float = 5.0
    potential_winner_window: float = 60.0

    # Kafka Settings (activity feed is disabled when bootstrap servers are not set)
    KAFKA_BOOTSTRAP_SERVERS: Optional[str] = None
    KAFKA_TOPIC_ACTIVITY: str = "auction.activity"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
