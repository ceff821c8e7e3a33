"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Durable slot (relational snapshot) ────────────────────────────────
    DATA_DIR: str = "data"
    SLOT_KEY: str = "access_control_db"
    SLOT_QUOTA_BYTES: int = 5 * 1024 * 1024     # Same order as a browser localStorage origin

    # ── Evidence blob store ───────────────────────────────────────────────
    BLOB_DATABASE_URL: str = "sqlite:///data/acx_media.db"

    # ── Reference data ────────────────────────────────────────────────────
    VEHICLE_MODELS_SOURCE: str = "models.json"   # Local path or http(s) URL

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "127.0.0.1"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
