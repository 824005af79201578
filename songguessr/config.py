# ============================================================================
# FILE: songguessr/config.py
# ============================================================================
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """Application configuration using Pydantic BaseSettings"""

    # App settings
    APP_NAME: str = "SongGuessr"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./songguessr.db"  # Change to PostgreSQL in production
    DB_CONNECT_TIMEOUT: int = 5

    # Redis cache
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_EXPIRE_SECONDS: int = 3600

    # Security
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Game rules
    DEFAULT_ROUNDS: int = 10
    MIN_ROUNDS: int = 1
    MAX_ROUNDS: int = 20
    MAX_ROUND_SCORE: int = 5
    WIN_THRESHOLD: float = 0.6
    SESSION_TIMEOUT_MINUTES: int = 30

    # Stats
    HISTORY_DEFAULT_LIMIT: int = 10
    HISTORY_MAX_LIMIT: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
