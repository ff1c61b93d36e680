"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application database (challenges, submissions, learners)
    DATABASE_URL: str = "sqlite:///./sqlquest.db"

    # Challenge databases - one SQLite file per challenge
    CHALLENGE_DB_DIR: str = "./databases"
    QUERY_TIMEOUT_SECONDS: float = 5.0

    # Gemini API (tutoring feedback is disabled when unset)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    AI_MAX_OUTPUT_TOKENS: int = 500
    AI_TEMPERATURE: float = 0.7
    AI_TIMEOUT_SECONDS: float = 30.0

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    DEFAULT_CACHE_TTL: int = 300  # 5 minutes

    # Application
    APP_NAME: str = "SQL Quest"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    SEED_SAMPLE_CHALLENGES: bool = True

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    RATE_LIMIT_CLEANUP_SECONDS: int = 300

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
