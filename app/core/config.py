"""
Application Configuration
All settings loaded from environment variables
"""
from pydantic import BaseModel
from typing import Optional
import os


class Settings(BaseModel):
    # ==================== Application ====================
    APP_NAME: str = os.getenv("APP_NAME", "Users API")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    # ==================== Server ====================
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # ==================== Database ====================
    # Unset -> in-memory database
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "false").lower() in ("true", "1", "yes")

    # ==================== User Validation ====================
    USERNAME_MIN_LENGTH: int = int(os.getenv("USERNAME_MIN_LENGTH", "3"))
    USERNAME_MAX_LENGTH: int = int(os.getenv("USERNAME_MAX_LENGTH", "50"))
    EMAIL_REGEX: str = os.getenv("EMAIL_REGEX", r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    PHONE_REGEX: str = os.getenv("PHONE_REGEX", r"^[0-9+\-() ]{10,20}$")

    # ==================== Logging ====================
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_FILE: str = os.getenv("LOG_FILE", "")
    LOG_MAX_SIZE: int = int(os.getenv("LOG_MAX_SIZE", "10485760"))  # 10MB
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "5"))

    # ==================== CORS ====================
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    CORS_ALLOW_CREDENTIALS: bool = os.getenv("CORS_ALLOW_CREDENTIALS", "false").lower() == "true"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
