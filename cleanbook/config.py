"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Cleanoo"
    DEBUG: bool = False
    NODE_ENV: str = "development"
    API_PREFIX: str = "/api"
    APP_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./cleanbook.db"

    # Sessions
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    BCRYPT_ROUNDS: int = 12

    # Admin account (single env-configured admin)
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""
    ADMIN_NOTIFICATION_EMAIL: str = ""  # Falls back to ADMIN_EMAIL

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:3000/api/auth/google/callback"
    GOOGLE_HTTP_TIMEOUT_SECONDS: float = 10.0
    GOOGLE_JWKS_CACHE_SECONDS: int = 3600

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 465
    SMTP_SECURE: bool = True
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_FROM: str = ""
    SMTP_TIMEOUT_SECONDS: float = 15.0
    SMTP_MAX_ATTEMPTS: int = 3
    SMTP_RETRY_WAIT_SECONDS: float = 1.0

    # Business Rules
    BOOKING_VERIFICATION_HOURS: int = 24
    DEFAULT_PREFERRED_TIME: str = "Morning (8AM-12PM)"
    DEFAULT_STAFF_PASSWORD: str = "welcome"
    MIN_PASSWORD_LENGTH: int = 6
    DEFAULT_PHONE_REGION: str = "NL"

    @property
    def is_production(self) -> bool:
        return self.NODE_ENV == "production"

    @property
    def admin_notification_email(self) -> str:
        return self.ADMIN_NOTIFICATION_EMAIL or self.ADMIN_EMAIL

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
