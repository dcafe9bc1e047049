"""
Application configuration loaded from environment variables.
Uses pydantic-settings for validation and type coercion.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    APP_NAME: str = "Auto2G Back Office"
    APP_ENV: str = "development"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    API_PREFIX: str = "/api/v1"

    # ── Server ───────────────────────────────────────────────────────────
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ── Database ─────────────────────────────────────────────────────────
    DATABASE_URL: str = Field(...)
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 10

    # ── Redis ────────────────────────────────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── JWT Auth ─────────────────────────────────────────────────────────
    JWT_ALGORITHM: str = "HS256"
    JWT_SECRET_KEY: str = ""
    JWT_PRIVATE_KEY_FILE: str = ""      # RS256 signing key (PEM)
    JWT_PUBLIC_KEY_FILE: str = ""       # RS256 verify-only key (PEM)
    SESSION_TOKEN_EXPIRE_DAYS: int = 10
    CONFIRMATION_TOKEN_EXPIRE_MINUTES: int = 120
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 30
    ONBOARDING_TOKEN_EXPIRE_MINUTES: int = 120
    SESSION_COOKIE_NAME: str = "session"

    # ── Password hashing (Argon2) ────────────────────────────────────────
    PASSWORD_HASH_TIME_COST: int = 2
    PASSWORD_HASH_MEMORY_COST: int = 19456
    PASSWORD_HASH_PARALLELISM: int = 1
    PASSWORD_MIN_LENGTH: int = 6
    TEMP_PASSWORD_LENGTH: int = 10
    TEMP_PASSWORD_ALPHABET: str = (
        "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz23456789@#"
    )

    # ── Frontends (links embedded in emails) ─────────────────────────────
    FRONTEND_URL: str = Field(...)              # staff back office
    CUSTOMER_FRONTEND_URL: str = Field(...)     # customer-facing site
    BACKEND_BASE_URL: str = "http://localhost:8000"

    # ── CORS ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    # ── SMTP ─────────────────────────────────────────────────────────────
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_FROM_NAME: str = "Auto2G"
    SMTP_TIMEOUT_SECONDS: float = 15.0

    # ── Mailgun ──────────────────────────────────────────────────────────
    MAILGUN_API_KEY: str = ""
    MAILGUN_DOMAIN: str = ""
    MAILGUN_BASE_URL: str = "https://api.mailgun.net"
    MAILGUN_FROM_EMAIL: str = ""
    MAILGUN_FROM_NAME: str = ""
    MAILGUN_TIMEOUT_SECONDS: float = 15.0

    # ── Resend ───────────────────────────────────────────────────────────
    RESEND_API_KEY: str = ""

    # ── S3 storage (profile pictures, vehicle images) ────────────────────
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "eu-south-1"
    AWS_ENDPOINT_URL: str = ""          # blank = real AWS; set for MinIO/LocalStack
    S3_BUCKET_NAME: str = "auto2g-media"
    S3_PRESIGNED_URL_TTL: int = 86400

    # ── Rate Limiting ────────────────────────────────────────────────────
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_AUTH_PER_MINUTE: int = 10     # login / register / password-reset

    # ── Default system administrator ─────────────────────────────────────
    SEED_DEFAULT_ADMIN: bool = False
    DEFAULT_ADMIN_EMAIL: str = ""
    DEFAULT_ADMIN_PASSWORD: str = ""

    # ── Logging ──────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def coerce_database_url(cls, v: str) -> str:
        if isinstance(v, str):
            if v.startswith("postgres://"):
                return v.replace("postgres://", "postgresql+asyncpg://", 1)
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def sync_database_url(self) -> str:
        """Synchronous DB URL for Alembic migrations."""
        return self.DATABASE_URL.replace("postgresql+asyncpg", "postgresql+psycopg")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
