"""
Environment configuration for the hostel occupancy engine.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    APP_NAME: str = "Hostel Occupancy Engine"
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "UTC"

    # Database configuration - support both individual fields and DATABASE_URL
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "lts_portal"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False
    DB_STATEMENT_TIMEOUT_MS: int = 30000
    DB_CONNECT_TIMEOUT_SECONDS: int = 10
    DB_CONNECT_ARGS: Dict[str, Any] = Field(default_factory=dict)

    # Engine behaviour
    SCHEMA_CAPABILITY_TTL_SECONDS: int = 300
    REGISTRATION_ISOLATION_LEVEL: Optional[str] = None
    REGISTRATION_ALLOWED_ROLES: List[str] = Field(
        default=["custodian", "hostel_admin", "super_admin"]
    )
    IDENTITY_LOOKUP_MAX_ATTEMPTS: int = 3
    IDENTITY_LOOKUP_BACKOFF_SECONDS: float = 0.2
    DEFAULT_CURRENCY: str = "UGX"
    DEFAULT_PAYMENT_METHOD: str = "cash"
    TEMP_PASSWORD_LENGTH: int = 10
    PASSWORD_BCRYPT_ROUNDS: int = 10
    REQUIRE_ACTIVE_SEMESTER: bool = False

    # Schedulers
    BOOKING_EXPIRY_MINUTES: int = 30
    BOOKING_SWEEP_INTERVAL_MINUTES: int = 15
    SEMESTER_CHECK_HOUR_UTC: int = 8
    SEMESTER_REMINDER_LOOKAHEAD_DAYS: int = 7
    RESERVATION_HOLD_DAYS: int = 30

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None

    # Email configuration
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TLS: bool = True
    EMAIL_FROM_NAME: str = "Hostel Management System"
    EMAIL_FROM_ADDRESS: Optional[str] = Field(default=None, alias="FROM_EMAIL")
    NOTIFICATION_WORKERS: int = 2

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_STRUCTURED_LOGGING: bool = True
    LOG_FILE: Optional[str] = None
    LOG_SQL_QUERIES: bool = False

    @field_validator('REGISTRATION_ALLOWED_ROLES', mode='before')
    @classmethod
    def parse_allowed_roles(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse REGISTRATION_ALLOWED_ROLES from string to list"""
        if isinstance(v, str):
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [role.strip() for role in v.split(",") if role.strip()]
        return v

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    def get_database_url(self) -> str:
        """Construct database URL from components or use provided URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def get_broker_url(self) -> str:
        return self.CELERY_BROKER_URL or self.REDIS_URL

    def get_result_backend(self) -> str:
        return self.CELERY_RESULT_BACKEND or self.REDIS_URL

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
