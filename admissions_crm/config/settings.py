"""
Application Settings for the Admissions CRM

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


VALID_ENVIRONMENTS = ("development", "testing", "staging", "production")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Supabase provides the Postgres database, auth (JWT issuer) and
    object storage for uploaded applicant documents.
    """

    # Supabase Configuration
    supabase_url: str
    supabase_anon_key: Optional[str] = None
    supabase_service_role_key: str
    supabase_jwt_secret: Optional[str] = None

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Storage Configuration
    documents_bucket: str = "lead-documents"
    storage_signed_url_ttl_seconds: int = 3600
    max_upload_bytes: int = 20 * 1024 * 1024

    # Practicum defaults (used when a program does not set its own)
    practicum_default_hours_required: int = 150
    practicum_default_competencies_required: int = 10

    # Scoring
    bulk_assessment_max_batch: int = 200

    # Database Configuration (SQLModel/SQLAlchemy)
    supabase_password: Optional[str] = None
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_environment(self) -> "Settings":
        """Reject unknown environment names and normalize the log level."""
        self.environment = self.environment.lower()
        if self.environment not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"ENVIRONMENT must be one of {', '.join(VALID_ENVIRONMENTS)}"
            )
        self.log_level = self.log_level.upper()
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
