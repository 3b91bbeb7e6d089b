"""
Centralized configuration management for the Job Application Tracker.
All environment variables, store settings and auth settings are managed here.
"""
from typing import Optional, List
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "Job Application Tracker"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # IDENTITY SETTINGS
    # Tokens are issued by an external identity provider; we only verify them.
    # =============================================================================
    auth_secret_key: str = "change-this-secret"
    auth_algorithm: str = "HS256"
    auth_audience: Optional[str] = None
    auth_issuer: Optional[str] = None
    access_token_expire_minutes: int = 60

    # =============================================================================
    # DOCUMENT STORE SETTINGS
    # =============================================================================
    store_backend: str = "memory"  # memory, mongodb
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "job_tracker"

    # Max values the store accepts in a single "in" filter
    store_in_filter_limit: int = 10
    # Values sent per "in" query when listing interviews; must fit the store limit
    query_in_batch_size: int = 10
    interview_query_workers: int = 4

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v):
        if v.lower() not in ("memory", "mongodb"):
            raise ValueError("STORE_BACKEND must be 'memory' or 'mongodb'")
        return v.lower()

    @field_validator("store_in_filter_limit", "query_in_batch_size", "interview_query_workers", "mcp_port")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # =============================================================================
    # AUTOMATION SURFACE
    # =============================================================================
    automation_user_id: Optional[str] = None
    mcp_server_name: str = "job-tracker-mcp"
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 3001

    # =============================================================================
    # DEVELOPMENT SETTINGS
    # =============================================================================
    api_docs_enabled: bool = True
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if not self.auth_secret_key or self.auth_secret_key == "change-this-secret":
                missing.append("AUTH_SECRET_KEY must be set in production")

            if self.store_backend == "memory":
                missing.append("STORE_BACKEND=memory is not durable and cannot be used in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

        if self.query_in_batch_size > self.store_in_filter_limit:
            missing.append(
                f"QUERY_IN_BATCH_SIZE ({self.query_in_batch_size}) exceeds "
                f"STORE_IN_FILTER_LIMIT ({self.store_in_filter_limit})"
            )

        if self.log_level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            missing.append(f"Invalid LOG_LEVEL: {self.log_level}")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    This function is cached to avoid recreating the settings object multiple times.
    """
    return Settings()
