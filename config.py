"""
Configuration Management for TodoBook API
=========================================

This module handles all application configuration using the Settings pattern
with Pydantic. This approach provides:

1. **Environment Variable Support**: Easy deployment configuration
2. **Validation**: Catches configuration errors at startup
3. **Type Safety**: IDE support and runtime validation
4. **Defaults**: Sensible defaults for development

Design Pattern: Singleton-like Settings
We use a cached function to ensure we only load settings once,
but still allow for easy testing with different configurations.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


API_VERSION = "1.0.0"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with TODOBOOK_ to avoid conflicts.
    Example: TODOBOOK_JWT_SECRET_KEY=change-me

    Priority order (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values defined here
    """

    # =================================================================
    # API Server Configuration
    # =================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host interface the API server binds to"
    )

    api_port: int = Field(
        default=3090,
        description="Port the API server listens on"
    )

    api_debug: bool = Field(
        default=False,
        description="Expose internal error details in 500 responses"
    )

    cors_origins: list[str] = Field(
        default=["http://localhost:8080"],
        description="Origins allowed to call the API from a browser"
    )

    cors_allow_credentials: bool = Field(
        default=True,
        description="Whether CORS responses allow credentials"
    )

    # =================================================================
    # Document Store Configuration
    # =================================================================
    store_backend: Literal["mongo", "memory"] = Field(
        default="mongo",
        description="""
        Document store backend.

        - mongo: MongoDB through Motor (deployments)
        - memory: in-process collections, lost on exit (development, tests)
        """
    )

    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )

    mongo_db_name: str = Field(
        default="todobook",
        description="MongoDB database name"
    )

    # =================================================================
    # Authentication
    # =================================================================
    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="""
        Secret used to sign bearer tokens. Required.

        Rotating it invalidates every token issued so far.
        """
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="Symmetric JWT signing algorithm"
    )

    jwt_access_token_expire_minutes: Optional[int] = Field(
        default=None,
        ge=1,
        description="""
        Token lifetime in minutes. None = tokens never expire and remain
        valid until the signing secret changes.
        """
    )

    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for password hashes"
    )

    # =================================================================
    # Resources
    # =================================================================
    derive_completion_on_every_update: bool = Field(
        default=True,
        description="""
        When True, every todo PATCH recomputes completion state: a request
        that does not send completed=true marks the todo as not completed.

        Set to False to only touch completed/completedAt when the request
        carries the completed field.
        """
    )

    # =================================================================
    # Photo Uploads
    # =================================================================
    upload_dir: str = Field(
        default="./public/contact/images",
        description="Directory where uploaded contact photos are stored"
    )

    max_photo_size_mb: int = Field(
        default=5,
        ge=1,
        description="Maximum accepted photo size in megabytes"
    )

    allowed_photo_formats: list[str] = Field(
        default=[".png", ".jpg", ".jpeg", ".gif", ".webp"],
        description="Accepted photo file extensions"
    )

    default_contact_photo: str = Field(
        default="contact/images/user.png",
        description="Photo reference stored for contacts created without a photo"
    )

    # =================================================================
    # Rate Limiting
    # =================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-client rate limiting on signup/signin"
    )

    auth_rate_limit: str = Field(
        default="20/minute",
        description="slowapi rate limit string applied to signup/signin"
    )

    # =================================================================
    # Logging Configuration
    # =================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Python logging format string"
    )

    class Config:
        """Pydantic configuration for Settings."""
        env_prefix = "TODOBOOK_"  # All env vars start with TODOBOOK_
        env_file = ".env"  # Load from .env file if present
        env_file_encoding = "utf-8"
        case_sensitive = False  # TODOBOOK_API_PORT = todobook_api_port


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    Using lru_cache ensures we only parse environment variables once.

    For testing, you can clear the cache:
        get_settings.cache_clear()

    Returns:
        Settings: Application settings instance
    """
    return Settings()


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a Settings instance with custom values for testing.

    Example:
        settings = get_settings_for_testing(
            store_backend="memory",
            jwt_secret_key="test-secret"
        )

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: New Settings instance with overrides applied
    """
    return Settings(**overrides)
