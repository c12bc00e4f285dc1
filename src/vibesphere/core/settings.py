"""Application settings and configuration.

This module defines all configuration options for the VibeSphere Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="VibeSphere Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./vibesphere.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Elevated credential for auth-record administration (account deletion).
    service_role_key: str | None = Field(default=None, alias="SERVICE_ROLE_KEY")
    # Shared bearer credential the browser presents to the feedback endpoint.
    public_api_key: str | None = Field(default=None, alias="PUBLIC_API_KEY")

    # Content feedback upstream (text generation API)
    feedback_api_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1/models/gemini-pro:generateContent",
        alias="FEEDBACK_API_URL",
    )
    feedback_api_key: str | None = Field(default=None, alias="FEEDBACK_API_KEY")
    feedback_http_timeout_seconds: float = Field(
        default=20.0,
        alias="FEEDBACK_HTTP_TIMEOUT_SECONDS",
    )

    # Poll rules
    poll_duration_days: int = Field(default=7, alias="POLL_DURATION_DAYS")
    poll_min_options: int = Field(default=2, alias="POLL_MIN_OPTIONS")
    poll_max_options: int = Field(default=5, alias="POLL_MAX_OPTIONS")

    # Phrase a user must type to confirm account deletion
    account_deletion_phrase: str = Field(
        default="delete my account",
        alias="ACCOUNT_DELETION_PHRASE",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def poll_option_bounds(self) -> tuple[int, int]:
        """Return the inclusive (min, max) number of options a poll may carry."""
        return self.poll_min_options, self.poll_max_options


settings = Settings()
