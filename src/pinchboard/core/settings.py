"""Application settings and configuration.

This module defines all configuration options for the PinchBoard application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="PinchBoard", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./pinchboard.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Ownership proof via the public oEmbed endpoint
    oembed_url: str = Field(
        default="https://publish.twitter.com/oembed",
        alias="OEMBED_URL",
    )
    oembed_timeout_seconds: float = Field(default=10.0, alias="OEMBED_TIMEOUT_SECONDS")
    oembed_user_agent: str = Field(default="PinchBoard/1.0", alias="OEMBED_USER_AGENT")

    # Sliding-window rate limits (max events per trailing window)
    rate_limit_post_max: int = Field(default=1, alias="RATE_LIMIT_POST_MAX")
    rate_limit_post_window_seconds: int = Field(
        default=300,
        alias="RATE_LIMIT_POST_WINDOW_SECONDS",
    )
    rate_limit_like_max: int = Field(default=30, alias="RATE_LIMIT_LIKE_MAX")
    rate_limit_like_window_seconds: int = Field(
        default=3600,
        alias="RATE_LIMIT_LIKE_WINDOW_SECONDS",
    )
    rate_limit_follow_max: int = Field(default=50, alias="RATE_LIMIT_FOLLOW_MAX")
    rate_limit_follow_window_seconds: int = Field(
        default=86400,
        alias="RATE_LIMIT_FOLLOW_WINDOW_SECONDS",
    )
    rate_limit_prune_probability: float = Field(
        default=0.01,
        ge=0.0,
        le=1.0,
        alias="RATE_LIMIT_PRUNE_PROBABILITY",
    )

    # Ranking
    trending_window_hours: int = Field(default=24, alias="TRENDING_WINDOW_HOURS")

    # Pagination limits
    feed_page_max: int = Field(default=50, alias="FEED_PAGE_MAX")
    replies_page_max: int = Field(default=50, alias="REPLIES_PAGE_MAX")
    social_page_max: int = Field(default=100, alias="SOCIAL_PAGE_MAX")
    trending_page_max: int = Field(default=30, alias="TRENDING_PAGE_MAX")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
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
    def rate_limits(self) -> dict[str, tuple[int, int]]:
        """Return rate-limit policies as ``action -> (max_count, window_seconds)``."""
        return {
            "post": (self.rate_limit_post_max, self.rate_limit_post_window_seconds),
            "like": (self.rate_limit_like_max, self.rate_limit_like_window_seconds),
            "follow": (self.rate_limit_follow_max, self.rate_limit_follow_window_seconds),
        }


settings = Settings()
