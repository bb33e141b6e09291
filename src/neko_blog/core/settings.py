"""Application settings and configuration.

This module defines all configuration options for the Neko Blog backend.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Neko Blog", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="neko-blog-development-secret", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    token_issuer: str = Field(default="org.kirisakiii.neko", alias="TOKEN_ISSUER")
    max_tokens_per_user: int = Field(default=5, alias="MAX_TOKENS_PER_USER")

    # Database configuration
    database_url: str = Field(default="sqlite:///./neko.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    db_statement_timeout_ms: int = Field(default=5_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Redis configuration for token lists and image staging
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_socket_timeout: float = Field(default=2.0, alias="REDIS_SOCKET_TIMEOUT")
    cache_image_expire_seconds: int = Field(
        default=60 * 60 * 24,
        alias="CACHE_IMAGE_EXPIRE_SECONDS",
    )

    # Image files: uploads wait in the staging directory until a post takes them
    image_staging_dir: str = Field(default="./data/cache/images", alias="IMAGE_STAGING_DIR")
    image_storage_dir: str = Field(default="./data/images", alias="IMAGE_STORAGE_DIR")
    image_max_bytes: int = Field(default=5 * 1024 * 1024, alias="IMAGE_MAX_BYTES")
    image_allowed_types: list[str] = Field(
        default=["image/jpeg", "image/png", "image/gif", "image/webp"],
        alias="IMAGE_ALLOWED_TYPES",
    )
    image_cleanup_batch: int = Field(default=100, alias="IMAGE_CLEANUP_BATCH")

    # Content limits
    post_max_images: int = Field(default=9, alias="POST_MAX_IMAGES")
    list_page_max: int = Field(default=10, alias="LIST_PAGE_MAX")
    hot_topics_max: int = Field(default=50, alias="HOT_TOPICS_MAX")

    # External search indexer
    search_service_url: str | None = Field(default=None, alias="SEARCH_SERVICE_URL")
    search_http_timeout_seconds: float = Field(
        default=3.0,
        alias="SEARCH_HTTP_TIMEOUT_SECONDS",
    )

    # Background maintenance sweeps
    maintenance_enabled: bool = Field(default=True, alias="MAINTENANCE_ENABLED")
    maintenance_interval_seconds: float = Field(
        default=60.0,
        alias="MAINTENANCE_INTERVAL_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
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
    def search_enabled(self) -> bool:
        return bool(self.search_service_url)


settings = Settings()
