"""Application settings and configuration.

Settings are loaded from environment variables (or a local ``.env`` file)
with defaults suited to local development.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENV = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="Loanflow Gateway", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")

    # CSRF token signing
    csrf_secret: str | None = Field(default=None, alias="CSRF_SECRET")
    csrf_token_ttl_seconds: int = Field(default=30 * 60, alias="CSRF_TOKEN_TTL_SECONDS")

    # Coarse per-IP limiter for everything under the API prefix
    api_rate_limit_prefix: str = Field(default="/api/", alias="API_RATE_LIMIT_PREFIX")
    api_rate_limit_max: int = Field(default=120, alias="API_RATE_LIMIT_MAX")
    api_rate_limit_window_seconds: float = Field(
        default=60.0,
        alias="API_RATE_LIMIT_WINDOW_SECONDS",
    )

    # Sensitive-action limiter (error report submission)
    action_rate_limit_max: int = Field(default=5, alias="ACTION_RATE_LIMIT_MAX")
    action_rate_limit_window_seconds: float = Field(
        default=60.0,
        alias="ACTION_RATE_LIMIT_WINDOW_SECONDS",
    )

    # eKYC error reports kept in memory
    error_report_capacity: int = Field(default=1000, alias="ERROR_REPORT_CAPACITY")

    # CORS configuration for the web frontend
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
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
        populate_by_name=True,
    )

    @property
    def is_production(self) -> bool:
        """Return True when running with the production environment flag."""
        return self.app_env.strip().lower() == PRODUCTION_ENV


settings = Settings()
