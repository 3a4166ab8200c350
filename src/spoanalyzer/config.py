"""Configuration management for the SPO Permissions Analyzer."""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or a local
    .env file. Nothing is required: without a tenant URL the dashboard
    starts disconnected and offers interactive connect or demo mode.
    """

    # Application
    APP_NAME: str = "SPO Permissions Analyzer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "127.0.0.1"
    PORT: int = 8080
    API_PREFIX: str = "/api"
    WEB_ROOT: Optional[str] = None  # Directory holding the dashboard assets
    OPEN_BROWSER: bool = False

    # Tenant connection
    SPO_HEADLESS: bool = False  # Use device code flow instead of a browser popup
    SPO_TENANT_URL: Optional[str] = None
    SPO_CLIENT_ID: Optional[str] = None
    SPO_AUTHORITY: str = "https://login.microsoftonline.com/organizations"
    TOKEN_CACHE_PATH: Optional[str] = None  # MSAL token cache file; kept in memory for the process if unset

    # Microsoft Graph enrichment
    GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"
    HTTP_TIMEOUT_SECONDS: float = 30.0
    STALE_ACCOUNT_DAYS: int = 90  # Days without sign-in before an account is stale

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Singleton settings instance
    """
    return Settings()
