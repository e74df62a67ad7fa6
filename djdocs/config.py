"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from djdocs.constants import SEVEN_DAYS_MS, SITEMAP_URL as DEFAULT_SITEMAP_URL


class Settings(BaseSettings):
    """Runtime settings; every field can be overridden with a ``DJDOCS_`` env var."""

    model_config = SettingsConfigDict(env_prefix="DJDOCS_", env_file=".env", extra="ignore")

    SITEMAP_URL: str = DEFAULT_SITEMAP_URL
    CACHE_DIR: str = ".cache/djdocs"
    CACHE_MAX_AGE_MS: int = SEVEN_DAYS_MS
    LOG_LEVEL: str = "INFO"
    FETCH_TIMEOUT: float = 10.0  # seconds


settings = Settings()
