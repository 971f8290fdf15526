"""Application configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Text-understanding service (Anthropic Messages API)
    anthropic_api_key: str = ""
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    llm_model: str = "claude-3-5-haiku-latest"
    llm_max_tokens: int = 2048
    llm_timeout: int = 60

    # TMDb API (catalog of movies now playing)
    tmdb_api_key: str = ""
    tmdb_region: str = "TW"
    tmdb_language: str = "zh-TW"

    # Fetching
    scrape_timeout: int = 15
    scrape_max_retries: int = 2
    scrape_retry_delay: float = 1.0
    fetch_concurrency: int = 2
    fetch_batch_delay: float = 0.5

    # Pacing between sources
    source_delay: float = 1.5

    # Extraction / filtering / matching
    extract_max_chars: int = 8000
    recency_months: int = 3
    match_threshold: float = 0.5

    # Trigger endpoint and scheduler
    cron_secret: str = ""
    scrape_cron_hour: int = 6

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000


# Global settings instance
settings = Settings()
