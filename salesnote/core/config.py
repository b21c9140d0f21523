"""Application configuration."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str
    completion_model: str = "gpt-4o-mini"
    completion_temperature: float = 0.1
    completion_max_tokens: int = 1000
    transcription_model: str = "whisper-1"

    # Database
    database_url: str

    # Catalog
    catalog_file: Optional[str] = None  # YAML catalog; the database is used when unset
    inventory_prompt_limit: int = 30
    vendor_prompt_limit: int = 50

    # Entity resolution
    product_match_threshold: float = 0.7
    customer_match_threshold: float = 0.7
    customer_recovery_threshold: float = 0.6

    # Drafts
    fallback_on_completion_failure: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_sql: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
