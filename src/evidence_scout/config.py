"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    anthropic_api_key: str = ""
    openrouter_api_key: str = ""
    ncbi_api_key: str = ""
    semantic_scholar_api_key: str = ""

    # LLM Settings
    llm_provider: str = "anthropic"  # "anthropic" or "openrouter"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    classifier_model: str = "claude-haiku-4-5-20251001"
    synthesis_model: str = "claude-sonnet-4-6"
    translation_model: str = "claude-haiku-4-5-20251001"
    llm_max_retries: int = 2

    # Research pipeline
    openalex_mailto: str = "dev@evidence-scout.org"
    per_provider_limit: int = 5
    max_sources: int = 10
    search_timeout_seconds: float = 20.0
    synthesis_timeout_seconds: float = 120.0
    response_language: str = "pt-BR"
    enable_drug_normalization: bool = True
    enable_semantic_scholar: bool = False
    search_strategy: str = "keywords"  # "keywords" or "waterfall"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
