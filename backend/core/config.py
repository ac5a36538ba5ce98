"""Application configuration and feature flags."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API
    app_name: str = "Ask Your Documents"
    log_level: str = "INFO"
    cors_origins: str = "*"

    # OpenAI (used when no Azure endpoint is configured)
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_chat_model: str = "gpt-4o-mini"

    # Azure OpenAI
    azure_openai_endpoint: str | None = None
    azure_openai_api_key: str | None = None
    azure_openai_api_version: str = "2024-06-01"
    azure_openai_chat_deployment: str | None = None

    # Generation defaults
    chat_temperature: float = 0.3
    chat_max_tokens: int = 1024

    # Retrieval
    enable_vector_search: bool = False
    embedding_model: str = "all-MiniLM-L6-v2"
    corpus_dir: str = "data/documents"
    chunk_size: int = 1000
    chunk_overlap: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def ml_available() -> bool:
    """Check if ML dependencies are installed."""
    try:
        import sentence_transformers  # noqa: F401
        import chromadb  # noqa: F401
        return True
    except ImportError:
        return False
