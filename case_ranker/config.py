"""
Application configuration helpers.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    embedding_dim: int = Field(1024, alias="EMBEDDING_DIM")
    embedding_model: str = Field("BAAI/bge-large-en-v1.5", alias="EMBEDDING_MODEL")
    embedding_api_url: str | None = Field(None, alias="EMBEDDING_API_URL")
    embedding_api_key: str | None = Field(None, alias="EMBEDDING_API_KEY")
    llm_model: str | None = Field(None, alias="LLM_MODEL")
    llm_api_url: str | None = Field(None, alias="LLM_API_URL")
    llm_api_key: str | None = Field(None, alias="LLM_API_KEY")
    similarity_floor: float = Field(0.3, alias="SIMILARITY_FLOOR")
    match_count: int = Field(20, alias="MATCH_COUNT", ge=1)
    result_limit: int = Field(10, alias="RESULT_LIMIT", ge=1)
    request_timeout: float = Field(10.0, alias="REQUEST_TIMEOUT", gt=0)
    synthesis_cases: int = Field(5, alias="SYNTHESIS_CASES", ge=1)
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
