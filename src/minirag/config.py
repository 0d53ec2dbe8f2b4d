"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    HF_API_KEY: HuggingFace API key (embeddings API and HF Inference LLM)
    EMBEDDING_MODEL: Sentence transformer model for embeddings
    EMBEDDING_DIMENSION: Vector dimension produced by the embedding model
    CUSTOM_ENDPOINT_URL: OpenAI-compatible chat completions endpoint
    CUSTOM_ENDPOINT_API_KEY: Bearer token for the custom endpoint
    CHUNK_SIZE: Maximum characters per chunk
    CHUNK_OVERLAP: Characters shared by consecutive chunks
    COLLECTION_NAME: Vector store collection to write to and read from
    SIMILARITY_METRIC: dot_product, cosine or euclidean
    INGEST_CONCURRENCY: Maximum simultaneous embedder/store calls
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    hf_api_key: Optional[SecretStr] = Field(
        default=None,
        description="HuggingFace API key (embeddings and HF Inference LLM)",
    )

    # ==========================================================================
    # Embedding Configuration
    # ==========================================================================
    embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Sentence transformer model for document/query embeddings",
    )
    embedding_dimension: int = Field(
        default=384,
        ge=1,
        description="Dimension of embedding vectors (must match model)",
    )
    embedding_batch_size: int = Field(
        default=32,
        ge=1,
        le=256,
        description="Number of texts per embedding API call",
    )
    embedding_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single embedding request",
    )
    normalize_embeddings: bool = Field(
        default=True,
        description="L2-normalize embeddings before storage and query",
    )

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    use_custom_endpoint: bool = Field(
        default=True,
        description="Use custom OpenAI-compatible endpoint instead of HuggingFace",
    )
    custom_endpoint_url: str = Field(
        default="http://localhost:8080/v1/chat/completions",
        description="Custom inference endpoint URL (OpenAI-compatible)",
    )
    custom_endpoint_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Bearer token for the custom endpoint (omitted when unset)",
    )
    llm_model: str = Field(
        default="Qwen/Qwen2.5-3B-Instruct",
        description="HuggingFace model ID for Inference API",
    )
    llm_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM generation (lower = more deterministic)",
    )
    llm_max_tokens: int = Field(
        default=1024,
        ge=1,
        le=4096,
        description="Maximum tokens for LLM response",
    )
    llm_timeout: int = Field(
        default=120,
        ge=1,
        description="Timeout in seconds for a generation request",
    )

    # ==========================================================================
    # Chunking Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=1,
        le=8192,
        description="Maximum characters per chunk",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Characters shared by consecutive chunks",
    )

    # ==========================================================================
    # Vector Store Configuration
    # ==========================================================================
    collection_name: str = Field(
        default="documents",
        min_length=1,
        description="Collection that ingestion writes to and retrieval reads from",
    )
    similarity_metric: Literal["dot_product", "cosine", "euclidean"] = Field(
        default="dot_product",
        description="Similarity metric the collection is created with",
    )
    store_path: Optional[Path] = Field(
        default=None,
        description="Directory to persist the FAISS store (in-memory when unset)",
    )

    # ==========================================================================
    # Retrieval / Ingestion Configuration
    # ==========================================================================
    retrieval_top_k: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of passages to retrieve per question",
    )
    ingest_concurrency: int = Field(
        default=8,
        ge=1,
        le=128,
        description="Maximum number of simultaneous embedder/store calls",
    )
    scrape_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for fetching a source URL",
    )
    user_agent: str = Field(
        default="minirag/0.1 (+https://example.invalid/minirag)",
        description="User-Agent header sent by the scraper",
    )

    # ==========================================================================
    # API / Observability Configuration
    # ==========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind API server",
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for API server",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 1000)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("store_path")
    @classmethod
    def resolve_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Resolve paths to absolute paths."""
        return v.resolve() if v is not None else None

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def hf_api_key_value(self) -> Optional[str]:
        """Get the actual API key value (use sparingly)."""
        if self.hf_api_key:
            return self.hf_api_key.get_secret_value()
        return None

    @property
    def custom_endpoint_api_key_value(self) -> Optional[str]:
        if self.custom_endpoint_api_key:
            return self.custom_endpoint_api_key.get_secret_value()
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
