"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from squad_rag.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Vector index (Pinecone)
    pinecone_api_key: str = Field(default="", description="Pinecone API key")
    pinecone_environment: str = Field(
        default="",
        description="Pinecone environment / serverless region, e.g. 'us-east-1'",
    )
    pinecone_index: str = Field(default="", description="Name of the target Pinecone index")
    pinecone_cloud: str = "aws"
    pinecone_namespace: str = "default"
    pinecone_metric: str = "cosine"

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = 384

    # Ingestion
    squad_url: str = "https://rajpurkar.github.io/SQuAD-explorer/dataset/train-v1.1.json"
    chunk_size: int = Field(default=100, ge=1, description="Rows sliced from the source per chunk")
    batch_size: int = Field(default=32, ge=1, description="Documents embedded concurrently")
    upsert_batch_size: int = Field(default=100, ge=1, description="Max vectors per upsert request")
    keep_dataset_ids: bool = Field(
        default=True,
        description="Use dataset question ids as vector ids instead of generating fresh ones",
    )
    deduplicate_contexts: bool = Field(
        default=True,
        description="Keep only the first row for each distinct context passage",
    )

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud.",
    )
    llm_request_timeout: float = 60.0

    # Retrieval
    retrieval_k: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def require_pinecone(self) -> None:
        """Raise :class:`ConfigurationError` unless every Pinecone variable is set."""
        required = {
            "PINECONE_API_KEY": self.pinecone_api_key,
            "PINECONE_ENVIRONMENT": self.pinecone_environment,
            "PINECONE_INDEX": self.pinecone_index,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )


# Singleton: import `settings` wherever needed.
settings = Settings()
