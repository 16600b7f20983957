"""Environment-driven settings for providers, chunking and the HTTP runner.

Defaults are loaded from environment variables. Node executions build fresh
settings objects from resolved node parameters, so explicit keyword
arguments always win over the environment.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingProvider(str, Enum):
    """Supported embedding backends."""

    BEDROCK = "bedrock"
    HTTP = "http"


class DistanceMetric(str, Enum):
    """Distance metrics supported by S3 Vectors indexes."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"


class AWSSettings(BaseSettings):
    """AWS credentials and region.

    Credentials are optional: when unset, boto3 falls back to its default
    credential chain.
    """

    model_config = SettingsConfigDict(env_prefix="AWS_")

    region: str = Field(
        default="us-east-1",
        description="AWS region for Bedrock and S3 Vectors",
    )
    access_key_id: str | None = Field(
        default=None,
        description="AWS access key ID",
    )
    secret_access_key: SecretStr | None = Field(
        default=None,
        description="AWS secret access key",
    )
    session_token: SecretStr | None = Field(
        default=None,
        description="Temporary session token (optional)",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: EmbeddingProvider = Field(
        default=EmbeddingProvider.BEDROCK,
        description="Embedding backend",
    )
    model: str = Field(
        default="amazon.titan-embed-text-v1",
        description="Embedding model identifier",
    )
    dimensions: int | None = Field(
        default=None,
        ge=1,
        description="Requested output dimensions (models that support it)",
    )
    base_url: str = Field(
        default="http://localhost:8080",
        description="Embedding server base URL (http provider)",
    )
    batch_size: int = Field(
        default=32,
        ge=1,
        description="Batch size for embedding requests",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds (http provider)",
    )


class S3VectorsSettings(BaseSettings):
    """S3 Vectors storage configuration."""

    model_config = SettingsConfigDict(env_prefix="S3VECTORS_")

    bucket_name: str = Field(
        default="processed-documents",
        description="Vector bucket name",
    )
    index_name: str = Field(
        default="documents",
        description="Vector index name",
    )
    namespace: str | None = Field(
        default=None,
        description="Logical partition tag written into vector metadata",
    )
    distance_metric: DistanceMetric = Field(
        default=DistanceMetric.COSINE,
        description="Distance metric used when creating the index",
    )
    batch_size: int = Field(
        default=100,
        ge=1,
        description="Vectors per PutVectors request",
    )
    content_key: str = Field(
        default="content",
        description="Metadata key holding the chunk text",
    )


class ChunkingSettings(BaseSettings):
    """Default text chunking configuration."""

    model_config = SettingsConfigDict(env_prefix="CHUNKING_")

    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum chunk size in characters",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Characters shared between consecutive chunks",
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


class Settings(BaseSettings):
    """Runner settings plus one nested group per provider concern."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="Node runner host",
    )
    api_port: int = Field(
        default=8000,
        description="Node runner port",
    )

    # Nested settings
    aws: AWSSettings = Field(default_factory=AWSSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    s3vectors: S3VectorsSettings = Field(default_factory=S3VectorsSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
