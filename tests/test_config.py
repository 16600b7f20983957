"""Tests for application configuration."""

import os
from unittest.mock import patch

import pytest

from s3vector_nodes.config import (
    AWSSettings,
    ChunkingSettings,
    DistanceMetric,
    EmbeddingProvider,
    EmbeddingSettings,
    Environment,
    S3VectorsSettings,
    Settings,
    get_settings,
)


class TestAWSSettings:
    """Tests for AWS configuration."""

    def test_default_region(self) -> None:
        """Region defaults to us-east-1."""
        with patch.dict(os.environ, {}, clear=True):
            settings = AWSSettings()
            assert settings.region == "us-east-1"
            assert settings.access_key_id is None
            assert settings.secret_access_key is None

    def test_secret_is_masked(self) -> None:
        """Secret access key should be masked when printed."""
        settings = AWSSettings(access_key_id="AKIA123", secret_access_key="top-secret")
        assert settings.secret_access_key is not None
        assert "top-secret" not in str(settings.secret_access_key)
        assert settings.secret_access_key.get_secret_value() == "top-secret"

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"AWS_REGION": "eu-west-1"}):
            settings = AWSSettings()
            assert settings.region == "eu-west-1"


class TestEmbeddingSettings:
    """Tests for embedding configuration."""

    def test_default_values(self) -> None:
        """Defaults select Bedrock Titan."""
        settings = EmbeddingSettings()
        assert settings.provider == EmbeddingProvider.BEDROCK
        assert settings.model == "amazon.titan-embed-text-v1"
        assert settings.dimensions is None
        assert settings.batch_size == 32

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"EMBEDDING_BATCH_SIZE": "64"}):
            settings = EmbeddingSettings()
            assert settings.batch_size == 64

    def test_explicit_value_wins_over_env(self) -> None:
        """Node parameters passed as keywords beat the environment."""
        with patch.dict(os.environ, {"EMBEDDING_MODEL": "cohere.embed-english-v3"}):
            settings = EmbeddingSettings(model="amazon.titan-embed-text-v2:0")
            assert settings.model == "amazon.titan-embed-text-v2:0"


class TestS3VectorsSettings:
    """Tests for S3 Vectors configuration."""

    def test_default_values(self) -> None:
        """Default bucket, index and batching."""
        settings = S3VectorsSettings()
        assert settings.bucket_name == "processed-documents"
        assert settings.index_name == "documents"
        assert settings.namespace is None
        assert settings.distance_metric == DistanceMetric.COSINE
        assert settings.batch_size == 100
        assert settings.content_key == "content"

    def test_batch_size_must_be_positive(self) -> None:
        """Zero batch size is rejected."""
        with pytest.raises(ValueError):
            S3VectorsSettings(batch_size=0)

    def test_distance_metric_from_env(self) -> None:
        """Distance metric can be set via string."""
        with patch.dict(os.environ, {"S3VECTORS_DISTANCE_METRIC": "euclidean"}):
            settings = S3VectorsSettings()
            assert settings.distance_metric == DistanceMetric.EUCLIDEAN


class TestChunkingSettings:
    """Tests for chunking defaults."""

    def test_default_values(self) -> None:
        settings = ChunkingSettings()
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200

    def test_overlap_must_be_smaller_than_size(self) -> None:
        """Overlap equal to size is rejected."""
        with pytest.raises(ValueError):
            ChunkingSettings(chunk_size=100, chunk_overlap=100)


class TestSettings:
    """Tests for the top-level settings object."""

    def test_runner_defaults(self) -> None:
        settings = Settings()
        assert settings.environment == Environment.DEVELOPMENT
        assert (settings.api_host, settings.api_port) == ("0.0.0.0", 8000)

    def test_groups_are_populated(self) -> None:
        """Each settings group is built from its own env prefix."""
        settings = Settings()
        assert settings.aws.region
        assert settings.embedding.model.startswith("amazon.")
        assert settings.s3vectors.batch_size == 100
        assert settings.chunking.chunk_overlap < settings.chunking.chunk_size

    def test_environment_from_string(self) -> None:
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            assert Settings().environment == Environment.PRODUCTION


class TestGetSettings:
    """Tests for the cached settings accessor."""

    def test_same_instance_until_cleared(self) -> None:
        get_settings.cache_clear()
        first = get_settings()

        assert isinstance(first, Settings)
        assert get_settings() is first

        get_settings.cache_clear()
        assert get_settings() is not first
