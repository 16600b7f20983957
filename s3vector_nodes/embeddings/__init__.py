"""Embedding service module."""

from s3vector_nodes.embeddings.models import EmbeddingResult
from s3vector_nodes.embeddings.service import (
    BedrockEmbeddingService,
    EmbeddingService,
    HTTPEmbeddingService,
    create_embedding_service,
)

__all__ = [
    "BedrockEmbeddingService",
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
    "create_embedding_service",
]
