"""Vector store module."""

from s3vector_nodes.vectorstore.models import (
    MetadataValue,
    SearchResult,
    VectorRecord,
    normalize_metadata,
)
from s3vector_nodes.vectorstore.service import S3VectorStore, VectorStore

__all__ = [
    "MetadataValue",
    "S3VectorStore",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "normalize_metadata",
]
