"""Observability module for metrics and monitoring."""

from s3vector_nodes.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_request,
    track_node_item,
    track_search_request,
    track_vectors_inserted,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_embedding_request",
    "track_node_item",
    "track_search_request",
    "track_vectors_inserted",
    "track_vectorstore_operation",
]
