"""Query-side orchestration: embed the query and search the index."""

from s3vector_nodes.retrieval.models import RetrievalResult
from s3vector_nodes.retrieval.retriever import SemanticRetriever

__all__ = [
    "RetrievalResult",
    "SemanticRetriever",
]
