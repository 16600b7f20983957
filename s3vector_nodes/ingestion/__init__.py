"""Document ingestion module."""

from s3vector_nodes.ingestion.models import IngestionResult
from s3vector_nodes.ingestion.pipeline import IngestionPipeline, generate_vector_id

__all__ = [
    "IngestionPipeline",
    "IngestionResult",
    "generate_vector_id",
]
