"""Ingestion pipeline data models."""

from pydantic import BaseModel, Field


class IngestionResult(BaseModel):
    """Outcome of one ingestion run.

    Attributes:
        keys: Keys of the inserted vectors, in insert order.
        documents_processed: Number of input documents.
        chunks_created: Number of chunks embedded and inserted.
        dimensions: Vector dimensions, or None when nothing was embedded.
    """

    keys: list[str] = Field(default_factory=list, description="Inserted vector keys")
    documents_processed: int = Field(default=0, description="Input documents")
    chunks_created: int = Field(default=0, description="Chunks embedded and inserted")
    dimensions: int | None = Field(default=None, description="Vector dimensions")
