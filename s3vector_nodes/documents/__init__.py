"""Document processing module."""

from s3vector_nodes.documents.chunker import (
    CharacterChunker,
    Chunk,
    Chunker,
    ChunkerConfig,
    RecursiveCharacterChunker,
    split_text,
)
from s3vector_nodes.documents.models import Document

__all__ = [
    "CharacterChunker",
    "Chunk",
    "Chunker",
    "ChunkerConfig",
    "Document",
    "RecursiveCharacterChunker",
    "split_text",
]
