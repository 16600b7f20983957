"""Splitting document text into overlapping chunks for embedding."""

import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from s3vector_nodes.documents.models import Document


class Chunk(BaseModel):
    """One slice of a document, ready to be embedded.

    Attributes:
        content: Slice text.
        metadata: Source metadata plus chunk position info.
        index: Zero-based position among the document's chunks.
        start_char: Offset of the slice in the document text.
        end_char: Offset just past the slice.
    """

    content: str = Field(description="Text content of the chunk")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Chunk metadata")
    index: int = Field(description="Chunk index in sequence")
    start_char: int = Field(description="Start position in original document")
    end_char: int = Field(description="End position in original document")


class ChunkerConfig(BaseModel):
    """Window size and overlap, both in characters.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Characters repeated at the start of the next chunk.
    """

    chunk_size: int = Field(default=1000, ge=1, description="Maximum chunk size")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks")

    def model_post_init(self, __context: Any) -> None:
        """Validate overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")


def _split_spans(text: str, chunk_size: int, chunk_overlap: int) -> list[tuple[int, int]]:
    """Compute (start, end) spans of word-boundary chunks."""
    if len(text) <= chunk_size:
        return [(0, len(text))]

    spans: list[tuple[int, int]] = []
    start = 0

    while start < len(text):
        end = start + chunk_size

        # Prefer the last space at or before the window edge
        if end < len(text):
            last_space = text.rfind(" ", start, end + 1)
            if last_space > start:
                end = last_space

        spans.append((start, min(end, len(text))))

        next_start = end - chunk_overlap
        if next_start <= 0 or next_start <= start:
            next_start = end
        start = next_start

    return spans


def split_text(text: str, chunk_size: int, chunk_overlap: int) -> list[str]:
    """Split text into overlapping chunks, cutting at spaces when possible.

    Text no longer than ``chunk_size`` comes back as a single chunk. Longer
    text is cut into windows of at most ``chunk_size`` characters; a window
    that does not reach the end of the text is shortened to the last space
    after its start. Each following window starts ``chunk_overlap``
    characters before the previous cut, and always moves forward.
    Whitespace-only chunks are dropped.

    Args:
        text: Text to split.
        chunk_size: Maximum chunk length in characters.
        chunk_overlap: Characters repeated between consecutive chunks.

    Returns:
        Ordered list of chunks.

    Raises:
        ValueError: If the sizes are invalid.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be non-negative and less than chunk_size")

    if not text.strip():
        return []

    return [
        text[start:end]
        for start, end in _split_spans(text, chunk_size, chunk_overlap)
        if text[start:end].strip()
    ]


class Chunker(ABC):
    """Turns a Document into ordered Chunks carrying its metadata."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        """Initialize chunker with configuration.

        Args:
            config: Chunking configuration. Uses defaults if not provided.
        """
        self.config = config or ChunkerConfig()

    @abstractmethod
    def chunk(self, document: Document) -> list[Chunk]:
        """Return the non-blank chunks of ``document`` in text order."""
        ...

    def _create_chunks(
        self,
        document: Document,
        pieces: list[tuple[str, int, int]],
    ) -> list[Chunk]:
        """Wrap (content, start, end) pieces into chunks with metadata.

        Every chunk inherits the document metadata and records its position,
        the total chunk count, the original text length and its own length.
        """
        total = len(pieces)
        return [
            Chunk(
                content=content,
                metadata={
                    **document.metadata,
                    "chunkIndex": index,
                    "totalChunks": total,
                    "originalLength": len(document.content),
                    "chunkSize": len(content),
                },
                index=index,
                start_char=start,
                end_char=end,
            )
            for index, (content, start, end) in enumerate(pieces)
        ]


class CharacterChunker(Chunker):
    """Fixed-size character windows that prefer to end on a space.

    Splits at the last space inside each window, falling back to a
    mid-word cut when the window has no usable space.
    """

    def chunk(self, document: Document) -> list[Chunk]:
        text = document.content
        if not text.strip():
            return []

        spans = _split_spans(text, self.config.chunk_size, self.config.chunk_overlap)
        pieces = [
            (text[start:end], start, end)
            for start, end in spans
            if text[start:end].strip()
        ]
        return self._create_chunks(document, pieces)


class RecursiveCharacterChunker(Chunker):
    """Chunk text on a hierarchy of separators.

    Paragraph breaks are tried first, then line breaks, then spaces, and
    finally single characters. Each separator stays at the start of the
    piece that follows it. Pieces are merged back up to the chunk size,
    carrying up to ``chunk_overlap`` characters of trailing pieces into the
    next chunk.
    """

    SEPARATORS = ("\n\n", "\n", " ", "")

    def chunk(self, document: Document) -> list[Chunk]:
        texts = self.split(document.content)

        # Locate each chunk in the source; chunks are ordered, so search
        # forward from the previous chunk start.
        pieces: list[tuple[str, int, int]] = []
        cursor = 0
        for content in texts:
            start = document.content.find(content, cursor)
            if start < 0:
                start = cursor
            pieces.append((content, start, start + len(content)))
            cursor = start + 1

        return self._create_chunks(document, pieces)

    def split(self, text: str) -> list[str]:
        """Split raw text into chunk strings."""
        if not text.strip():
            return []
        return self._split(text, list(self.SEPARATORS))

    def _split(self, text: str, separators: list[str]) -> list[str]:
        separator = separators[-1]
        remaining: list[str] = []
        for i, candidate in enumerate(separators):
            if candidate == "":
                separator = candidate
                break
            if candidate in text:
                separator = candidate
                remaining = separators[i + 1 :]
                break

        chunks: list[str] = []
        short: list[str] = []
        for piece in _split_keeping_separator(text, separator):
            if len(piece) < self.config.chunk_size:
                short.append(piece)
                continue
            if short:
                chunks.extend(self._merge(short))
                short = []
            if remaining:
                chunks.extend(self._split(piece, remaining))
            else:
                chunks.append(piece)
        if short:
            chunks.extend(self._merge(short))
        return chunks

    def _merge(self, splits: list[str]) -> list[str]:
        """Merge small pieces into chunks no longer than the chunk size.

        Pieces already carry their separators, so they are joined as-is.
        """
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap

        chunks: list[str] = []
        current: list[str] = []
        total = 0

        for piece in splits:
            if current and total + len(piece) > size:
                merged = "".join(current).strip()
                if merged:
                    chunks.append(merged)
                # Keep trailing pieces that fit as overlap
                while current and (total > overlap or total + len(piece) > size):
                    total -= len(current.pop(0))
            current.append(piece)
            total += len(piece)

        merged = "".join(current).strip()
        if merged:
            chunks.append(merged)
        return chunks


def _split_keeping_separator(text: str, separator: str) -> list[str]:
    """Split before each separator so every piece after the first starts with it."""
    if not separator:
        return list(text)
    pieces = re.split(f"(?={re.escape(separator)})", text)
    return [piece for piece in pieces if piece]
