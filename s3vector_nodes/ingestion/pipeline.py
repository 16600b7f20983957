"""Insert pipeline: documents to chunks to embeddings to stored vectors."""

import time
from collections.abc import Callable
from uuid import uuid4

from s3vector_nodes.documents.chunker import Chunk, Chunker
from s3vector_nodes.documents.models import Document
from s3vector_nodes.embeddings.service import EmbeddingService
from s3vector_nodes.ingestion.models import IngestionResult
from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.vectorstore.models import VectorRecord
from s3vector_nodes.vectorstore.service import VectorStore

logger = get_logger(__name__)

KeyFactory = Callable[[Chunk], str]


def generate_vector_id(_chunk: Chunk | None = None) -> str:
    """Generate a vector key unique within a run.

    Millisecond timestamp plus a random suffix; not meant to be
    unguessable.
    """
    return f"vec_{time.time_ns() // 1_000_000}_{uuid4().hex[:9]}"


class IngestionPipeline:
    """Drives documents through chunking, embedding and batched insert.

    All chunk texts go to the embedding service in one call. The index is
    ensured (or cleared) with the dimension of the returned vectors, then
    one record per chunk is inserted.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        chunker: Chunker | None = None,
        key_factory: KeyFactory = generate_vector_id,
        content_key: str = "content",
        ensure_index: bool = True,
    ) -> None:
        """Initialize the ingestion pipeline.

        Args:
            embedding_service: Service for generating embeddings.
            vector_store: Store the vectors are written to.
            chunker: Splits documents; None stores each document whole.
            key_factory: Builds the vector key for a chunk.
            content_key: Metadata key that receives the chunk text.
            ensure_index: Create the index before inserting if missing.
        """
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._chunker = chunker
        self._key_factory = key_factory
        self._content_key = content_key
        self._ensure_index = ensure_index

    def _chunk(self, document: Document) -> list[Chunk]:
        if self._chunker is not None:
            return self._chunker.chunk(document)
        if not document.content.strip():
            return []
        return [
            Chunk(
                content=document.content,
                metadata=dict(document.metadata),
                index=0,
                start_char=0,
                end_char=len(document.content),
            )
        ]

    async def ingest(
        self,
        documents: list[Document],
        clear_index: bool = False,
    ) -> IngestionResult:
        """Chunk, embed and insert documents.

        Args:
            documents: Documents to store.
            clear_index: Delete and recreate the index before inserting.

        Returns:
            IngestionResult with the inserted keys.

        Raises:
            EmbeddingError: If embedding fails.
            VectorStoreError: If index management or an insert batch fails.
        """
        chunks = [chunk for document in documents for chunk in self._chunk(document)]

        if not chunks:
            logger.info("No chunks to insert", extra={"documents": len(documents)})
            return IngestionResult(documents_processed=len(documents))

        embeddings = await self._embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )
        dimension = embeddings[0].dimensions

        logger.debug(
            f"Generated {len(embeddings)} embeddings for {len(chunks)} chunks",
            extra={"model": self._embedding_service.model_name, "dimension": dimension},
        )

        if clear_index:
            await self._vector_store.clear(dimension)
        elif self._ensure_index:
            await self._vector_store.ensure_index(dimension)

        records = [
            VectorRecord(
                key=self._key_factory(chunk),
                vector=embedding.embedding,
                metadata={**chunk.metadata, self._content_key: chunk.content},
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        await self._vector_store.insert_batch(records)

        logger.info(
            f"Inserted {len(records)} vectors from {len(documents)} documents",
            extra={"chunks": len(chunks), "dimension": dimension},
        )

        return IngestionResult(
            keys=[record.key for record in records],
            documents_processed=len(documents),
            chunks_created=len(chunks),
            dimensions=dimension,
        )
