"""Tests for the ingestion pipeline."""

import re

import pytest

from conftest import FakeEmbeddingService, FakeVectorStore
from s3vector_nodes.documents.chunker import CharacterChunker, ChunkerConfig
from s3vector_nodes.documents.models import Document
from s3vector_nodes.exceptions import EmbeddingError
from s3vector_nodes.ingestion.pipeline import IngestionPipeline, generate_vector_id


class TestGenerateVectorId:
    """Tests for vector key generation."""

    def test_format(self) -> None:
        assert re.fullmatch(r"vec_\d+_[0-9a-f]{9}", generate_vector_id())

    def test_unique(self) -> None:
        keys = {generate_vector_id() for _ in range(1000)}
        assert len(keys) == 1000


class TestIngestionPipeline:
    """Tests for IngestionPipeline."""

    async def test_ingest_chunks_embeds_and_inserts(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        """Each chunk becomes one record carrying its text."""
        pipeline = IngestionPipeline(
            fake_embedding,
            fake_store,
            chunker=CharacterChunker(ChunkerConfig(chunk_size=1000, chunk_overlap=200)),
        )
        document = Document(content="word " * 500, metadata={"source": "a.txt"})

        result = await pipeline.ingest([document])

        assert result.chunks_created == 4
        assert result.documents_processed == 1
        assert result.dimensions == 3
        assert len(result.keys) == 4
        assert fake_store.calls == ["ensure_index", "insert_batch"]
        assert len(fake_embedding.batch_calls) == 1

        record = fake_store.records[result.keys[0]]
        assert record.metadata["content"] == document.content[:999]
        assert record.metadata["source"] == "a.txt"
        assert record.metadata["chunkIndex"] == 0
        assert record.metadata["totalChunks"] == 4

    async def test_same_document_twice_gets_distinct_keys(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        pipeline = IngestionPipeline(fake_embedding, fake_store)
        document = Document(content="repeat me")

        first = await pipeline.ingest([document])
        second = await pipeline.ingest([document])

        assert set(first.keys).isdisjoint(second.keys)
        assert len(fake_store.records) == 2

    async def test_without_chunker_stores_document_whole(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        pipeline = IngestionPipeline(fake_embedding, fake_store, content_key="text")

        result = await pipeline.ingest([Document(content="whole text " * 200)])

        assert result.chunks_created == 1
        assert fake_store.records[result.keys[0]].metadata["text"] == "whole text " * 200

    async def test_blank_documents_skip_provider_calls(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        pipeline = IngestionPipeline(fake_embedding, fake_store)

        result = await pipeline.ingest([Document(content="   ")])

        assert result.chunks_created == 0
        assert result.keys == []
        assert fake_embedding.batch_calls == []
        assert fake_store.calls == []

    async def test_clear_index_recreates_before_insert(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        pipeline = IngestionPipeline(fake_embedding, fake_store)

        await pipeline.ingest([Document(content="fresh")], clear_index=True)

        assert fake_store.calls == ["delete_index", "ensure_index", "insert_batch"]

    async def test_custom_key_factory_and_no_ensure(
        self,
        fake_embedding: FakeEmbeddingService,
        fake_store: FakeVectorStore,
    ) -> None:
        pipeline = IngestionPipeline(
            fake_embedding,
            fake_store,
            key_factory=lambda chunk: f"doc-1_chunk_{chunk.index}",
            ensure_index=False,
        )

        result = await pipeline.ingest([Document(content="short")])

        assert result.keys == ["doc-1_chunk_0"]
        assert fake_store.calls == ["insert_batch"]

    async def test_embedding_failure_inserts_nothing(self, fake_store: FakeVectorStore) -> None:
        pipeline = IngestionPipeline(FakeEmbeddingService(fail_on="bad"), fake_store)

        with pytest.raises(EmbeddingError):
            await pipeline.ingest([Document(content="good"), Document(content="bad")])

        assert fake_store.calls == []
