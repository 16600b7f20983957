"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from s3vector_nodes.api.app import app
from s3vector_nodes.config import AWSSettings, DistanceMetric, EmbeddingSettings, S3VectorsSettings
from s3vector_nodes.embeddings.models import EmbeddingResult
from s3vector_nodes.embeddings.service import EmbeddingService
from s3vector_nodes.exceptions import EmbeddingError
from s3vector_nodes.nodes.base import ServiceFactory
from s3vector_nodes.vectorstore.models import SearchResult, VectorRecord
from s3vector_nodes.vectorstore.service import VectorStore


class FakeEmbeddingService(EmbeddingService):
    """Deterministic in-memory embedding service.

    Texts containing ``fail_on`` raise EmbeddingError.
    """

    def __init__(self, dimensions: int = 3, fail_on: str | None = None) -> None:
        self._dimensions = dimensions
        self.fail_on = fail_on
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []
        self.closed = False

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _vector(self, text: str) -> list[float]:
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(f"Embedding request failed: cannot embed {text!r}")
        return [float(len(text))] + [0.5] * (self._dimensions - 1)

    async def embed(self, text: str) -> EmbeddingResult:
        self.embed_calls.append(text)
        return self._build_results([text], [self._vector(text)])[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        self.batch_calls.append(list(texts))
        return self._build_results(texts, [self._vector(t) for t in texts])

    async def close(self) -> None:
        self.closed = True


class FakeVectorStore(VectorStore):
    """In-memory vector store that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.index_dimension: int | None = None
        self.records: dict[str, VectorRecord] = {}
        self.last_query: dict[str, Any] | None = None

    async def ensure_index(
        self,
        dimension: int,
        distance_metric: DistanceMetric | None = None,
    ) -> None:
        self.calls.append("ensure_index")
        if self.index_dimension is None:
            self.index_dimension = dimension

    async def insert_batch(self, records: list[VectorRecord]) -> int:
        self.calls.append("insert_batch")
        for record in records:
            self.records[record.key] = record
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int = 4,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        self.calls.append("query")
        self.last_query = {"vector": vector, "top_k": top_k, "filters": filters}
        matches = [
            SearchResult(
                key=record.key,
                score=abs(record.vector[0] - vector[0]),
                metadata=record.metadata,
            )
            for record in self.records.values()
            if all(record.metadata.get(k) == v for k, v in (filters or {}).items())
        ]
        # nearest first, like query_vectors
        matches.sort(key=lambda match: match.score)
        return matches[:top_k]

    async def delete_index(self) -> None:
        self.calls.append("delete_index")
        self.index_dimension = None
        self.records.clear()


class FakeServiceFactory(ServiceFactory):
    """Hands the same fakes to every item and remembers the settings used."""

    def __init__(
        self,
        embedding: FakeEmbeddingService | None = None,
        store: FakeVectorStore | None = None,
    ) -> None:
        self.embedding = embedding or FakeEmbeddingService()
        self.store = store or FakeVectorStore()
        self.embedding_settings: list[EmbeddingSettings] = []
        self.store_settings: list[S3VectorsSettings] = []
        self.aws_settings: list[AWSSettings] = []

    def embedding_service(
        self,
        settings: EmbeddingSettings,
        aws: AWSSettings,
    ) -> EmbeddingService:
        self.embedding_settings.append(settings)
        self.aws_settings.append(aws)
        return self.embedding

    def vector_store(
        self,
        settings: S3VectorsSettings,
        aws: AWSSettings,
    ) -> VectorStore:
        self.store_settings.append(settings)
        return self.store


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fake_embedding() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def fake_services(
    fake_embedding: FakeEmbeddingService,
    fake_store: FakeVectorStore,
) -> FakeServiceFactory:
    return FakeServiceFactory(embedding=fake_embedding, store=fake_store)
