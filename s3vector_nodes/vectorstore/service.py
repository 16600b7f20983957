"""Vector store interface and S3 Vectors implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from s3vector_nodes.aws import (
    client_error_code,
    client_error_message,
    create_session,
    translate_client_error,
)
from s3vector_nodes.config import AWSSettings, DistanceMetric, S3VectorsSettings, get_settings
from s3vector_nodes.exceptions import ErrorCode, VectorStoreError
from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.observability.metrics import (
    track_vectors_inserted,
    track_vectorstore_operation,
)
from s3vector_nodes.vectorstore.models import SearchResult, VectorRecord

logger = get_logger(__name__)

# Provider signals that an index already exists
INDEX_EXISTS_CODES = frozenset({"ConflictException", "ResourceAlreadyExistsException"})

INDEX_MISSING_CODES = frozenset({"NotFoundException", "ResourceNotFoundException"})


def is_already_exists_error(error: Exception) -> bool:
    """Check whether a create call failed only because the index exists."""
    if client_error_code(error) in INDEX_EXISTS_CODES:
        return True
    return "already exists" in client_error_message(error).lower()


def _error_code_for(error: Exception, default: ErrorCode) -> ErrorCode:
    if client_error_code(error) in INDEX_MISSING_CODES:
        return ErrorCode.INDEX_NOT_FOUND
    if "dimension" in client_error_message(error).lower():
        return ErrorCode.EMBEDDING_DIMENSION_MISMATCH
    return default


class VectorStore(ABC):
    """Abstract base class for vector stores.

    Defines the interface for storing and searching vectors in one index.
    """

    @abstractmethod
    async def ensure_index(
        self,
        dimension: int,
        distance_metric: DistanceMetric | None = None,
    ) -> None:
        """Create the index unless it already exists.

        Args:
            dimension: Vector dimensions.
            distance_metric: Metric for a newly created index.

        Raises:
            VectorStoreError: On any failure other than "already exists".
        """
        ...

    @abstractmethod
    async def insert_batch(self, records: list[VectorRecord]) -> int:
        """Insert records in sequential fixed-size batches.

        Args:
            records: Records to insert.

        Returns:
            Number of records inserted.

        Raises:
            VectorStoreError: If a batch fails. Earlier batches stay inserted.
        """
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 4,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            vector: Query vector.
            top_k: Maximum results to return.
            filters: Optional metadata equality filter.

        Returns:
            Results in provider ranking order.

        Raises:
            VectorStoreError: If search fails.
        """
        ...

    @abstractmethod
    async def delete_index(self) -> None:
        """Delete the index.

        Raises:
            VectorStoreError: If deletion fails.
        """
        ...

    async def clear(
        self,
        dimension: int,
        distance_metric: DistanceMetric | None = None,
    ) -> None:
        """Delete and recreate the index.

        Not atomic: if the recreate step never runs, no index exists until
        the next ensure_index call.
        """
        await self.delete_index()
        await self.ensure_index(dimension, distance_metric)


class S3VectorStore(VectorStore):
    """Amazon S3 Vectors implementation.

    The boto3 client is synchronous; each call runs in a worker thread and
    is awaited before the next one starts.
    """

    def __init__(
        self,
        settings: S3VectorsSettings | None = None,
        aws: AWSSettings | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the S3 Vectors store.

        Args:
            settings: Bucket, index and batching configuration.
            aws: AWS credentials and region.
            client: Existing s3vectors client (for testing).
        """
        self._settings = settings or get_settings().s3vectors
        self._aws = aws or get_settings().aws
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the s3vectors client."""
        if self._client is None:
            self._client = create_session(self._aws).client("s3vectors")
        return self._client

    @property
    def settings(self) -> S3VectorsSettings:
        return self._settings

    @property
    def _location(self) -> dict[str, str]:
        return {
            "vectorBucketName": self._settings.bucket_name,
            "indexName": self._settings.index_name,
        }

    async def _call(self, operation: str, method: Callable[..., Any], **kwargs: Any) -> Any:
        """Run one client call off the event loop and time it."""
        start_time = time.perf_counter()
        try:
            result = await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError):
            track_vectorstore_operation(
                operation, time.perf_counter() - start_time, success=False
            )
            raise
        track_vectorstore_operation(operation, time.perf_counter() - start_time)
        return result

    async def ensure_index(
        self,
        dimension: int,
        distance_metric: DistanceMetric | None = None,
    ) -> None:
        """Create the index, treating "already exists" as success."""
        client = self._get_client()
        metric = distance_metric or self._settings.distance_metric

        try:
            await self._call(
                "create_index",
                client.create_index,
                **self._location,
                dataType="float32",
                dimension=dimension,
                distanceMetric=metric.value,
            )
            logger.info(
                f"Created vector index: {self._settings.index_name}",
                extra={"dimension": dimension, "distance_metric": metric.value},
            )
        except (ClientError, BotoCoreError) as e:
            if is_already_exists_error(e):
                logger.debug(f"Vector index already exists: {self._settings.index_name}")
                return
            raise translate_client_error(
                e,
                VectorStoreError,
                "Failed to ensure vector index exists",
                ErrorCode.VECTOR_STORE_ERROR,
                details=self._location,
            ) from e

    async def insert_batch(self, records: list[VectorRecord]) -> int:
        """Insert records with one PutVectors call per batch."""
        if not records:
            return 0

        client = self._get_client()
        batch_size = self._settings.batch_size
        namespace = self._settings.namespace
        inserted = 0

        for batch_number, offset in enumerate(range(0, len(records), batch_size), start=1):
            batch = records[offset : offset + batch_size]
            vectors = []
            for record in batch:
                entry = record.to_put_input()
                if namespace:
                    entry["metadata"] = {**entry["metadata"], "namespace": namespace}
                vectors.append(entry)

            try:
                await self._call("put_vectors", client.put_vectors, **self._location, vectors=vectors)
            except (ClientError, BotoCoreError) as e:
                logger.error(
                    f"Insert batch {batch_number} failed: {e}",
                    extra={"batch": batch_number, "inserted": inserted},
                )
                raise translate_client_error(
                    e,
                    VectorStoreError,
                    f"Failed to insert vectors (batch {batch_number}, "
                    f"{inserted} vectors already inserted)",
                    _error_code_for(e, ErrorCode.BATCH_INSERT_ERROR),
                    details={
                        **self._location,
                        "batch": batch_number,
                        "inserted": inserted,
                    },
                ) from e

            inserted += len(batch)
            logger.debug(
                f"Inserted batch {batch_number} ({len(batch)} vectors)",
                extra={"index": self._settings.index_name},
            )

        track_vectors_inserted(self._settings.index_name, inserted)
        return inserted

    async def query(
        self,
        vector: list[float],
        top_k: int = 4,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Query the index for the nearest vectors."""
        client = self._get_client()

        query_filter = dict(filters or {})
        if self._settings.namespace and "namespace" not in query_filter:
            query_filter["namespace"] = self._settings.namespace

        request: dict[str, Any] = {
            **self._location,
            "queryVector": {"float32": vector},
            "topK": top_k,
            "returnMetadata": True,
            "returnDistance": True,
        }
        if query_filter:
            request["filter"] = query_filter

        try:
            response = await self._call("query_vectors", client.query_vectors, **request)
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(
                e,
                VectorStoreError,
                "Failed to search vectors",
                _error_code_for(e, ErrorCode.VECTOR_STORE_ERROR),
                details=self._location,
            ) from e

        return [
            SearchResult(
                key=str(match.get("key", "")),
                score=match.get("distance"),
                metadata=dict(match.get("metadata") or {}),
            )
            for match in response.get("vectors") or []
        ]

    async def delete_index(self) -> None:
        """Delete the configured index."""
        client = self._get_client()

        try:
            await self._call("delete_index", client.delete_index, **self._location)
            logger.info(f"Deleted vector index: {self._settings.index_name}")
        except (ClientError, BotoCoreError) as e:
            raise translate_client_error(
                e,
                VectorStoreError,
                "Failed to delete vector index",
                _error_code_for(e, ErrorCode.VECTOR_STORE_ERROR),
                details=self._location,
            ) from e
