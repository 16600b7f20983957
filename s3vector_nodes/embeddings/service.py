"""Text embedding providers: Amazon Bedrock and OpenAI-compatible HTTP."""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from s3vector_nodes.aws import create_session, translate_client_error
from s3vector_nodes.config import (
    AWSSettings,
    EmbeddingProvider,
    EmbeddingSettings,
    get_settings,
)
from s3vector_nodes.embeddings.models import EmbeddingResult
from s3vector_nodes.exceptions import EmbeddingError, ErrorCode
from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Produces float vectors for text.

    A failed call fails as a whole; callers never see partial results.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Embed a search query.

        Raises:
            EmbeddingError: The provider failed or answered malformed data.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed document texts, returning one result per text in input order.

        Raises:
            EmbeddingError: Any text could not be embedded.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Provider model id."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Vector length; exact once a call has succeeded, otherwise a best guess."""
        ...

    async def close(self) -> None:
        """Release any client resources."""
        return None

    def _build_results(
        self,
        texts: list[str],
        vectors: list[list[float]],
    ) -> list[EmbeddingResult]:
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding service returned {len(vectors)} vectors for {len(texts)} texts",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"expected": len(texts), "received": len(vectors)},
            )
        try:
            return [
                EmbeddingResult(
                    text=text,
                    embedding=vector,
                    model=self.model_name,
                    dimensions=len(vector),
                )
                for text, vector in zip(texts, vectors)
            ]
        except ValueError as e:
            raise EmbeddingError(
                f"Invalid embedding returned by provider: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"model": self.model_name},
            ) from e


class BedrockEmbeddingService(EmbeddingService):
    """Embedding service backed by Amazon Bedrock.

    Titan models take one text per request; Cohere models take batches and
    distinguish query from document embeddings.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "amazon.titan-embed-text-v1": 1536,
        "amazon.titan-embed-text-v2:0": 1024,
        "cohere.embed-english-v3": 1024,
        "cohere.embed-multilingual-v3": 1024,
    }

    # Cohere on Bedrock accepts at most 96 texts per call
    COHERE_MAX_BATCH = 96

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        aws: AWSSettings | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Bedrock embedding service.

        Args:
            settings: Model and batching; defaults come from the environment.
            aws: Region and credentials for the Bedrock client.
            client: Prebuilt bedrock-runtime client, mainly for tests.
        """
        self._settings = settings or get_settings().embedding
        self._aws = aws or get_settings().aws
        self._client = client
        self._dimensions: int | None = None

    def _get_client(self) -> Any:
        """Get or create the bedrock-runtime client."""
        if self._client is None:
            self._client = create_session(self._aws).client("bedrock-runtime")
        return self._client

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def dimensions(self) -> int:
        if self._dimensions is not None:
            return self._dimensions
        if self._settings.dimensions is not None and self._is_titan_v2:
            return self._settings.dimensions
        return self.MODEL_DIMENSIONS.get(self._settings.model, 1536)

    @property
    def _is_cohere(self) -> bool:
        return self._settings.model.startswith("cohere.")

    @property
    def _is_titan_v2(self) -> bool:
        return self._settings.model.startswith("amazon.titan-embed-text-v2")

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single query text."""
        results = await self._embed([text], input_type="search_query")
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple document texts."""
        if not texts:
            return []
        return await self._embed(texts, input_type="search_document")

    async def _embed(self, texts: list[str], input_type: str) -> list[EmbeddingResult]:
        start_time = time.perf_counter()

        try:
            if self._is_cohere:
                vectors = await self._embed_cohere(texts, input_type)
            else:
                vectors = [await self._embed_titan(text) for text in texts]
        except (ClientError, BotoCoreError) as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), success=False
            )
            logger.error(
                f"Bedrock embedding request failed: {e}",
                extra={"model": self.model_name, "batch_size": len(texts)},
            )
            raise translate_client_error(
                e,
                EmbeddingError,
                "Embedding request failed",
                ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"model": self.model_name},
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), success=False
            )
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"model": self.model_name, "error": str(e)},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start_time, len(texts))

        results = self._build_results(texts, vectors)
        if results and self._dimensions is None:
            self._dimensions = results[0].dimensions
        return results

    async def _embed_titan(self, text: str) -> list[float]:
        body: dict[str, Any] = {"inputText": text}
        if self._is_titan_v2 and self._settings.dimensions is not None:
            body["dimensions"] = self._settings.dimensions
        data = await self._invoke(body)
        return list(data["embedding"])

    async def _embed_cohere(self, texts: list[str], input_type: str) -> list[list[float]]:
        batch_size = min(self._settings.batch_size, self.COHERE_MAX_BATCH)
        vectors: list[list[float]] = []
        for i in range(0, len(texts), batch_size):
            data = await self._invoke(
                {"texts": texts[i : i + batch_size], "input_type": input_type}
            )
            vectors.extend(list(v) for v in data["embeddings"])
        return vectors

    async def _invoke(self, body: dict[str, Any]) -> dict[str, Any]:
        client = self._get_client()
        response = await asyncio.to_thread(
            client.invoke_model,
            modelId=self._settings.model,
            body=json.dumps(body),
            contentType="application/json",
            accept="application/json",
        )
        return json.loads(response["body"].read())


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service for OpenAI-compatible ``/embeddings`` endpoints."""

    MODEL_DIMENSIONS = {
        "BAAI/bge-small-en-v1.5": 384,
        "BAAI/bge-base-en-v1.5": 768,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def dimensions(self) -> int:
        if self._dimensions is None:
            return self.MODEL_DIMENSIONS.get(self._settings.model, 1024)
        return self._dimensions

    @property
    def endpoint(self) -> str:
        return f"{self._settings.base_url}/embeddings"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def embed(self, text: str) -> EmbeddingResult:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed texts in provider-sized slices, preserving input order."""
        step = self._settings.batch_size
        results: list[EmbeddingResult] = []
        for offset in range(0, len(texts), step):
            vectors = await self._post(texts[offset : offset + step])
            results.extend(self._build_results(texts[offset : offset + step], vectors))

        if results and self._dimensions is None:
            self._dimensions = results[0].dimensions
        return results

    async def _post(self, texts: list[str]) -> list[list[float]]:
        client = await self._get_client()
        started = time.perf_counter()

        def failed(message: str, **details: Any) -> EmbeddingError:
            track_embedding_request(
                self.model_name, time.perf_counter() - started, len(texts), success=False
            )
            logger.error(message, extra={"url": self.endpoint, **details})
            return EmbeddingError(
                message, code=ErrorCode.EMBEDDING_SERVICE_ERROR, details=details
            )

        try:
            response = await client.post(
                self.endpoint, json={"input": texts, "model": self._settings.model}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise failed(f"Embedding service returned {status}", status_code=status) from e
        except httpx.RequestError as e:
            raise failed(f"Failed to connect to embedding service: {e}") from e

        try:
            items = response.json()["data"]
            # indexed items may arrive out of order
            if all("index" in item for item in items):
                items = sorted(items, key=lambda item: item["index"])
            vectors = [list(item["embedding"]) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise failed(f"Invalid response from embedding service: {e}") from e

        track_embedding_request(self.model_name, time.perf_counter() - started, len(texts))
        return vectors


def create_embedding_service(
    settings: EmbeddingSettings,
    aws: AWSSettings | None = None,
) -> EmbeddingService:
    """Build the embedding service selected by ``settings.provider``."""
    if settings.provider == EmbeddingProvider.HTTP:
        return HTTPEmbeddingService(settings=settings)
    return BedrockEmbeddingService(settings=settings, aws=aws)
