"""Similarity search over an S3 vector index."""

from typing import Any

from s3vector_nodes.embeddings.service import EmbeddingService
from s3vector_nodes.exceptions import ErrorCode, RetrievalError, VectorNodesError
from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.observability.metrics import track_search_request
from s3vector_nodes.retrieval.models import RetrievalResult
from s3vector_nodes.vectorstore.service import VectorStore

logger = get_logger(__name__)


class SemanticRetriever:
    """Embed a query, then ask the vector store for its nearest neighbours.

    Args:
        embedding_service: Produces the query vector.
        vector_store: Index to search.
        content_key: Metadata key the chunk text was stored under.
        ensure_index: Create the index, sized to the query vector, before
            searching.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        content_key: str = "content",
        ensure_index: bool = True,
    ) -> None:
        self._embeddings = embedding_service
        self._store = vector_store
        self._content_key = content_key
        self._ensure_index = ensure_index

    def _to_result(
        self, key: str, score: float | None, metadata: dict[str, Any]
    ) -> RetrievalResult:
        text = metadata.get(self._content_key)
        return RetrievalResult(
            content="" if text is None else str(text),
            metadata=metadata,
            score=score,
            key=key,
        )

    async def retrieve(
        self,
        query: str,
        top_k: int = 4,
        filters: dict[str, Any] | None = None,
    ) -> list[RetrievalResult]:
        """Return up to ``top_k`` matches in the order the store ranked them.

        A blank query returns no results without calling either provider.
        Application errors propagate unchanged; anything else is wrapped
        in RetrievalError.
        """
        if not query.strip():
            return []

        try:
            query_embedding = await self._embeddings.embed(query)
            if self._ensure_index:
                await self._store.ensure_index(query_embedding.dimensions)
            matches = await self._store.query(
                vector=query_embedding.embedding,
                top_k=top_k,
                filters=filters,
            )
        except VectorNodesError:
            raise
        except Exception as e:
            logger.error(f"Search for {top_k} matches failed: {e}", extra={"top_k": top_k})
            raise RetrievalError(
                f"Similarity search failed: {e}",
                code=ErrorCode.RETRIEVAL_ERROR,
                details={"query": query[:100], "error": str(e)},
            ) from e

        results = [self._to_result(m.key, m.score, m.metadata) for m in matches]
        track_search_request(len(results))
        logger.debug(f"Search returned {len(results)} of at most {top_k} matches")
        return results
