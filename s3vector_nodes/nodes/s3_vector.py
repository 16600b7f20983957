"""Simple S3 Vector node: keyed insert and plain search."""

from typing import Any

from s3vector_nodes.aws import aws_settings_from_credentials
from s3vector_nodes.config import AWSSettings, EmbeddingSettings, S3VectorsSettings
from s3vector_nodes.documents.chunker import ChunkerConfig, RecursiveCharacterChunker
from s3vector_nodes.documents.models import Document
from s3vector_nodes.exceptions import ConfigurationError
from s3vector_nodes.ingestion.pipeline import IngestionPipeline, generate_vector_id
from s3vector_nodes.nodes.base import NodeType, build_settings
from s3vector_nodes.nodes.context import ExecutionContext
from s3vector_nodes.nodes.models import NodeDescription
from s3vector_nodes.retrieval.retriever import SemanticRetriever

TEXT_KEY = "text"


class S3VectorNode(NodeType):
    """Insert and search against an existing S3 Vectors index.

    Vectors are keyed ``<key>_chunk_<n>`` so re-inserting the same key
    overwrites its chunks. The index is expected to exist already.
    """

    description = NodeDescription(
        name="s3Vector",
        display_name="S3 Vector",
        description="Simple S3 Vector operations - insert and search",
        operations=["insert", "search"],
        default_operation="insert",
    )

    CHUNKER_CONFIG = ChunkerConfig(chunk_size=1000, chunk_overlap=200)

    async def run_operation(
        self,
        context: ExecutionContext,
        operation: str,
        item_index: int,
        item: dict[str, Any],
    ) -> dict[str, Any]:
        text = context.get_node_parameter("data", item_index)
        if not isinstance(text, str) or not text.strip():
            raise ConfigurationError("No text provided in parameter 'data'")

        aws, embedding_settings, store_settings = self._settings(context, item_index)
        embedding_service = self._services.embedding_service(embedding_settings, aws)
        vector_store = self._services.vector_store(store_settings, aws)

        try:
            if operation == "insert":
                key = context.get_node_parameter("key", item_index, "") or generate_vector_id()
                pipeline = IngestionPipeline(
                    embedding_service,
                    vector_store,
                    chunker=RecursiveCharacterChunker(self.CHUNKER_CONFIG),
                    key_factory=lambda chunk: f"{key}_chunk_{chunk.index}",
                    content_key=TEXT_KEY,
                    ensure_index=False,
                )
                document = Document(content=text, metadata={"parent_key": key, **item})
                result = await pipeline.ingest([document])
                return {
                    "key": key,
                    "text": text,
                    "metadata": item,
                    "results": {
                        "vectorsInserted": result.chunks_created,
                        "keys": result.keys,
                    },
                }

            limit = int(context.get_node_parameter("limit", item_index, 4))
            retriever = SemanticRetriever(
                embedding_service,
                vector_store,
                content_key=TEXT_KEY,
                ensure_index=False,
            )
            matches = await retriever.retrieve(text, top_k=limit)
            return {
                "query": text,
                "results": [
                    {"key": m.key, "distance": m.score, "metadata": m.metadata}
                    for m in matches
                ],
            }
        finally:
            await embedding_service.close()

    def _settings(
        self,
        context: ExecutionContext,
        item_index: int,
    ) -> tuple[AWSSettings, EmbeddingSettings, S3VectorsSettings]:
        region = context.get_node_parameter("region", item_index, "us-east-2")
        aws = aws_settings_from_credentials(context.get_credentials("aws"), region=region)
        embedding = build_settings(
            EmbeddingSettings,
            model=context.get_node_parameter(
                "embeddingModel", item_index, "amazon.titan-embed-text-v2:0"
            ),
        )
        store = build_settings(
            S3VectorsSettings,
            bucket_name=context.get_node_parameter(
                "bucketName", item_index, "processed-documents"
            ),
            index_name=context.get_node_parameter("indexName", item_index, "aws"),
            content_key=TEXT_KEY,
        )
        return aws, embedding, store
