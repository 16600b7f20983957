"""AWS S3 Vector Store node: chunked insert and semantic search."""

from typing import Any

from s3vector_nodes.aws import aws_settings_from_credentials
from s3vector_nodes.config import (
    AWSSettings,
    EmbeddingSettings,
    S3VectorsSettings,
    get_settings,
)
from s3vector_nodes.documents.chunker import CharacterChunker, ChunkerConfig
from s3vector_nodes.documents.models import Document
from s3vector_nodes.exceptions import ConfigurationError
from s3vector_nodes.ingestion.pipeline import IngestionPipeline
from s3vector_nodes.nodes.base import NodeType, build_settings, parse_metadata_filter
from s3vector_nodes.nodes.context import ExecutionContext
from s3vector_nodes.nodes.models import NodeDescription
from s3vector_nodes.retrieval.retriever import SemanticRetriever


class VectorStoreAwsS3Node(NodeType):
    """Insert text into, and search, an S3 Vectors index.

    Insert reads the text from a field of each item, splits it into
    overlapping chunks, embeds them with Bedrock and stores one vector per
    chunk. Search embeds a query and returns the closest chunks.
    """

    description = NodeDescription(
        name="vectorStoreAwsS3",
        display_name="AWS S3 Vector Store",
        description="Store and search document embeddings in AWS S3 Vectors",
        operations=["insert", "search"],
        default_operation="insert",
    )

    DEFAULT_EMBEDDING_MODEL = "amazon.titan-embed-text-v1"
    DEFAULT_REGION = "us-east-1"

    async def run_operation(
        self,
        context: ExecutionContext,
        operation: str,
        item_index: int,
        item: dict[str, Any],
    ) -> dict[str, Any]:
        options = dict(context.get_node_parameter("options", item_index, {}) or {})

        if operation == "insert":
            return await self._insert(context, item_index, item, options)
        return await self._search(context, item_index, options)

    def _common_settings(
        self,
        context: ExecutionContext,
        item_index: int,
        options: dict[str, Any],
    ) -> tuple[AWSSettings, EmbeddingSettings, S3VectorsSettings]:
        region = context.get_node_parameter("region", item_index, self.DEFAULT_REGION)
        aws = aws_settings_from_credentials(context.get_credentials("aws"), region=region)
        embedding = build_settings(
            EmbeddingSettings,
            model=context.get_node_parameter(
                "embeddingModel", item_index, self.DEFAULT_EMBEDDING_MODEL
            ),
        )
        store = build_settings(
            S3VectorsSettings,
            bucket_name=context.get_node_parameter("bucketName", item_index),
            index_name=context.get_node_parameter("indexName", item_index),
            namespace=options.get("namespace") or None,
            batch_size=options.get("batchSize") or None,
        )
        return aws, embedding, store

    async def _insert(
        self,
        context: ExecutionContext,
        item_index: int,
        item: dict[str, Any],
        options: dict[str, Any],
    ) -> dict[str, Any]:
        text_field = context.get_node_parameter("textField", item_index, "text")
        defaults = get_settings().chunking
        chunk_size = int(
            context.get_node_parameter("chunkSize", item_index, defaults.chunk_size)
        )
        chunk_overlap = int(
            context.get_node_parameter("chunkOverlap", item_index, defaults.chunk_overlap)
        )

        source = Document.from_item(
            item,
            text_field,
            include_metadata=options.get("includeMetadata", True) is not False,
        )
        document = Document(
            content=source.content,
            metadata={**source.metadata, "textField": text_field},
        )

        chunker = None
        if options.get("splitText", True) is not False:
            try:
                config = ChunkerConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid chunking parameters: {e}",
                    details={"chunk_size": chunk_size, "chunk_overlap": chunk_overlap},
                ) from e
            chunker = CharacterChunker(config)

        aws, embedding_settings, store_settings = self._common_settings(
            context, item_index, options
        )
        embedding_service = self._services.embedding_service(embedding_settings, aws)
        vector_store = self._services.vector_store(store_settings, aws)

        try:
            pipeline = IngestionPipeline(
                embedding_service,
                vector_store,
                chunker=chunker,
                content_key=store_settings.content_key,
            )
            result = await pipeline.ingest(
                [document],
                clear_index=bool(options.get("clearIndex", False)),
            )
        finally:
            await embedding_service.close()

        return {
            "documentsInserted": result.chunks_created,
            "chunksCreated": result.chunks_created,
            "insertedIds": result.keys,
            "bucketName": store_settings.bucket_name,
            "indexName": store_settings.index_name,
            "embeddingModel": embedding_settings.model,
            "textLength": len(document.content),
            "chunkSize": chunk_size,
            "chunkOverlap": chunk_overlap,
        }

    async def _search(
        self,
        context: ExecutionContext,
        item_index: int,
        options: dict[str, Any],
    ) -> dict[str, Any]:
        query = context.get_node_parameter("searchQuery", item_index)
        if not isinstance(query, str) or not query.strip():
            raise ConfigurationError("No search query provided")
        top_k = int(context.get_node_parameter("topK", item_index, 4))

        # Parsed before any provider call
        filters = parse_metadata_filter(options.get("metadataFilter"))

        aws, embedding_settings, store_settings = self._common_settings(
            context, item_index, options
        )
        embedding_service = self._services.embedding_service(embedding_settings, aws)
        vector_store = self._services.vector_store(store_settings, aws)

        try:
            retriever = SemanticRetriever(
                embedding_service,
                vector_store,
                content_key=store_settings.content_key,
            )
            results = await retriever.retrieve(query, top_k=top_k, filters=filters)
        finally:
            await embedding_service.close()

        return {
            "query": query,
            "resultsCount": len(results),
            "embeddingModel": embedding_settings.model,
            "results": [result.to_output() for result in results],
        }
