"""Node type base class and the per-item execution policy."""

import json
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic_settings import BaseSettings

from s3vector_nodes.config import AWSSettings, EmbeddingSettings, S3VectorsSettings
from s3vector_nodes.embeddings.service import EmbeddingService, create_embedding_service
from s3vector_nodes.exceptions import (
    ConfigurationError,
    ErrorCode,
    NodeOperationError,
    VectorNodesError,
)
from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.nodes.context import ExecutionContext
from s3vector_nodes.nodes.models import ItemFailure, ItemResult, ItemSuccess, NodeDescription
from s3vector_nodes.observability.metrics import track_node_item
from s3vector_nodes.vectorstore.service import S3VectorStore, VectorStore

logger = get_logger(__name__)

SettingsT = TypeVar("SettingsT", bound=BaseSettings)


class ServiceFactory:
    """Builds provider adapters for one item's configuration.

    Nodes never share clients between items; override this to inject
    fakes in tests.
    """

    def embedding_service(
        self,
        settings: EmbeddingSettings,
        aws: AWSSettings,
    ) -> EmbeddingService:
        return create_embedding_service(settings, aws)

    def vector_store(
        self,
        settings: S3VectorsSettings,
        aws: AWSSettings,
    ) -> VectorStore:
        return S3VectorStore(settings=settings, aws=aws)


def build_settings(settings_cls: type[SettingsT], **values: Any) -> SettingsT:
    """Instantiate a settings class from node parameters.

    None values are dropped so environment defaults still apply.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    try:
        return settings_cls(**{k: v for k, v in values.items() if v is not None})
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {settings_cls.__name__} parameters: {e}",
            details={"settings": settings_cls.__name__},
        ) from e


def parse_metadata_filter(raw: Any) -> dict[str, Any] | None:
    """Parse the metadata filter option.

    Accepts a mapping or a JSON object string; blank means no filter.

    Raises:
        ConfigurationError: If the value is not a JSON object.
    """
    if raw is None or raw == "" or raw == {}:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "Invalid JSON in metadata filter",
            details={"metadata_filter": str(raw)[:200]},
        ) from e
    if not isinstance(parsed, dict):
        raise ConfigurationError(
            "Invalid JSON in metadata filter",
            details={"metadata_filter": str(raw)[:200]},
        )
    return parsed or None


class NodeType(ABC):
    """Base class for node types loaded by the host.

    ``execute`` walks the input items strictly in order. Each item runs
    inside its own failure boundary; a failed item either becomes a
    failure record (continue-on-fail) or aborts the whole invocation.
    """

    description: NodeDescription

    def __init__(self, services: ServiceFactory | None = None) -> None:
        """Initialize the node.

        Args:
            services: Adapter factory. Uses the AWS-backed factory if not
                provided.
        """
        self._services = services or ServiceFactory()

    @abstractmethod
    async def run_operation(
        self,
        context: ExecutionContext,
        operation: str,
        item_index: int,
        item: dict[str, Any],
    ) -> dict[str, Any]:
        """Run one operation for one item.

        Args:
            context: Host execution context.
            operation: Operation name.
            item_index: Index of the item in the input list.
            item: The item's JSON payload.

        Returns:
            Operation-specific output fields.
        """
        ...

    async def execute(self, context: ExecutionContext) -> list[dict[str, Any]]:
        """Run the configured operation over every input item.

        Args:
            context: Host execution context.

        Returns:
            One output record per item.

        Raises:
            NodeOperationError: On an unknown operation, or on the first
                failed item when continue-on-fail is off.
        """
        items = context.get_input_data()
        operation = str(
            context.get_node_parameter("operation", 0, self.description.default_operation)
        )
        if operation not in self.description.operations:
            raise NodeOperationError(
                f"Unknown operation: {operation}",
                code=ErrorCode.UNKNOWN_OPERATION,
                details={"node": self.description.name, "operation": operation},
            )

        logger.info(
            f"Starting {operation} operation",
            extra={"node": self.description.name, "items": len(items)},
        )

        results: list[ItemResult] = []
        for index, item in enumerate(items):
            result = await self._execute_item(context, operation, index, item)
            track_node_item(self.description.name, operation, result.success)

            if isinstance(result, ItemFailure):
                if not context.continue_on_fail():
                    raise NodeOperationError(
                        result.error,
                        item_index=index,
                        details={"operation": operation, "cause_code": result.code.value},
                    ) from result.exception
                logger.warning(
                    f"Item {index} failed, continuing: {result.error}",
                    extra={"node": self.description.name, "operation": operation},
                )

            results.append(result)

        return [result.to_json() for result in results]

    async def _execute_item(
        self,
        context: ExecutionContext,
        operation: str,
        index: int,
        item: dict[str, Any],
    ) -> ItemResult:
        try:
            fields = await self.run_operation(context, operation, index, item)
        except Exception as e:
            if isinstance(e, VectorNodesError):
                message, code = e.message, e.code
            else:
                message, code = str(e) or type(e).__name__, ErrorCode.INTERNAL_ERROR
            logger.error(
                f"Error during {operation} for item {index}: {message}",
                extra={"node": self.description.name, "error_code": code.value},
            )
            failure = ItemFailure(
                operation=operation,
                error=message,
                code=code,
                item_index=index,
            )
            failure._exception = e
            return failure

        return ItemSuccess(operation=operation, fields=fields)
