"""Application exception hierarchy.

All custom exceptions inherit from VectorNodesError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VN-1000"
    CONFIGURATION_ERROR = "VN-1001"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "VN-3000"
    EMBEDDING_DIMENSION_MISMATCH = "VN-3001"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "VN-4000"
    INDEX_NOT_FOUND = "VN-4001"
    BATCH_INSERT_ERROR = "VN-4003"

    # Provider access errors (5xxx)
    PROVIDER_AUTH_ERROR = "VN-5000"

    # Retrieval errors (6xxx)
    RETRIEVAL_ERROR = "VN-6000"

    # Node execution errors (7xxx)
    NODE_OPERATION_ERROR = "VN-7000"
    UNKNOWN_OPERATION = "VN-7001"
    UNKNOWN_NODE = "VN-7002"


class VectorNodesError(Exception):
    """Base exception for all vector node errors.

    Subclasses set ``default_code``; a caller may still pass a more
    specific code.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize as the ``{"error": {...}}`` body used by the API and CLI."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorNodesError):
    """Missing or invalid configuration, detected before any provider call."""

    default_code = ErrorCode.CONFIGURATION_ERROR


class EmbeddingError(VectorNodesError):
    """Embedding provider call failed or returned something unusable."""

    default_code = ErrorCode.EMBEDDING_SERVICE_ERROR


class VectorStoreError(VectorNodesError):
    """S3 Vectors call failed."""

    default_code = ErrorCode.VECTOR_STORE_ERROR


class ProviderAuthError(VectorNodesError):
    """Provider rejected the credentials or denied the action.

    The provider's own message is kept verbatim.
    """

    default_code = ErrorCode.PROVIDER_AUTH_ERROR


class RetrievalError(VectorNodesError):
    default_code = ErrorCode.RETRIEVAL_ERROR


class NodeOperationError(VectorNodesError):
    """Node execution aborted.

    Attributes:
        item_index: Index of the input item that failed, if any.
    """

    default_code = ErrorCode.NODE_OPERATION_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        item_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.item_index = item_index
        details = dict(details or {})
        if item_index is not None:
            details["item_index"] = item_index
        super().__init__(message, code, details)
