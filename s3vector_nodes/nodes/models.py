"""Node description and per-item result models."""

from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr

from s3vector_nodes.exceptions import ErrorCode


class NodeDescription(BaseModel):
    """Static description of a node type.

    Attributes:
        name: Identifier the host registers the node under.
        display_name: Human-readable name.
        description: One-line summary.
        version: Node type version.
        operations: Supported operation names.
        default_operation: Operation used when none is configured.
        credentials: Names of the credentials the node reads.
    """

    name: str
    display_name: str
    description: str = ""
    version: int = 1
    operations: list[str] = Field(default_factory=list)
    default_operation: str = "insert"
    credentials: list[str] = Field(default_factory=lambda: ["aws"])


class ItemSuccess(BaseModel):
    """An item that completed its operation."""

    success: Literal[True] = True
    operation: str
    fields: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {"success": True, "operation": self.operation, **self.fields}


class ItemFailure(BaseModel):
    """An item whose operation raised.

    The original exception is kept privately so an abort can chain it.
    """

    success: Literal[False] = False
    operation: str
    error: str
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    item_index: int

    _exception: BaseException | None = PrivateAttr(default=None)

    @property
    def exception(self) -> BaseException | None:
        return self._exception

    def to_json(self) -> dict[str, Any]:
        return {"success": False, "error": self.error, "operation": self.operation}


ItemResult = ItemSuccess | ItemFailure
