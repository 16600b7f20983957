"""API routes for running node types."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from s3vector_nodes.logging_config import get_logger
from s3vector_nodes.nodes.base import ServiceFactory
from s3vector_nodes.nodes.context import StaticExecutionContext
from s3vector_nodes.nodes.models import NodeDescription
from s3vector_nodes.nodes.registry import get_node_type, list_node_descriptions

logger = get_logger(__name__)


# Create router
router = APIRouter(prefix="/api/v1", tags=["Nodes"])


def get_service_factory() -> ServiceFactory:
    """Adapter factory dependency, overridden in tests."""
    return ServiceFactory()


class ExecuteRequest(BaseModel):
    """Request body for a node execution."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[dict[str, Any]] = Field(
        default_factory=lambda: [{}],
        description="Input items, one JSON object each",
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Node parameters shared by every item",
    )
    item_parameters: list[dict[str, Any]] = Field(
        default_factory=list,
        alias="itemParameters",
        description="Per-item parameter overrides, in item order",
    )
    credentials: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Credentials keyed by credential type",
    )
    continue_on_fail: bool = Field(
        default=False,
        alias="continueOnFail",
        description="Record item failures instead of aborting",
    )


class ExecuteResponse(BaseModel):
    """Output records of a node execution."""

    data: list[dict[str, Any]] = Field(description="One output record per item")


@router.get("/nodes", response_model=list[NodeDescription])
async def list_nodes_endpoint() -> list[NodeDescription]:
    """List the registered node types."""
    return list_node_descriptions()


@router.post("/nodes/{name}/execute", response_model=ExecuteResponse)
async def execute_node_endpoint(
    name: str,
    request: ExecuteRequest,
    services: Annotated[ServiceFactory, Depends(get_service_factory)],
) -> ExecuteResponse:
    """Execute a node type over the request items.

    Unknown nodes, unknown operations and aborted executions surface as
    structured errors through the application exception handler.
    """
    node = get_node_type(name, services=services)
    context = StaticExecutionContext(
        items=request.items,
        parameters=request.parameters,
        item_parameters=request.item_parameters,
        credentials=request.credentials,
        continue_on_fail=request.continue_on_fail,
    )

    logger.info(
        f"Executing node {name}",
        extra={"node": name, "items": len(request.items)},
    )
    data = await node.execute(context)
    return ExecuteResponse(data=data)
