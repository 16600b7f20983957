"""ASGI application that exposes the node types over HTTP.

Besides the node routes it serves liveness and readiness checks and the
Prometheus scrape endpoint.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from s3vector_nodes import __version__
from s3vector_nodes.api.routes import router as nodes_router
from s3vector_nodes.config import get_settings
from s3vector_nodes.exceptions import ErrorCode, VectorNodesError
from s3vector_nodes.logging_config import get_logger, setup_logging
from s3vector_nodes.nodes.registry import NODE_TYPES
from s3vector_nodes.observability import MetricsMiddleware, get_metrics
from s3vector_nodes.observability.metrics import get_metrics_content_type

logger = get_logger(__name__)

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.CONFIGURATION_ERROR: 400,
    ErrorCode.UNKNOWN_OPERATION: 400,
    ErrorCode.PROVIDER_AUTH_ERROR: 403,
    ErrorCode.UNKNOWN_NODE: 404,
    ErrorCode.INDEX_NOT_FOUND: 404,
    # an item failed and continue-on-fail was off
    ErrorCode.NODE_OPERATION_ERROR: 422,
    ErrorCode.EMBEDDING_SERVICE_ERROR: 502,
    ErrorCode.VECTOR_STORE_ERROR: 502,
    ErrorCode.BATCH_INSERT_ERROR: 502,
}

health_router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(UTC).isoformat()


@health_router.get("/health")
async def health_check() -> dict[str, Any]:
    return {"status": "healthy", "version": __version__, "timestamp": _now()}


@health_router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """Report whether settings load and node types are registered.

    AWS is not contacted here; provider problems surface per item.
    """
    checks = {"config": "ok", "nodes": "ok" if NODE_TYPES else "empty"}
    try:
        get_settings()
    except ValueError:
        checks["config"] = "invalid"

    ready = set(checks.values()) == {"ok"}
    return {"status": "ready" if ready else "not_ready", "checks": checks, "timestamp": _now()}


@health_router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


@health_router.get("/metrics", tags=["Metrics"])
async def metrics_endpoint() -> Response:
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


def _get_status_code(code: ErrorCode) -> int:
    return _STATUS_BY_CODE.get(code, 500)


async def vector_nodes_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a VectorNodesError as its ``to_dict()`` body."""
    if not isinstance(exc, VectorNodesError):
        exc = VectorNodesError(str(exc), code=ErrorCode.INTERNAL_ERROR)

    logger.error(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={"error_code": exc.code.value, "details": exc.details},
    )
    return JSONResponse(status_code=_get_status_code(exc.code), content=exc.to_dict())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        f"Node runner {__version__} started",
        extra={"environment": settings.environment.value, "nodes": sorted(NODE_TYPES)},
    )
    yield
    logger.info("Node runner stopped")


def create_app() -> FastAPI:
    """Assemble the application with middleware, error handling and routes."""
    app = FastAPI(
        title="S3 Vector Nodes",
        description="Workflow nodes for AWS S3 Vectors with Bedrock embeddings",
        version=__version__,
        lifespan=lifespan,
        debug=get_settings().debug,
    )
    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(VectorNodesError, vector_nodes_exception_handler)
    app.include_router(health_router)
    app.include_router(nodes_router)
    return app


app = create_app()
