"""Prometheus instrumentation for node runs and provider calls.

Every series is registered under the ``vectornodes`` namespace on the
default registry, which ``/metrics`` exposes.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

NAMESPACE = "vectornodes"

_LATENCY_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "Node runner request latency",
    ["method", "endpoint", "status_code"],
    namespace=NAMESPACE,
    buckets=_LATENCY_BUCKETS,
)
HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Node runner requests",
    ["method", "endpoint", "status_code"],
    namespace=NAMESPACE,
)

EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Latency of one embed or embed_batch call",
    ["model", "status"],
    namespace=NAMESPACE,
    buckets=_LATENCY_BUCKETS,
)
EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Embedding provider calls",
    ["model", "status"],
    namespace=NAMESPACE,
)
EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Texts sent per embedding call",
    ["model"],
    namespace=NAMESPACE,
    buckets=(1, 5, 10, 25, 50, 96, 100, 250, 500),
)

VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Latency of one S3 Vectors API call",
    ["operation", "status"],
    namespace=NAMESPACE,
    buckets=_LATENCY_BUCKETS,
)
VECTORS_INSERTED_TOTAL = Counter(
    "vectors_inserted_total",
    "Vectors written with PutVectors",
    ["index"],
    namespace=NAMESPACE,
)
SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Matches returned per similarity search",
    namespace=NAMESPACE,
    buckets=(0, 1, 2, 4, 8, 16, 32, 64, 100),
)

NODE_ITEMS_TOTAL = Counter(
    "node_items_total",
    "Input items handled by node executions",
    ["node", "operation", "status"],
    namespace=NAMESPACE,
)


def _status(success: bool) -> str:
    return "success" if success else "error"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records latency and count for every request except ``/metrics``."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        labels = {
            "method": request.method,
            "endpoint": self._normalize_endpoint(request.url.path),
            "status_code": response.status_code,
        }
        HTTP_REQUEST_DURATION.labels(**labels).observe(time.perf_counter() - started)
        HTTP_REQUEST_TOTAL.labels(**labels).inc()
        return response

    @staticmethod
    def _normalize_endpoint(path: str) -> str:
        """Fold node names and health checks into fixed labels."""
        if path.startswith("/health"):
            return "/health"
        if path.startswith("/api/v1/nodes/") and path.endswith("/execute"):
            return "/api/v1/nodes/execute"
        return path


def get_metrics() -> bytes:
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Record one embedding provider call.

    Args:
        model: Embedding model id.
        duration: Wall time of the call in seconds.
        batch_size: Number of texts sent.
        success: Whether the provider answered with usable vectors.
    """
    EMBEDDING_REQUEST_DURATION.labels(model=model, status=_status(success)).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=_status(success)).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_vectorstore_operation(operation: str, duration: float, success: bool = True) -> None:
    VECTORSTORE_OPERATION_DURATION.labels(
        operation=operation, status=_status(success)
    ).observe(duration)


def track_vectors_inserted(index: str, count: int) -> None:
    VECTORS_INSERTED_TOTAL.labels(index=index).inc(count)


def track_search_request(results_returned: int) -> None:
    SEARCH_RESULTS_RETURNED.observe(results_returned)


def track_node_item(node: str, operation: str, success: bool = True) -> None:
    """Count one input item by node, operation and outcome."""
    NODE_ITEMS_TOTAL.labels(node=node, operation=operation, status=_status(success)).inc()
