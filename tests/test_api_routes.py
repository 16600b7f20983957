"""Tests for node runner API routes."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from s3vector_nodes.api.app import _get_status_code, app
from s3vector_nodes.api.routes import ExecuteRequest, get_service_factory
from s3vector_nodes.exceptions import ErrorCode
from conftest import FakeServiceFactory


@pytest.fixture
async def api_client(
    fake_services: FakeServiceFactory,
) -> AsyncGenerator[AsyncClient, None]:
    """Client whose node executions use in-memory fakes."""
    app.dependency_overrides[get_service_factory] = lambda: fake_services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestExecuteRequest:
    """Tests for ExecuteRequest model."""

    def test_defaults(self) -> None:
        """A bare request runs one empty item without continue-on-fail."""
        req = ExecuteRequest()
        assert req.items == [{}]
        assert req.parameters == {}
        assert req.item_parameters == []
        assert req.continue_on_fail is False

    def test_camel_case_aliases(self) -> None:
        req = ExecuteRequest.model_validate(
            {"continueOnFail": True, "itemParameters": [{"searchQuery": "a"}]}
        )
        assert req.continue_on_fail is True
        assert req.item_parameters == [{"searchQuery": "a"}]


class TestStatusCodes:
    """Tests for error code to HTTP status mapping."""

    def test_mapping(self) -> None:
        assert _get_status_code(ErrorCode.CONFIGURATION_ERROR) == 400
        assert _get_status_code(ErrorCode.PROVIDER_AUTH_ERROR) == 403
        assert _get_status_code(ErrorCode.UNKNOWN_NODE) == 404
        assert _get_status_code(ErrorCode.NODE_OPERATION_ERROR) == 422
        assert _get_status_code(ErrorCode.BATCH_INSERT_ERROR) == 502
        assert _get_status_code(ErrorCode.INTERNAL_ERROR) == 500


class TestListNodes:
    """Tests for GET /api/v1/nodes."""

    async def test_lists_registered_nodes(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/nodes")

        assert response.status_code == 200
        names = {node["name"] for node in response.json()}
        assert names == {"vectorStoreAwsS3", "s3Vector"}


class TestExecuteNode:
    """Tests for POST /api/v1/nodes/{name}/execute."""

    async def test_insert_then_search(self, api_client: AsyncClient) -> None:
        """Inserted text can be found again through the API."""
        parameters = {"bucketName": "docs", "indexName": "main"}

        insert = await api_client.post(
            "/api/v1/nodes/vectorStoreAwsS3/execute",
            json={
                "items": [{"text": "The quick brown fox", "source": "a.txt"}],
                "parameters": {**parameters, "operation": "insert"},
            },
        )
        assert insert.status_code == 200
        record = insert.json()["data"][0]
        assert record["success"] is True
        assert record["chunksCreated"] == 1

        search = await api_client.post(
            "/api/v1/nodes/vectorStoreAwsS3/execute",
            json={
                "parameters": {
                    **parameters,
                    "operation": "search",
                    "searchQuery": "fox",
                },
            },
        )
        assert search.status_code == 200
        result = search.json()["data"][0]
        assert result["resultsCount"] == 1
        assert result["results"][0]["content"] == "The quick brown fox"

    async def test_unknown_node_returns_404(self, api_client: AsyncClient) -> None:
        response = await api_client.post("/api/v1/nodes/nope/execute", json={})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.UNKNOWN_NODE.value

    async def test_unknown_operation_returns_400(self, api_client: AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/nodes/s3Vector/execute",
            json={"parameters": {"operation": "upsert"}},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.UNKNOWN_OPERATION.value

    async def test_abort_returns_structured_error(self, api_client: AsyncClient) -> None:
        """A failing item without continueOnFail aborts with its index."""
        response = await api_client.post(
            "/api/v1/nodes/vectorStoreAwsS3/execute",
            json={
                "items": [{"text": "ok"}, {"body": "no text field"}],
                "parameters": {"bucketName": "docs", "indexName": "main"},
            },
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["details"]["item_index"] == 1
        assert "No valid text found in field 'text'" in error["message"]

    async def test_continue_on_fail_reports_each_item(self, api_client: AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/nodes/vectorStoreAwsS3/execute",
            json={
                "items": [{"text": "ok"}, {"body": "no text field"}],
                "parameters": {"bucketName": "docs", "indexName": "main"},
                "continueOnFail": True,
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [r["success"] for r in data] == [True, False]
        assert data[1] == {
            "success": False,
            "error": "No valid text found in field 'text'",
            "operation": "insert",
        }
