"""Tests for the Forgejo API client and its error mapping."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from forgejo_mcp.forgejo.client import ForgejoClient
from forgejo_mcp.utils.errors import ConfigError, ForgejoApiError, MCPError


TOKEN = "0123456789abcdef0123456789abcdef01234567"


def mock_http(response):
    """Patch target for httpx.AsyncClient returning the given response."""
    mock_client_instance = MagicMock()
    mock_client_instance.__aenter__.return_value = mock_client_instance
    mock_client_instance.__aexit__.return_value = None
    mock_client_instance.request = AsyncMock(return_value=response)
    return mock_client_instance


def make_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    response.json = MagicMock(return_value=data if data is not None else {})
    return response


@pytest.fixture
def client():
    return ForgejoClient(remote_url="https://forgejo.example.com", token=TOKEN)


def test_requires_instance_url():
    """Without FORGEJO_REMOTE_URL no client can be built."""
    with patch('forgejo_mcp.forgejo.client.FORGEJO_REMOTE_URL', None):
        with pytest.raises(ConfigError) as exc_info:
            ForgejoClient()

    assert exc_info.value.code == "CONFIG_ERROR"
    assert exc_info.value.details["setting"] == "FORGEJO_REMOTE_URL"


def test_api_base_url():
    assert ForgejoClient(remote_url="https://forgejo.example.com/").base_url == "https://forgejo.example.com/api/v1"
    assert ForgejoClient(remote_url="https://forgejo.example.com/api/v1").base_url == "https://forgejo.example.com/api/v1"


class TestRequests:
    """Endpoints, parameters and payloads sent to the API."""

    @pytest.mark.asyncio
    async def test_list_issues_paginates(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(make_response(200, [{"number": 7, "title": "Crash", "user": {"login": "ana"}}]))
            mock_async_client.return_value = http

            issues = await client.list_issues("acme/widgets", state="closed", limit=10, offset=20)

            method, url = http.request.call_args.args
            kwargs = http.request.call_args.kwargs
            assert method == "GET"
            assert url == "https://forgejo.example.com/api/v1/repos/acme/widgets/issues"
            assert kwargs["params"] == {"state": "closed", "type": "issues", "limit": 10, "page": 3}
            assert kwargs["headers"]["Authorization"] == f"token {TOKEN}"
            assert issues[0].number == 7
            assert issues[0].user == "ana"

    @pytest.mark.asyncio
    async def test_edit_issue_sends_only_changes(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(make_response(201, {"number": 3, "state": "closed"}))
            mock_async_client.return_value = http

            issue = await client.edit_issue("acme/widgets", 3, state="closed")

            assert http.request.call_args.args[0] == "PATCH"
            assert http.request.call_args.kwargs["json"] == {"state": "closed"}
            assert issue.state == "closed"

    @pytest.mark.asyncio
    async def test_list_comments_slices_full_list(self, client):
        comments = [{"id": i, "body": f"comment {i}"} for i in range(1, 6)]
        with patch('httpx.AsyncClient') as mock_async_client:
            mock_async_client.return_value = mock_http(make_response(200, comments))

            page = await client.list_comments("acme/widgets", 4, limit=2, offset=1)

            assert [comment.id for comment in page.comments] == [2, 3]
            assert page.total == 5
            assert page.to_dict()["offset"] == 1

    @pytest.mark.asyncio
    async def test_edit_comment_endpoint(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(make_response(200, {"id": 99, "body": "fixed"}))
            mock_async_client.return_value = http

            comment = await client.edit_comment("acme/widgets", 99, "fixed")

            assert http.request.call_args.args[1].endswith("/repos/acme/widgets/issues/comments/99")
            assert comment.body == "fixed"

    @pytest.mark.asyncio
    async def test_create_draft_pull_request(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(make_response(201, {"number": 12, "title": "WIP: Add export"}))
            mock_async_client.return_value = http

            pr = await client.create_pull_request(
                "acme/widgets", head="feature/export", base="main",
                title="Add export", draft=True, assignee="ana"
            )

            payload = http.request.call_args.kwargs["json"]
            assert payload["title"] == "WIP: Add export"
            assert payload["head"] == "feature/export"
            assert payload["assignee"] == "ana"
            assert pr.number == 12

    @pytest.mark.asyncio
    async def test_draft_prefix_not_doubled(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(make_response(201, {"number": 1}))
            mock_async_client.return_value = http

            await client.create_pull_request("acme/widgets", "f", "main", "WIP: Already", draft=True)

            assert http.request.call_args.kwargs["json"]["title"] == "WIP: Already"

    @pytest.mark.asyncio
    async def test_get_pull_request_details(self, client):
        data = {
            "number": 5,
            "title": "Refactor",
            "head": {"ref": "refactor", "sha": "abc"},
            "base": {"ref": "main", "sha": "def"},
            "merged_by": None,
            "milestone": {"title": "v1.2"},
            "assignees": [{"login": "ana"}, {"login": "bo"}]
        }
        with patch('httpx.AsyncClient') as mock_async_client:
            mock_async_client.return_value = mock_http(make_response(200, data))

            pr = await client.get_pull_request("acme/widgets", 5)

            result = pr.to_dict()
            assert result["head"] == {"ref": "refactor", "sha": "abc"}
            assert result["milestone"] == "v1.2"
            assert result["assignees"] == ["ana", "bo"]
            assert result["merged_by"] is None


class TestErrorMapping:
    """HTTP failures become structured errors."""

    @pytest.mark.asyncio
    async def test_404_not_found(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            mock_async_client.return_value = mock_http(make_response(404, {"message": "not found"}))

            with pytest.raises(ForgejoApiError) as exc_info:
                await client.get_pull_request("acme/widgets", 404)

            error = exc_info.value
            assert error.code == "FORGEJO_NOT_FOUND"
            assert "#404" in error.message
            assert error.details["status_code"] == 404

    @pytest.mark.asyncio
    async def test_403_forbidden(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            mock_async_client.return_value = mock_http(make_response(403, {"message": "token does not have scope"}))

            with pytest.raises(ForgejoApiError) as exc_info:
                await client.create_issue("acme/widgets", "Title")

            error = exc_info.value
            assert error.code == "FORGEJO_FORBIDDEN"
            assert "FORGEJO_AUTH_TOKEN" in error.details["hint"]

    @pytest.mark.asyncio
    async def test_422_validation_failed(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            mock_async_client.return_value = mock_http(make_response(422, {"message": "pull request already exists"}))

            with pytest.raises(ForgejoApiError) as exc_info:
                await client.create_pull_request("acme/widgets", "f", "main", "Title")

            assert exc_info.value.code == "FORGEJO_VALIDATION_FAILED"
            assert "already exists" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_500_server_error(self, client):
        request = httpx.Request("GET", "https://forgejo.example.com/api/v1/repos/acme/widgets/pulls")
        server_error = httpx.Response(500, request=request)
        with patch('httpx.AsyncClient') as mock_async_client:
            response = make_response(500)
            response.raise_for_status = MagicMock(
                side_effect=httpx.HTTPStatusError("Server error", request=request, response=server_error)
            )
            mock_async_client.return_value = mock_http(response)

            with pytest.raises(ForgejoApiError) as exc_info:
                await client.list_pull_requests("acme/widgets")

            assert exc_info.value.code == "FORGEJO_API_ERROR"
            assert exc_info.value.details["status_code"] == 500

    @pytest.mark.asyncio
    async def test_network_error(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(None)
            http.request = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
            mock_async_client.return_value = http

            with pytest.raises(MCPError) as exc_info:
                await client.list_issues("acme/widgets")

            assert exc_info.value.code == "HTTP_ERROR"

    @pytest.mark.asyncio
    async def test_no_token_leakage_in_errors(self, client):
        with patch('httpx.AsyncClient') as mock_async_client:
            http = mock_http(None)
            http.request = AsyncMock(side_effect=httpx.ConnectError(f"failed with token {TOKEN}"))
            mock_async_client.return_value = http

            with pytest.raises(MCPError) as exc_info:
                await client.list_issues("acme/widgets")

            assert TOKEN not in json.dumps(exc_info.value.to_dict())
