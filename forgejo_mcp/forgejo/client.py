"""Forgejo/Gitea REST API client for making HTTP requests."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import (
    DRAFT_TITLE_PREFIX,
    ErrorCode,
    FORGEJO_AUTH_TOKEN,
    FORGEJO_REMOTE_URL,
    REQUEST_TIMEOUT,
    get_api_base,
    get_forgejo_headers
)
from ..utils.errors import ConfigError, ForgejoApiError, MCPError
from ..utils.redact import redact_dict, safe_error_message
from .models import Comment, CommentList, Issue, PullRequest


logger = logging.getLogger(__name__)


class ForgejoClient:
    """Client for interacting with the Forgejo/Gitea v1 API.

    Repositories are addressed by the resolved 'owner/repo' string. Pull
    requests share the issue index space, so PR comments go through the
    issue comment endpoints.
    """

    def __init__(
        self,
        remote_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT
    ):
        """
        Initialize the Forgejo API client.

        Args:
            remote_url: Instance URL (defaults to FORGEJO_REMOTE_URL)
            token: Access token (defaults to FORGEJO_AUTH_TOKEN)
            timeout: Request timeout in seconds

        Raises:
            ConfigError: no instance URL configured
        """
        remote_url = remote_url or FORGEJO_REMOTE_URL
        if not remote_url:
            raise ConfigError(
                "Forgejo instance URL is not configured. Set FORGEJO_REMOTE_URL.",
                setting="FORGEJO_REMOTE_URL"
            )
        self.base_url = get_api_base(remote_url)
        self.token = token or FORGEJO_AUTH_TOKEN
        self.timeout = timeout
        logger.debug(f"ForgejoClient initialized for {self.base_url} with {timeout}s timeout")

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
        not_found: Optional[str] = None
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ForgejoApiError: non-success HTTP status
            MCPError: network failure
        """
        url = f"{self.base_url}{path}"
        headers = get_forgejo_headers(self.token)
        logger.debug(f"{method} {url} params={params} headers={redact_dict(headers)}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=headers
                )

                if response.status_code == 404:
                    raise ForgejoApiError(
                        not_found or f"Resource not found: {path}",
                        status_code=404,
                        details={"path": path},
                        code=ErrorCode.FORGEJO_NOT_FOUND
                    )

                if response.status_code in (401, 403):
                    raise ForgejoApiError(
                        f"Access denied: {self._error_message(response)}",
                        status_code=response.status_code,
                        details={
                            "path": path,
                            "hint": "Check that FORGEJO_AUTH_TOKEN is set and has access to this repository"
                        },
                        code=ErrorCode.FORGEJO_FORBIDDEN
                    )

                if response.status_code == 422:
                    raise ForgejoApiError(
                        f"Request rejected: {self._error_message(response)}",
                        status_code=422,
                        details={"path": path},
                        code=ErrorCode.FORGEJO_VALIDATION_FAILED
                    )

                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during {method} {path}: {e.response.status_code}")
            raise ForgejoApiError(
                safe_error_message(e, "Forgejo API request failed"),
                status_code=e.response.status_code
            )
        except httpx.RequestError as e:
            logger.error(f"Network error: {safe_error_message(e, 'Network error')}")
            raise MCPError(
                ErrorCode.HTTP_ERROR,
                safe_error_message(e, "Network error while contacting Forgejo"),
                {"path": path}
            )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return f"HTTP {response.status_code}"

    @staticmethod
    def _page_params(limit: int, offset: int) -> Dict[str, int]:
        # Gitea pages are 1-based
        return {"limit": limit, "page": offset // limit + 1}

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def list_issues(self, repo: str, state: str = "open", limit: int = 15, offset: int = 0) -> List[Issue]:
        """
        List issues (pull requests excluded) in a repository.

        Args:
            repo: Repository in "owner/repo" format
            state: "open", "closed" or "all"
            limit: Page size
            offset: Number of issues to skip

        Returns:
            List of Issue objects
        """
        params = {"state": state, "type": "issues", **self._page_params(limit, offset)}
        data = await self._request(
            "GET", f"/repos/{repo}/issues", params=params,
            not_found=f"Repository {repo} not found"
        )
        logger.info(f"Found {len(data)} issues in {repo}")
        return [Issue(item) for item in data]

    async def create_issue(self, repo: str, title: str, body: str = "") -> Issue:
        """Create an issue and return it."""
        data = await self._request(
            "POST", f"/repos/{repo}/issues",
            payload={"title": title, "body": body},
            not_found=f"Repository {repo} not found"
        )
        return Issue(data)

    async def edit_issue(
        self,
        repo: str,
        number: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        state: Optional[str] = None
    ) -> Issue:
        """Update the given fields of an issue and return it."""
        payload = {key: value for key, value in (("title", title), ("body", body), ("state", state)) if value}
        data = await self._request(
            "PATCH", f"/repos/{repo}/issues/{number}",
            payload=payload,
            not_found=f"Issue #{number} not found in repository {repo}"
        )
        return Issue(data)

    # ------------------------------------------------------------------
    # Comments (issues and pull requests)
    # ------------------------------------------------------------------

    async def list_comments(self, repo: str, number: int, limit: int = 15, offset: int = 0) -> CommentList:
        """
        List comments on an issue or pull request.

        The comments endpoint is not paginated, so the full list is fetched
        and sliced; ``total`` is the real comment count.
        """
        data = await self._request(
            "GET", f"/repos/{repo}/issues/{number}/comments",
            not_found=f"Issue or pull request #{number} not found in repository {repo}"
        )
        comments = [Comment(item) for item in data]
        return CommentList(
            comments=comments[offset:offset + limit],
            total=len(comments),
            limit=limit,
            offset=offset
        )

    async def create_comment(self, repo: str, number: int, body: str) -> Comment:
        """Add a comment to an issue or pull request."""
        data = await self._request(
            "POST", f"/repos/{repo}/issues/{number}/comments",
            payload={"body": body},
            not_found=f"Issue or pull request #{number} not found in repository {repo}"
        )
        return Comment(data)

    async def edit_comment(self, repo: str, comment_id: int, body: str) -> Comment:
        """Replace the body of an existing comment."""
        data = await self._request(
            "PATCH", f"/repos/{repo}/issues/comments/{comment_id}",
            payload={"body": body},
            not_found=f"Comment {comment_id} not found in repository {repo}"
        )
        return Comment(data)

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def list_pull_requests(
        self,
        repo: str,
        state: str = "open",
        limit: int = 15,
        offset: int = 0
    ) -> List[PullRequest]:
        """List pull requests in a repository."""
        params = {"state": state, **self._page_params(limit, offset)}
        data = await self._request(
            "GET", f"/repos/{repo}/pulls", params=params,
            not_found=f"Repository {repo} not found"
        )
        logger.info(f"Found {len(data)} pull requests in {repo}")
        return [PullRequest(item) for item in data]

    async def get_pull_request(self, repo: str, number: int) -> PullRequest:
        """Fetch a single pull request with its full metadata."""
        data = await self._request(
            "GET", f"/repos/{repo}/pulls/{number}",
            not_found=f"Pull request #{number} not found in repository {repo}"
        )
        return PullRequest(data)

    async def create_pull_request(
        self,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str = "",
        draft: bool = False,
        assignee: Optional[str] = None
    ) -> PullRequest:
        """
        Open a pull request from head into base.

        Drafts are expressed the way Forgejo recognizes them, with a
        ``WIP:`` title prefix.
        """
        if draft and not title.startswith(DRAFT_TITLE_PREFIX):
            title = f"{DRAFT_TITLE_PREFIX}{title}"

        payload = {"head": head, "base": base, "title": title, "body": body}
        if assignee:
            payload["assignee"] = assignee

        data = await self._request(
            "POST", f"/repos/{repo}/pulls",
            payload=payload,
            not_found=f"Repository {repo} not found"
        )
        return PullRequest(data)

    async def edit_pull_request(
        self,
        repo: str,
        number: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        state: Optional[str] = None,
        base: Optional[str] = None
    ) -> PullRequest:
        """Update the given fields of a pull request and return it."""
        changes = (("title", title), ("body", body), ("state", state), ("base", base))
        payload = {key: value for key, value in changes if value}
        data = await self._request(
            "PATCH", f"/repos/{repo}/pulls/{number}",
            payload=payload,
            not_found=f"Pull request #{number} not found in repository {repo}"
        )
        return PullRequest(data)
