"""Forgejo MCP Server.

A local MCP server that lets an agent work with issues, pull requests and
comments on a Forgejo or Gitea instance. Every tool addresses its target
either by an explicit ``repository`` ("owner/repo") or by a local
``directory`` inside a git clone, whose remote is used to work out the
repository.

Tools take simple parameters and return JSON strings shaped as
``{"ok": true, "data": ...}`` or ``{"ok": false, "error": {...}}``.
"""

import sys
from pathlib import Path
from typing import Optional

# Add parent directory to Python path to support running directly
# This allows: python forgejo_mcp/server.py from the project root
if __name__ == "__main__":
    parent_dir = str(Path(__file__).parent.parent)
    if parent_dir not in sys.path:
        sys.path.insert(0, parent_dir)

from mcp.server.fastmcp import FastMCP

from forgejo_mcp.config import (
    DEFAULT_BRANCH,
    DEFAULT_LIMIT,
    ErrorCode,
    FORGEJO_AUTH_TOKEN,
    FORGEJO_REMOTE_URL,
    MAX_BODY_LENGTH,
    MAX_BRANCH_LENGTH,
    MAX_LIMIT,
    MAX_TITLE_LENGTH
)
from forgejo_mcp.utils.logging_config import setup_logging, get_logger
from forgejo_mcp.forgejo.client import ForgejoClient
from forgejo_mcp.git_ops.branch import get_current_branch
from forgejo_mcp.git_ops.resolver import resolve_repository, resolve_repository_details
from forgejo_mcp.utils.errors import MCPError, ValidationError, format_success_json, format_error_json
from forgejo_mcp.utils.redact import redact_token

logger = get_logger(__name__)

# Initialize MCP server
mcp = FastMCP("forgejo-mcp")

ISSUE_STATES = ("open", "closed", "all")
EDIT_STATES = ("open", "closed")


# ============================================================================
# Argument validation
# ============================================================================

def _validate_state(state: str, allowed=ISSUE_STATES) -> str:
    if state not in allowed:
        raise ValidationError(
            f"state must be one of {', '.join(allowed)}, got {state!r}",
            field="state"
        )
    return state


def _validate_paging(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}", field="limit")
    if offset < 0:
        raise ValidationError(f"offset must be 0 or greater, got {offset}", field="offset")


def _validate_number(value: int, field: str) -> None:
    if value < 1:
        raise ValidationError(f"{field} must be greater than 0", field=field)


def _validate_title(title: Optional[str], required: bool = True) -> None:
    if title is None and not required:
        return
    if not title or not title.strip():
        raise ValidationError("title is required and cannot be empty", field="title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"title must be at most {MAX_TITLE_LENGTH} characters", field="title")


def _validate_body(body: Optional[str], field: str = "body") -> None:
    if body and len(body) > MAX_BODY_LENGTH:
        raise ValidationError(f"{field} must be at most {MAX_BODY_LENGTH} characters", field=field)


def _validate_comment(comment: str, field: str = "comment") -> None:
    if not comment or not comment.strip():
        raise ValidationError(f"{field} is required and cannot be blank", field=field)
    _validate_body(comment, field)


def _validate_branch(branch: Optional[str], field: str) -> None:
    if branch is None:
        return
    if not branch.strip() or len(branch) > MAX_BRANCH_LENGTH:
        raise ValidationError(
            f"{field} must be a non-empty branch name of at most {MAX_BRANCH_LENGTH} characters",
            field=field
        )


def _require_change(**changes) -> None:
    if not any(value for value in changes.values()):
        raise ValidationError(
            f"at least one of {', '.join(changes)} must be provided",
            field=", ".join(changes)
        )


def _unexpected(action: str, e: Exception) -> str:
    logger.error(f"Unexpected error while trying to {action}: {e}", exc_info=True)
    return format_error_json(
        code=ErrorCode.UNEXPECTED_ERROR,
        message=f"Failed to {action}",
        context={"error": redact_token(str(e))}
    )


# ============================================================================
# MCP Tools - Repository
# ============================================================================

@mcp.tool(
    name="repository_resolve",
    annotations={
        "title": "Resolve Repository",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False
    }
)
async def repository_resolve(
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Work out which Forgejo repository a call would target.

    Use this to check what a local directory resolves to before running
    other tools against it. No request is made to the Forgejo instance.

    Args:
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the repository and, for directories, the remote used
    """
    try:
        logger.info(f"repository_resolve called: repository={repository}, directory={directory}")
        resolution = resolve_repository_details(repository, directory)
        data = resolution.to_dict()
        if "remote_url" in data:
            data["remote_url"] = redact_token(data["remote_url"])
        data["owner"] = resolution.owner
        data["name"] = resolution.name
        return format_success_json(data)

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("resolve repository", e)


# ============================================================================
# MCP Tools - Issues
# ============================================================================

@mcp.tool(
    name="issue_list",
    annotations={
        "title": "List Issues",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def issue_list(
    repository: Optional[str] = None,
    directory: Optional[str] = None,
    state: str = "open",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0
) -> str:
    """List issues in a Forgejo repository.

    Pull requests are excluded.

    Args:
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)
        state: 'open', 'closed', or 'all' (default: 'open')
        limit: Maximum issues to return (1-100, default: 15)
        offset: Number of issues to skip (default: 0)

    Returns:
        JSON string with the issues found
    """
    try:
        logger.info(f"issue_list called: repository={repository}, directory={directory}, state={state}")
        _validate_state(state)
        _validate_paging(limit, offset)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        issues = await client.list_issues(repo, state=state, limit=limit, offset=offset)

        return format_success_json({
            "repository": repo,
            "issues": [issue.to_dict() for issue in issues],
            "count": len(issues),
            "limit": limit,
            "offset": offset
        })

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("list issues", e)


@mcp.tool(
    name="issue_create",
    annotations={
        "title": "Create Issue",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def issue_create(
    title: str,
    body: str = "",
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Create an issue in a Forgejo repository.

    Args:
        title: Issue title (1-255 characters)
        body: Issue description in markdown
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the created issue
    """
    try:
        logger.info(f"issue_create called: repository={repository}, directory={directory}, title={title!r}")
        _validate_title(title)
        _validate_body(body)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        issue = await client.create_issue(repo, title=title, body=body)

        logger.info(f"Created issue #{issue.number} in {repo}")
        return format_success_json(issue.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("create issue", e)


@mcp.tool(
    name="issue_edit",
    annotations={
        "title": "Edit Issue",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def issue_edit(
    issue_number: int,
    title: Optional[str] = None,
    body: Optional[str] = None,
    state: Optional[str] = None,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Edit the title, body or state of an issue.

    Only the fields provided are changed; at least one must be given.

    Args:
        issue_number: Issue number
        title: New title
        body: New description
        state: 'open' or 'closed'
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the updated issue
    """
    try:
        logger.info(f"issue_edit called: repository={repository}, directory={directory}, issue_number={issue_number}")
        _validate_number(issue_number, "issue_number")
        _require_change(title=title, body=body, state=state)
        _validate_title(title, required=False)
        _validate_body(body)
        if state:
            _validate_state(state, EDIT_STATES)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        issue = await client.edit_issue(repo, issue_number, title=title, body=body, state=state)

        return format_success_json(issue.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("edit issue", e)


# ============================================================================
# MCP Tools - Issue comments
# ============================================================================

@mcp.tool(
    name="issue_comment_list",
    annotations={
        "title": "List Issue Comments",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def issue_comment_list(
    issue_number: int,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """List comments on an issue.

    Args:
        issue_number: Issue number
        limit: Maximum comments to return (1-100, default: 15)
        offset: Number of comments to skip (default: 0)
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the comments and the total comment count
    """
    return await _list_comments("issue_number", issue_number, limit, offset, repository, directory)


@mcp.tool(
    name="issue_comment_create",
    annotations={
        "title": "Comment on Issue",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def issue_comment_create(
    issue_number: int,
    comment: str,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Add a comment to an issue.

    Args:
        issue_number: Issue number
        comment: Comment text in markdown
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the created comment
    """
    return await _create_comment("issue_number", issue_number, comment, repository, directory)


@mcp.tool(
    name="issue_comment_edit",
    annotations={
        "title": "Edit Issue Comment",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def issue_comment_edit(
    issue_number: int,
    comment_id: int,
    new_content: str,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Replace the text of a comment on an issue.

    Args:
        issue_number: Issue number the comment belongs to
        comment_id: Comment ID (from issue_comment_list)
        new_content: Replacement comment text
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the updated comment
    """
    return await _edit_comment("issue_number", issue_number, comment_id, new_content, repository, directory)


# ============================================================================
# MCP Tools - Pull requests
# ============================================================================

@mcp.tool(
    name="pr_list",
    annotations={
        "title": "List Pull Requests",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def pr_list(
    repository: Optional[str] = None,
    directory: Optional[str] = None,
    state: str = "open",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0
) -> str:
    """List pull requests in a Forgejo repository.

    Args:
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)
        state: 'open', 'closed', or 'all' (default: 'open')
        limit: Maximum pull requests to return (1-100, default: 15)
        offset: Number of pull requests to skip (default: 0)

    Returns:
        JSON string with the pull requests found
    """
    try:
        logger.info(f"pr_list called: repository={repository}, directory={directory}, state={state}")
        _validate_state(state)
        _validate_paging(limit, offset)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        pulls = await client.list_pull_requests(repo, state=state, limit=limit, offset=offset)

        return format_success_json({
            "repository": repo,
            "pull_requests": [pr.to_dict() for pr in pulls],
            "count": len(pulls),
            "limit": limit,
            "offset": offset
        })

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("list pull requests", e)


@mcp.tool(
    name="pr_fetch",
    annotations={
        "title": "Get Pull Request Details",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def pr_fetch(
    pull_request_number: int,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Get detailed information about a pull request.

    Includes branches, merge status, labels, assignees and diff/patch URLs.

    Args:
        pull_request_number: Pull request number
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with pull request details
    """
    try:
        logger.info(f"pr_fetch called: repository={repository}, directory={directory}, number={pull_request_number}")
        _validate_number(pull_request_number, "pull_request_number")
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        pr = await client.get_pull_request(repo, pull_request_number)

        return format_success_json(pr.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("fetch pull request", e)


@mcp.tool(
    name="pr_create",
    annotations={
        "title": "Create Pull Request",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def pr_create(
    title: str,
    body: str = "",
    head: Optional[str] = None,
    base: str = DEFAULT_BRANCH,
    draft: bool = False,
    assignee: Optional[str] = None,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Open a pull request on a Forgejo repository.

    When ``head`` is omitted and ``directory`` is given, the branch currently
    checked out in that directory is used.

    Args:
        title: Pull request title (1-255 characters)
        body: Pull request description in markdown
        head: Branch with the changes
        base: Branch to merge into (default: 'main')
        draft: Open as work in progress (title gets a 'WIP: ' prefix)
        assignee: Username to assign
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the created pull request
    """
    try:
        logger.info(f"pr_create called: repository={repository}, directory={directory}, head={head}, base={base}")
        _validate_title(title)
        _validate_body(body)
        _validate_branch(head, "head")
        _validate_branch(base, "base")
        repo = resolve_repository(repository, directory)

        if not head:
            if not directory:
                raise ValidationError(
                    "head is required when directory is not provided",
                    field="head"
                )
            head = await get_current_branch(directory)
            logger.debug(f"Detected head branch {head!r} in {directory}")

        client = ForgejoClient()
        pr = await client.create_pull_request(
            repo,
            head=head,
            base=base,
            title=title,
            body=body,
            draft=draft,
            assignee=assignee
        )

        logger.info(f"Created pull request #{pr.number} in {repo}: {head} -> {base}")
        return format_success_json(pr.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("create pull request", e)


@mcp.tool(
    name="pr_edit",
    annotations={
        "title": "Edit Pull Request",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def pr_edit(
    pull_request_number: int,
    title: Optional[str] = None,
    body: Optional[str] = None,
    state: Optional[str] = None,
    base_branch: Optional[str] = None,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Edit the title, body, state or base branch of a pull request.

    Only the fields provided are changed; at least one must be given.

    Args:
        pull_request_number: Pull request number
        title: New title
        body: New description
        state: 'open' or 'closed'
        base_branch: New branch to merge into
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the updated pull request
    """
    try:
        logger.info(f"pr_edit called: repository={repository}, directory={directory}, number={pull_request_number}")
        _validate_number(pull_request_number, "pull_request_number")
        _require_change(title=title, body=body, state=state, base_branch=base_branch)
        _validate_title(title, required=False)
        _validate_body(body)
        _validate_branch(base_branch, "base_branch")
        if state:
            _validate_state(state, EDIT_STATES)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        pr = await client.edit_pull_request(
            repo,
            pull_request_number,
            title=title,
            body=body,
            state=state,
            base=base_branch
        )

        return format_success_json(pr.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("edit pull request", e)


# ============================================================================
# MCP Tools - Pull request comments
# ============================================================================

@mcp.tool(
    name="pr_comment_list",
    annotations={
        "title": "List Pull Request Comments",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def pr_comment_list(
    pull_request_number: int,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """List the conversation comments on a pull request.

    Args:
        pull_request_number: Pull request number
        limit: Maximum comments to return (1-100, default: 15)
        offset: Number of comments to skip (default: 0)
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the comments and the total comment count
    """
    return await _list_comments("pull_request_number", pull_request_number, limit, offset, repository, directory)


@mcp.tool(
    name="pr_comment_create",
    annotations={
        "title": "Comment on Pull Request",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": True
    }
)
async def pr_comment_create(
    pull_request_number: int,
    comment: str,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Add a comment to a pull request.

    Args:
        pull_request_number: Pull request number
        comment: Comment text in markdown
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the created comment
    """
    return await _create_comment("pull_request_number", pull_request_number, comment, repository, directory)


@mcp.tool(
    name="pr_comment_edit",
    annotations={
        "title": "Edit Pull Request Comment",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True
    }
)
async def pr_comment_edit(
    pull_request_number: int,
    comment_id: int,
    new_content: str,
    repository: Optional[str] = None,
    directory: Optional[str] = None
) -> str:
    """Replace the text of a comment on a pull request.

    Args:
        pull_request_number: Pull request number the comment belongs to
        comment_id: Comment ID (from pr_comment_list)
        new_content: Replacement comment text
        repository: Repository in 'owner/repo' format
        directory: Local git clone whose remote names the repository (instead of repository)

    Returns:
        JSON string with the updated comment
    """
    return await _edit_comment(
        "pull_request_number", pull_request_number, comment_id, new_content, repository, directory
    )


# ============================================================================
# Shared comment handlers (issues and pull requests share an index)
# ============================================================================

async def _list_comments(
    field: str,
    number: int,
    limit: int,
    offset: int,
    repository: Optional[str],
    directory: Optional[str]
) -> str:
    try:
        logger.info(f"Listing comments: repository={repository}, directory={directory}, {field}={number}")
        _validate_number(number, field)
        _validate_paging(limit, offset)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        page = await client.list_comments(repo, number, limit=limit, offset=offset)

        logger.info(f"Fetched {len(page.comments)} of {page.total} comments for {repo}#{number}")
        return format_success_json(page.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("list comments", e)


async def _create_comment(
    field: str,
    number: int,
    comment: str,
    repository: Optional[str],
    directory: Optional[str]
) -> str:
    try:
        logger.info(f"Creating comment: repository={repository}, directory={directory}, {field}={number}")
        _validate_number(number, field)
        _validate_comment(comment)
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        created = await client.create_comment(repo, number, comment)

        return format_success_json(created.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("create comment", e)


async def _edit_comment(
    field: str,
    number: int,
    comment_id: int,
    new_content: str,
    repository: Optional[str],
    directory: Optional[str]
) -> str:
    try:
        logger.info(f"Editing comment {comment_id}: repository={repository}, directory={directory}, {field}={number}")
        _validate_number(number, field)
        _validate_number(comment_id, "comment_id")
        _validate_comment(new_content, "new_content")
        repo = resolve_repository(repository, directory)

        client = ForgejoClient()
        updated = await client.edit_comment(repo, comment_id, new_content)

        return format_success_json(updated.to_dict())

    except MCPError as e:
        return e.to_json()
    except Exception as e:
        return _unexpected("edit comment", e)


# ============================================================================
# Server Entry Point
# ============================================================================

def main() -> None:
    """Configure logging and serve over stdio."""
    setup_logging()

    logger.info("Forgejo MCP Server initialized")
    if not FORGEJO_REMOTE_URL:
        logger.warning("FORGEJO_REMOTE_URL is not set - only repository_resolve will work")
    if not FORGEJO_AUTH_TOKEN:
        logger.warning("No FORGEJO_AUTH_TOKEN set - write operations and private repositories will fail")

    mcp.run()


if __name__ == "__main__":
    main()
