"""Structured error handling utilities."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..config import ErrorCode


# Configure module logger
logger = logging.getLogger(__name__)


class MCPError(Exception):
    """Base exception for MCP server errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)
        logger.error(f"MCPError ({code}): {message}", extra={"details": self.details})

    def to_dict(self) -> dict:
        """Convert error to standardized dictionary format."""
        return {
            "ok": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }

    def to_json(self) -> str:
        """Convert error to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


class ForgejoApiError(MCPError):
    """Exception for Forgejo/Gitea API errors."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        code: str = ErrorCode.FORGEJO_API_ERROR
    ):
        full_details = details or {}
        if status_code:
            full_details["status_code"] = status_code
        super().__init__(code, message, full_details)


class ValidationError(MCPError):
    """Exception for input validation errors."""
    def __init__(self, message: str, field: Optional[str] = None):
        details = {}
        if field:
            details["field"] = field
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class ConfigError(MCPError):
    """Exception for missing or invalid server configuration."""
    def __init__(self, message: str, setting: Optional[str] = None):
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(ErrorCode.CONFIG_ERROR, message, details)


class GitError(MCPError):
    """Exception for git operation errors."""
    def __init__(self, message: str, command: Optional[str] = None):
        details = {}
        if command:
            details["command"] = command
        super().__init__(ErrorCode.GIT_ERROR, message, details)


# ============================================================================
# Repository resolution errors
# ============================================================================

REPOSITORY_HINT = "Pass repository='owner/repo' explicitly instead of directory"


class RepositoryResolutionError(MCPError):
    """Base class for failures turning repository/directory input into owner/repo.

    ``details`` always names the failed ``check`` plus the offending input
    and a ``hint`` the calling agent can act on.
    """
    code = ErrorCode.UNEXPECTED_ERROR

    def __init__(self, message: str, check: str, hint: str = REPOSITORY_HINT, **context: Any):
        details = {key: value for key, value in context.items() if value is not None}
        details["check"] = check
        details["hint"] = hint
        super().__init__(self.code, message, details)


class PathNotFoundError(RepositoryResolutionError):
    code = ErrorCode.PATH_NOT_FOUND

    def __init__(self, directory: str):
        super().__init__(
            f"Directory does not exist: {directory!r}",
            check="exists",
            hint="Provide an existing directory inside a local git clone",
            directory=directory
        )


class PathNotADirectoryError(RepositoryResolutionError):
    code = ErrorCode.NOT_A_DIRECTORY

    def __init__(self, directory: str):
        super().__init__(
            f"Path exists but is not a directory: {directory}",
            check="is_dir",
            hint="Provide the repository's root directory, not a file inside it",
            directory=directory
        )


class NotAGitRepositoryError(RepositoryResolutionError):
    code = ErrorCode.NOT_A_GIT_REPOSITORY

    def __init__(self, directory: str, reason: str):
        super().__init__(
            f"Not a git repository: {directory} ({reason})",
            check="git_entry",
            hint="Provide the root directory of a git clone or worktree, or pass repository='owner/repo'",
            directory=directory,
            reason=reason
        )


class NoRemoteConfiguredError(RepositoryResolutionError):
    code = ErrorCode.NO_REMOTE_CONFIGURED

    def __init__(self, directory: str, config_path: Optional[str] = None):
        super().__init__(
            f"No git remotes with a URL are configured in {directory}",
            check="remotes",
            hint="Add a remote with 'git remote add origin <url>' or pass repository='owner/repo'",
            directory=directory,
            config_path=config_path
        )


class ConfigUnreadableError(RepositoryResolutionError):
    code = ErrorCode.CONFIG_UNREADABLE

    def __init__(self, config_path: str, reason: str):
        super().__init__(
            f"Cannot read git config {config_path}: {reason}",
            check="config",
            config_path=config_path,
            reason=reason
        )


class AmbiguousRemoteError(RepositoryResolutionError):
    code = ErrorCode.AMBIGUOUS_REMOTE

    def __init__(self, directory: str, remotes: List[str]):
        super().__init__(
            f"Multiple remotes ({', '.join(remotes)}) and none named 'origin' in {directory}",
            check="select_remote",
            hint="Pass repository='owner/repo' explicitly to choose between the remotes",
            directory=directory,
            remotes=remotes
        )


class UnparsableRemoteURLError(RepositoryResolutionError):
    code = ErrorCode.UNPARSABLE_REMOTE_URL

    def __init__(self, url: str, reason: str = "unrecognized remote URL format"):
        super().__init__(
            f"Failed to parse remote URL {url!r}: {reason}",
            check="url_format",
            url=url,
            reason=reason
        )


class UnsupportedRepositoryPathError(RepositoryResolutionError):
    code = ErrorCode.UNSUPPORTED_REPOSITORY_PATH

    def __init__(self, url: str, path: str):
        super().__init__(
            f"Remote URL path {path!r} is not of the form 'owner/repo'",
            check="path_segments",
            url=url,
            path=path
        )


class MutualExclusivityError(RepositoryResolutionError):
    code = ErrorCode.MUTUAL_EXCLUSIVITY

    def __init__(self, repository: str, directory: str):
        super().__init__(
            "specify repository or directory, not both",
            check="exclusive",
            hint="Drop either repository or directory from the call",
            repository=repository,
            directory=directory
        )


class MissingParameterError(RepositoryResolutionError):
    code = ErrorCode.MISSING_PARAMETER

    def __init__(self):
        super().__init__(
            "one of repository or directory is required",
            check="required",
            hint="Pass repository='owner/repo' or directory='/path/to/clone'"
        )


class InvalidRepositoryFormatError(RepositoryResolutionError):
    code = ErrorCode.INVALID_REPOSITORY_FORMAT

    def __init__(self, repository: str):
        super().__init__(
            f"Invalid repository format: {repository!r}, expected 'owner/repo'",
            check="repository_format",
            hint="Example: 'forgejo/forgejo' or 'acme/widgets'",
            repository=repository
        )


def success_response(data: Any) -> dict:
    """Create a standardized success response."""
    return {
        "ok": True,
        "data": data
    }


def format_error_json(code: str, message: str, hint: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> str:
    """
    Format an error response as JSON string with optional hint and context.

    Args:
        code: Error code
        message: Human-readable error message
        hint: Optional hint for resolution
        context: Optional context information

    Returns:
        JSON-formatted error string
    """
    error_dict = {
        "ok": False,
        "error": {
            "code": code,
            "message": message,
            "details": context or {}
        }
    }
    if hint:
        error_dict["error"]["hint"] = hint
    return json.dumps(error_dict, indent=2)


def format_success_json(data: Any) -> str:
    """
    Format a success response as JSON string.

    Args:
        data: Data to include in response

    Returns:
        JSON-formatted success string
    """
    return json.dumps(success_response(data), indent=2)
