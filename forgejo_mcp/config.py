"""Configuration and constants for the Forgejo MCP server."""

import os
from typing import Optional

# Forgejo/Gitea API Configuration
FORGEJO_REMOTE_URL: Optional[str] = os.getenv("FORGEJO_REMOTE_URL")
FORGEJO_AUTH_TOKEN: Optional[str] = os.getenv("FORGEJO_AUTH_TOKEN")
API_PATH = "/api/v1"
REQUEST_TIMEOUT = 30

# Logging
LOG_FILE: Optional[str] = os.getenv("FORGEJO_MCP_LOG_FILE")
DEBUG = os.getenv("FORGEJO_MCP_DEBUG", "").lower() in ("1", "true", "yes", "on")

# Pagination
DEFAULT_LIMIT = 15
MAX_LIMIT = 100

# Field limits
MAX_TITLE_LENGTH = 255
MAX_BODY_LENGTH = 65535
MAX_BRANCH_LENGTH = 255

# Git Configuration
DEFAULT_BRANCH = "main"
PREFERRED_REMOTE = "origin"
DRAFT_TITLE_PREFIX = "WIP: "
GIT_COMMAND_TIMEOUT = 30


# Error Codes
class ErrorCode:
    """Standardized error codes for consistent error handling."""
    # Repository resolution
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    NOT_A_DIRECTORY = "NOT_A_DIRECTORY"
    NOT_A_GIT_REPOSITORY = "NOT_A_GIT_REPOSITORY"
    NO_REMOTE_CONFIGURED = "NO_REMOTE_CONFIGURED"
    CONFIG_UNREADABLE = "CONFIG_UNREADABLE"
    AMBIGUOUS_REMOTE = "AMBIGUOUS_REMOTE"
    UNPARSABLE_REMOTE_URL = "UNPARSABLE_REMOTE_URL"
    UNSUPPORTED_REPOSITORY_PATH = "UNSUPPORTED_REPOSITORY_PATH"
    MUTUAL_EXCLUSIVITY = "MUTUAL_EXCLUSIVITY"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_REPOSITORY_FORMAT = "INVALID_REPOSITORY_FORMAT"
    # Tool arguments and configuration
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    GIT_ERROR = "GIT_ERROR"
    # Remote API
    HTTP_ERROR = "HTTP_ERROR"
    FORGEJO_API_ERROR = "FORGEJO_API_ERROR"
    FORGEJO_NOT_FOUND = "FORGEJO_NOT_FOUND"
    FORGEJO_FORBIDDEN = "FORGEJO_FORBIDDEN"
    FORGEJO_VALIDATION_FAILED = "FORGEJO_VALIDATION_FAILED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


def get_api_base(remote_url: Optional[str] = None) -> str:
    """Build the REST API base URL from the instance URL."""
    base = (remote_url or FORGEJO_REMOTE_URL or "").rstrip("/")
    if base.endswith(API_PATH):
        return base
    return f"{base}{API_PATH}"


# Forgejo API Headers
def get_forgejo_headers(token: Optional[str] = None) -> dict:
    """Get Forgejo API headers with optional authentication."""
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json"
    }
    auth_token = token or FORGEJO_AUTH_TOKEN
    if auth_token:
        headers["Authorization"] = f"token {auth_token}"
    return headers
