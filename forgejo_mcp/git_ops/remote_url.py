"""Parse git remote URLs into an owner/repo pair."""

import re
from typing import Tuple
from urllib.parse import urlsplit

from ..utils.errors import UnparsableRemoteURLError, UnsupportedRepositoryPathError


URL_SCHEMES = {"http", "https", "ssh", "git", "git+ssh", "ssh+git"}

_SCHEME_RE = re.compile(r'^([A-Za-z][A-Za-z0-9+.\-]*)://')

# [user@]host:path, where the colon comes before any slash
_SCP_RE = re.compile(r'^(?:(?P<user>[^@/\s]+)@)?(?P<host>[^@/:\s]+):(?P<path>.+)$')

_SEGMENT_RE = re.compile(r'^[^/\s]+$')


def parse_remote_url(url: str) -> Tuple[str, str]:
    """
    Extract owner and repository name from a git remote URL.

    Supported shapes:
        https://host[:port]/owner/repo[.git]
        ssh://user@host[:port]/owner/repo[.git]
        git://host/owner/repo[.git]
        user@host:owner/repo[.git]

    Host, port and credentials are discarded.

    Args:
        url: Remote URL as stored in git configuration

    Returns:
        Tuple of (owner, repo)

    Raises:
        UnparsableRemoteURLError: url matches none of the supported shapes
        UnsupportedRepositoryPathError: path is not exactly two segments
    """
    raw = url
    url = (url or "").strip()
    if not url:
        raise UnparsableRemoteURLError(raw, "empty URL")

    scheme_match = _SCHEME_RE.match(url)
    if scheme_match:
        path = _path_from_url(raw, url, scheme_match.group(1).lower())
    else:
        scp_match = _SCP_RE.match(url)
        if not scp_match:
            raise UnparsableRemoteURLError(raw)
        path = scp_match.group("path")

    return split_repository_path(raw, path)


def _path_from_url(raw: str, url: str, scheme: str) -> str:
    if scheme not in URL_SCHEMES:
        raise UnparsableRemoteURLError(raw, f"unsupported scheme '{scheme}'")

    try:
        parts = urlsplit(url)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise UnparsableRemoteURLError(raw, str(e))

    if not parts.hostname:
        raise UnparsableRemoteURLError(raw, "missing host")

    return parts.path


def split_repository_path(url: str, path: str) -> Tuple[str, str]:
    """
    Normalize a remote path and split it into (owner, repo).

    Leading and trailing slashes and a trailing ``.git`` are removed; what
    remains must be exactly two non-empty segments.
    """
    trimmed = path.strip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[:-len(".git")].rstrip("/")

    segments = trimmed.split("/")
    if len(segments) != 2 or not all(_SEGMENT_RE.match(segment) for segment in segments):
        raise UnsupportedRepositoryPathError(url, path)

    owner, repo = segments
    return owner, repo
