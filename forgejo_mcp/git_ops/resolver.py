"""Resolve a tool call's repository/directory arguments to owner/repo.

Every tool accepts either an explicit ``repository`` ("owner/repo") or a
local ``directory`` inside a git clone. Exactly one must be given. A
directory is validated, its git config is read, one remote is selected
and that remote's URL is parsed.

Nothing is cached: each call re-reads the filesystem.
"""

import logging
import re
from typing import Optional

from ..utils.errors import InvalidRepositoryFormatError, MissingParameterError, MutualExclusivityError
from .fs_validate import DirectoryInspector, LocalFilesystem, validate_directory
from .git_config import read_remotes, select_remote
from .models import RepositoryResolution
from .remote_url import parse_remote_url


logger = logging.getLogger(__name__)

REPOSITORY_RE = re.compile(r'^[^/\s]+/[^/\s]+$')


def is_valid_repository(repository: str) -> bool:
    """Check the 'owner/repo' shape: two non-empty segments, no whitespace."""
    return bool(repository) and REPOSITORY_RE.match(repository) is not None


def resolve_repository_details(
    repository: Optional[str] = None,
    directory: Optional[str] = None,
    fs: Optional[DirectoryInspector] = None
) -> RepositoryResolution:
    """
    Resolve repository/directory input and report how it was resolved.

    Args:
        repository: Explicit 'owner/repo', or empty/None when not provided
        directory: Local git working directory, or empty/None when not provided
        fs: Filesystem inspector (defaults to the local filesystem)

    Returns:
        RepositoryResolution for the single repository addressed

    Raises:
        MutualExclusivityError: both arguments provided
        MissingParameterError: neither argument provided
        InvalidRepositoryFormatError: repository is not 'owner/repo'
        RepositoryResolutionError: any directory, config or URL failure
    """
    repository = repository or ""
    directory = directory or ""

    if repository and directory:
        raise MutualExclusivityError(repository, directory)

    if not repository and not directory:
        raise MissingParameterError()

    if repository:
        if not is_valid_repository(repository):
            raise InvalidRepositoryFormatError(repository)
        return RepositoryResolution(repository=repository, is_remote=False)

    fs = fs or LocalFilesystem()
    git_directory = validate_directory(directory, fs)
    remotes = read_remotes(git_directory.git_dir, fs)
    remote = select_remote(remotes, directory)
    owner, repo = parse_remote_url(remote.url)

    resolution = RepositoryResolution(
        repository=f"{owner}/{repo}",
        directory=directory,
        is_remote=True,
        remote_name=remote.name,
        remote_url=remote.url
    )
    logger.debug(f"Resolved {directory} to {resolution.repository} via remote {remote.name!r}")
    return resolution


def resolve_repository(
    repository: Optional[str] = None,
    directory: Optional[str] = None,
    fs: Optional[DirectoryInspector] = None
) -> str:
    """Resolve repository/directory input to an 'owner/repo' string."""
    return resolve_repository_details(repository, directory, fs).repository
