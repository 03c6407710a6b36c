"""Filesystem validation for directory-based repository resolution.

A directory qualifies when it exists, is a directory, and has a ``.git``
entry directly beneath it. That entry is either the git directory itself
(a standard clone) or a small file holding ``gitdir: <path>`` (linked
worktrees and submodules), in which case the pointer is followed.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..utils.errors import NotAGitRepositoryError, PathNotADirectoryError, PathNotFoundError


logger = logging.getLogger(__name__)

GIT_ENTRY = ".git"
GITDIR_PREFIX = "gitdir:"


class DirectoryInspector(Protocol):
    """Read-only view of the filesystem used by the resolver."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def is_file(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...


class LocalFilesystem:
    """DirectoryInspector backed by the real filesystem."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def read_text(self, path: str) -> str:
        with open(path, encoding="utf-8") as handle:
            return handle.read()


class GitDirKind(str, Enum):
    """How the ``.git`` entry of a working directory was found."""
    STANDARD = "standard"
    POINTER = "pointer"


@dataclass(frozen=True)
class GitDirectory:
    """A validated working directory and the git directory backing it."""
    worktree: str
    git_dir: str
    kind: GitDirKind


def validate_directory(path: str, fs: Optional[DirectoryInspector] = None) -> GitDirectory:
    """
    Validate that a path is the root of a git working tree.

    Args:
        path: Directory to validate. Relative paths are taken as-is.
        fs: Filesystem inspector (defaults to the local filesystem)

    Returns:
        GitDirectory describing where the git metadata lives

    Raises:
        PathNotFoundError: path is empty or does not exist
        PathNotADirectoryError: path exists but is not a directory
        NotAGitRepositoryError: no usable ``.git`` entry
    """
    fs = fs or LocalFilesystem()

    if not path or not fs.exists(path):
        raise PathNotFoundError(path)

    if not fs.is_dir(path):
        raise PathNotADirectoryError(path)

    git_entry = os.path.join(path, GIT_ENTRY)

    if fs.is_dir(git_entry):
        logger.debug(f"Found git directory at {git_entry}")
        return GitDirectory(worktree=path, git_dir=git_entry, kind=GitDirKind.STANDARD)

    if fs.is_file(git_entry):
        git_dir = _follow_gitdir_pointer(path, git_entry, fs)
        logger.debug(f"Followed {git_entry} to git directory {git_dir}")
        return GitDirectory(worktree=path, git_dir=git_dir, kind=GitDirKind.POINTER)

    raise NotAGitRepositoryError(path, "no .git entry found")


def _follow_gitdir_pointer(path: str, git_entry: str, fs: DirectoryInspector) -> str:
    """Resolve the ``gitdir:`` line of a ``.git`` file to a git directory."""
    try:
        content = fs.read_text(git_entry)
    except (OSError, UnicodeDecodeError) as e:
        raise NotAGitRepositoryError(path, f"cannot read .git file: {e}")

    target = None
    for line in content.splitlines():
        line = line.strip()
        if line.startswith(GITDIR_PREFIX):
            target = line[len(GITDIR_PREFIX):].strip()
            break

    if not target:
        raise NotAGitRepositoryError(path, ".git file has no 'gitdir:' line")

    if not os.path.isabs(target):
        target = os.path.normpath(os.path.join(path, target))

    if not fs.is_dir(target):
        raise NotAGitRepositoryError(path, f"gitdir points to missing directory {target}")

    return target
