"""Tests for working directory validation.

These tests are independent of the server parameter format.
"""

import os
import tempfile
from pathlib import Path

import pytest

from forgejo_mcp.git_ops.fs_validate import GitDirKind, validate_directory
from forgejo_mcp.utils.errors import NotAGitRepositoryError, PathNotADirectoryError, PathNotFoundError


class MemoryFilesystem:
    """In-memory DirectoryInspector: a set of directories and a dict of files."""

    def __init__(self, dirs=(), files=None):
        self.dirs = set(dirs)
        self.files = dict(files or {})

    def exists(self, path):
        return path in self.dirs or path in self.files

    def is_dir(self, path):
        return path in self.dirs

    def is_file(self, path):
        return path in self.files

    def read_text(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]


def test_validate_standard_clone():
    """A directory with a .git directory is a standard clone."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / ".git").mkdir()

        result = validate_directory(tmpdir)

        assert result.kind == GitDirKind.STANDARD
        assert result.worktree == tmpdir
        assert result.git_dir == os.path.join(tmpdir, ".git")


def test_validate_missing_path():
    """A path that does not exist fails the existence check."""
    with tempfile.TemporaryDirectory() as tmpdir:
        missing = str(Path(tmpdir) / "nope")

        with pytest.raises(PathNotFoundError) as exc_info:
            validate_directory(missing)

        assert exc_info.value.code == "PATH_NOT_FOUND"
        assert exc_info.value.details["directory"] == missing
        assert exc_info.value.details["check"] == "exists"


def test_validate_empty_path():
    """An empty path never refers to the current directory."""
    with pytest.raises(PathNotFoundError):
        validate_directory("")


def test_validate_file_instead_of_directory():
    """A regular file is rejected before any git checks."""
    with tempfile.TemporaryDirectory() as tmpdir:
        test_file = Path(tmpdir) / "README.md"
        test_file.write_text("hello")

        with pytest.raises(PathNotADirectoryError) as exc_info:
            validate_directory(str(test_file))

        assert exc_info.value.code == "NOT_A_DIRECTORY"


def test_validate_plain_directory():
    """A directory without a .git entry is not a repository."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "src").mkdir()

        with pytest.raises(NotAGitRepositoryError) as exc_info:
            validate_directory(tmpdir)

        assert exc_info.value.code == "NOT_A_GIT_REPOSITORY"
        assert exc_info.value.details["reason"] == "no .git entry found"


def test_validate_subdirectory_of_clone():
    """Only the working tree root has a .git entry."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / ".git").mkdir()
        nested = Path(tmpdir) / "src"
        nested.mkdir()

        with pytest.raises(NotAGitRepositoryError):
            validate_directory(str(nested))


def test_validate_worktree_pointer_absolute():
    """A .git file with an absolute gitdir is followed."""
    with tempfile.TemporaryDirectory() as tmpdir:
        git_dir = Path(tmpdir) / "main" / ".git" / "worktrees" / "feature"
        git_dir.mkdir(parents=True)
        worktree = Path(tmpdir) / "feature"
        worktree.mkdir()
        (worktree / ".git").write_text(f"gitdir: {git_dir}\n")

        result = validate_directory(str(worktree))

        assert result.kind == GitDirKind.POINTER
        assert result.git_dir == str(git_dir)


def test_validate_worktree_pointer_relative():
    """A relative gitdir is resolved against the working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "modules" / "lib").mkdir(parents=True)
        worktree = Path(tmpdir) / "lib"
        worktree.mkdir()
        (worktree / ".git").write_text("gitdir: ../modules/lib\n")

        result = validate_directory(str(worktree))

        assert result.git_dir == os.path.join(tmpdir, "modules", "lib")


def test_validate_pointer_to_missing_directory():
    """A gitdir target that does not exist is reported."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / ".git").write_text("gitdir: /definitely/not/here\n")

        with pytest.raises(NotAGitRepositoryError) as exc_info:
            validate_directory(tmpdir)

        assert "missing directory" in exc_info.value.details["reason"]


def test_validate_pointer_without_gitdir_line():
    """A .git file must contain a gitdir line."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / ".git").write_text("this is not a pointer\n")

        with pytest.raises(NotAGitRepositoryError) as exc_info:
            validate_directory(tmpdir)

        assert "gitdir" in exc_info.value.details["reason"]


def test_validate_with_memory_filesystem():
    """The filesystem is injectable, so no real directories are needed."""
    fs = MemoryFilesystem(
        dirs={"/work/widgets", "/work/widgets/.git"},
    )

    result = validate_directory("/work/widgets", fs)

    assert result.git_dir == "/work/widgets/.git"
    assert result.kind == GitDirKind.STANDARD


def test_validate_unreadable_pointer_with_memory_filesystem():
    """A .git file that cannot be read is not a repository."""

    class UnreadableFilesystem(MemoryFilesystem):
        def read_text(self, path):
            raise PermissionError(path)

    fs = UnreadableFilesystem(dirs={"/work/widgets"}, files={"/work/widgets/.git": ""})

    with pytest.raises(NotAGitRepositoryError) as exc_info:
        validate_directory("/work/widgets", fs)

    assert "cannot read" in exc_info.value.details["reason"]
