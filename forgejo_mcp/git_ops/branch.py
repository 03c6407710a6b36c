"""Git subprocess helpers using asyncio subprocesses."""

import asyncio
import shutil
from typing import Optional

from ..config import GIT_COMMAND_TIMEOUT
from ..utils.errors import GitError


def check_git_installed() -> bool:
    """
    Check if git is installed and available.

    Returns:
        True if git is available, False otherwise
    """
    return shutil.which("git") is not None


async def run_git_command(
    args: list[str],
    cwd: Optional[str] = None,
    timeout: int = GIT_COMMAND_TIMEOUT
) -> tuple[int, str, str]:
    """
    Run a git command asynchronously using asyncio subprocess.

    Args:
        args: Command arguments (e.g., ["git", "status"])
        cwd: Working directory for the command
        timeout: Timeout in seconds

    Returns:
        Tuple of (returncode, stdout, stderr)

    Raises:
        asyncio.TimeoutError: If command times out
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd
    )

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return (
        process.returncode,
        stdout.decode('utf-8', errors='replace'),
        stderr.decode('utf-8', errors='replace')
    )


async def get_current_branch(directory: str) -> str:
    """
    Get the checked-out branch name of a git working directory.

    Args:
        directory: Path to the git working directory

    Returns:
        Current branch name

    Raises:
        GitError: git is missing, the command fails, or HEAD is detached
    """
    command = ["git", "rev-parse", "--abbrev-ref", "HEAD"]

    if not check_git_installed():
        raise GitError("Git is not installed or not found in PATH", command=" ".join(command))

    try:
        returncode, stdout, stderr = await run_git_command(command, cwd=directory, timeout=5)
    except asyncio.TimeoutError:
        raise GitError(f"Timed out detecting current branch in {directory}", command=" ".join(command))

    if returncode != 0:
        raise GitError(
            f"Failed to detect current branch in {directory}: {stderr.strip() or stdout.strip()}",
            command=" ".join(command)
        )

    branch = stdout.strip()
    if not branch or branch == "HEAD":
        raise GitError(
            f"HEAD is detached in {directory}; pass head explicitly",
            command=" ".join(command)
        )

    return branch
