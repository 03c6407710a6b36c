"""Read remotes from a repository's git configuration."""

import configparser
import logging
import os
import re
from typing import List, Optional

from ..config import PREFERRED_REMOTE
from ..utils.errors import AmbiguousRemoteError, ConfigUnreadableError, NoRemoteConfiguredError
from .fs_validate import DirectoryInspector, LocalFilesystem
from .models import RemoteSpec


logger = logging.getLogger(__name__)

COMMONDIR_FILE = "commondir"
CONFIG_FILE = "config"

_REMOTE_SECTION_RE = re.compile(r'^\s*remote\s+"(?P<name>.*)"\s*$', re.IGNORECASE)


def locate_config(git_dir: str, fs: Optional[DirectoryInspector] = None) -> str:
    """
    Find the config file that applies to a git directory.

    Linked worktrees keep a private git directory holding a ``commondir``
    file; the shared config lives under that common directory.

    Args:
        git_dir: Git directory, after following any ``.git`` file pointer
        fs: Filesystem inspector (defaults to the local filesystem)

    Returns:
        Path to the config file

    Raises:
        ConfigUnreadableError: commondir file cannot be read
    """
    fs = fs or LocalFilesystem()
    config_dir = git_dir

    commondir_path = os.path.join(git_dir, COMMONDIR_FILE)
    if fs.is_file(commondir_path):
        try:
            common = fs.read_text(commondir_path).strip()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigUnreadableError(commondir_path, str(e))
        if common:
            if not os.path.isabs(common):
                common = os.path.normpath(os.path.join(git_dir, common))
            config_dir = common
            logger.debug(f"Worktree git dir {git_dir} shares config from {config_dir}")

    return os.path.join(config_dir, CONFIG_FILE)


def read_remotes(git_dir: str, fs: Optional[DirectoryInspector] = None) -> List[RemoteSpec]:
    """
    List every remote with a URL in the git configuration.

    Args:
        git_dir: Git directory, after following any ``.git`` file pointer
        fs: Filesystem inspector (defaults to the local filesystem)

    Returns:
        Remotes in the order they appear in the file

    Raises:
        ConfigUnreadableError: config missing, unreadable or malformed
    """
    fs = fs or LocalFilesystem()
    config_path = locate_config(git_dir, fs)

    if not fs.is_file(config_path):
        raise ConfigUnreadableError(config_path, "config file not found")

    try:
        content = fs.read_text(config_path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigUnreadableError(config_path, str(e))

    return parse_remotes(content, config_path)


def parse_remotes(content: str, source: str = "<config>") -> List[RemoteSpec]:
    """Extract ``[remote "<name>"]`` sections and their ``url`` values."""
    # git allows repeated keys (several fetch refspecs per remote) and
    # valueless boolean keys
    parser = configparser.ConfigParser(
        delimiters=("=",),
        strict=False,
        interpolation=None,
        allow_no_value=True,
        inline_comment_prefixes=("#", ";")
    )
    try:
        parser.read_string(content, source=source)
    except configparser.Error as e:
        raise ConfigUnreadableError(source, f"malformed config: {e.message}")

    remotes = []
    for section in parser.sections():
        match = _REMOTE_SECTION_RE.match(section)
        if not match:
            continue
        url = _unquote(parser.get(section, "url", fallback="") or "")
        if not url:
            logger.debug(f"Skipping remote {match.group('name')!r} without url in {source}")
            continue
        remotes.append(RemoteSpec(name=match.group("name"), url=url))

    return remotes


def select_remote(remotes: List[RemoteSpec], directory: str) -> RemoteSpec:
    """
    Pick the remote to resolve against.

    ``origin`` wins when present; otherwise a lone remote is used. Several
    remotes without an ``origin`` are ambiguous and never guessed at.

    Raises:
        NoRemoteConfiguredError: no remotes at all
        AmbiguousRemoteError: several remotes, none named origin
    """
    if not remotes:
        raise NoRemoteConfiguredError(directory)

    for remote in remotes:
        if remote.name == PREFERRED_REMOTE:
            return remote

    if len(remotes) == 1:
        return remotes[0]

    raise AmbiguousRemoteError(directory, [remote.name for remote in remotes])


def _unquote(value: str) -> str:
    # An unindented key followed by indented ones parses as a continuation
    lines = value.strip().splitlines()
    value = lines[0].strip() if lines else ""
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1].strip()
    return value
