"""Git operations: clone a remote into a destination, derive repo names."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from urllib.parse import urlparse

from vaultsmith.errors import GitError
from vaultsmith.log import get_logger

logger = get_logger("git")


def is_url(source: str) -> bool:
    """True for ``scheme://`` URLs and scp-style ``user@host:path`` remotes."""
    if "://" in source:
        return True
    head, sep, _ = source.partition(":")
    return bool(sep) and "@" in head and "/" not in head


def repo_name_from_url(url: str) -> str:
    """Return the repository name: last path segment, ``.git`` stripped.

    When *url* is a plain directory (a stand-in for an unreachable remote)
    there is no stable host-side name, so the directory basename is used.

    ``git@github.com:owner/notes.git`` → ``notes``
    ``https://host/owner/notes``       → ``notes``
    ``/tmp/tmp-123-remote``            → ``tmp-123-remote``
    """
    url = url.strip()
    if is_url(url):
        if "://" in url:
            path = urlparse(url).path
        else:
            path = url.split(":", 1)[1]
    else:
        path = url
    name = os.path.basename(path.rstrip("/\\"))
    if name.endswith(".git"):
        name = name[:-4]
    if not name:
        raise GitError(f"Cannot derive a repository name from '{url}'.")
    return name


def clone(url: str, dest: Path) -> Path:
    """Clone *url* into *dest* (created if missing; must be empty).

    Raises ``GitError`` if git is unavailable or the clone fails.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("git clone %s %s", url, dest)
    try:
        result = subprocess.run(
            ["git", "clone", url, str(dest)],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError("git is not installed or not on PATH.") from e
    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()
        raise GitError(f"git clone of {url} failed: {detail}")
    return dest
