"""Workspace layout constants, source-path resolution, and containment checks."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple

from vaultsmith.vaults import Vault


CONFIG_FILE = "vaultsmith.yml"
GITIGNORE = ".gitignore"
DEPENDENCIES = "dependencies"
LOCAL_DEPENDENCY = "localhost"
NOTES = "notes"
ASSETS = "assets"
CACHE_PATTERN = ".vaultsmith.cache.*"


class ResolvedSource(NamedTuple):
    """Result of resolving a user-supplied source path.

    *path* is absolute.  *inside* is True when *path* is the workspace root
    or nested under it.
    """

    path: Path
    inside: bool


def is_inside(path: Path, root: Path) -> bool:
    """Return True if *path* equals *root* or is nested under it."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def resolve_source(source_path: str, ws_root: Path) -> ResolvedSource:
    """Resolve *source_path* against *ws_root*.

    Relative paths are taken relative to the workspace root.  Nothing is
    checked on disk; a missing path surfaces later, during materialization.
    """
    ws_root = ws_root.resolve()
    raw = Path(os.path.expanduser(source_path))
    if not raw.is_absolute():
        raw = ws_root / raw
    path = raw.resolve()
    return ResolvedSource(path=path, inside=is_inside(path, ws_root))


def relative_fs_path(path: Path, ws_root: Path) -> str:
    """Return the ``fsPath`` to store for *path*.

    Workspace-relative (POSIX separators) when inside the root, else absolute.
    """
    ws_root = ws_root.resolve()
    if is_inside(path, ws_root):
        rel = path.relative_to(ws_root).as_posix()
        return rel or "."
    return str(path)


def dependency_fs_path(name: str, *, local: bool) -> str:
    """``dependencies/localhost/<name>`` for local, ``dependencies/<name>`` for remote."""
    if local:
        return f"{DEPENDENCIES}/{LOCAL_DEPENDENCY}/{name}"
    return f"{DEPENDENCIES}/{name}"


def vault_path(ws_root: Path, vault: Vault) -> Path:
    """Absolute directory of a registered vault.

    Workspace members live under ``{ws_root}/{workspace}/{fsPath}``.
    """
    fs_path = Path(vault.fs_path)
    if fs_path.is_absolute():
        return fs_path
    if vault.workspace:
        return ws_root / vault.workspace / fs_path
    return ws_root / fs_path


def top_level_folder(fs_path: str) -> str | None:
    """First path segment of a workspace-relative *fs_path*.

    Returns None for absolute paths (nothing to ignore at the root) and for
    the root itself.
    """
    path = Path(fs_path)
    if path.is_absolute():
        return None
    parts = [p for p in path.parts if p not in (".", "")]
    if not parts or parts[0] == "..":
        return None
    return parts[0]
