"""Idempotent ``.gitignore`` patching at the workspace root and inside vaults."""

from __future__ import annotations

from pathlib import Path

from vaultsmith.errors import IgnoreFileError
from vaultsmith.log import get_logger
from vaultsmith.paths import CACHE_PATTERN, GITIGNORE

logger = get_logger("ignore")


def add_ignore_entry(path: Path, entry: str) -> bool:
    """Append *entry* as a line of *path* unless an identical line exists.

    The file is created if missing.  Existing lines are left alone; the new
    line goes at the end, after a newline if the file lacks a trailing one.
    Returns True if the file was written.
    """
    entry = entry.strip()
    if not entry:
        raise IgnoreFileError("Refusing to add an empty ignore entry.")
    try:
        text = path.read_text(encoding="utf-8") if path.exists() else ""
    except OSError as e:
        raise IgnoreFileError(f"Cannot read {path}: {e}") from e

    if entry in (line.strip() for line in text.splitlines()):
        return False

    if text and not text.endswith("\n"):
        text += "\n"
    text += entry + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise IgnoreFileError(f"Cannot write {path}: {e}") from e
    logger.debug("Added '%s' to %s", entry, path)
    return True


def patch_root_ignore(ws_root: Path, folder: str) -> bool:
    """Ignore the vault's top-level *folder* in the workspace root."""
    return add_ignore_entry(ws_root / GITIGNORE, folder)


def patch_vault_ignore(vault_dir: Path) -> bool:
    """Ignore the vault's local cache file inside the vault itself."""
    return add_ignore_entry(vault_dir / GITIGNORE, CACHE_PATTERN)
