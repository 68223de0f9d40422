"""Source materialization: put a vault's contents at its destination.

Local directories are created, scaffolded, or copied; remotes are cloned with
git.  Existing files in a destination are never overwritten or removed.
"""

from __future__ import annotations

import shutil
import time
from pathlib import Path

import yaml

from vaultsmith.classify import PlainLocal, RemotePending, RemoteWorkspace, SelfContainedLocal
from vaultsmith.config import WorkspaceConfig, config_path, default_document, save_workspace_config
from vaultsmith.errors import ConfigError, MaterializeError
from vaultsmith.git import clone
from vaultsmith.log import get_logger
from vaultsmith.paths import ASSETS, CONFIG_FILE, NOTES, is_inside
from vaultsmith.vaults import Vault

logger = get_logger("materialize")

ROOT_NOTE = "root.md"
ROOT_SCHEMA = "root.schema.yml"


def _is_empty_dir(path: Path) -> bool:
    return path.is_dir() and not any(path.iterdir())


def _root_note_text() -> str:
    now = int(time.time() * 1000)
    frontmatter = yaml.safe_dump(
        {"id": "root", "title": "root", "desc": "", "updated": now, "created": now},
        sort_keys=False,
    )
    return f"---\n{frontmatter}---\n"


def _root_schema_text() -> str:
    return yaml.safe_dump(
        {
            "version": 1,
            "schemas": [
                {"id": "root", "title": "root", "parent": "root", "children": []},
            ],
        },
        sort_keys=False,
    )


def scaffold_vault(vault_dir: Path) -> list[Path]:
    """Create ``root.md``, ``root.schema.yml`` and ``assets/`` where missing.

    Returns the paths that were created.
    """
    created: list[Path] = []
    vault_dir.mkdir(parents=True, exist_ok=True)
    note = vault_dir / ROOT_NOTE
    if not note.exists():
        note.write_text(_root_note_text(), encoding="utf-8")
        created.append(note)
    schema = vault_dir / ROOT_SCHEMA
    if not schema.exists():
        schema.write_text(_root_schema_text(), encoding="utf-8")
        created.append(schema)
    assets = vault_dir / ASSETS
    if not assets.exists():
        assets.mkdir()
        created.append(assets)
    return created


# ---------------------------------------------------------------------------
# Local
# ---------------------------------------------------------------------------

def materialize_plain_local(layout: PlainLocal, ws_root: Path) -> Path:
    """Ensure the vault directory exists; scaffold it only if new or empty.

    A missing directory inside the workspace is created.  A missing
    directory outside it is an error: outside content is only referenced.
    """
    dest = layout.dest
    if dest.exists() and not dest.is_dir():
        raise MaterializeError(f"{dest} exists and is not a directory.")
    if not dest.exists() and not is_inside(dest, ws_root):
        raise MaterializeError(f"Local vault directory {dest} does not exist.")
    try:
        if not dest.exists() or _is_empty_dir(dest):
            created = scaffold_vault(dest)
            logger.debug("Scaffolded %s: %s", dest, [p.name for p in created])
        else:
            logger.debug("Keeping existing contents of %s", dest)
    except OSError as e:
        raise MaterializeError(f"Cannot create vault at {dest}: {e}") from e
    return dest


def make_self_contained(vault_dir: Path, name: str) -> None:
    """Add the vault-local config file and ``notes/`` folder where missing."""
    if not config_path(vault_dir).exists():
        doc = default_document(
            [Vault(fs_path=".", name=name, self_contained=True)],
            self_contained=True,
        )
        try:
            save_workspace_config(vault_dir, WorkspaceConfig(data=doc))
        except ConfigError as e:
            raise MaterializeError(str(e)) from e
    notes = vault_dir / NOTES
    if not notes.exists() or _is_empty_dir(notes):
        scaffold_vault(notes)


def materialize_self_contained_local(layout: SelfContainedLocal) -> Path:
    """Create ``dependencies/localhost/<name>``, copying the source in if any.

    A source that is already self-contained is copied as-is; any other
    directory is copied into ``notes/``.
    """
    dest = layout.dest
    source = layout.source
    same = source is not None and source == dest
    if dest.exists() and not _is_empty_dir(dest) and not same:
        raise MaterializeError(f"Destination {dest} already exists and is not empty.")
    if source is not None and not same:
        if not source.is_dir():
            raise MaterializeError(f"Local vault directory {source} does not exist.")
        if is_inside(dest, source):
            raise MaterializeError(f"Cannot copy {source} into its own subfolder {dest}.")

    try:
        dest.mkdir(parents=True, exist_ok=True)
        if source is not None and not same and not _is_empty_dir(source):
            already = (source / CONFIG_FILE).is_file() and (source / NOTES).is_dir()
            target = dest if already else dest / NOTES
            logger.debug("Copying %s -> %s", source, target)
            shutil.copytree(
                source, target,
                ignore=shutil.ignore_patterns(".git"),
                dirs_exist_ok=True,
            )
        make_self_contained(dest, layout.name)
    except OSError as e:
        raise MaterializeError(f"Cannot create vault at {dest}: {e}") from e
    return dest


# ---------------------------------------------------------------------------
# Remote
# ---------------------------------------------------------------------------

def clone_remote(pending: RemotePending) -> Path:
    """Clone *pending.url* into *pending.dest*, which must be absent or empty."""
    dest = pending.dest
    if dest.exists() and not _is_empty_dir(dest):
        raise MaterializeError(
            f"Cannot clone into {dest}: directory exists and is not empty."
        )
    try:
        return clone(pending.url, dest)
    except OSError as e:
        raise MaterializeError(f"Cannot create {dest}: {e}") from e


def relocate_workspace(layout: RemoteWorkspace) -> Path:
    """Move a workspace clone from its clone location to the workspace root."""
    if layout.clone_dest == layout.dest:
        return layout.dest
    if layout.dest.exists():
        raise MaterializeError(
            f"Cannot move workspace '{layout.name}' to {layout.dest}: path exists."
        )
    logger.debug("Moving workspace clone %s -> %s", layout.clone_dest, layout.dest)
    try:
        shutil.move(str(layout.clone_dest), str(layout.dest))
    except OSError as e:
        raise MaterializeError(f"Cannot move {layout.clone_dest}: {e}") from e
    return layout.dest
