"""Vault classification: decide the destination layout for a new vault.

Each layout is a frozen dataclass computed once and handed on to the
materializer and the config reconciler.  Local sources are classified up
front; a remote source is first cloned to a planned destination
(:class:`RemotePending`) and then classified from the cloned tree.

=====================  =================================  ======================
layout                 destination                        config entry
=====================  =================================  ======================
PlainLocal             the given path                     fsPath
SelfContainedLocal     dependencies/localhost/<name>      selfContained
RemoteVault            dependencies/<name>                remote (+selfContained)
RemoteWorkspace        <name>/                            workspace remote + members
=====================  =================================  ======================
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from vaultsmith.config import load_workspace_config
from vaultsmith.errors import ClassificationError, ConfigError, InputError
from vaultsmith.git import repo_name_from_url
from vaultsmith.paths import (
    CONFIG_FILE,
    NOTES,
    ResolvedSource,
    dependency_fs_path,
    is_inside,
    relative_fs_path,
)
from vaultsmith.vaults import RemoteSpec, Vault, WorkspaceRemote


# ---------------------------------------------------------------------------
# Layouts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlainLocal:
    """A local directory registered in place."""

    dest: Path
    fs_path: str
    name: Optional[str] = None

    def entries(self) -> tuple[list[Vault], Optional[WorkspaceRemote]]:
        return [Vault(fs_path=self.fs_path, name=self.name)], None


@dataclass(frozen=True)
class SelfContainedLocal:
    """A self-contained vault under ``dependencies/localhost/<name>``.

    *source* is an existing directory whose contents get copied in, if any.
    """

    name: str
    dest: Path
    fs_path: str
    source: Optional[Path] = None

    def entries(self) -> tuple[list[Vault], Optional[WorkspaceRemote]]:
        return [Vault(fs_path=self.fs_path, name=self.name, self_contained=True)], None


@dataclass(frozen=True)
class RemotePending:
    """A remote not yet cloned: where it goes and what it is called."""

    name: str
    url: str
    dest: Path
    explicit_dest: bool = False


@dataclass(frozen=True)
class RemoteVault:
    """A single-vault repository cloned into the dependencies area."""

    name: str
    url: str
    dest: Path
    fs_path: str
    self_contained: bool = False

    def entries(self) -> tuple[list[Vault], Optional[WorkspaceRemote]]:
        vault = Vault(
            fs_path=self.fs_path,
            name=self.name,
            self_contained=self.self_contained,
            remote=RemoteSpec(url=self.url),
        )
        return [vault], None


@dataclass(frozen=True)
class RemoteWorkspace:
    """A multi-vault repository with its own config, cloned at the root.

    *clone_dest* is where git put it; *dest* is where it ends up.
    """

    name: str
    url: str
    clone_dest: Path
    dest: Path
    members: tuple[Vault, ...]

    def entries(self) -> tuple[list[Vault], Optional[WorkspaceRemote]]:
        vaults = [
            Vault(fs_path=m.fs_path, name=m.name, workspace=self.name)
            for m in self.members
        ]
        return vaults, WorkspaceRemote(name=self.name, remote=RemoteSpec(url=self.url))


Layout = Union[PlainLocal, SelfContainedLocal, RemoteVault, RemoteWorkspace]


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

def derive_vault_name(source_name: str | None, source: str) -> str:
    """Return *source_name* if given, else the basename of the URL or path."""
    if source_name and source_name.strip():
        return source_name.strip()
    return repo_name_from_url(source)


# ---------------------------------------------------------------------------
# Local sources
# ---------------------------------------------------------------------------

def classify_local(
    resolved: ResolvedSource | None,
    ws_root: Path,
    *,
    self_contained_enabled: bool,
    source_name: str | None = None,
) -> Union[PlainLocal, SelfContainedLocal]:
    """Pick the layout for a local source.

    With self-contained vaults disabled the directory is registered where it
    is.  With them enabled the vault always lands in
    ``dependencies/localhost/<name>``, whether the source is inside the
    workspace or not; an existing source directory is copied in, anything
    else only names a new vault.
    """
    if not self_contained_enabled:
        if resolved is None:
            raise InputError("A local vault needs a source path.")
        return PlainLocal(
            dest=resolved.path,
            fs_path=relative_fs_path(resolved.path, ws_root),
            name=source_name or None,
        )

    if source_name and source_name.strip():
        name = source_name.strip()
    elif resolved is not None:
        name = resolved.path.name
    else:
        raise InputError("A self-contained vault needs a name or a source path.")
    source = None
    if resolved is not None and resolved.path.is_dir():
        source = resolved.path
    fs_path = dependency_fs_path(name, local=True)
    return SelfContainedLocal(
        name=name, dest=ws_root / fs_path, fs_path=fs_path, source=source,
    )


# ---------------------------------------------------------------------------
# Remote sources
# ---------------------------------------------------------------------------

class RemoteKind(Enum):
    """What a cloned repository turned out to be."""

    vault = "vault"
    self_contained_vault = "self_contained_vault"
    workspace = "workspace"


@dataclass(frozen=True)
class RemoteTree:
    kind: RemoteKind
    members: tuple[Vault, ...] = ()


def plan_remote(
    url: str,
    ws_root: Path,
    *,
    source_path: str | None = None,
    source_name: str | None = None,
) -> RemotePending:
    """Choose the clone destination for *url*.

    An explicit *source_path* must stay inside the workspace root.  Without
    one the clone goes to ``dependencies/<name>``.
    """
    if not url or not url.strip():
        raise InputError("A remote vault needs a remote URL.")
    url = url.strip()
    if source_path:
        dest = (ws_root / os.path.expanduser(source_path)).resolve()
        if not is_inside(dest, ws_root.resolve()) or dest == ws_root.resolve():
            raise InputError(
                f"Clone destination {source_path} must be inside {ws_root}."
            )
        name = source_name.strip() if source_name and source_name.strip() else dest.name
        return RemotePending(name=name, url=url, dest=dest, explicit_dest=True)
    name = derive_vault_name(source_name, url)
    return RemotePending(
        name=name,
        url=url,
        dest=ws_root / dependency_fs_path(name, local=False),
    )


def inspect_remote_tree(root: Path) -> RemoteTree:
    """Classify a cloned tree.

    - no config file                               → regular vault
    - config listing only ``.`` (or nothing), plus
      a ``notes/`` dir                             → self-contained vault
    - config listing vaults other than ``.``       → workspace

    A workspace may have a member vault called ``notes``, so ``notes/`` only
    counts when the config lists no other vaults.  Anything else raises
    ``ClassificationError``.
    """
    if not (root / CONFIG_FILE).is_file():
        return RemoteTree(kind=RemoteKind.vault)
    try:
        members = load_workspace_config(root).vaults
    except ConfigError as e:
        raise ClassificationError(
            f"Cannot tell whether {root.name} is a vault or a workspace: {e}"
        ) from e

    own = [m for m in members if os.path.normpath(m.fs_path) == "."]
    others = [m for m in members if os.path.normpath(m.fs_path) != "."]
    if own and others:
        raise ClassificationError(
            f"{root.name} lists both itself and other vaults in {CONFIG_FILE}; "
            "cannot tell whether it is a vault or a workspace."
        )
    if others:
        return RemoteTree(kind=RemoteKind.workspace, members=tuple(others))
    if (root / NOTES).is_dir():
        return RemoteTree(kind=RemoteKind.self_contained_vault)
    raise ClassificationError(
        f"{root.name} has a {CONFIG_FILE} but no '{NOTES}' folder and no "
        "member vaults; cannot tell whether it is a vault or a workspace."
    )


def classify_remote(
    pending: RemotePending,
    tree: RemoteTree,
    ws_root: Path,
    *,
    self_contained_enabled: bool,
    source_name: str | None = None,
) -> Union[RemoteVault, RemoteWorkspace]:
    """Turn a cloned *pending* remote into its final layout."""
    if tree.kind is RemoteKind.workspace:
        dest = pending.dest if pending.explicit_dest else ws_root / pending.name
        ws_name = relative_fs_path(dest, ws_root)
        members = tree.members
        if source_name and source_name.strip() and len(members) == 1:
            members = (Vault(fs_path=members[0].fs_path, name=source_name.strip()),)
        return RemoteWorkspace(
            name=ws_name,
            url=pending.url,
            clone_dest=pending.dest,
            dest=dest,
            members=members,
        )

    self_contained = tree.kind is RemoteKind.self_contained_vault
    if self_contained and not self_contained_enabled:
        raise ClassificationError(
            f"{pending.url} is a self-contained vault.\n"
            "Set dev.enableSelfContainedVaults in "
            f"{CONFIG_FILE} (or pass --self-contained) to add it."
        )
    return RemoteVault(
        name=pending.name,
        url=pending.url,
        dest=pending.dest,
        fs_path=relative_fs_path(pending.dest, ws_root),
        self_contained=self_contained,
    )
