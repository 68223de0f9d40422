"""Vault and workspace-remote data model.

A *vault* is a content root registered in the workspace config.  A
*workspace remote* is a git repository that itself bundles several vaults
plus its own config; its member vaults carry ``workspace=<remote name>``.

On disk (``vaultsmith.yml``) entries use camelCase keys::

    workspace:
      vaults:
        - fsPath: vault
        - fsPath: dependencies/notes-repo
          name: notes-repo
          remote: {type: git, url: https://example.com/notes-repo.git}
      workspaces:
        team:
          remote: {type: git, url: https://example.com/team.git}
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from vaultsmith.errors import ConfigError


@dataclass(frozen=True)
class RemoteSpec:
    """Provenance of a cloned vault or workspace."""

    url: str
    type: str = "git"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "url": self.url}

    @classmethod
    def from_dict(cls, data: Any) -> RemoteSpec:
        if not isinstance(data, dict) or not data.get("url"):
            raise ConfigError(f"Malformed remote entry: {data!r}")
        return cls(url=str(data["url"]), type=str(data.get("type", "git")))


@dataclass(frozen=True)
class Vault:
    """A single vault entry."""

    fs_path: str
    name: Optional[str] = None
    workspace: Optional[str] = None
    self_contained: bool = False
    remote: Optional[RemoteSpec] = None

    @property
    def display_name(self) -> str:
        """Explicit name, else the basename of ``fs_path``."""
        return self.name or os.path.basename(self.fs_path.rstrip("/\\")) or self.fs_path

    @property
    def identity(self) -> tuple[str, Optional[str]]:
        return (os.path.normpath(self.fs_path), self.workspace)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting unset optional fields."""
        out: dict[str, Any] = {"fsPath": self.fs_path}
        if self.name:
            out["name"] = self.name
        if self.workspace:
            out["workspace"] = self.workspace
        if self.self_contained:
            out["selfContained"] = True
        if self.remote is not None:
            out["remote"] = self.remote.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Vault:
        if not isinstance(data, dict) or not data.get("fsPath"):
            raise ConfigError(f"Vault entry must be a mapping with 'fsPath': {data!r}")
        remote = data.get("remote")
        return cls(
            fs_path=str(data["fsPath"]),
            name=data.get("name") or None,
            workspace=data.get("workspace") or None,
            self_contained=bool(data.get("selfContained", False)),
            remote=RemoteSpec.from_dict(remote) if remote else None,
        )


@dataclass(frozen=True)
class WorkspaceRemote:
    """A named remote hosting several vaults plus its own config."""

    name: str
    remote: RemoteSpec

    def to_dict(self) -> dict[str, Any]:
        return {"remote": self.remote.to_dict()}

    @classmethod
    def from_dict(cls, name: str, data: Any) -> WorkspaceRemote:
        if not isinstance(data, dict):
            raise ConfigError(f"Workspace remote '{name}' must be a mapping")
        return cls(name=name, remote=RemoteSpec.from_dict(data.get("remote")))


def get_vault_by_name(vaults: list[Vault], name: str) -> Vault | None:
    """Return the vault whose display name is *name*, or None."""
    for vault in vaults:
        if vault.display_name == name:
            return vault
    return None
