"""Workspace config (``vaultsmith.yml``): loading, reconciliation, and saving.

The reconciliation step is a pure function over :class:`WorkspaceConfig`
values; loading and saving are kept separate so conflicts can be checked
without touching the filesystem.  Keys this module does not own are carried
through a load/modify/save cycle untouched.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from vaultsmith.errors import ConfigConflictError, ConfigError
from vaultsmith.log import get_logger
from vaultsmith.paths import CONFIG_FILE
from vaultsmith.vaults import Vault, WorkspaceRemote

logger = get_logger("config")

CONFIG_VERSION = 1


# ---------------------------------------------------------------------------
# Document wrapper
# ---------------------------------------------------------------------------

@dataclass
class WorkspaceConfig:
    """In-memory config document.  ``data`` is the raw YAML mapping."""

    data: dict[str, Any] = field(default_factory=dict)

    def _workspace_section(self) -> dict[str, Any]:
        section = self.data.get("workspace") or {}
        if not isinstance(section, dict):
            raise ConfigError("'workspace' must be a mapping")
        return section

    @property
    def vaults(self) -> list[Vault]:
        raw = self._workspace_section().get("vaults") or []
        if not isinstance(raw, list):
            raise ConfigError("'workspace.vaults' must be a list")
        return [Vault.from_dict(entry) for entry in raw]

    @property
    def workspaces(self) -> dict[str, WorkspaceRemote]:
        raw = self._workspace_section().get("workspaces") or {}
        if not isinstance(raw, dict):
            raise ConfigError("'workspace.workspaces' must be a mapping")
        return {
            name: WorkspaceRemote.from_dict(name, entry)
            for name, entry in raw.items()
        }


def config_path(root: Path) -> Path:
    return root / CONFIG_FILE


def default_document(
    vaults: list[Vault], *, self_contained: bool = False,
) -> dict[str, Any]:
    """Return a fresh config mapping listing *vaults*."""
    return {
        "version": CONFIG_VERSION,
        "dev": {"enableSelfContainedVaults": self_contained},
        "workspace": {
            "vaults": [v.to_dict() for v in vaults],
            "workspaces": {},
        },
    }


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

def load_workspace_config(root: Path) -> WorkspaceConfig:
    """Read ``vaultsmith.yml`` from *root*.

    Raises ``ConfigError`` if the file is missing, is not valid YAML, or is
    not a mapping.
    """
    path = config_path(root)
    if not path.is_file():
        raise ConfigError(
            f"No {CONFIG_FILE} in {root}.\n"
            "Run 'vaultsmith init' to create a workspace."
        )
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be a YAML mapping")
    cfg = WorkspaceConfig(data=data)
    # Parse once so shape errors surface at load time.
    cfg.vaults
    cfg.workspaces
    logger.debug("Loaded %s (%d vault(s))", path, len(cfg.vaults))
    return cfg


def save_workspace_config(root: Path, cfg: WorkspaceConfig) -> Path:
    """Write *cfg* to ``vaultsmith.yml`` via a temp file and rename."""
    path = config_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".yml.tmp")
    try:
        tmp.write_text(
            yaml.safe_dump(cfg.data, sort_keys=False, default_flow_style=False),
            encoding="utf-8",
        )
        tmp.replace(path)
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}") from e
    logger.debug("Wrote %s", path)
    return path


def create_workspace_config(
    root: Path, vaults: list[Vault], *, self_contained: bool = False,
) -> WorkspaceConfig:
    """Create a new ``vaultsmith.yml`` at *root*.

    Raises ``ConfigError`` if one already exists.
    """
    if config_path(root).exists():
        raise ConfigError(f"{config_path(root)} already exists.")
    cfg = WorkspaceConfig(data=default_document(vaults, self_contained=self_contained))
    check_uniqueness(cfg.vaults)
    save_workspace_config(root, cfg)
    return cfg


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def check_uniqueness(vaults: list[Vault]) -> None:
    """Raise ``ConfigConflictError`` on a repeated identity or explicit name."""
    seen_ids: set[tuple[str, str | None]] = set()
    seen_names: set[str] = set()
    for vault in vaults:
        if vault.identity in seen_ids:
            where = f" in workspace '{vault.workspace}'" if vault.workspace else ""
            raise ConfigConflictError(
                f"Vault '{vault.fs_path}'{where} is already registered."
            )
        seen_ids.add(vault.identity)
        if vault.name:
            if vault.name in seen_names:
                raise ConfigConflictError(
                    f"A vault named '{vault.name}' is already registered."
                )
            seen_names.add(vault.name)


def add_vaults(
    cfg: WorkspaceConfig,
    vaults: list[Vault],
    workspace_remote: WorkspaceRemote | None = None,
) -> WorkspaceConfig:
    """Return a new config with *vaults* appended after the existing ones.

    If *workspace_remote* is given it is added to ``workspace.workspaces``.
    An existing entry of the same name is kept when the URL matches and is a
    conflict otherwise.  *cfg* itself is never modified.
    """
    if not vaults:
        raise ConfigError("No vaults to add.")

    existing = cfg.vaults
    remotes = cfg.workspaces
    if workspace_remote is not None:
        current = remotes.get(workspace_remote.name)
        if current is not None and current.remote.url != workspace_remote.remote.url:
            raise ConfigConflictError(
                f"Workspace '{workspace_remote.name}' already points at "
                f"{current.remote.url}, not {workspace_remote.remote.url}."
            )
        remotes[workspace_remote.name] = workspace_remote

    for vault in vaults:
        if vault.workspace and vault.workspace not in remotes:
            raise ConfigError(
                f"Vault '{vault.fs_path}' names unknown workspace '{vault.workspace}'."
            )
    check_uniqueness(existing + list(vaults))

    data = copy.deepcopy(cfg.data)
    section = data.get("workspace")
    if not isinstance(section, dict):
        section = {}
        data["workspace"] = section
    section["vaults"] = list(section.get("vaults") or []) + [v.to_dict() for v in vaults]
    if workspace_remote is not None:
        ws_map = dict(section.get("workspaces") or {})
        ws_map[workspace_remote.name] = workspace_remote.to_dict()
        section["workspaces"] = ws_map
    return WorkspaceConfig(data=data)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass
class Settings:
    """Merged settings (defaults < vaultsmith.yml < CLI)."""

    enable_self_contained_vaults: bool = False
    reload_command: str = ""


# Settings field -> (section, key, expected type) in vaultsmith.yml.
_SETTINGS_KEYS: dict[str, tuple[str, str, type]] = {
    "enable_self_contained_vaults": ("dev", "enableSelfContainedVaults", bool),
    "reload_command": ("commands", "reload", str),
}


def load_settings(
    cfg: WorkspaceConfig | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> Settings:
    """Build ``Settings`` from the config document, then CLI overrides.

    ``None`` values in *cli_overrides* mean "not given on the command line".
    A config value of the wrong type (``"false"`` for a flag) is a
    ``ConfigError``.
    """
    settings = Settings()
    if cfg is not None:
        for name, (section, key, kind) in _SETTINGS_KEYS.items():
            block = cfg.data.get(section)
            if not isinstance(block, dict) or block.get(key) is None:
                continue
            value = block[key]
            if not isinstance(value, kind):
                expected = "true or false" if kind is bool else "a string"
                raise ConfigError(
                    f"'{section}.{key}' must be {expected}, not {value!r}"
                )
            setattr(settings, name, value)
    if cli_overrides:
        valid = {fld.name for fld in fields(settings)}
        for k, v in cli_overrides.items():
            if k in valid and v is not None:
                setattr(settings, k, v)
    return settings
