"""Vault add: sequence resolve, classify, materialize, reconcile, and patch.

Stages run in order::

    collect_input → resolve → classify → materialize → reconcile_config
        → patch_ignore → signal_reload → done

Any ``VaultsmithError`` raised along the way is tagged with the stage that
was running and re-raised.  Nothing is rolled back: a clone that never got
registered is harmless, and ignore patching can be re-run on its own with
:func:`repair_ignores`.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

from vaultsmith.classify import (
    Layout,
    PlainLocal,
    RemoteVault,
    RemoteWorkspace,
    SelfContainedLocal,
    classify_local,
    classify_remote,
    inspect_remote_tree,
    plan_remote,
)
from vaultsmith.config import (
    Settings,
    WorkspaceConfig,
    add_vaults,
    load_settings,
    load_workspace_config,
    save_workspace_config,
)
from vaultsmith.errors import IgnoreFileError, InputError, VaultsmithError
from vaultsmith.ignore import patch_root_ignore, patch_vault_ignore
from vaultsmith.log import get_logger
from vaultsmith.materialize import (
    clone_remote,
    materialize_plain_local,
    materialize_self_contained_local,
    relocate_workspace,
)
from vaultsmith.paths import DEPENDENCIES, resolve_source, top_level_folder, vault_path
from vaultsmith.vaults import Vault, WorkspaceRemote

logger = get_logger("vault_add")

ReloadHook = Callable[[Path, list[Vault]], None]


class SourceType(Enum):
    local = "local"
    remote = "remote"


class Stage(Enum):
    collect_input = "collect_input"
    resolve = "resolve"
    classify = "classify"
    materialize = "materialize"
    reconcile_config = "reconcile_config"
    patch_ignore = "patch_ignore"
    signal_reload = "signal_reload"
    done = "done"


@dataclass(frozen=True)
class VaultAddRequest:
    """The already-collected user input."""

    source_type: SourceType
    source_path: Optional[str] = None
    source_path_remote: Optional[str] = None
    source_name: Optional[str] = None


@dataclass
class VaultAddResult:
    layout: Layout
    vaults: list[Vault]
    workspace_remote: Optional[WorkspaceRemote] = None
    root_ignore: Optional[str] = None
    vault_ignores: list[Path] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Ignore targets
# ---------------------------------------------------------------------------

def ignore_targets(layout: Layout) -> tuple[Optional[str], list[Path]]:
    """Return ``(root entry, vault dirs)`` to patch for *layout*.

    Plain local vaults get no in-vault entry; every freshly created directory
    (clones, workspace clone roots, new self-contained vaults) does.
    """
    if isinstance(layout, PlainLocal):
        return top_level_folder(layout.fs_path), []
    if isinstance(layout, SelfContainedLocal):
        return DEPENDENCIES, [layout.dest]
    if isinstance(layout, RemoteVault):
        return top_level_folder(layout.fs_path), [layout.dest]
    return top_level_folder(layout.name), [layout.dest]


def _patch(ws_root: Path, root_entry: Optional[str], vault_dirs: list[Path]) -> None:
    if root_entry:
        patch_root_ignore(ws_root, root_entry)
    for vault_dir in vault_dirs:
        patch_vault_ignore(vault_dir)


def repair_ignores(ws_root: Path, vault: Vault) -> tuple[Optional[str], list[Path]]:
    """Re-run ignore patching for an already registered *vault*."""
    if vault.workspace:
        root_entry = top_level_folder(vault.workspace)
        vault_dirs = [ws_root / vault.workspace]
    else:
        root_entry = top_level_folder(vault.fs_path)
        vault_dirs = []
        if vault.remote is not None or vault.self_contained:
            vault_dirs = [vault_path(ws_root, vault)]
    _patch(ws_root, root_entry, vault_dirs)
    return root_entry, vault_dirs


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class VaultAddCommand:
    """Add one vault (or one workspace remote's vaults) to a workspace.

    *config* is the already loaded ``vaultsmith.yml``, read from *ws_root* if
    not given; *settings* default to what it says.  *reload* is called with
    ``(ws_root, new_vaults)`` once everything else succeeded.
    """

    def __init__(
        self,
        ws_root: Path,
        settings: Settings | None = None,
        reload: ReloadHook | None = None,
        config: WorkspaceConfig | None = None,
    ) -> None:
        self.ws_root = Path(ws_root).resolve()
        self.config = config
        self.settings = settings
        self.reload = reload
        self.stage = Stage.collect_input

    @contextmanager
    def _stage(self, stage: Stage) -> Iterator[None]:
        self.stage = stage
        logger.debug("stage: %s", stage.value)
        try:
            yield
        except VaultsmithError as e:
            if e.stage is None:
                e.stage = stage.value
            raise

    def run(self, request: VaultAddRequest) -> VaultAddResult:
        with self._stage(Stage.collect_input):
            request = self._validate(request)
            config = self.config
            if config is None:
                config = load_workspace_config(self.ws_root)
            settings = self.settings or load_settings(config)
        enabled = settings.enable_self_contained_vaults

        if request.source_type is SourceType.local:
            with self._stage(Stage.resolve):
                resolved = (
                    resolve_source(request.source_path, self.ws_root)
                    if request.source_path else None
                )
            with self._stage(Stage.classify):
                layout: Layout = classify_local(
                    resolved, self.ws_root,
                    self_contained_enabled=enabled,
                    source_name=request.source_name,
                )
            with self._stage(Stage.materialize):
                if isinstance(layout, PlainLocal):
                    materialize_plain_local(layout, self.ws_root)
                else:
                    materialize_self_contained_local(layout)
        else:
            with self._stage(Stage.resolve):
                pending = plan_remote(
                    request.source_path_remote or "", self.ws_root,
                    source_path=request.source_path,
                    source_name=request.source_name,
                )
            with self._stage(Stage.materialize):
                clone_remote(pending)
            with self._stage(Stage.classify):
                layout = classify_remote(
                    pending, inspect_remote_tree(pending.dest), self.ws_root,
                    self_contained_enabled=enabled,
                    source_name=request.source_name,
                )
            if isinstance(layout, RemoteWorkspace):
                with self._stage(Stage.materialize):
                    relocate_workspace(layout)

        with self._stage(Stage.reconcile_config):
            vaults, ws_remote = layout.entries()
            updated = add_vaults(config, vaults, ws_remote)
            save_workspace_config(self.ws_root, updated)
        logger.debug("Registered %s", [v.display_name for v in vaults])

        result = VaultAddResult(layout=layout, vaults=vaults, workspace_remote=ws_remote)
        with self._stage(Stage.patch_ignore):
            root_entry, vault_dirs = ignore_targets(layout)
            try:
                _patch(self.ws_root, root_entry, vault_dirs)
            except IgnoreFileError as e:
                raise IgnoreFileError(
                    f"{e}\nThe vault is registered; run "
                    f"'vaultsmith vault ignore {vaults[0].display_name}' to retry."
                ) from e
            result.root_ignore = root_entry
            result.vault_ignores = vault_dirs

        with self._stage(Stage.signal_reload):
            if self.reload is not None:
                self.reload(self.ws_root, vaults)

        self.stage = Stage.done
        return result

    def _validate(self, request: VaultAddRequest) -> VaultAddRequest:
        if not self.ws_root.is_dir():
            raise InputError(f"Workspace root {self.ws_root} does not exist.")
        try:
            source_type = SourceType(request.source_type)
        except ValueError:
            raise InputError(
                f"Unknown source type '{request.source_type}' (expected local or remote)."
            ) from None

        def clean(value: Optional[str]) -> Optional[str]:
            if value is None:
                return None
            return value.strip() or None

        source_path = clean(request.source_path)
        remote = clean(request.source_path_remote)
        name = clean(request.source_name)
        if source_type is SourceType.remote and not remote:
            raise InputError("A remote vault needs a remote URL.")
        if source_type is SourceType.local and not (source_path or name):
            raise InputError("A local vault needs a source path or a name.")
        return VaultAddRequest(
            source_type=source_type,
            source_path=source_path,
            source_path_remote=remote,
            source_name=name,
        )

