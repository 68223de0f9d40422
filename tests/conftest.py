"""Shared fixtures for vaultsmith tests."""

from __future__ import annotations

pytest_plugins = ["tests.conftest_integration"]

import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from vaultsmith.config import config_path, create_workspace_config
from vaultsmith.materialize import make_self_contained, scaffold_vault
from vaultsmith.paths import CONFIG_FILE
from vaultsmith.vaults import Vault


@pytest.fixture
def ws_root(tmp_path):
    """A workspace with ``vaultsmith.yml`` and one scaffolded vault, ``vault``."""
    root = tmp_path / "workspace"
    root.mkdir()
    create_workspace_config(root, [Vault(fs_path="vault")])
    scaffold_vault(root / "vault")
    return root


@pytest.fixture
def self_contained_ws(ws_root):
    """``ws_root`` with dev.enableSelfContainedVaults turned on."""
    path = config_path(ws_root)
    data = yaml.safe_load(path.read_text())
    data["dev"]["enableSelfContainedVaults"] = True
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return ws_root


@pytest.fixture
def remotes(tmp_path):
    """Directory outside the workspace holding stand-in remote trees."""
    d = tmp_path / "remotes"
    d.mkdir()
    return d


# ---------------------------------------------------------------------------
# Stand-in remote trees (no git needed)
# ---------------------------------------------------------------------------

def make_regular_vault_tree(root: Path) -> Path:
    """A single regular vault: notes at the top level, no config file."""
    scaffold_vault(root)
    return root


def make_self_contained_vault_tree(root: Path) -> Path:
    """A self-contained vault: config file plus ``notes/``."""
    root.mkdir(parents=True, exist_ok=True)
    make_self_contained(root, root.name)
    return root


def make_workspace_tree(root: Path, vaults: tuple[str, ...] = ("vault",)) -> Path:
    """A workspace: config file listing *vaults*, one folder per vault."""
    root.mkdir(parents=True, exist_ok=True)
    create_workspace_config(root, [Vault(fs_path=v) for v in vaults])
    for v in vaults:
        scaffold_vault(root / v)
    return root


@pytest.fixture
def fake_clone():
    """Patch git clone with a copy of the source directory.

    Yields the mock so tests can inspect calls or set ``side_effect``.
    """
    def _copy(url, dest):
        shutil.copytree(url, dest, dirs_exist_ok=True)
        return dest

    with patch("vaultsmith.materialize.clone", side_effect=_copy) as m:
        yield m


def read_config(root: Path) -> dict:
    return yaml.safe_load((root / CONFIG_FILE).read_text())
