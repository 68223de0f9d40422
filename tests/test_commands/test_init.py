"""Tests for vaultsmith.commands.init."""

from __future__ import annotations

import argparse

import yaml

from vaultsmith.commands.init import run_init
from vaultsmith.paths import CONFIG_FILE


def _args(ws, vault="vault", self_contained=False):
    return argparse.Namespace(workspace=str(ws), vault=vault, self_contained=self_contained)


class TestRunInit:
    def test_creates_workspace(self, tmp_path, capsys):
        ws = tmp_path / "ws"
        rc = run_init(_args(ws))

        assert rc == 0
        data = yaml.safe_load((ws / CONFIG_FILE).read_text())
        assert data["workspace"]["vaults"] == [{"fsPath": "vault"}]
        assert data["dev"]["enableSelfContainedVaults"] is False
        assert (ws / "vault" / "root.md").is_file()
        assert "Initialized workspace" in capsys.readouterr().out

    def test_self_contained_flag(self, tmp_path):
        ws = tmp_path / "ws"
        run_init(_args(ws, self_contained=True))
        data = yaml.safe_load((ws / CONFIG_FILE).read_text())
        assert data["dev"]["enableSelfContainedVaults"] is True

    def test_existing_vault_not_scaffolded(self, tmp_path):
        ws = tmp_path / "ws"
        (ws / "notes").mkdir(parents=True)
        (ws / "notes" / "a.md").write_text("a")
        assert run_init(_args(ws, vault="notes")) == 0
        assert [p.name for p in (ws / "notes").iterdir()] == ["a.md"]

    def test_already_initialized(self, ws_root, capsys):
        rc = run_init(_args(ws_root))
        assert rc == 1
        assert "already exists" in capsys.readouterr().err

    def test_vault_outside_workspace(self, tmp_path, capsys):
        ws = tmp_path / "ws"
        rc = run_init(_args(ws, vault=str(tmp_path / "elsewhere")))
        assert rc == 1
        assert "must be inside" in capsys.readouterr().err
        assert not (ws / CONFIG_FILE).exists()
