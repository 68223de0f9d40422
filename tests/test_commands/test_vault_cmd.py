"""Tests for vaultsmith.commands.vault_cmd."""

from __future__ import annotations

import argparse
from unittest.mock import patch

import pytest
import yaml

from tests.conftest import make_workspace_tree, read_config
from vaultsmith.commands.vault_cmd import make_reload_hook, run_add, run_ignore, run_list
from vaultsmith.errors import ConfigError
from vaultsmith.paths import CACHE_PATTERN, CONFIG_FILE, GITIGNORE
from vaultsmith.vaults import Vault


def _add_args(ws, source_type="local", path=None, remote=None, name=None,
              self_contained=None):
    return argparse.Namespace(
        workspace=str(ws),
        source_type=source_type,
        source_path=path,
        source_path_remote=remote,
        source_name=name,
        self_contained=self_contained,
    )


class TestRunAdd:
    def test_local(self, ws_root, capsys):
        rc = run_add(_add_args(ws_root, path="vault2", name="second"))
        assert rc == 0
        assert "Added vault 'second' (vault2)" in capsys.readouterr().out

    def test_self_contained_override(self, ws_root, capsys):
        rc = run_add(_add_args(ws_root, name="mine", self_contained=True))
        assert rc == 0
        entry = read_config(ws_root)["workspace"]["vaults"][-1]
        assert entry["selfContained"] is True
        assert entry["fsPath"] == "dependencies/localhost/mine"
        # the override is not persisted
        assert read_config(ws_root)["dev"]["enableSelfContainedVaults"] is False

    def test_workspace_remote(self, ws_root, remotes, fake_clone, capsys):
        src = make_workspace_tree(remotes / "team", ("a", "b"))
        rc = run_add(_add_args(ws_root, source_type="remote", remote=str(src)))
        assert rc == 0
        out = capsys.readouterr().out
        assert "Added workspace 'team' with 2 vault(s)" in out
        assert "Added vault 'a' (a)" in out

    def test_config_read_once(self, ws_root):
        with patch("vaultsmith.vault_add.load_workspace_config") as mock_load:
            assert run_add(_add_args(ws_root, path="vault2")) == 0
        mock_load.assert_not_called()
        assert read_config(ws_root)["workspace"]["vaults"][-1] == {"fsPath": "vault2"}

    def test_missing_config_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="vaultsmith init"):
            run_add(_add_args(tmp_path, path="v"))

    def test_reload_command_runs(self, ws_root, tmp_path):
        marker = tmp_path / "reloaded"
        path = ws_root / CONFIG_FILE
        data = yaml.safe_load(path.read_text())
        data["commands"] = {"reload": f'echo "$VAULTSMITH_WS_ROOT" > {marker}'}
        path.write_text(yaml.safe_dump(data))

        assert run_add(_add_args(ws_root, path="vault2")) == 0
        assert marker.read_text().strip() == str(ws_root.resolve())


class TestReloadHook:
    def test_no_command_does_nothing(self, tmp_path):
        with patch("vaultsmith.commands.vault_cmd.subprocess.run") as mock_run:
            make_reload_hook("")(tmp_path, [Vault(fs_path="v")])
        mock_run.assert_not_called()

    def test_failure_is_a_warning(self, tmp_path, capsys):
        with patch("vaultsmith.commands.vault_cmd.subprocess.run") as mock_run:
            mock_run.return_value.returncode = 3
            make_reload_hook("reload-it")(tmp_path, [Vault(fs_path="v")])
        assert "exited with 3" in capsys.readouterr().err
        _, kwargs = mock_run.call_args
        assert kwargs["cwd"] == tmp_path
        assert kwargs["env"]["VAULTSMITH_WS_ROOT"] == str(tmp_path)


class TestRunList:
    def test_lists_vaults(self, ws_root, capsys):
        run_add(_add_args(ws_root, path="vault2", name="second"))
        capsys.readouterr()
        rc = run_list(argparse.Namespace(workspace=str(ws_root)))
        assert rc == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["NAME", "WORKSPACE", "FSPATH"]
        assert lines[1].split() == ["vault", "-", "vault"]
        assert lines[2].split() == ["second", "-", "vault2"]

    def test_empty(self, tmp_path, capsys):
        (tmp_path / CONFIG_FILE).write_text("workspace:\n  vaults: []\n")
        assert run_list(argparse.Namespace(workspace=str(tmp_path))) == 0
        assert "No vaults registered." in capsys.readouterr().out

    def test_no_config(self, tmp_path, capsys):
        assert run_list(argparse.Namespace(workspace=str(tmp_path))) == 1
        assert "vaultsmith init" in capsys.readouterr().err


class TestRunIgnore:
    def test_repairs_remote_vault(self, ws_root, capsys):
        path = ws_root / CONFIG_FILE
        data = yaml.safe_load(path.read_text())
        data["workspace"]["vaults"].append({
            "fsPath": "dependencies/r",
            "name": "r",
            "remote": {"type": "git", "url": "https://example.com/r.git"},
        })
        path.write_text(yaml.safe_dump(data))
        (ws_root / "dependencies" / "r").mkdir(parents=True)

        rc = run_ignore(argparse.Namespace(workspace=str(ws_root), name="r"))
        assert rc == 0
        assert (ws_root / GITIGNORE).read_text() == "dependencies\n"
        assert (ws_root / "dependencies" / "r" / GITIGNORE).read_text() == CACHE_PATTERN + "\n"
        assert "Root .gitignore covers 'dependencies'" in capsys.readouterr().out

    def test_by_basename(self, ws_root, capsys):
        rc = run_ignore(argparse.Namespace(workspace=str(ws_root), name="vault"))
        assert rc == 0
        assert (ws_root / GITIGNORE).read_text() == "vault\n"

    def test_unknown_vault(self, ws_root, capsys):
        rc = run_ignore(argparse.Namespace(workspace=str(ws_root), name="nope"))
        assert rc == 1
        assert "No vault named 'nope'" in capsys.readouterr().err
