"""Tests for vaultsmith.git."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tests.conftest_integration import commit_all, requires_git
from vaultsmith.errors import GitError, MaterializeError
from vaultsmith.git import clone, is_url, repo_name_from_url


class TestIsUrl:
    @pytest.mark.parametrize("source", [
        "https://github.com/owner/notes.git",
        "ssh://git@host/owner/notes",
        "file:///tmp/notes",
        "git@github.com:owner/notes.git",
    ])
    def test_urls(self, source):
        assert is_url(source)

    @pytest.mark.parametrize("source", ["/tmp/notes", "relative/notes", "notes"])
    def test_paths(self, source):
        assert not is_url(source)


class TestRepoNameFromUrl:
    @pytest.mark.parametrize("url, name", [
        ("https://github.com/owner/notes.git", "notes"),
        ("https://github.com/owner/notes", "notes"),
        ("https://github.com/owner/notes/", "notes"),
        ("git@github.com:owner/notes.git", "notes"),
        ("ssh://git@host:2222/owner/team-vault.git", "team-vault"),
    ])
    def test_remote_urls(self, url, name):
        assert repo_name_from_url(url) == name

    def test_plain_directory_falls_back_to_basename(self, tmp_path):
        remote = tmp_path / "tmp-123-remote"
        assert repo_name_from_url(str(remote)) == "tmp-123-remote"

    def test_no_name_raises(self):
        with pytest.raises(GitError, match="Cannot derive"):
            repo_name_from_url("https://example.com/")


class TestClone:
    def test_runs_git_clone(self, tmp_path):
        dest = tmp_path / "deps" / "notes"
        result = MagicMock(returncode=0, stdout="", stderr="")
        with patch("vaultsmith.git.subprocess.run", return_value=result) as run:
            assert clone("https://h/o/notes.git", dest) == dest
        run.assert_called_once()
        assert run.call_args[0][0] == ["git", "clone", "https://h/o/notes.git", str(dest)]
        assert dest.parent.is_dir()

    def test_failure_raises_git_error(self, tmp_path):
        result = MagicMock(returncode=128, stdout="", stderr="fatal: repository not found")
        with patch("vaultsmith.git.subprocess.run", return_value=result):
            with pytest.raises(GitError, match="repository not found"):
                clone("https://h/o/missing.git", tmp_path / "x")

    def test_git_error_is_materialize_error(self, tmp_path):
        result = MagicMock(returncode=1, stdout="", stderr="boom")
        with patch("vaultsmith.git.subprocess.run", return_value=result):
            with pytest.raises(MaterializeError):
                clone("u", tmp_path / "x")

    def test_missing_git_binary(self, tmp_path):
        with patch("vaultsmith.git.subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(GitError, match="not installed"):
                clone("u", tmp_path / "x")


@pytest.mark.integration
@requires_git
class TestCloneIntegration:
    def test_clones_local_repo(self, tmp_path, git_identity):
        src = tmp_path / "src"
        src.mkdir()
        (src / "root.md").write_text("hello\n")
        commit_all(src)

        dest = tmp_path / "out" / "src"
        clone(str(src), dest)
        assert (dest / "root.md").read_text() == "hello\n"
        assert (dest / ".git").is_dir()

    def test_clone_of_missing_path_fails(self, tmp_path, git_identity):
        with pytest.raises(GitError):
            clone(str(tmp_path / "nope"), tmp_path / "out")
