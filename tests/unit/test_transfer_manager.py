"""
Unit tests for TransferManager.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from dockship.core.transfer_manager import TransferManager
from dockship.exceptions import RemoteCommandError
from dockship.utils.ssh_manager import SSHConnectionManager


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "app"
    (root / ".git").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "Dockerfile").write_text("FROM node:20\n")
    (root / "node_modules").mkdir()
    return root


@pytest.fixture
def manager():
    ssh = SSHConnectionManager("deploy", "203.0.113.10", Path("/keys/id"))
    return TransferManager(ssh, "~/app", exclude=(".git", "node_*"))


class TestTransferManager:

    def test_rsync_command(self, manager, repo):
        cmd = manager.build_rsync_command(repo)

        assert cmd[:3] == ["rsync", "-az", "--delete"]
        assert cmd[cmd.index("-e") + 1].startswith("ssh -i /keys/id")
        assert ["--exclude", ".git"] == cmd[cmd.index(".git") - 1: cmd.index(".git") + 1]
        assert cmd[-2] == f"{repo}/"
        assert cmd[-1] == "deploy@203.0.113.10:~/app/"

    def test_transfer_sources_skip_excluded(self, manager, repo):
        names = [Path(p).name for p in manager.transfer_sources(repo)]
        assert names == ["Dockerfile", "src"]

    def test_scp_command(self, manager, repo):
        cmd = manager.build_scp_command(repo)

        assert cmd[0] == "scp"
        assert cmd[-1] == "deploy@203.0.113.10:~/app/"
        assert str(repo / ".git") not in cmd

    @patch("dockship.core.transfer_manager.validate_rsync_installed", return_value=True)
    @patch("dockship.core.transfer_manager.subprocess.run")
    def test_transfer_with_rsync(self, mock_run, _, manager, repo, completed):
        mock_run.return_value = completed()
        with patch.object(manager.ssh, "execute_remote", return_value=completed()) as mock_remote:
            manager.transfer(repo)

        mock_remote.assert_called_once_with("mkdir -p ~/app")
        assert mock_run.call_args[0][0][0] == "rsync"

    @patch("dockship.core.transfer_manager.validate_rsync_installed", return_value=False)
    @patch("dockship.core.transfer_manager.subprocess.run")
    def test_transfer_falls_back_to_scp(self, mock_run, _, manager, repo, completed):
        mock_run.return_value = completed()
        with patch.object(manager.ssh, "execute_remote", return_value=completed()):
            manager.transfer(repo)

        assert mock_run.call_args[0][0][0] == "scp"

    @patch("dockship.core.transfer_manager.validate_rsync_installed", return_value=True)
    @patch("dockship.core.transfer_manager.subprocess.run")
    def test_transfer_failure(self, mock_run, _, manager, repo, completed):
        mock_run.return_value = completed(12, stderr="rsync error: error in rsync protocol data stream")
        with patch.object(manager.ssh, "execute_remote", return_value=completed()):
            with pytest.raises(RemoteCommandError, match="Failed to transfer files") as exc_info:
                manager.transfer(repo)

        assert exc_info.value.stage == "transfer"
        assert exc_info.value.returncode == 12

    def test_remote_dir_failure(self, manager, repo, completed):
        with patch.object(manager.ssh, "execute_remote", return_value=completed(1)):
            with pytest.raises(RemoteCommandError, match="remote directory"):
                manager.transfer(repo)
