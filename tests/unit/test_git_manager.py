"""
Unit tests for RepositorySynchronizer.
"""

from unittest.mock import patch

import pytest

from dockship.core.credentials import HeaderCredentialProvider, UrlCredentialProvider
from dockship.core.git_manager import RepositorySynchronizer
from dockship.exceptions import RepositoryError


class TestRepositorySynchronizer:

    @pytest.fixture
    def request_(self, make_request):
        return make_request()

    @patch("dockship.core.git_manager.subprocess.run")
    def test_clone_when_absent(self, mock_run, tmp_path, request_, completed):
        mock_run.return_value = completed()
        sync = RepositorySynchronizer(tmp_path, HeaderCredentialProvider("s3cr3t"))

        repo_root = sync.sync(request_)

        assert repo_root == tmp_path / "app"
        args = mock_run.call_args[0][0]
        assert args == ["git", "clone", "--branch", "main", "https://example.com/org/app.git", str(tmp_path / "app")]
        assert mock_run.call_args[1]["cwd"] == tmp_path
        # Token travels through the environment, not argv
        assert "s3cr3t" not in " ".join(args)
        assert mock_run.call_args[1]["env"]["GIT_CONFIG_KEY_0"] == "http.extraHeader"

    @patch("dockship.core.git_manager.subprocess.run")
    def test_clone_with_url_credentials(self, mock_run, tmp_path, request_, completed):
        mock_run.return_value = completed()
        sync = RepositorySynchronizer(tmp_path, UrlCredentialProvider("s3cr3t"))

        sync.sync(request_)

        args = mock_run.call_args[0][0]
        assert "https://s3cr3t@example.com/org/app.git" in args

    @patch("dockship.core.git_manager.subprocess.run")
    def test_clone_failure(self, mock_run, tmp_path, request_, completed):
        mock_run.return_value = completed(128, stderr="fatal: could not read from https://s3cr3t@example.com")
        sync = RepositorySynchronizer(tmp_path, UrlCredentialProvider("s3cr3t"))

        with pytest.raises(RepositoryError, match="Git clone failed") as exc_info:
            sync.sync(request_)
        assert "s3cr3t" not in exc_info.value.details["stderr"]

    @patch("dockship.core.git_manager.subprocess.run")
    def test_existing_repo_checkout_and_pull(self, mock_run, tmp_path, request_, completed):
        (tmp_path / "app").mkdir()
        mock_run.return_value = completed()
        sync = RepositorySynchronizer(tmp_path)

        repo_root = sync.sync(request_)

        assert repo_root == tmp_path / "app"
        commands = [call[0][0] for call in mock_run.call_args_list]
        assert commands == [["git", "checkout", "main"], ["git", "pull"]]
        assert all(call[1]["cwd"] == tmp_path / "app" for call in mock_run.call_args_list)

    @patch("dockship.core.git_manager.subprocess.run")
    def test_missing_branch(self, mock_run, tmp_path, make_request, completed):
        (tmp_path / "app").mkdir()
        mock_run.return_value = completed(1, stderr="error: pathspec 'nope' did not match")
        sync = RepositorySynchronizer(tmp_path)

        with pytest.raises(RepositoryError, match="Branch nope not found"):
            sync.sync(make_request(branch="nope"))
        assert mock_run.call_count == 1

    @patch("dockship.core.git_manager.subprocess.run")
    def test_pull_failure(self, mock_run, tmp_path, request_, completed):
        (tmp_path / "app").mkdir()
        mock_run.side_effect = [completed(), completed(1, stderr="fatal: Not possible to fast-forward")]
        sync = RepositorySynchronizer(tmp_path)

        with pytest.raises(RepositoryError, match="Git pull failed") as exc_info:
            sync.sync(request_)
        assert exc_info.value.error_code == "pull_failed"
