"""
Repository synchronisation for dockship.

This module clones the requested repository, or brings an existing local
clone up to date on the requested branch.
"""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..exceptions import RepositoryError
from ..utils.logging import log_info, log_success
from .credentials import CredentialProvider, NoCredentialProvider, redact
from .models import DeploymentRequest


class RepositorySynchronizer:
    """Produces a local working tree at the latest commit of a branch."""

    def __init__(self, workdir: Optional[Path] = None,
                 credentials: Optional[CredentialProvider] = None):
        """Initialize repository synchronizer.

        Args:
            workdir: Directory holding the clone. Defaults to cwd.
            credentials: Provider used to authenticate git over https
        """
        self.workdir = Path(workdir).resolve() if workdir else Path.cwd()
        self.credentials = credentials or NoCredentialProvider()

    def _git_env(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.credentials.git_env())
        return env

    def _run_git(self, args: List[str], cwd: Path) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=cwd,
            env=self._git_env(),
        )

    def repo_path(self, request: DeploymentRequest) -> Path:
        return self.workdir / request.repo_name

    def sync(self, request: DeploymentRequest) -> Path:
        """Clone or update the repository.

        Returns:
            Path to the repository root

        Raises:
            RepositoryError: If checkout, pull or clone fails
        """
        repo_path = self.repo_path(request)
        log_info("Cloning or updating repository...")
        if repo_path.is_dir():
            log_info("Repository already exists. Pulling latest changes...")
            self.update(repo_path, request.branch, request.access_token)
        else:
            self.clone(request.repo_url, request.branch, repo_path, request.access_token)
        return repo_path

    def update(self, repo_path: Path, branch: str, token: str = "") -> None:
        """Check out branch in an existing clone and pull."""
        result = self._run_git(["checkout", branch], cwd=repo_path)
        if result.returncode != 0:
            raise RepositoryError(
                f"Branch {branch} not found.",
                error_code="branch_not_found",
                details={"stderr": redact(result.stderr.strip(), token)},
            )
        log_info(f"Checked out branch {branch}.")

        result = self._run_git(["pull"], cwd=repo_path)
        if result.returncode != 0:
            raise RepositoryError(
                "Git pull failed.",
                error_code="pull_failed",
                details={"stderr": redact(result.stderr.strip(), token)},
            )
        log_info("Pulled latest changes.")

    def clone(self, repo_url: str, branch: str, repo_path: Path, token: str = "") -> None:
        """Clone repo_url into repo_path with branch checked out."""
        url = self.credentials.clone_url(repo_url)
        result = self._run_git(
            ["clone", "--branch", branch, url, str(repo_path)],
            cwd=self.workdir,
        )
        if result.returncode != 0:
            raise RepositoryError(
                "Git clone failed.",
                error_code="clone_failed",
                details={"stderr": redact(result.stderr.strip(), token)},
            )
        log_success("Cloned repository successfully.")
