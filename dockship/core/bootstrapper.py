"""
Remote host bootstrap for dockship.

This module prepares the deployment host by installing Docker, Docker
Compose and Nginx and making sure their services run.
"""

from ..exceptions import RemoteCommandError
from ..utils.logging import log_error, log_info, log_success
from ..utils.remote_scripts import compose_bootstrap_script
from ..utils.ssh_manager import SSHConnectionManager


class RemoteBootstrapper:
    """Prepares the remote host for container deployments."""

    def __init__(self, ssh: SSHConnectionManager, package_manager: str = "auto"):
        self.ssh = ssh
        self.package_manager = package_manager

    def build_script(self) -> str:
        return compose_bootstrap_script(self.ssh.username, self.package_manager)

    def bootstrap(self) -> None:
        """Run the bootstrap script on the host.

        Raises:
            RemoteCommandError: If the script exits non-zero
        """
        log_info("Setting up remote server...")
        log_info("This may take a few minutes on a fresh host...")
        try:
            returncode, _, stderr_lines = self.ssh.execute_remote_script(self.build_script())
        except FileNotFoundError:
            raise RemoteCommandError("ssh command not found.", error_code="ssh_missing", stage="bootstrap")

        if returncode != 0:
            for line in stderr_lines[-10:]:
                log_error(f"  {line}")
            raise RemoteCommandError(
                "Remote setup failed.",
                error_code="bootstrap_failed",
                stage="bootstrap",
                returncode=returncode,
            )
        log_success("Remote server setup completed.")
