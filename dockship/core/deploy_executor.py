"""
Application deployment on the remote host.
"""

import shlex
from pathlib import Path
from typing import Optional

from ..exceptions import RemoteCommandError
from ..utils.logging import log_error, log_info, log_success
from ..utils.remote_scripts import COMPOSE_DETECT
from ..utils.ssh_manager import SSHConnectionManager, remote_path_expr
from .models import DeploymentMethod, DeploymentRequest


def build_deploy_command(method: DeploymentMethod, request: DeploymentRequest,
                         manifest: Optional[Path] = None) -> str:
    """Build the remote command that (re)starts the application.

    Args:
        method: Detected deployment method
        request: Deployment request (port, target names, remote dir)
        manifest: Compose manifest used for COMPOSE deployments

    Returns:
        Shell command string for the remote host
    """
    target = request.target
    cd = f"cd {remote_path_expr(target.remote_dir)}"

    if method is DeploymentMethod.COMPOSE:
        file_args = f" -f {shlex.quote(manifest.name)}" if manifest is not None else ""
        return (
            f"{cd} && {COMPOSE_DETECT} && "
            f"sudo $COMPOSE{file_args} down && "
            f"sudo $COMPOSE{file_args} up -d"
        )

    name = shlex.quote(target.container_name)
    image = shlex.quote(target.image)
    port = int(request.app_port)
    return (
        f"{cd} && sudo docker build -t {image} . && "
        f"(sudo docker stop {name} || true) && "
        f"(sudo docker rm {name} || true) && "
        f"sudo docker run -d --name {name} -p {port}:{port} {image}"
    )


class DeploymentExecutor:
    """Runs the deployment command for the detected method."""

    def __init__(self, ssh: SSHConnectionManager):
        self.ssh = ssh

    def deploy(self, method: DeploymentMethod, request: DeploymentRequest,
               manifest: Optional[Path] = None) -> None:
        """Run the deployment command over SSH.

        Raises:
            RemoteCommandError: If the remote command exits non-zero
        """
        command = build_deploy_command(method, request, manifest)
        log_success("Deployment command successfully set.")
        log_info("Deploying application...")
        try:
            returncode, _, stderr_lines = self.ssh.execute_remote_script(command + "\n")
        except FileNotFoundError:
            raise RemoteCommandError("ssh command not found.", error_code="ssh_missing", stage="deploy")

        if returncode != 0:
            for line in stderr_lines[-10:]:
                log_error(f"  {line}")
            raise RemoteCommandError(
                "Deployment failed.",
                error_code="deploy_failed",
                stage="deploy",
                returncode=returncode,
            )
        log_success("App deployment successful.")
