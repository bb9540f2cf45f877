"""
SSH connection manager for dockship.

Every remote action is a single, non-interactive ``ssh`` (or ``scp`` /
``rsync``) invocation authenticated with the validated private key. This
module builds those argument lists and runs them.
"""

import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config.settings import SSH_CONNECT_TIMEOUT
from ..exceptions import ConnectivityError
from .logging import log_info, log_success
from .streaming import execute_with_streaming


def remote_path_expr(path: str) -> str:
    """Quote a remote path for the remote shell, keeping a leading ``~``.

    >>> remote_path_expr("~/app")
    '~/app'
    >>> remote_path_expr("/srv/my app")
    "'/srv/my app'"
    """
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


class SSHConnectionManager:
    """Builds and runs SSH commands against one deployment host."""

    def __init__(self, username: str, server: str, key_path: Path,
                 connect_timeout: int = SSH_CONNECT_TIMEOUT, port: int = 22):
        self.username = username
        self.server = server
        self.key_path = Path(key_path)
        self.connect_timeout = connect_timeout
        self.port = port

    @property
    def destination(self) -> str:
        return f"{self.username}@{self.server}"

    def ssh_options(self) -> List[str]:
        """Options shared by ssh, scp and rsync's remote shell."""
        return [
            "-i", str(self.key_path),
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={self.connect_timeout}",
            "-o", "StrictHostKeyChecking=accept-new",
            "-o", "ServerAliveInterval=60",
            "-o", "ServerAliveCountMax=3",
        ]

    def build_ssh_command(self, command: Optional[str] = None) -> List[str]:
        """Build SSH command.

        Args:
            command: Remote command to execute (optional). Passed as one
                argument so the remote shell sees it unchanged.

        Returns:
            List of command arguments
        """
        cmd = ["ssh", *self.ssh_options()]
        if self.port != 22:
            cmd.extend(["-p", str(self.port)])
        cmd.append(self.destination)
        if command:
            cmd.append(command)
        return cmd

    def build_scp_command(self, sources: Sequence[str], remote_path: str) -> List[str]:
        """Build a recursive SCP command copying sources into remote_path."""
        cmd = ["scp", "-r", "-C", *self.ssh_options()]
        if self.port != 22:
            cmd.extend(["-P", str(self.port)])
        cmd.extend(sources)
        cmd.append(f"{self.destination}:{remote_path}")
        return cmd

    def rsync_remote_shell(self) -> str:
        """Return the ``-e`` argument for rsync."""
        cmd = ["ssh", *self.ssh_options()]
        if self.port != 22:
            cmd.extend(["-p", str(self.port)])
        return shlex.join(cmd)

    def execute_remote(self, command: str,
                       timeout: Optional[int] = None,
                       check: bool = False,
                       capture_output: bool = True) -> subprocess.CompletedProcess:
        """Execute remote command via SSH.

        Args:
            command: Remote command to execute
            timeout: Command timeout in seconds
            check: Whether to raise exception on non-zero exit code
            capture_output: Whether to capture stdout/stderr

        Returns:
            CompletedProcess result
        """
        return subprocess.run(
            self.build_ssh_command(command),
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            check=check,
        )

    def execute_remote_script(self, script: str,
                              timeout: Optional[int] = None) -> Tuple[int, List[str], List[str]]:
        """Execute a bash script on the host via SSH stdin, streaming output.

        Returns:
            Tuple of (returncode, stdout_lines, stderr_lines)
        """
        return execute_with_streaming(
            self.build_ssh_command("bash -s"),
            script=script,
            timeout=timeout,
        )

    def probe(self) -> None:
        """Check that the host is reachable and the key is accepted.

        Raises:
            ConnectivityError: If the probe command does not succeed
        """
        log_info(f"Testing SSH connection to {self.server}...")
        try:
            result = self.execute_remote(
                "echo SSH connection successful",
                timeout=self.connect_timeout * 6,
            )
        except FileNotFoundError:
            raise ConnectivityError("ssh command not found.", error_code="ssh_missing")
        except subprocess.TimeoutExpired:
            raise ConnectivityError("SSH connection test timed out.", error_code="ssh_timeout")

        if result.returncode != 0:
            raise ConnectivityError(
                "SSH connection test failed.",
                error_code="ssh_unreachable",
                details={"stderr": (result.stderr or "").strip()},
            )
        log_success("SSH connection test passed.")
