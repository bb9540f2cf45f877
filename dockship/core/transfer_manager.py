"""
File transfer for dockship.

The working tree is copied into the remote application directory with
rsync (delta transfer, ignore list honoured) or, when rsync is not
installed locally, with a recursive scp of every non-excluded entry.
"""

import fnmatch
import subprocess
from pathlib import Path
from typing import List, Sequence

from ..exceptions import RemoteCommandError
from ..utils.logging import log_error, log_info, log_success
from ..utils.ssh_manager import SSHConnectionManager, remote_path_expr
from ..utils.validation import validate_rsync_installed


class TransferManager:
    """Copies the local working tree to the remote host."""

    def __init__(self, ssh: SSHConnectionManager, remote_dir: str, exclude: Sequence[str] = ()):
        self.ssh = ssh
        self.remote_dir = remote_dir
        self.exclude = tuple(exclude)

    def build_rsync_command(self, source_dir: Path) -> List[str]:
        """Build the rsync command for source_dir.

        Trailing slash on the source copies the directory contents rather
        than the directory itself.
        """
        cmd = ["rsync", "-az", "--delete", "-e", self.ssh.rsync_remote_shell()]
        for pattern in self.exclude:
            cmd.extend(["--exclude", pattern])
        cmd.append(f"{source_dir}/")
        cmd.append(f"{self.ssh.destination}:{self.remote_dir.rstrip('/')}/")
        return cmd

    def transfer_sources(self, source_dir: Path) -> List[str]:
        """Top-level entries of source_dir that are not excluded, sorted."""
        return [
            str(entry)
            for entry in sorted(Path(source_dir).iterdir())
            if not any(fnmatch.fnmatch(entry.name, pattern) for pattern in self.exclude)
        ]

    def build_scp_command(self, source_dir: Path) -> List[str]:
        return self.ssh.build_scp_command(
            self.transfer_sources(source_dir),
            self.remote_dir.rstrip("/") + "/",
        )

    def ensure_remote_dir(self) -> None:
        """Create the remote directory with mkdir -p."""
        result = self.ssh.execute_remote(f"mkdir -p {remote_path_expr(self.remote_dir)}")
        if result.returncode != 0:
            raise RemoteCommandError(
                f"Failed to create remote directory {self.remote_dir}.",
                error_code="remote_dir_failed",
                stage="transfer",
                returncode=result.returncode,
            )

    def transfer(self, source_dir: Path) -> None:
        """Copy source_dir into the remote directory.

        Raises:
            RemoteCommandError: If the transfer fails
        """
        log_info("Transferring project files to remote server...")
        try:
            self.ensure_remote_dir()

            if validate_rsync_installed():
                cmd = self.build_rsync_command(source_dir)
                tool = "rsync"
            else:
                log_info("rsync not available locally, falling back to scp")
                sources = self.transfer_sources(source_dir)
                if not sources:
                    log_info("Nothing to transfer.")
                    return
                cmd = self.build_scp_command(source_dir)
                tool = "scp"

            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise RemoteCommandError(f"Transfer command not found: {e}", error_code="transfer_tool_missing",
                                     stage="transfer")

        if result.returncode != 0:
            error_msg = result.stderr.strip() if result.stderr else f"{tool} exited with {result.returncode}"
            log_error(f"{tool} transfer failed: {error_msg}")
            raise RemoteCommandError(
                "Failed to transfer files.",
                error_code="transfer_failed",
                stage="transfer",
                returncode=result.returncode,
            )
        log_success(f"File transfer to server at {self.ssh.server} successful.")
