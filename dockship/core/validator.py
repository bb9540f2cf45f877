"""
Post-deployment reachability check.
"""

from typing import Iterable, Tuple

from ..config.settings import DEFAULT_ACCEPT_STATUS, VALIDATION_URL
from ..exceptions import ValidationError
from ..utils.logging import log_info, log_success
from ..utils.ssh_manager import SSHConnectionManager

PROBE_COMMAND = f"curl -s -o /dev/null -w '%{{http_code}}' {VALIDATION_URL}"


class DeploymentValidator:
    """Probes the proxy on the host and checks the HTTP status code."""

    def __init__(self, ssh: SSHConnectionManager,
                 accept_status: Iterable[int] = DEFAULT_ACCEPT_STATUS):
        self.ssh = ssh
        self.accept_status: Tuple[int, ...] = tuple(int(code) for code in accept_status)

    def fetch_status(self) -> str:
        """Return the status code reported by curl on the host ("000" on failure)."""
        try:
            result = self.ssh.execute_remote(PROBE_COMMAND)
        except FileNotFoundError:
            return "000"
        code = (result.stdout or "").strip()[-3:]
        return code if code.isdigit() else "000"

    def is_accepted(self, code: str) -> bool:
        return code.isdigit() and int(code) in self.accept_status

    def validate(self) -> str:
        """Run the probe.

        Returns:
            The accepted status code

        Raises:
            ValidationError: If the status is not accepted
        """
        log_info("Validating deployment...")
        code = self.fetch_status()
        if not self.is_accepted(code):
            raise ValidationError(
                "Deployment completed, but app is not responding.",
                error_code="validation_failed",
                details={"status_code": code, "accepted": list(self.accept_status)},
                status_code=code,
            )
        log_success("Deployment successful and accessible.")
        return code
