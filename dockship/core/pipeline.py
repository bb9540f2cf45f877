"""
Deployment pipeline orchestration for dockship.

Stages run strictly in order and each depends on the previous one
succeeding. The first failing stage ends the run; earlier stages are not
rolled back. The pipeline never exits the process itself: it returns a
DeploymentReport and leaves the exit decision to the caller.
"""

import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Optional

from ..exceptions import DeploymentAborted, DockshipError
from ..utils.logging import log_error, log_info, log_phase, print_plain
from ..utils.ssh_manager import SSHConnectionManager
from .bootstrapper import RemoteBootstrapper
from .credentials import CredentialProvider
from .deploy_executor import DeploymentExecutor, build_deploy_command
from .detector import detect_deployment_method
from .git_manager import RepositorySynchronizer
from .models import DeploymentReport, DeploymentRequest, StageOutcome
from .nginx_config import NginxConfigurator, render_server_block
from .transfer_manager import TransferManager
from .validator import DeploymentValidator

STAGES = (
    ("sync", "Repository sync"),
    ("detect", "Deployment method detection"),
    ("connect", "Connectivity probe"),
    ("bootstrap", "Remote host bootstrap"),
    ("transfer", "Artifact transfer"),
    ("deploy", "Application deployment"),
    ("proxy", "Reverse proxy configuration"),
    ("validate", "Validation"),
)
STAGE_TITLES = dict(STAGES)


@contextmanager
def abort_on_signals():
    """Turn SIGINT/SIGTERM into DeploymentAborted for the duration of a run."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        raise DeploymentAborted(
            "Script interrupted unexpectedly.",
            error_code="interrupted",
            details={"signal": signum},
            exit_code=130,
        )

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


class DeploymentPipeline:
    """Runs every deployment stage for one request."""

    def __init__(self, workdir: Optional[Path] = None,
                 credentials: Optional[CredentialProvider] = None,
                 dry_run: bool = False):
        self.workdir = Path(workdir) if workdir else Path.cwd()
        self.credentials = credentials
        self.dry_run = dry_run

    def make_ssh(self, request: DeploymentRequest) -> SSHConnectionManager:
        return SSHConnectionManager(request.ssh_user, request.server, request.ssh_key)

    def _stage(self, report: DeploymentReport, name: str, func: Callable[[], Any]) -> Any:
        log_phase(STAGE_TITLES[name])
        try:
            value = func()
        except DockshipError as exc:
            report.add(StageOutcome(name, False, error=exc))
            raise
        report.add(StageOutcome(name, True, value=value))
        return value

    def run(self, request: DeploymentRequest) -> DeploymentReport:
        """Run the pipeline.

        Returns:
            DeploymentReport; ``succeeded`` is True only if every stage,
            including validation, passed.
        """
        report = DeploymentReport()
        try:
            with abort_on_signals():
                self._run_stages(request, report)
        except DockshipError as exc:
            if report.error is not exc:
                report.add(StageOutcome("aborted", False, error=exc))
            log_error(exc.message)
            return report

        log_info("All steps completed successfully.")
        return report

    def _run_stages(self, request: DeploymentRequest, report: DeploymentReport) -> None:
        target = request.target
        synchronizer = RepositorySynchronizer(self.workdir, self.credentials)

        repo_root = self._stage(report, "sync", lambda: synchronizer.sync(request))
        report.repo_root = repo_root

        method, manifest = self._stage(report, "detect", lambda: detect_deployment_method(repo_root))
        report.method = method
        log_info(f"Deployment method set as: {method.value}.")

        if self.dry_run:
            self._describe(request, method, manifest)
            return

        ssh = self.make_ssh(request)
        self._stage(report, "connect", ssh.probe)
        self._stage(report, "bootstrap", RemoteBootstrapper(ssh, target.package_manager).bootstrap)
        self._stage(
            report, "transfer",
            lambda: TransferManager(ssh, target.remote_dir, target.exclude).transfer(repo_root),
        )
        self._stage(report, "deploy", lambda: DeploymentExecutor(ssh).deploy(method, request, manifest))
        self._stage(report, "proxy", lambda: NginxConfigurator(ssh).configure(request.app_port))
        self._stage(report, "validate", DeploymentValidator(ssh, target.accept_status).validate)

    def _describe(self, request: DeploymentRequest, method, manifest) -> None:
        log_info("Dry run: no remote command will be executed.")
        log_info(f"Target: {request.ssh_destination}:{request.target.remote_dir}")
        log_info("Deployment command:")
        print_plain(build_deploy_command(method, request, manifest))
        log_info("Nginx server block:")
        print_plain(render_server_block(request.app_port))
