"""
Deploy command for dockship.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import click

from dockship.cli.helpers import add_json_option, add_verbose_option, command_wrapper
from dockship.config.settings import (
    CREDENTIAL_MODES,
    DEFAULT_CREDENTIAL_MODE,
    SUPPORTED_PACKAGE_MANAGERS,
    get_env_defaults,
    load_config_file,
)
from dockship.core.credentials import get_credential_provider
from dockship.core.inputs import InputCollector, build_target
from dockship.core.pipeline import DeploymentPipeline, abort_on_signals
from dockship.exceptions import DockshipCommandError
from dockship.utils.json_output import JSONOutput
from dockship.utils.logging import log_warning


def merge_settings(config: Dict[str, Any], env: Dict[str, Any], options: Dict[str, Any]) -> Dict[str, Any]:
    """Merge settings; CLI options win over environment, environment over config."""
    merged: Dict[str, Any] = dict(config)
    merged.update(env)
    merged.update({key: value for key, value in options.items() if value not in (None, (), [])})
    return merged


def register_commands(cli) -> None:
    @cli.command("deploy")
    @click.option("--repo-url", help="Git repository URL (https)")
    @click.option("--branch", help="Branch to deploy (default: main)")
    @click.option("--ssh-user", help="Remote SSH username")
    @click.option("--server", help="Remote server address")
    @click.option("--ssh-key", help="Path to the SSH private key")
    @click.option("--port", "app_port", type=int, help="Application port (default: 3000)")
    @click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
                  help="Config file (default: ./.dockship.yml)")
    @click.option("--non-interactive", is_flag=True, default=False, help="Never prompt; fail on missing input")
    @click.option("--credential-mode", type=click.Choice(CREDENTIAL_MODES),
                  help=f"How the access token reaches git (default: {DEFAULT_CREDENTIAL_MODE})")
    @click.option("--remote-dir", help="Remote application directory (default: ~/app)")
    @click.option("--container-name", help="Container name for Dockerfile deployments (default: myapp)")
    @click.option("--image-name", help="Image name for Dockerfile deployments (default: container name)")
    @click.option("--exclude", multiple=True, help="Path pattern not transferred (repeatable, default: .git)")
    @click.option("--accept-status", multiple=True, type=int, help="HTTP status accepted by validation (repeatable, default: 200)")
    @click.option("--package-manager", type=click.Choice(SUPPORTED_PACKAGE_MANAGERS),
                  help="Remote package manager (default: auto)")
    @click.option("--log-dir", type=click.Path(file_okay=False, path_type=Path),
                  help="Directory for the run log (default: current directory)")
    @click.option("--dry-run", is_flag=True, default=False, help="Sync and detect only; print remote commands")
    @add_json_option
    @add_verbose_option
    @command_wrapper(require_prerequisites=True, run_log=True)
    def deploy(
        repo_url: Optional[str],
        branch: Optional[str],
        ssh_user: Optional[str],
        server: Optional[str],
        ssh_key: Optional[str],
        app_port: Optional[int],
        config_path: Optional[Path],
        non_interactive: bool,
        credential_mode: Optional[str],
        remote_dir: Optional[str],
        container_name: Optional[str],
        image_name: Optional[str],
        exclude: tuple,
        accept_status: tuple,
        package_manager: Optional[str],
        log_dir: Optional[Path],
        dry_run: bool,
        json: bool,
    ):
        """Clone, provision, deploy and validate an application.

        Missing values are prompted for in this order: repository URL,
        access token, branch, SSH username, server address, SSH key path,
        application port. The token is read from DOCKSHIP_GIT_TOKEN or a
        hidden prompt.
        """
        try:
            config = load_config_file(config_path)
        except ValueError as exc:
            raise DockshipCommandError(str(exc), error_code="invalid_config")

        settings = merge_settings(config, get_env_defaults(), {
            "repo_url": repo_url,
            "branch": branch,
            "ssh_user": ssh_user,
            "server": server,
            "ssh_key": ssh_key,
            "app_port": app_port,
            "credential_mode": credential_mode,
            "remote_dir": remote_dir,
            "container_name": container_name,
            "image_name": image_name,
            "exclude": exclude,
            "accept_status": accept_status,
            "package_manager": package_manager,
        })

        target = build_target(settings)
        with abort_on_signals():
            request = InputCollector(interactive=not non_interactive).collect(settings, target)

        mode = settings.get("credential_mode", DEFAULT_CREDENTIAL_MODE)
        try:
            credentials = get_credential_provider(mode, request.access_token)
        except ValueError as exc:
            raise DockshipCommandError(str(exc), error_code="invalid_credential_mode")
        if mode == "url":
            log_warning("Credential mode 'url' stores the access token in the clone's remote URL.")

        report = DeploymentPipeline(credentials=credentials, dry_run=dry_run).run(request)

        if json:
            JSONOutput.print_json(report.to_dict())
        if not report.succeeded:
            error = report.error
            raise SystemExit(error.exit_code if error else 1)
