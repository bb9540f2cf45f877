"""
Unit tests for the dockship CLI commands.
"""

import json
import signal

import click
import pytest
from click.testing import CliRunner

from dockship.cli import cli
from dockship.config.settings import ENV_KEYS, ENV_PREFIX, VERSION
from dockship.core.models import DeploymentMethod, DeploymentReport, StageOutcome
from dockship.exceptions import PrerequisiteError, ValidationError


@pytest.fixture
def runner(monkeypatch, tmp_path):
    """CliRunner in an empty directory with no DOCKSHIP_* environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("dockship.cli.helpers.check_prerequisites", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(f"{ENV_PREFIX}{key.upper()}", raising=False)
    return CliRunner()


class FakePipeline:
    """Records the request instead of deploying."""

    instances = []

    def __init__(self, workdir=None, credentials=None, dry_run=False):
        self.credentials = credentials
        self.dry_run = dry_run
        self.request = None
        self.report = DeploymentReport(outcomes=[StageOutcome("sync", True)], method=DeploymentMethod.DOCKERFILE)
        FakePipeline.instances.append(self)

    def run(self, request):
        self.request = request
        return self.report


@pytest.fixture
def fake_pipeline(monkeypatch):
    FakePipeline.instances = []
    monkeypatch.setattr("dockship.cli_commands.deploy.DeploymentPipeline", FakePipeline)
    return FakePipeline


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert VERSION in result.output


def test_nginx_config(runner):
    result = runner.invoke(cli, ["nginx-config", "--port", "8080"])

    assert result.exit_code == 0
    assert "proxy_pass http://localhost:8080;" in result.output
    assert "listen 80;" in result.output


def test_nginx_config_rejects_bad_port(runner):
    result = runner.invoke(cli, ["nginx-config", "--port", "70000"])

    assert result.exit_code == 2


def test_detect_text(runner, tmp_path):
    (tmp_path / "Dockerfile").write_text("FROM scratch\n")
    (tmp_path / "compose.yaml").write_text("services: {}\n")

    result = runner.invoke(cli, ["detect", str(tmp_path)])

    assert result.exit_code == 0
    assert "docker-compose (compose.yaml)" in result.output


def test_detect_json(runner, tmp_path):
    (tmp_path / "Dockerfile").write_text("FROM scratch\n")

    result = runner.invoke(cli, ["detect", "--json", str(tmp_path)])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["success"] is True
    assert data["data"]["method"] == "docker"
    assert "Checking for docker or docker-compose file." in result.stderr


def test_detect_without_descriptor_fails(runner, tmp_path):
    result = runner.invoke(cli, ["detect", str(tmp_path)])

    assert result.exit_code == 1
    assert "No Dockerfile or docker-compose file found." in result.output


def test_deploy_non_interactive_missing_input(runner, tmp_path, fake_pipeline):
    result = runner.invoke(cli, ["deploy", "--non-interactive", "--log-dir", str(tmp_path / "logs")])

    assert result.exit_code == 1
    assert "Git Repository URL is required." in result.output
    assert fake_pipeline.instances == []

    logs = list((tmp_path / "logs").glob("deploy_*.log"))
    assert len(logs) == 1
    content = logs[0].read_text()
    assert "INFO: Starting setup..." in content
    assert "ERROR: Git Repository URL is required." in content


def test_deploy_with_options_and_env(runner, tmp_path, ssh_key, fake_pipeline, monkeypatch):
    monkeypatch.setenv("DOCKSHIP_GIT_TOKEN", "s3cr3t")

    result = runner.invoke(cli, [
        "deploy", "--non-interactive",
        "--repo-url", "https://example.com/org/app.git",
        "--ssh-user", "deploy",
        "--server", "203.0.113.10",
        "--ssh-key", str(ssh_key),
        "--port", "8080",
        "--container-name", "web",
        "--log-dir", str(tmp_path / "logs"),
    ])

    assert result.exit_code == 0, result.output
    request = fake_pipeline.instances[0].request
    assert request.branch == "main"
    assert request.app_port == 8080
    assert request.access_token == "s3cr3t"
    assert request.target.container_name == "web"
    assert "s3cr3t" not in result.output

    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "s3cr3t" not in log
    assert "Personal Access Token received." in log


def test_deploy_prompts_in_order(runner, tmp_path, ssh_key, fake_pipeline):
    answers = "\n".join([
        "https://example.com/org/app.git",
        "s3cr3t",
        "",
        "deploy",
        "203.0.113.10",
        str(ssh_key),
        "",
    ]) + "\n"

    result = runner.invoke(cli, ["deploy", "--log-dir", str(tmp_path)], input=answers)

    assert result.exit_code == 0, result.output
    request = fake_pipeline.instances[0].request
    assert request.server == "203.0.113.10"
    assert request.app_port == 3000
    assert request.branch == "main"
    assert result.output.index("Enter Git Repository URL") < result.output.index("Remote SSH Username")


def test_deploy_config_file(runner, tmp_path, ssh_key, fake_pipeline, monkeypatch):
    monkeypatch.setenv("DOCKSHIP_GIT_TOKEN", "s3cr3t")
    (tmp_path / ".dockship.yml").write_text(
        "deployment:\n"
        "  repo_url: https://example.com/org/app.git\n"
        "  ssh_user: deploy\n"
        "  server: 203.0.113.10\n"
        f"  ssh_key: {ssh_key}\n"
        "  branch: develop\n"
        "  remote_dir: /srv/app\n"
        "  accept_status: [200, 301]\n"
    )

    result = runner.invoke(cli, ["deploy", "--non-interactive", "--branch", "release", "--log-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    request = fake_pipeline.instances[0].request
    assert request.branch == "release"
    assert request.target.remote_dir == "/srv/app"
    assert request.target.accept_status == (200, 301)


def test_deploy_invalid_config(runner, tmp_path, fake_pipeline):
    (tmp_path / "bad.yml").write_text("deployment: [unclosed\n")

    result = runner.invoke(cli, ["deploy", "--config", str(tmp_path / "bad.yml"), "--log-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Invalid YAML" in result.output


def test_deploy_failed_report_exit_code(runner, tmp_path, ssh_key, fake_pipeline, monkeypatch):
    monkeypatch.setenv("DOCKSHIP_GIT_TOKEN", "s3cr3t")

    class FailingPipeline(FakePipeline):
        def run(self, request):
            self.report.add(StageOutcome("validate", False, error=ValidationError(
                "Deployment completed, but app is not responding.", status_code="502")))
            return self.report

    monkeypatch.setattr("dockship.cli_commands.deploy.DeploymentPipeline", FailingPipeline)

    result = runner.invoke(cli, [
        "deploy", "--non-interactive", "--json",
        "--repo-url", "https://example.com/org/app.git",
        "--ssh-user", "deploy",
        "--server", "203.0.113.10",
        "--ssh-key", str(ssh_key),
        "--log-dir", str(tmp_path / "logs"),
    ])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["failed_stage"] == "validate"


def test_deploy_json_error_keeps_stdout_parseable(runner, tmp_path, fake_pipeline):
    result = runner.invoke(cli, ["deploy", "--non-interactive", "--json", "--log-dir", str(tmp_path / "logs")])

    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["success"] is False
    assert data["error"] == "Git Repository URL is required."
    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "ERROR: Git Repository URL is required." in log


def test_deploy_prompt_interrupt_is_logged(runner, tmp_path, fake_pipeline, monkeypatch):
    def interrupted(*args, **kwargs):
        raise click.Abort()

    monkeypatch.setattr("dockship.core.inputs.click.prompt", interrupted)

    result = runner.invoke(cli, ["deploy", "--log-dir", str(tmp_path / "logs")])

    assert result.exit_code == 130
    assert fake_pipeline.instances == []
    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "ERROR: Script interrupted unexpectedly." in log


def test_deploy_sigterm_during_prompts(runner, tmp_path, fake_pipeline, monkeypatch):
    previous = signal.getsignal(signal.SIGTERM)

    def terminated(*args, **kwargs):
        signal.raise_signal(signal.SIGTERM)
        return ""

    monkeypatch.setattr("dockship.core.inputs.click.prompt", terminated)

    result = runner.invoke(cli, ["deploy", "--log-dir", str(tmp_path / "logs")])

    assert result.exit_code == 130
    assert signal.getsignal(signal.SIGTERM) == previous
    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "ERROR: Script interrupted unexpectedly." in log


def test_missing_prerequisite_reaches_run_log(runner, tmp_path, fake_pipeline, monkeypatch):
    def missing(*args, **kwargs):
        raise PrerequisiteError("Required command(s) not found: ssh", error_code="missing_prerequisites")

    monkeypatch.setattr("dockship.cli.helpers.check_prerequisites", missing)

    result = runner.invoke(cli, ["deploy", "--non-interactive", "--log-dir", str(tmp_path / "logs")])

    assert result.exit_code == 1
    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "INFO: Starting setup..." in log
    assert "ERROR: Required command(s) not found: ssh" in log


def test_url_credential_mode_warns(runner, tmp_path, ssh_key, fake_pipeline, monkeypatch):
    monkeypatch.setenv("DOCKSHIP_GIT_TOKEN", "s3cr3t")

    result = runner.invoke(cli, [
        "deploy", "--non-interactive", "--credential-mode", "url",
        "--repo-url", "https://example.com/org/app.git",
        "--ssh-user", "deploy",
        "--server", "203.0.113.10",
        "--ssh-key", str(ssh_key),
        "--log-dir", str(tmp_path / "logs"),
    ])

    assert result.exit_code == 0, result.output
    log = next((tmp_path / "logs").glob("deploy_*.log")).read_text()
    assert "WARNING: Credential mode 'url' stores the access token" in log
    assert "s3cr3t" not in log
