"""
Data model for a single deployment run.

A DeploymentRequest is built once from the collected inputs and never
mutated. Stages report back through StageOutcome records that the pipeline
gathers into a DeploymentReport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config.settings import (
    DEFAULT_ACCEPT_STATUS,
    DEFAULT_APP_PORT,
    DEFAULT_BRANCH,
    DEFAULT_CONTAINER_NAME,
    DEFAULT_EXCLUDES,
    DEFAULT_PACKAGE_MANAGER,
    DEFAULT_REMOTE_DIR,
)
from ..exceptions import DockshipError


class DeploymentMethod(str, Enum):
    """How the application is started on the remote host."""

    COMPOSE = "docker-compose"
    DOCKERFILE = "docker"


@dataclass(frozen=True)
class DeploymentTarget:
    """Where and under which names the application lands on the host."""

    remote_dir: str = DEFAULT_REMOTE_DIR
    container_name: str = DEFAULT_CONTAINER_NAME
    image_name: Optional[str] = None
    exclude: Tuple[str, ...] = DEFAULT_EXCLUDES
    package_manager: str = DEFAULT_PACKAGE_MANAGER
    accept_status: Tuple[int, ...] = DEFAULT_ACCEPT_STATUS

    @property
    def image(self) -> str:
        return self.image_name or self.container_name


@dataclass(frozen=True)
class DeploymentRequest:
    """Immutable configuration for one deployment run."""

    repo_url: str
    access_token: str = field(repr=False)
    ssh_user: str
    server: str
    ssh_key: Path
    branch: str = DEFAULT_BRANCH
    app_port: int = DEFAULT_APP_PORT
    target: DeploymentTarget = field(default_factory=DeploymentTarget)

    @property
    def repo_name(self) -> str:
        return repo_name_from_url(self.repo_url)

    @property
    def ssh_destination(self) -> str:
        return f"{self.ssh_user}@{self.server}"


def repo_name_from_url(repo_url: str) -> str:
    """Return the local directory name for a repository URL.

    >>> repo_name_from_url("https://example.com/org/app.git")
    'app'
    """
    name = repo_url.rstrip("/").rsplit("/", 1)[-1]
    name = name.rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


@dataclass
class StageOutcome:
    """Result of one pipeline stage."""

    stage: str
    ok: bool
    value: Any = None
    error: Optional[DockshipError] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"stage": self.stage, "ok": self.ok}
        if self.value is not None:
            result["value"] = str(self.value)
        if self.error is not None:
            result["error"] = self.error.message
            if self.error.error_code:
                result["error_code"] = self.error.error_code
        return result


@dataclass
class DeploymentReport:
    """Ordered stage outcomes for one run."""

    outcomes: List[StageOutcome] = field(default_factory=list)
    method: Optional[DeploymentMethod] = None
    repo_root: Optional[Path] = None

    def add(self, outcome: StageOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def succeeded(self) -> bool:
        return bool(self.outcomes) and all(o.ok for o in self.outcomes)

    @property
    def failed_stage(self) -> Optional[str]:
        for outcome in self.outcomes:
            if not outcome.ok:
                return outcome.stage
        return None

    @property
    def error(self) -> Optional[DockshipError]:
        for outcome in self.outcomes:
            if outcome.error is not None:
                return outcome.error
        return None

    def stage_names(self) -> List[str]:
        return [o.stage for o in self.outcomes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "method": self.method.value if self.method else None,
            "repo_root": str(self.repo_root) if self.repo_root else None,
            "failed_stage": self.failed_stage,
            "stages": [o.to_dict() for o in self.outcomes],
        }
