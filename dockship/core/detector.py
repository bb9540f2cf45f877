"""
Deployment method detection.

A compose manifest always takes precedence over a Dockerfile when both are
present in the repository root.
"""

from pathlib import Path
from typing import List, Tuple

from ..config.settings import COMPOSE_FILE_NAMES, DOCKERFILE_NAME
from ..exceptions import DescriptorNotFoundError
from ..utils.logging import log_info, log_success
from .models import DeploymentMethod


def find_compose_files(repo_root: Path) -> List[Path]:
    """Find all compose files in priority order."""
    return [repo_root / name for name in COMPOSE_FILE_NAMES if (repo_root / name).is_file()]


def detect_deployment_method(repo_root: Path) -> Tuple[DeploymentMethod, Path]:
    """Decide how the repository is deployed.

    Args:
        repo_root: Root of the checked-out working tree

    Returns:
        Tuple of (method, descriptor path)

    Raises:
        DescriptorNotFoundError: If no compose manifest or Dockerfile exists
    """
    repo_root = Path(repo_root)
    log_info("Checking for docker or docker-compose file.")

    compose_files = find_compose_files(repo_root)
    if compose_files:
        log_success(f"Found {compose_files[0].name} file.")
        return DeploymentMethod.COMPOSE, compose_files[0]

    dockerfile = repo_root / DOCKERFILE_NAME
    if dockerfile.is_file():
        log_success("Found Dockerfile.")
        return DeploymentMethod.DOCKERFILE, dockerfile

    raise DescriptorNotFoundError(
        "No Dockerfile or docker-compose file found.",
        error_code="descriptor_not_found",
        details={"repo_root": str(repo_root)},
    )
