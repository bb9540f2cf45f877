"""
Custom exception hierarchy for dockship.

Each pipeline stage raises one of these typed errors. The pipeline records
the failure as a stage outcome and the CLI layer decides how to report it,
so stages never log-and-exit on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DockshipError(Exception):
    """Base exception carrying structured error metadata."""

    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    exit_code: int = 1

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class DockshipCommandError(DockshipError):
    """Raised when a CLI command encounters a failure."""


class PrerequisiteError(DockshipError):
    """Raised when local tools required by the pipeline are missing."""


class InputError(DockshipError):
    """Raised when a required input is empty or malformed."""


class KeyMaterialError(DockshipError):
    """Raised when the SSH private key is missing or unreadable."""


class RepositoryError(DockshipError):
    """Raised when clone, checkout or pull fails."""


class DescriptorNotFoundError(DockshipError):
    """Raised when neither a compose manifest nor a Dockerfile exists."""


class ConnectivityError(DockshipError):
    """Raised when the SSH connectivity probe fails."""


@dataclass
class RemoteCommandError(DockshipError):
    """Raised when a remote command sequence exits non-zero."""

    stage: str = ""
    returncode: Optional[int] = None


@dataclass
class ValidationError(DockshipError):
    """Raised when the post-deploy HTTP probe returns an unaccepted status."""

    status_code: Optional[str] = None


class DeploymentAborted(DockshipError):
    """Raised when the run is interrupted by a signal."""
