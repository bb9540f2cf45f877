"""
Validation utilities for dockship.

This module provides validation functions for collected inputs and for the
local tools the pipeline shells out to.
"""

import os
import shutil
from pathlib import Path
from typing import Iterable, Optional, Union

from ..exceptions import InputError, KeyMaterialError, PrerequisiteError

# Local commands every deployment needs
REQUIRED_COMMANDS = ("git", "ssh")


def validate_required(value: Optional[str], label: str) -> str:
    """Return the stripped value or raise InputError when it is empty."""
    value = (value or "").strip()
    if not value:
        raise InputError(f"{label} is required.", error_code="missing_input", details={"field": label})
    return value


def parse_port(value: Union[str, int, None], default: int) -> int:
    """Parse an application port, falling back to default when empty."""
    if value is None or str(value).strip() == "":
        return default
    try:
        port = int(str(value).strip())
    except ValueError:
        raise InputError(f"Invalid port: {value}", error_code="invalid_port")
    if not 1 <= port <= 65535:
        raise InputError(f"Port out of range: {port}", error_code="invalid_port")
    return port


def resolve_key_path(key_path: str) -> Path:
    """Resolve an SSH key path to an absolute path that exists and is readable.

    Raises:
        KeyMaterialError: If the key is missing, not a file or unreadable
    """
    path = Path(os.path.expanduser(key_path.strip()))
    if not path.is_file():
        raise KeyMaterialError(f"SSH key not found at {key_path}.", error_code="key_not_found")
    path = path.resolve()
    if not os.access(path, os.R_OK):
        raise KeyMaterialError(f"SSH key at {path} is not readable.", error_code="key_unreadable")
    return path


def validate_rsync_installed() -> bool:
    return shutil.which("rsync") is not None


def check_prerequisites(commands: Iterable[str] = REQUIRED_COMMANDS) -> None:
    """Raise PrerequisiteError if any required local command is missing."""
    missing = [cmd for cmd in commands if shutil.which(cmd) is None]
    if missing:
        raise PrerequisiteError(
            f"Required command(s) not found: {', '.join(missing)}",
            error_code="missing_prerequisites",
            details={"missing": missing},
        )
