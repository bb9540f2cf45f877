"""
Configuration settings for dockship.

This module contains the constants and defaults used throughout the
deployment pipeline, plus loading of the optional ``.dockship.yml`` file.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Version information
VERSION = "0.3.1"

CONFIG_FILE_NAME = ".dockship.yml"
ENV_PREFIX = "DOCKSHIP_"

# Input defaults
DEFAULT_BRANCH = "main"
DEFAULT_APP_PORT = 3000

# Remote deployment target defaults
DEFAULT_REMOTE_DIR = "~/app"
DEFAULT_CONTAINER_NAME = "myapp"
DEFAULT_PACKAGE_MANAGER = "auto"
SUPPORTED_PACKAGE_MANAGERS = ("auto", "apt", "dnf", "yum")

# SSH
SSH_CONNECT_TIMEOUT = 5

# Nginx: Debian-style sites-available, otherwise a conf.d drop-in (RHEL/Fedora)
NGINX_SITES_AVAILABLE_DIR = "/etc/nginx/sites-available"
NGINX_SITE_PATH = "/etc/nginx/sites-available/default"
NGINX_CONF_D_PATH = "/etc/nginx/conf.d/dockship.conf"
NGINX_MAIN_CONF = "/etc/nginx/nginx.conf"
NGINX_LISTEN_PORT = 80

# Compose manifests, checked in this order before the Dockerfile
COMPOSE_FILE_NAMES = (
    "compose.yml",
    "compose.yaml",
    "docker-compose.yml",
    "docker-compose.yaml",
)
DOCKERFILE_NAME = "Dockerfile"

# Transfer ignore list
DEFAULT_EXCLUDES = (".git",)

# Validation
DEFAULT_ACCEPT_STATUS = (200,)
VALIDATION_URL = "http://localhost"

# Credential injection
CREDENTIAL_MODES = ("header", "url")
DEFAULT_CREDENTIAL_MODE = "header"

# Keys accepted under ``deployment:`` in the config file
CONFIG_KEYS = (
    "repo_url",
    "branch",
    "ssh_user",
    "server",
    "ssh_key",
    "app_port",
    "remote_dir",
    "container_name",
    "image_name",
    "exclude",
    "accept_status",
    "package_manager",
    "credential_mode",
)

# Keys that may be supplied through DOCKSHIP_* environment variables
ENV_KEYS = (
    "repo_url",
    "git_token",
    "branch",
    "ssh_user",
    "server",
    "ssh_key",
    "app_port",
)


def get_config_path(config_path: Optional[Path] = None) -> Path:
    """Return the config file path (explicit or ``./.dockship.yml``)."""
    if config_path is not None:
        return Path(config_path)
    return Path.cwd() / CONFIG_FILE_NAME


def load_config_file(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``deployment`` mapping from the YAML config file.

    A missing default config file yields an empty mapping. An explicitly
    requested file that does not exist, or a file that is not valid YAML,
    raises ValueError.

    Args:
        config_path: Explicit config file path, or None for the default

    Returns:
        Dict with the recognised deployment keys
    """
    path = get_config_path(config_path)
    if not path.exists():
        if config_path is not None:
            raise ValueError(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    node = cfg.get("deployment", {}) or {}
    if not isinstance(node, dict):
        raise ValueError(f"'deployment' in {path} must be a mapping")

    return {key: node[key] for key in CONFIG_KEYS if node.get(key) is not None}


def get_env_defaults(environ: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Read ``DOCKSHIP_*`` environment variables.

    Returns:
        Dict of lowercase keys (e.g. ``git_token``) to non-empty values
    """
    environ = os.environ if environ is None else environ
    values = {}
    for key in ENV_KEYS:
        value = environ.get(f"{ENV_PREFIX}{key.upper()}", "").strip()
        if value:
            values[key] = value
    return values
