"""
Input collection for dockship.

Values supplied by CLI options, environment variables or the config file are
used as given; anything still missing is prompted for, in a fixed order.
Each value is validated as soon as it is known, so an empty required value
stops the run before the next prompt.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

import click

from ..config.settings import DEFAULT_APP_PORT, DEFAULT_BRANCH, DEFAULT_PACKAGE_MANAGER, SUPPORTED_PACKAGE_MANAGERS
from ..exceptions import DeploymentAborted, InputError
from ..utils.logging import log_success
from ..utils.validation import parse_port, resolve_key_path, validate_required
from .models import DeploymentRequest, DeploymentTarget

PromptFn = Callable[[str, bool], str]

# (key, prompt text, hidden) in prompt order
PROMPTS = (
    ("repo_url", "Enter Git Repository URL", False),
    ("git_token", "Enter your Git Personal Access Token (PAT)", True),
    ("branch", f"Enter Git branch (default: {DEFAULT_BRANCH})", False),
    ("ssh_user", "Remote SSH Username", False),
    ("server", "Remote Server IP Address", False),
    ("ssh_key", "Path to your SSH private key", False),
    ("app_port", f"Application internal container port (default: {DEFAULT_APP_PORT})", False),
)


def click_prompt(text: str, hide_input: bool) -> str:
    """Prompt on the terminal; an empty answer returns an empty string.

    Raises:
        DeploymentAborted: If the prompt is interrupted (Ctrl-C or end of input)
    """
    try:
        return click.prompt(text, default="", show_default=False, hide_input=hide_input)
    except click.Abort:
        raise DeploymentAborted(
            "Script interrupted unexpectedly.",
            error_code="interrupted",
            exit_code=130,
        )


class InputCollector:
    """Builds a DeploymentRequest from provided values and prompts."""

    def __init__(self, interactive: bool = True, prompt: Optional[PromptFn] = None):
        self.interactive = interactive
        self.prompt = prompt or click_prompt

    def _value(self, provided: Mapping[str, Any], key: str, text: str, hidden: bool) -> str:
        value = provided.get(key)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
        if not self.interactive:
            return ""
        return (self.prompt(text, hidden) or "").strip()

    def collect(self, provided: Optional[Mapping[str, Any]] = None,
                target: Optional[DeploymentTarget] = None) -> DeploymentRequest:
        """Collect and validate every input.

        Args:
            provided: Values already known (options, env, config file)
            target: Remote target settings

        Returns:
            Immutable DeploymentRequest

        Raises:
            InputError: If a required value is empty or a port is invalid
            KeyMaterialError: If the SSH key is missing or unreadable
        """
        provided = provided or {}
        values: Dict[str, Any] = {}
        prompts = {key: (text, hidden) for key, text, hidden in PROMPTS}

        def ask(key: str) -> str:
            text, hidden = prompts[key]
            return self._value(provided, key, text, hidden)

        values["repo_url"] = validate_required(ask("repo_url"), "Git Repository URL")
        log_success(f"Git Repository URL set as: {values['repo_url']}")

        values["access_token"] = validate_required(ask("git_token"), "Personal Access Token")
        log_success("Personal Access Token received.")

        values["branch"] = ask("branch") or DEFAULT_BRANCH
        log_success(f"Git branch set as: {values['branch']}")

        values["ssh_user"] = validate_required(ask("ssh_user"), "SSH username")
        log_success(f"SSH Username set as: {values['ssh_user']}")

        values["server"] = validate_required(ask("server"), "Server IP")
        log_success(f"Server IP set as: {values['server']}")

        key_path = validate_required(ask("ssh_key"), "SSH key path")
        values["ssh_key"] = resolve_key_path(key_path)
        log_success(f"SSH Key path set as: {values['ssh_key']}")

        values["app_port"] = parse_port(ask("app_port"), DEFAULT_APP_PORT)
        log_success(f"Application port set as: {values['app_port']}")

        return DeploymentRequest(target=target or DeploymentTarget(), **values)


def build_target(options: Mapping[str, Any]) -> DeploymentTarget:
    """Build a DeploymentTarget from merged options, ignoring unset values."""
    kwargs: Dict[str, Any] = {}
    for key in ("remote_dir", "container_name", "image_name", "package_manager"):
        value = options.get(key)
        if value:
            kwargs[key] = str(value)
    if kwargs.get("package_manager", DEFAULT_PACKAGE_MANAGER) not in SUPPORTED_PACKAGE_MANAGERS:
        raise InputError(f"Unsupported package manager: {kwargs['package_manager']}",
                         error_code="invalid_package_manager")
    if options.get("exclude") is not None:
        kwargs["exclude"] = tuple(str(p) for p in _as_list(options["exclude"]))
    if options.get("accept_status"):
        try:
            kwargs["accept_status"] = tuple(int(code) for code in _as_list(options["accept_status"]))
        except (TypeError, ValueError):
            raise InputError(f"Invalid accept_status: {options['accept_status']}", error_code="invalid_status")
    return DeploymentTarget(**kwargs)


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]
