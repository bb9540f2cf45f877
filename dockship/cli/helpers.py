"""
Shared helpers and decorators for dockship CLI commands.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

import click

from dockship.exceptions import DockshipError
from dockship.utils.json_output import JSONOutput
from dockship.utils.logging import (
    error_exit,
    log_error,
    log_info,
    set_json_mode,
    set_verbose,
    start_run_log,
    stop_run_log,
)
from dockship.utils.validation import check_prerequisites


def verbose_callback(_: click.Context, __: click.Option, value: bool) -> bool:
    """Callback used by the --verbose option."""
    set_verbose(value)
    return value


def add_verbose_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add the shared verbose flag to a command."""
    return click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Stream remote command output",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(func)


def add_json_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add a JSON output flag to a command."""
    return click.option(
        "--json",
        is_flag=True,
        default=False,
        help="Output result as JSON",
    )(func)


def command_wrapper(
    *,
    require_prerequisites: bool = True,
    run_log: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator to provide consistent prerequisite handling and error reporting.

    The wrapped function must accept a ``json`` keyword argument. With
    ``run_log`` it must also accept ``log_dir``; the run log is opened before
    prerequisites are checked so every record of the run lands in it. A
    DockshipError escaping the command becomes one error line (or a JSON
    error object) and the error's exit code.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            json_enabled = kwargs.get("json", False)
            set_json_mode(json_enabled)
            try:
                if run_log:
                    log_file = start_run_log(kwargs.get("log_dir"))
                    log_info("Starting setup...")
                    log_info(f"Saving logs to {log_file}")
                if require_prerequisites:
                    check_prerequisites()
                result = func(*args, **kwargs)
                if json_enabled and result is not None:
                    JSONOutput.print_json(result)
                return result
            except DockshipError as exc:
                if json_enabled:
                    log_error(exc.message)
                    JSONOutput.print_error(exc.message, error_code=exc.error_code, details=exc.details)
                    raise SystemExit(exc.exit_code)
                error_exit(exc.message, exit_code=exc.exit_code)
            finally:
                stop_run_log()
                set_json_mode(False)

        return wrapper

    return decorator
