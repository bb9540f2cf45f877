"""
CLI command registration entry points.
"""

from __future__ import annotations

from typing import Callable, List


def register_all_commands(cli) -> None:
    """Register every command group with the root CLI instance."""
    for register in _collect_registrars():
        register(cli)


def _collect_registrars() -> List[Callable]:
    from . import deploy, inspect

    return [
        deploy.register_commands,
        inspect.register_commands,
    ]
