"""
Click CLI framework for dockship.
"""

from __future__ import annotations

import sys

import click

from dockship.cli_commands import register_all_commands
from dockship.config.settings import VERSION
from dockship.utils.logging import log_error


def _build_cli() -> click.Group:
    @click.group(help="""dockship: one-shot Docker + Nginx deployments over SSH

Clone a repository, prepare a remote host with Docker and Nginx, ship the
working tree, start it with docker compose or docker build/run, put Nginx in
front of it and check that it answers.

Examples:
    dockship deploy
    dockship deploy --repo-url https://github.com/org/app.git --server 203.0.113.10
    dockship detect ./app
    dockship nginx-config --port 8080
""")
    @click.version_option(VERSION, "--version", prog_name="dockship")
    def cli():
        pass

    register_all_commands(cli)
    return cli


cli = _build_cli()


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        log_error("Script interrupted unexpectedly.")
        sys.exit(130)


__all__ = ["cli", "main"]
