"""
Inspection commands: deployment method detection and proxy config rendering.
"""

from __future__ import annotations

from pathlib import Path

import click

from dockship.cli.helpers import add_json_option, command_wrapper
from dockship.config.settings import DEFAULT_APP_PORT
from dockship.core.detector import detect_deployment_method
from dockship.core.nginx_config import render_server_block
from dockship.utils.json_output import JSONOutput
from dockship.utils.logging import print_plain


def register_commands(cli) -> None:
    @cli.command("detect")
    @click.argument("path", required=False, default=".",
                    type=click.Path(exists=True, file_okay=False, path_type=Path))
    @add_json_option
    @command_wrapper(require_prerequisites=False)
    def detect(path: Path, json: bool):
        """Show how the working tree at PATH would be deployed."""
        method, descriptor = detect_deployment_method(path)
        if json:
            return JSONOutput.success("Deployment method detected", {
                "method": method.value,
                "descriptor": str(descriptor),
            })
        print_plain(f"{method.value} ({descriptor.name})")

    @cli.command("nginx-config")
    @click.option("--port", "app_port", type=click.IntRange(1, 65535), default=DEFAULT_APP_PORT,
                  show_default=True, help="Application port to proxy to")
    @command_wrapper(require_prerequisites=False)
    def nginx_config(app_port: int):
        """Print the Nginx server block for an application port."""
        print_plain(render_server_block(app_port).rstrip("\n"))
