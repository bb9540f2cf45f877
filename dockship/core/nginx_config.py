"""
Nginx reverse proxy configuration.

The rendered server block listens on port 80 and forwards every path to the
application port on localhost. Debian-style hosts get it as the default site
in ``sites-available``; hosts without that directory (RHEL, Fedora) get a
``conf.d`` drop-in that takes over as the default server.
"""

from textwrap import dedent
from typing import Optional, Tuple

from ..config.settings import NGINX_CONF_D_PATH, NGINX_LISTEN_PORT, NGINX_SITE_PATH, NGINX_SITES_AVAILABLE_DIR
from ..exceptions import RemoteCommandError
from ..utils.logging import log_error, log_info, log_success
from ..utils.remote_scripts import compose_nginx_apply_script
from ..utils.ssh_manager import SSHConnectionManager


def render_server_block(app_port: int, server_name: str = "_",
                        listen: int = NGINX_LISTEN_PORT,
                        default_server: bool = False) -> str:
    """Render the reverse proxy server block.

    >>> "proxy_pass http://localhost:3000;" in render_server_block(3000)
    True
    """
    listen_directive = f"{listen} default_server" if default_server else f"{listen}"
    return dedent(f"""\
        server {{
            listen {listen_directive};
            server_name {server_name};
            location / {{
                proxy_pass http://localhost:{int(app_port)};
                proxy_set_header Host $host;
                proxy_set_header X-Real-IP $remote_addr;
            }}
        }}
        """)


class NginxConfigurator:
    """Applies the server block to the host and reloads Nginx."""

    def __init__(self, ssh: SSHConnectionManager, site_path: Optional[str] = None):
        self.ssh = ssh
        self.site_path = site_path

    def resolve_site(self) -> Tuple[str, bool]:
        """Pick the site file for the host's Nginx layout.

        Returns:
            Tuple of (site path, whether the block must claim default_server)
        """
        if self.site_path:
            return self.site_path, False
        result = self.ssh.execute_remote(f"test -d {NGINX_SITES_AVAILABLE_DIR}")
        if result.returncode == 0:
            return NGINX_SITE_PATH, False
        return NGINX_CONF_D_PATH, True

    def build_script(self, app_port: int, site_path: str = NGINX_SITE_PATH,
                     claim_default: bool = False) -> str:
        config_text = render_server_block(app_port, default_server=claim_default)
        return compose_nginx_apply_script(config_text, site_path, claim_default=claim_default)

    def configure(self, app_port: int) -> None:
        """Write, test and reload the proxy configuration.

        Raises:
            RemoteCommandError: If writing, ``nginx -t`` or the reload fails
        """
        log_info("Configuring Nginx Reverse Proxy...")
        try:
            site_path, claim_default = self.resolve_site()
            log_info(f"Applying configuration to {site_path}...")
            returncode, _, stderr_lines = self.ssh.execute_remote_script(
                self.build_script(app_port, site_path, claim_default)
            )
        except FileNotFoundError:
            raise RemoteCommandError("ssh command not found.", error_code="ssh_missing", stage="proxy")

        if returncode != 0:
            for line in stderr_lines[-10:]:
                log_error(f"  {line}")
            raise RemoteCommandError(
                "Nginx configuration failed.",
                error_code="proxy_failed",
                stage="proxy",
                returncode=returncode,
            )
        log_success("Nginx Reverse Proxy successfully configured.")
