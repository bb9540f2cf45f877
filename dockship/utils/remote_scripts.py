"""
Remote scripts for dockship.

These bash scripts are sent to the host over SSH stdin. They are written to
converge: running them again on a host that is already set up changes
nothing.
"""

import base64
import shlex

from ..config.settings import NGINX_MAIN_CONF, SUPPORTED_PACKAGE_MANAGERS

# Package manager commands, keyed by the name accepted in configuration
PACKAGE_MANAGER_COMMANDS = {
    "apt": ("apt-get -y -qq update", "apt-get -y -qq install"),
    "dnf": ("dnf -y makecache", "dnf install -y -q"),
    "yum": ("yum -y makecache", "yum install -y -q"),
}

# Shell snippet resolving the compose CLI on the host into $COMPOSE
COMPOSE_DETECT = (
    'if sudo docker compose version >/dev/null 2>&1; then COMPOSE="docker compose"; '
    'else COMPOSE="docker-compose"; fi'
)


def _package_manager_block(package_manager: str) -> str:
    if package_manager not in SUPPORTED_PACKAGE_MANAGERS:
        raise ValueError(f"Unsupported package manager: {package_manager}")

    if package_manager != "auto":
        update, install = PACKAGE_MANAGER_COMMANDS[package_manager]
        return (
            f"PKG_MANAGER={package_manager}\n"
            f"PKG_UPDATE='{update}'\n"
            f"PKG_INSTALL='{install}'\n"
        )

    return r'''
if command -v apt-get >/dev/null 2>&1; then
  PKG_MANAGER=apt
  PKG_UPDATE='apt-get -y -qq update'
  PKG_INSTALL='apt-get -y -qq install'
elif command -v dnf >/dev/null 2>&1; then
  PKG_MANAGER=dnf
  PKG_UPDATE='dnf -y makecache'
  PKG_INSTALL='dnf install -y -q'
elif command -v yum >/dev/null 2>&1; then
  PKG_MANAGER=yum
  PKG_UPDATE='yum -y makecache'
  PKG_INSTALL='yum install -y -q'
else
  echo "[BOOTSTRAP] Unsupported distro: cannot find apt-get/dnf/yum" >&2
  exit 1
fi
'''


def compose_bootstrap_script(ssh_user: str, package_manager: str = "auto") -> str:
    """Compose the host bootstrap script.

    Installs Docker, Docker Compose and Nginx when missing, adds ssh_user to
    the docker group, and enables and starts both services.

    Args:
        ssh_user: Remote user to add to the docker group
        package_manager: One of auto, apt, dnf, yum

    Returns:
        Script content as string
    """
    user = shlex.quote(ssh_user)
    pkg_block = _package_manager_block(package_manager)

    return f'''
set -euo pipefail
export DEBIAN_FRONTEND=noninteractive
{pkg_block}
echo "[BOOTSTRAP] Using package manager: $PKG_MANAGER"
echo "[BOOTSTRAP] Refreshing package index..."
sudo $PKG_UPDATE

if ! command -v docker >/dev/null 2>&1; then
  echo "[BOOTSTRAP] Installing Docker..."
  if [ "$PKG_MANAGER" = "apt" ]; then
    sudo $PKG_INSTALL docker.io
  else
    sudo $PKG_INSTALL docker
  fi
else
  echo "[BOOTSTRAP] Docker already installed"
fi

if ! sudo docker compose version >/dev/null 2>&1 && ! command -v docker-compose >/dev/null 2>&1; then
  echo "[BOOTSTRAP] Installing Docker Compose..."
  if [ "$PKG_MANAGER" = "apt" ]; then
    sudo $PKG_INSTALL docker-compose-v2 || sudo $PKG_INSTALL docker-compose
  else
    sudo $PKG_INSTALL docker-compose-plugin || sudo $PKG_INSTALL docker-compose
  fi
else
  echo "[BOOTSTRAP] Docker Compose already installed"
fi

if ! command -v nginx >/dev/null 2>&1; then
  echo "[BOOTSTRAP] Installing Nginx..."
  sudo $PKG_INSTALL nginx
else
  echo "[BOOTSTRAP] Nginx already installed"
fi

if ! id -nG {user} | grep -qw docker; then
  echo "[BOOTSTRAP] Adding {user} to docker group"
  sudo usermod -aG docker {user}
fi

sudo systemctl enable docker
sudo systemctl start docker
sudo systemctl enable nginx
sudo systemctl start nginx

docker --version
{COMPOSE_DETECT}
sudo $COMPOSE version
nginx -v
echo "[BOOTSTRAP] Done"
'''


def compose_nginx_apply_script(config_text: str, site_path: str,
                               claim_default: bool = False,
                               main_conf: str = NGINX_MAIN_CONF) -> str:
    """Compose the script that installs an Nginx site file if it changed.

    The new content is written only when it differs from the current file.
    The previous file is kept as ``<site>.bak`` and restored if ``nginx -t``
    rejects the new configuration; a site file that did not exist before is
    removed again.

    Args:
        config_text: Rendered server block
        site_path: Absolute path of the site configuration on the host
        claim_default: Drop ``default_server`` from the listen directives in
            main_conf so the new server block becomes the default server
        main_conf: Main Nginx configuration file

    Returns:
        Script content as string
    """
    encoded = base64.b64encode(config_text.encode()).decode()
    site = shlex.quote(site_path)
    backup = shlex.quote(f"{site_path}.bak")
    main = shlex.quote(main_conf)
    main_backup = shlex.quote(f"{main_conf}.bak")

    claim_block = ""
    restore_main = ""
    if claim_default:
        claim_block = f'''
if sudo grep -Eq 'listen[^;]*default_server' {main}; then
  sudo cp {main} {main_backup}
  sudo sed -i -E 's/(listen[^;]*)[[:space:]]+default_server/\\1/' {main}
  MAIN_EDITED=true
  echo "[NGINX] Removed default_server from {main_conf}"
fi
'''
        restore_main = f'''
  if [ "$MAIN_EDITED" = "true" ]; then
    sudo cp {main_backup} {main}
  fi'''

    return f'''
set -euo pipefail
TMP_CONF=$(mktemp)
trap 'rm -f "$TMP_CONF"' EXIT
echo '{encoded}' | base64 -d > "$TMP_CONF"

if sudo test -f {site} && sudo cmp -s "$TMP_CONF" {site}; then
  echo "[NGINX] Configuration unchanged"
  sudo nginx -t
  exit 0
fi

HAD_PREVIOUS=false
MAIN_EDITED=false
if sudo test -f {site}; then
  sudo cp {site} {backup}
  HAD_PREVIOUS=true
fi
{claim_block}
sudo cp "$TMP_CONF" {site}
sudo chmod 644 {site}

if ! sudo nginx -t; then
  echo "[NGINX] Configuration test failed" >&2
  if [ "$HAD_PREVIOUS" = "true" ]; then
    sudo cp {backup} {site}
    echo "[NGINX] Previous configuration restored" >&2
  else
    sudo rm -f {site}
  fi{restore_main}
  exit 1
fi

sudo systemctl reload nginx
echo "[NGINX] Configuration applied and reloaded"
'''
