"""nginx reverse-proxy site generation and activation."""

import base64
import logging

from dockship.errors import RemoteCommandError

logger = logging.getLogger(__name__)

SITES_AVAILABLE = "/etc/nginx/sites-available"
SITES_ENABLED = "/etc/nginx/sites-enabled"


def site_paths(repo_name):
    """Return (available_path, enabled_path) for a repository's site file."""
    return f"{SITES_AVAILABLE}/{repo_name}", f"{SITES_ENABLED}/{repo_name}"


def generate_site_conf(app_port):
    """Generate an nginx server block forwarding port 80 to the app port."""
    return f"""server {{
    listen 80;
    server_name _;

    location / {{
        proxy_pass http://localhost:{app_port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
    }}
}}
"""


def write_file_command(path, content):
    """Shell command writing content to a root-owned path.

    base64 keeps nginx's $variables and quotes away from the remote shell.
    """
    encoded = base64.b64encode(content.encode()).decode()
    return f"echo '{encoded}' | base64 -d | sudo tee {path} > /dev/null"


async def reload_nginx(run_cmd):
    """Validate nginx syntax, then reload. Raises RemoteCommandError on failure."""
    logger.info("Testing nginx configuration...")
    rc, _, stderr = await run_cmd("sudo nginx -t", stream=False, timeout=60, log_output=True)
    if rc != 0:
        raise RemoteCommandError("nginx -t", rc, stderr)

    logger.info("Reloading nginx...")
    rc, _, stderr = await run_cmd("sudo systemctl reload nginx", stream=False, timeout=60, log_output=True)
    if rc != 0:
        raise RemoteCommandError("nginx reload", rc, stderr)


async def configure_proxy(run_cmd, repo_name, app_port):
    """Write, enable, validate and reload the site config.

    The site file is overwritten unconditionally. If ``nginx -t`` fails the
    file written in this run stays in place; nothing is reverted.

    Returns:
        Path of the written site config.
    """
    available, _ = site_paths(repo_name)

    logger.info(f"Writing nginx configuration to {available}...")
    rc, _, stderr = await run_cmd(write_file_command(available, generate_site_conf(app_port)), stream=False, timeout=60)
    if rc != 0:
        raise RemoteCommandError("write nginx config", rc, stderr)

    logger.info("Enabling site...")
    rc, _, stderr = await run_cmd(f"sudo ln -sf {available} {SITES_ENABLED}/", stream=False, timeout=60)
    if rc != 0:
        raise RemoteCommandError("enable nginx site", rc, stderr)

    await reload_nginx(run_cmd)
    logger.info("nginx configuration completed.")
    return available
