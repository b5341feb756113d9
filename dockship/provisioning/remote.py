"""Remote server provisioning: install and start Docker, Docker Compose and nginx."""

import logging

from dockship.errors import RemoteCommandError
from dockship.provisioning.types import RemoteEnvironment

logger = logging.getLogger(__name__)

REQUIRED_PACKAGES = ["docker.io", "docker-compose", "nginx"]
SERVICES = ["docker", "nginx"]


async def _require(run_cmd, step, command, timeout=600):
    rc, stdout, stderr = await run_cmd(command, stream=False, timeout=timeout, log_output=True)
    if rc != 0:
        raise RemoteCommandError(step, rc, stderr)
    return stdout


async def _probe(run_cmd, command):
    """Run a read-only command, returning its first output line or None on failure."""
    rc, stdout, _ = await run_cmd(command, stream=False, timeout=60)
    if rc != 0:
        return None
    return stdout.strip().splitlines()[0] if stdout.strip() else ""


async def detect_compose_command(run_cmd):
    """Return (command, version) for whichever compose flavour the host has.

    Prefers the Compose v2 plugin; falls back to the standalone binary that
    the docker-compose apt package installs.
    """
    version = await _probe(run_cmd, "docker compose version --short")
    if version is not None:
        return "docker compose", version
    version = await _probe(run_cmd, "docker-compose --version")
    if version is not None:
        return "docker-compose", version
    raise RemoteCommandError("Compose detection", 127, "neither 'docker compose' nor 'docker-compose' is available")


async def provision_remote(run_cmd, packages=None):
    """Ensure the remote server is ready for deployment.

    Every step is idempotent, so repeated runs are safe; installed versions
    are reported but never checked for drift.

    Steps:
    1. Refresh the apt package index
    2. Install Docker, Docker Compose and nginx
    3. Add the SSH user to the docker group
    4. Enable and start the docker and nginx services
    5. Report installed versions

    Args:
        run_cmd: async callable(command, stream=True, timeout=600, log_output=False)
            -> (returncode, stdout, stderr), executing on the remote host
        packages: apt packages to install (default: REQUIRED_PACKAGES)

    Returns:
        RemoteEnvironment describing what was ensured.
    """
    packages = packages or REQUIRED_PACKAGES

    logger.info("Updating system packages...")
    await _require(run_cmd, "apt-get update", "sudo apt-get update -y", timeout=900)

    logger.info(f"Installing {', '.join(packages)}...")
    await _require(
        run_cmd,
        "apt-get install",
        f"sudo DEBIAN_FRONTEND=noninteractive apt-get install -y {' '.join(packages)}",
        timeout=1800,
    )

    logger.info("Adding user to docker group...")
    await _require(run_cmd, "docker group membership", "groups | grep -qw docker || sudo usermod -aG docker $(whoami)")

    logger.info("Enabling and starting services...")
    for service in SERVICES:
        await _require(run_cmd, f"enable {service}", f"sudo systemctl enable {service}")
        await _require(run_cmd, f"start {service}", f"sudo systemctl start {service}")

    logger.info("Checking versions...")
    docker_version = await _probe(run_cmd, "docker --version") or ""
    compose_command, compose_version = await detect_compose_command(run_cmd)
    nginx_version = await _probe(run_cmd, "nginx -v 2>&1") or ""

    env = RemoteEnvironment(
        docker_version=docker_version,
        compose_command=compose_command,
        compose_version=compose_version,
        nginx_version=nginx_version,
    )
    for line in (docker_version, f"{compose_command} {compose_version}".strip(), nginx_version):
        if line:
            logger.info(f"  {line}")
    logger.info("Remote environment ready.")
    return env
