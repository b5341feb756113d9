"""Application deployment: docker compose stack or single Dockerfile container."""

import logging

from dockship.errors import RemoteCommandError

logger = logging.getLogger(__name__)

APP_LABEL = "dockship.app"


def compose_commands(compose_cmd, compose_file):
    """Return (down, up) commands for a compose stack."""
    base = f"sudo {compose_cmd} -f {compose_file}"
    return f"{base} down", f"{base} up -d --build"


def dockerfile_commands(image_name, app_port, repo_name):
    """Return (build, remove, run) commands for a single-container deploy.

    Host port and container port are both the requested app port.
    """
    build = f"sudo docker build -t {image_name} ."
    remove = f"sudo docker rm -f {image_name}"
    run = (
        f"sudo docker run -d"
        f" -p {app_port}:{app_port}"
        f" --name {image_name}"
        f" --label {APP_LABEL}={repo_name}"
        f" {image_name}"
    )
    return build, remove, run


async def _best_effort(run_cmd, command, what):
    """Run a command whose failure is an expected steady state (nothing to stop)."""
    rc, _, _ = await run_cmd(command, timeout=300, log_output=True)
    if rc != 0:
        logger.warning(f"{what} skipped (exit code {rc}), continuing.")


async def _require(run_cmd, step, command, timeout=1800):
    rc, _, stderr = await run_cmd(command, timeout=timeout, log_output=True)
    if rc != 0:
        raise RemoteCommandError(step, rc, stderr)


async def deploy_application(run_cmd, params, descriptor, compose_cmd="docker compose"):
    """Build and start the application containers on the remote host.

    Args:
        run_cmd: async callable running commands inside ~/<repo_name>
        params: DeploymentRequest
        descriptor: BuildDescriptor chosen during repository sync
        compose_cmd: compose invocation reported by provisioning
    """
    if descriptor.is_compose:
        logger.info(f"Using {compose_cmd} with {descriptor.filename}...")
        down, up = compose_commands(compose_cmd, descriptor.filename)
        await _best_effort(run_cmd, down, "Stopping existing stack")
        await _require(run_cmd, "compose up", up)
    else:
        logger.info("Using Dockerfile for single-container deployment...")
        build, remove, run = dockerfile_commands(params.image_name, params.app_port, params.repo_name)
        await _require(run_cmd, "docker build", build)
        await _best_effort(run_cmd, remove, "Removing existing container")
        await _require(run_cmd, "docker run", run, timeout=300)

    logger.info("Application containers deployed successfully.")
