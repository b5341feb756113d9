"""Deploy orchestration: the fixed stage sequence for deploy and teardown."""

import logging

from dockship.deploy.app import deploy_application
from dockship.deploy.params import DeploymentRequest
from dockship.deploy.proxy import configure_proxy
from dockship.deploy.repository import sync_repository
from dockship.deploy.teardown import run_teardown
from dockship.deploy.validate import validate_deployment
from dockship.errors import ConnectivityError, RemoteCommandError
from dockship.provisioning.remote import detect_compose_command, provision_remote
from dockship.provisioning.ssh import check_ssh
from dockship.provisioning.ssh_transport import make_run_cmd, scp_dir

logger = logging.getLogger(__name__)


def _stage(title):
    logger.info(f"=== {title} ===")


async def check_connectivity(params: DeploymentRequest):
    """Fail fast before any remote mutation if the host is unreachable."""
    _stage(f"Testing SSH connection to {params.host}")
    ok, detail = await check_ssh(params.address, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    if not ok:
        raise ConnectivityError(f"Cannot reach {params.address} over SSH: {detail}")
    logger.info(detail)


async def run_deploy(params: DeploymentRequest, run_cmd=None, app_run_cmd=None, copy_dir=scp_dir):
    """Run the full deploy pipeline. Any stage failure raises DeployError.

    Args:
        params: DeploymentRequest
        run_cmd: remote runner for host-level commands (default: SSH)
        app_run_cmd: remote runner for commands inside ~/<repo_name> (default: SSH)
        copy_dir: async callable(local_dir, server, ssh_key, ssh_port, remote_path, dry_run)
            -> (returncode, stderr)

    Returns:
        RemoteEnvironment reported by provisioning.
    """
    if run_cmd is None:
        run_cmd = make_run_cmd(params.address, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    if app_run_cmd is None:
        app_run_cmd = make_run_cmd(
            params.address, params.ssh_key, params.ssh_port, workdir=f"~/{params.repo_name}", dry_run=params.dry_run
        )

    _stage("Syncing repository")
    repo_dir, descriptor = await sync_repository(params)

    await check_connectivity(params)

    _stage("Preparing remote environment")
    env = await provision_remote(run_cmd)

    _stage("Transferring project files to remote server")
    rc, stderr = await copy_dir(repo_dir, params.address, params.ssh_key, params.ssh_port, "~/", dry_run=params.dry_run)
    if rc != 0:
        raise RemoteCommandError("scp", rc, stderr)

    _stage("Deploying application on remote server")
    await deploy_application(app_run_cmd, params, descriptor, compose_cmd=env.compose_command)

    _stage("Configuring nginx reverse proxy")
    await configure_proxy(run_cmd, params.repo_name, params.app_port)

    _stage("Validating deployment")
    await validate_deployment(run_cmd, params)

    status = "dry-run (not deployed)" if params.dry_run else "deployed"
    logger.info(f"\nApplication: {params.repo_name} ({descriptor.filename})")
    logger.info(f"Endpoint: http://{params.host}/")
    logger.info(f"Status: {status}")
    return env


async def run_teardown_pipeline(params: DeploymentRequest, run_cmd=None):
    """Connectivity check, then remove deployed resources from the host."""
    if run_cmd is None:
        run_cmd = make_run_cmd(params.address, params.ssh_key, params.ssh_port, dry_run=params.dry_run)

    await check_connectivity(params)

    _stage("Tearing down deployment")
    try:
        compose_cmd, _ = await detect_compose_command(run_cmd)
    except RemoteCommandError:
        compose_cmd = "docker compose"
    await run_teardown(
        run_cmd,
        params.repo_name,
        params.image_name,
        all_containers=params.all_containers,
        compose_cmd=compose_cmd,
    )
