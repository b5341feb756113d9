"""Teardown: remove the deployed containers, repository copy and nginx site."""

import logging

from dockship.deploy.app import APP_LABEL
from dockship.deploy.proxy import reload_nginx, site_paths
from dockship.deploy.repository import COMPOSE_FILENAMES
from dockship.errors import RemoteCommandError

logger = logging.getLogger(__name__)

REMOVE_ALL_CONTAINERS = (
    "ids=$(sudo docker ps -aq); "
    'if [ -n "$ids" ]; then sudo docker stop $ids && sudo docker rm -f $ids; fi'
)


def scoped_container_commands(repo_name, image_name, compose_cmd="docker compose"):
    """Commands removing only this application's containers.

    The compose stack (if the remote copy has a compose file) is brought
    down, then any container with the app's name or label is removed.
    """
    compose_down = (
        f"for f in {' '.join(COMPOSE_FILENAMES)}; do "
        f'if [ -f ~/{repo_name}/"$f" ]; then cd ~/{repo_name} && sudo {compose_cmd} -f "$f" down; exit $?; fi; '
        f"done"
    )
    remove_matching = (
        f"ids=$( (sudo docker ps -aq --filter 'name=^/{image_name}$';"
        f" sudo docker ps -aq --filter 'label={APP_LABEL}={repo_name}') | sort -u); "
        f'if [ -n "$ids" ]; then sudo docker rm -f $ids; fi'
    )
    return [compose_down, remove_matching]


async def run_teardown(run_cmd, repo_name, image_name, all_containers=False, compose_cmd="docker compose"):
    """Reverse provisioning side effects of a deploy on the remote host.

    Args:
        run_cmd: async callable executing on the remote host (no workdir)
        repo_name: repository directory / nginx site name
        image_name: single-container image and container name
        all_containers: stop and remove every container on the host, not
            just this application's

    Raises:
        RemoteCommandError: a removal or nginx reload failed.
    """
    logger.info("Tearing down...")

    if all_containers:
        logger.warning("Removing ALL containers on the host...")
        container_cmds = [REMOVE_ALL_CONTAINERS]
    else:
        logger.info(f"Removing containers for {repo_name}...")
        container_cmds = scoped_container_commands(repo_name, image_name, compose_cmd)
    for command in container_cmds:
        rc, _, stderr = await run_cmd(command, timeout=300, log_output=True)
        if rc != 0:
            raise RemoteCommandError("remove containers", rc, stderr)

    logger.info(f"Removing ~/{repo_name}...")
    rc, _, stderr = await run_cmd(f"rm -rf ~/{repo_name}", stream=False, timeout=300)
    if rc != 0:
        raise RemoteCommandError("remove repository", rc, stderr)

    logger.info("Removing nginx site...")
    available, enabled = site_paths(repo_name)
    rc, _, stderr = await run_cmd(f"sudo rm -f {available} {enabled}", stream=False, timeout=60)
    if rc != 0:
        raise RemoteCommandError("remove nginx site", rc, stderr)
    await reload_nginx(run_cmd)

    logger.info("Teardown complete.")
