"""Repository sync: clone or fast-forward the app repo, then find its build descriptor."""

import logging
import os
from dataclasses import dataclass

from dockship.errors import MissingBuildDescriptorError, RepositorySyncError
from dockship.provisioning.shell import run_shell_cmd

logger = logging.getLogger(__name__)

# Checked in order; the first compose file found wins
COMPOSE_FILENAMES = ["compose.yaml", "compose.yml", "docker-compose.yaml", "docker-compose.yml"]
DOCKERFILE = "Dockerfile"


@dataclass(frozen=True)
class BuildDescriptor:
    """How the application is built: a compose stack or a single Dockerfile."""

    kind: str  # "compose" or "dockerfile"
    filename: str

    @property
    def is_compose(self) -> bool:
        return self.kind == "compose"


def detect_build_descriptor(repo_dir):
    """Return the BuildDescriptor for repo_dir, preferring compose over Dockerfile.

    Raises:
        MissingBuildDescriptorError: neither file exists.
    """
    for name in COMPOSE_FILENAMES:
        if os.path.isfile(os.path.join(repo_dir, name)):
            return BuildDescriptor("compose", name)
    if os.path.isfile(os.path.join(repo_dir, DOCKERFILE)):
        return BuildDescriptor("dockerfile", DOCKERFILE)
    raise MissingBuildDescriptorError(
        f"No {DOCKERFILE} or compose file ({', '.join(COMPOSE_FILENAMES)}) found in {repo_dir}"
    )


async def _git(args, cwd, step, dry_run, timeout=600):
    rc, _, stderr = await run_shell_cmd(["git", *args], cwd=cwd, dry_run=dry_run, timeout=timeout, log_output=True)
    if rc != 0:
        raise RepositorySyncError(f"{step} failed (exit code {rc}): {stderr.strip() or 'no output'}")


async def sync_repository(params):
    """Clone the repository, or fetch and fast-forward it if already present.

    Args:
        params: DeploymentRequest

    Returns:
        (repo_dir, BuildDescriptor) tuple.
    """
    workdir = os.path.abspath(os.path.expanduser(params.workdir))
    repo_dir = os.path.join(workdir, params.repo_name)
    branch = params.branch

    if os.path.isdir(repo_dir):
        logger.info("Repository exists. Pulling latest changes...")
        await _git(["fetch", "origin", branch], repo_dir, "git fetch", params.dry_run)
        await _git(["checkout", branch], repo_dir, "git checkout", params.dry_run)
        await _git(["pull", "origin", branch], repo_dir, "git pull", params.dry_run)
    else:
        logger.info("Cloning new repository...")
        if not params.dry_run:
            os.makedirs(workdir, exist_ok=True)
        await _git(
            ["clone", "-b", branch, params.clone_url, params.repo_name],
            workdir,
            "git clone",
            params.dry_run,
            timeout=1800,
        )

    descriptor = detect_build_descriptor(repo_dir)
    logger.info(f"Docker configuration detected: {descriptor.filename}")
    return repo_dir, descriptor
