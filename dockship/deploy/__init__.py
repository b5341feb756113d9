"""Deploy library: repository sync, app deployment, proxy setup, validation, teardown."""

from dockship.deploy.params import DeploymentRequest, repo_name_from_url
from dockship.deploy.repository import (
    BuildDescriptor,
    detect_build_descriptor,
    sync_repository,
)
from dockship.deploy.app import deploy_application
from dockship.deploy.proxy import configure_proxy, generate_site_conf
from dockship.deploy.validate import probe_http, validate_deployment
from dockship.deploy.teardown import run_teardown
from dockship.deploy.orchestrate import (
    check_connectivity,
    run_deploy,
    run_teardown_pipeline,
)

__all__ = [
    "DeploymentRequest",
    "repo_name_from_url",
    "BuildDescriptor",
    "detect_build_descriptor",
    "sync_repository",
    "deploy_application",
    "configure_proxy",
    "generate_site_conf",
    "probe_http",
    "validate_deployment",
    "run_teardown",
    "check_connectivity",
    "run_deploy",
    "run_teardown_pipeline",
]
