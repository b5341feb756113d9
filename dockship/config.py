"""Deployment input collection: CLI flags, environment, YAML config file, prompts."""

import getpass
import logging
import os
import re

import yaml

from dockship.deploy.params import DEFAULT_BRANCH, DeploymentRequest, repo_name_from_url
from dockship.errors import InputValidationError

logger = logging.getLogger(__name__)

# field -> (environment variables, prompt); None prompt means never prompted
FIELDS = {
    "repo_url": (["DOCKSHIP_REPO_URL"], "Enter Git Repository URL: "),
    "token": (["DOCKSHIP_TOKEN", "GIT_TOKEN"], "Enter Personal Access Token (PAT): "),
    "branch": (["DOCKSHIP_BRANCH"], f"Enter branch name [default: {DEFAULT_BRANCH}]: "),
    "ssh_user": (["DOCKSHIP_SSH_USER"], "Enter SSH username: "),
    "host": (["DOCKSHIP_HOST"], "Enter remote server IP address: "),
    "ssh_key": (["DOCKSHIP_SSH_KEY"], "Enter path to SSH private key: "),
    "app_port": (["DOCKSHIP_APP_PORT"], "Enter application internal (container) port: "),
    "ssh_port": (["DOCKSHIP_SSH_PORT"], None),
    "workdir": (["DOCKSHIP_WORKDIR"], None),
}

DEPLOY_REQUIRED = ["repo_url", "token", "ssh_user", "host", "ssh_key", "app_port"]
TEARDOWN_REQUIRED = ["repo_url", "ssh_user", "host", "ssh_key"]

_SECRET_FIELDS = {"token"}

# repo_name becomes a remote path (~/<name>) and an nginx site file name
_REPO_NAME = re.compile(r"[A-Za-z0-9._-]+")


def load_config_file(config_path):
    """Load deployment settings from a YAML file.

    Raises:
        InputValidationError: missing file, bad YAML, or unknown keys.
    """
    try:
        with open(os.path.expanduser(config_path)) as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise InputValidationError(f"Config file '{config_path}' not found.")
    except yaml.YAMLError as e:
        raise InputValidationError(f"Error parsing YAML config: {e}")

    if not isinstance(config, dict):
        raise InputValidationError(f"Config file '{config_path}' must contain a mapping.")
    unknown = sorted(set(config) - set(FIELDS))
    if unknown:
        raise InputValidationError(f"Unknown keys in '{config_path}': {', '.join(unknown)}")
    return {k: "" if v is None else str(v) for k, v in config.items()}


def _from_env(env):
    values = {}
    for field, (env_vars, _) in FIELDS.items():
        for var in env_vars:
            if env.get(var):
                values[field] = env[var]
                break
    return values


def _prompt(field, prompt, input_fn, secret_fn):
    reader = secret_fn if field in _SECRET_FIELDS else input_fn
    return reader(prompt).strip()


def collect_values(flags, env=None, config_path=None, required=DEPLOY_REQUIRED,
                   interactive=True, input_fn=input, secret_fn=getpass.getpass):
    """Merge inputs with precedence flags > environment > config file > prompt.

    Args:
        flags: dict of values given on the command line (None = not given)
        env: environment mapping (default: os.environ)
        config_path: optional YAML file path
        required: fields that must end up non-empty
        interactive: prompt for missing required fields, one line each, in
            FIELDS order so answers can also be piped in on stdin
        input_fn, secret_fn: prompt readers; end of input stops prompting

    Returns:
        dict of raw string values.
    """
    env = os.environ if env is None else env

    values = load_config_file(config_path) if config_path else {}
    values.update(_from_env(env))
    values.update({k: str(v) for k, v in flags.items() if v is not None and v != ""})

    if interactive:
        for field, (_, prompt) in FIELDS.items():
            if prompt is None or values.get(field):
                continue
            if field not in required and field != "branch":
                continue
            try:
                values[field] = _prompt(field, prompt, input_fn, secret_fn)
            except EOFError:
                # leave the rest empty; build_request reports them as missing
                break
    return values


def _parse_port(field, value):
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InputValidationError(f"Invalid {field} '{value}': must be an integer.")
    if not 1 <= port <= 65535:
        raise InputValidationError(f"Invalid {field} '{value}': must be between 1 and 65535.")
    return port


def build_request(values, required=DEPLOY_REQUIRED, dry_run=False, require_http=False, all_containers=False):
    """Validate collected values once and build an immutable DeploymentRequest.

    Raises:
        InputValidationError: any required field is empty, a port is invalid,
            or the repository URL does not end in a usable directory name.
    """
    values = {k: v.strip() if isinstance(v, str) else v for k, v in values.items()}
    missing = [f for f in required if not values.get(f)]
    if missing:
        raise InputValidationError(
            f"Missing input: {', '.join(missing)}. Please fill all required fields.",
            missing=missing,
        )

    repo_name = repo_name_from_url(values["repo_url"])
    if repo_name in (".", "..") or not _REPO_NAME.fullmatch(repo_name):
        raise InputValidationError(
            f"Invalid repo_url '{values['repo_url']}': cannot derive a repository name from it."
        )

    app_port = _parse_port("app_port", values["app_port"]) if values.get("app_port") else None
    ssh_port = _parse_port("ssh_port", values["ssh_port"]) if values.get("ssh_port") else 22

    return DeploymentRequest(
        repo_url=values["repo_url"],
        token=values.get("token", ""),
        branch=values.get("branch") or DEFAULT_BRANCH,
        ssh_user=values["ssh_user"],
        host=values["host"],
        ssh_key=os.path.expanduser(values["ssh_key"]),
        app_port=app_port,
        ssh_port=ssh_port,
        workdir=os.path.expanduser(values.get("workdir") or "."),
        dry_run=dry_run,
        require_http=require_http,
        all_containers=all_containers,
    )
