"""Deploy command: sync a repo, push it to a host over SSH, run it behind nginx."""

import asyncio
import getpass
import logging
import sys

from dockship.config import DEPLOY_REQUIRED, TEARDOWN_REQUIRED, build_request, collect_values
from dockship.deploy.orchestrate import run_deploy, run_teardown_pipeline
from dockship.errors import DeployError
from dockship.logging_setup import add_file_handler
from dockship.redact import register_secret

logger = logging.getLogger(__name__)


def _flag_values(args):
    return {
        "repo_url": args.repo_url,
        "token": args.token,
        "branch": args.branch,
        "ssh_user": args.ssh_user,
        "host": args.host,
        "ssh_key": args.ssh_key,
        "app_port": args.app_port,
        "ssh_port": args.ssh_port,
        "workdir": args.workdir,
    }


def handle_deploy(args):
    """Handle the deploy command (and its --teardown mode)."""
    if args.all_containers and not args.teardown:
        logger.error("Error: --all-containers only applies with --teardown.")
        sys.exit(1)

    log_file = add_file_handler(args.log_dir)
    title = "teardown" if args.teardown else "deployment"
    logger.info(f"=== Starting {title} process ===")
    logger.info(f"Logs will be saved to: {log_file}")

    required = TEARDOWN_REQUIRED if args.teardown else DEPLOY_REQUIRED
    try:
        values = collect_values(
            _flag_values(args),
            config_path=args.config,
            required=required,
            interactive=not args.no_input,
            # getpass reads /dev/tty, so piped answers need plain input()
            secret_fn=getpass.getpass if sys.stdin.isatty() else input,
        )
        register_secret(values.get("token", ""))
        params = build_request(
            values,
            required=required,
            dry_run=args.dry_run,
            require_http=args.require_http,
            all_containers=args.all_containers,
        )
        if args.teardown:
            asyncio.run(run_teardown_pipeline(params))
        else:
            asyncio.run(run_deploy(params))
    except DeployError as e:
        logger.error(f"Error: {e}")
        logger.info(f"Logs stored in: {log_file}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.error("Interrupted.")
        sys.exit(130)

    if args.teardown:
        logger.info("Teardown finished.")
    else:
        logger.info("Deployment successful! Your application should now be live.")
    logger.info(f"Logs stored in: {log_file}")


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser("deploy", help="Deploy a Dockerized Git repository to a remote host via SSH")
    parser.add_argument("--config", default=None, help="YAML file with deployment settings")
    parser.add_argument("--repo-url", default=None, help="Git repository URL ($DOCKSHIP_REPO_URL)")
    parser.add_argument("--token", default=None, help="Personal access token ($DOCKSHIP_TOKEN or $GIT_TOKEN)")
    parser.add_argument("--branch", default=None, help="Branch to deploy (default: main)")
    parser.add_argument("--ssh-user", default=None, help="SSH username ($DOCKSHIP_SSH_USER)")
    parser.add_argument("--host", default=None, help="Remote server address ($DOCKSHIP_HOST)")
    parser.add_argument("--ssh-key", default=None, help="SSH private key path ($DOCKSHIP_SSH_KEY)")
    parser.add_argument("--ssh-port", type=int, default=None, help="SSH port (default: 22)")
    parser.add_argument("--app-port", default=None, help="Application container port ($DOCKSHIP_APP_PORT)")
    parser.add_argument("--workdir", default=None, help="Local directory to sync the repository into (default: .)")
    parser.add_argument("--log-dir", default=".", help="Directory for the deploy_*.log file (default: .)")
    parser.add_argument("--no-input", action="store_true", help="Never prompt; fail if a required value is missing")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.add_argument("--require-http", action="store_true",
                        help="Fail unless http://<host>/ answers 2xx/3xx after deploy")
    parser.add_argument("--teardown", "--cleanup", action="store_true",
                        help="Remove the deployed app, its files and nginx site instead of deploying")
    parser.add_argument("--all-containers", action="store_true",
                        help="With --teardown: remove EVERY container on the host")
    parser.set_defaults(func=handle_deploy)
