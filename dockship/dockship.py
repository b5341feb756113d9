#!/usr/bin/env python3
"""dockship CLI entrypoint."""

import argparse

from dockship.commands.deploy import register_deploy_command
from dockship.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Deploy Dockerized Git repositories to a remote host over SSH")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_deploy_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging()
    args.func(args)


if __name__ == "__main__":
    main()
