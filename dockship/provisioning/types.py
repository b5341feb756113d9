"""Shared data types for remote provisioning."""

from dataclasses import dataclass


@dataclass
class RemoteEnvironment:
    """What provisioning ensured on the remote host.

    Informational only: the host itself stays the source of truth.
    """

    docker_version: str = ""
    compose_command: str = "docker compose"
    compose_version: str = ""
    nginx_version: str = ""
