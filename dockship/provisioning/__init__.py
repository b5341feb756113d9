"""Remote host access: SSH transport, reachability check, provisioning."""

from dockship.provisioning.remote import provision_remote
from dockship.provisioning.shell import run_shell_cmd
from dockship.provisioning.ssh import check_ssh
from dockship.provisioning.ssh_transport import (
    make_run_cmd,
    scp_dir,
    ssh_base_args,
)
from dockship.provisioning.types import RemoteEnvironment

__all__ = [
    "RemoteEnvironment",
    "check_ssh",
    "run_shell_cmd",
    "provision_remote",
    "ssh_base_args",
    "make_run_cmd",
    "scp_dir",
]
