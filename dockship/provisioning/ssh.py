"""SSH reachability check."""

import asyncio
import logging

from dockship.provisioning.ssh_transport import ssh_base_args

logger = logging.getLogger(__name__)

CONFIRMATION = "SSH connection successful."


async def check_ssh(server, ssh_key, ssh_port, connect_timeout=10, dry_run=False):
    """Open one SSH session running a no-op confirmation command.

    A single attempt, no polling: the pipeline must not touch a host it
    cannot reach.

    Returns:
        (ok, detail) where detail is the remote output or the ssh error.
    """
    args = ssh_base_args(server, ssh_key, ssh_port, connect_timeout=connect_timeout)
    args.append(f"echo '{CONFIRMATION}'")
    if dry_run:
        logger.info(f"[dry-run] {' '.join(args)}")
        return True, CONFIRMATION

    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=connect_timeout + 20)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        return False, f"timed out after {connect_timeout + 20}s"
    except FileNotFoundError:
        return False, "'ssh' not found"

    stdout = stdout_bytes.decode(errors="replace").strip() if stdout_bytes else ""
    stderr = stderr_bytes.decode(errors="replace").strip() if stderr_bytes else ""
    if proc.returncode != 0:
        return False, stderr or f"ssh exited with code {proc.returncode}"
    return True, stdout
