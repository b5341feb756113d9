"""SSH transport: run commands and copy directories to remote servers via SSH/SCP."""

import asyncio
import logging

logger = logging.getLogger(__name__)

_COMMON_OPTS = [
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "BatchMode=yes",
    "-o", "ServerAliveInterval=60",
    "-o", "ServerAliveCountMax=5",
]


def ssh_base_args(server, ssh_key, ssh_port, connect_timeout=None):
    """Build base SSH arguments."""
    args = ["ssh", *_COMMON_OPTS]
    if connect_timeout:
        args += ["-o", f"ConnectTimeout={connect_timeout}"]
    if ssh_key:
        args += ["-i", ssh_key]
    if ssh_port and ssh_port != 22:
        args += ["-p", str(ssh_port)]
    args.append(server)
    return args


def scp_base_args(ssh_key, ssh_port):
    """Build base SCP arguments (scp spells the port flag -P)."""
    args = ["scp", *_COMMON_OPTS]
    if ssh_key:
        args += ["-i", ssh_key]
    if ssh_port and ssh_port != 22:
        args += ["-P", str(ssh_port)]
    return args


def make_run_cmd(server, ssh_key, ssh_port, workdir=None, dry_run=False):
    """Create a run_cmd callable for SSH execution.

    Commands run through the remote login shell; when *workdir* is given
    each command is prefixed with ``cd {workdir} &&``.
    """

    async def run_cmd(command, stream=True, timeout=600, log_output=False):
        full_cmd = f"cd {workdir} && {command}" if workdir else command
        if dry_run:
            logger.info(f"[dry-run] ssh {server}: {full_cmd}")
            return 0, "", ""

        ssh_args = ssh_base_args(server, ssh_key, ssh_port)
        ssh_args.append(full_cmd)

        try:
            use_pipe = not stream or log_output
            proc = await asyncio.create_subprocess_exec(
                *ssh_args,
                stdout=asyncio.subprocess.PIPE if use_pipe else None,
                stderr=asyncio.subprocess.PIPE if use_pipe else None,
            )

            if log_output:
                stdout_lines, stderr_lines = [], []

                async def _read_stream(pipe, lines, level):
                    async for raw_line in pipe:
                        line = raw_line.decode(errors="replace").rstrip("\n")
                        logger.log(level, line)
                        lines.append(line)

                await asyncio.wait_for(
                    asyncio.gather(
                        _read_stream(proc.stdout, stdout_lines, logging.INFO),
                        _read_stream(proc.stderr, stderr_lines, logging.ERROR),
                        proc.wait(),
                    ),
                    timeout=timeout,
                )
                return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)
            else:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
                stdout = "" if stream else (stdout_bytes.decode(errors="replace") if stdout_bytes else "")
                stderr = "" if stream else (stderr_bytes.decode(errors="replace") if stderr_bytes else "")
                return proc.returncode, stdout, stderr
        except TimeoutError:
            logger.error(f"Command timed out after {timeout}s: {command}")
            proc.kill()
            await proc.wait()
            return 1, "", "timeout"
        except OSError as e:
            logger.error(f"Error running SSH command: {e}")
            return 1, "", str(e)

    return run_cmd


async def scp_dir(local_dir, server, ssh_key, ssh_port, remote_path="~/", dry_run=False, timeout=1800):
    """Recursively copy a local directory to the remote server via SCP.

    The copy is additive: same-named files are overwritten, remote files
    that no longer exist locally are left alone.

    Returns:
        (returncode, stderr) tuple
    """
    scp_args = scp_base_args(ssh_key, ssh_port)
    scp_args += ["-r", str(local_dir), f"{server}:{remote_path}"]

    if dry_run:
        logger.info(f"[dry-run] scp -r {local_dir} -> {server}:{remote_path}")
        return 0, ""

    try:
        proc = await asyncio.create_subprocess_exec(
            *scp_args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
        return proc.returncode, stderr
    except TimeoutError:
        logger.error(f"SCP timed out after {timeout}s: {local_dir} -> {server}:{remote_path}")
        proc.kill()
        await proc.wait()
        return 1, "timeout"
    except FileNotFoundError:
        logger.error("Error: 'scp' not found. Is it installed and on PATH?")
        return 1, "'scp' not found"
