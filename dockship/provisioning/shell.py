"""Local command execution helper."""

import asyncio
import logging

logger = logging.getLogger(__name__)


async def run_shell_cmd(command, cwd=None, dry_run=False, timeout=600, log_output=False):
    """Run a local command and return (returncode, stdout, stderr).

    Args:
        command: list of command arguments
        cwd: working directory for the command
        dry_run: if True, log the command instead of executing
        timeout: maximum seconds to wait for the command
        log_output: if True, log captured stdout (INFO) and stderr (ERROR on failure)

    Returns:
        (returncode, stdout, stderr) tuple
    """
    if dry_run:
        where = f" (in {cwd})" if cwd else ""
        logger.info(f"[dry-run] {' '.join(command)}{where}")
        return 0, "", ""

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        stdout = stdout_bytes.decode() if stdout_bytes else ""
        stderr = stderr_bytes.decode() if stderr_bytes else ""
    except TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {' '.join(command)}")
        proc.kill()
        await proc.wait()
        return 1, "", "timeout"
    except FileNotFoundError:
        logger.error(f"Error: '{command[0]}' not found. Is it installed and on PATH?")
        return 1, "", f"'{command[0]}' not found"

    if log_output:
        for line in stdout.splitlines():
            logger.info(line)
        # git writes progress to stderr even on success
        level = logging.INFO if proc.returncode == 0 else logging.ERROR
        for line in stderr.splitlines():
            logger.log(level, line)
    return proc.returncode, stdout, stderr
