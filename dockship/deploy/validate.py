"""Post-deploy validation: container listing, local curl, optional public HTTP gate."""

import asyncio
import logging

import httpx

from dockship.errors import RemoteCommandError, ValidationError

logger = logging.getLogger(__name__)

HTTP_CHECK_TIMEOUT = 60
HTTP_CHECK_INTERVAL = 5


async def probe_http(url, timeout=HTTP_CHECK_TIMEOUT, interval=HTTP_CHECK_INTERVAL, transport=None):
    """HEAD url until it answers with a 2xx/3xx status or timeout expires.

    Returns:
        (ok, status) where status is the last HTTP status code, or None if
        the host never answered.
    """
    status = None
    elapsed = 0
    async with httpx.AsyncClient(follow_redirects=False, transport=transport) as client:
        while True:
            try:
                resp = await client.head(url, timeout=10)
                status = resp.status_code
                if 200 <= status < 400:
                    return True, status
                logger.info(f"{url} answered {status}, retrying...")
            except httpx.HTTPError as e:
                logger.info(f"{url} not reachable yet ({e.__class__.__name__}), retrying...")
            if elapsed >= timeout:
                return False, status
            await asyncio.sleep(interval)
            elapsed += interval


async def validate_deployment(run_cmd, params, timeout=HTTP_CHECK_TIMEOUT, interval=HTTP_CHECK_INTERVAL):
    """List running containers and show the proxy's response.

    A failing `docker ps` aborts the run; the local curl is informational.
    With params.require_http the public endpoint http://<host>/ must answer
    2xx/3xx, else ValidationError.
    """
    logger.info("Checking running containers...")
    rc, _, stderr = await run_cmd("sudo docker ps", stream=False, timeout=60, log_output=True)
    if rc != 0:
        raise RemoteCommandError("docker ps", rc, stderr)

    logger.info("Testing application accessibility...")
    rc, _, _ = await run_cmd("curl -sI http://localhost:80", stream=False, timeout=60, log_output=True)
    if rc != 0:
        logger.warning(f"curl against localhost:80 failed (exit code {rc})")

    if not params.require_http:
        return

    url = f"http://{params.host}/"
    if params.dry_run:
        logger.info(f"[dry-run] HEAD {url} (expect 2xx/3xx)")
        return

    logger.info(f"Checking {url}...")
    ok, status = await probe_http(url, timeout=timeout, interval=interval)
    if not ok:
        got = f"HTTP {status}" if status is not None else "no response"
        raise ValidationError(f"{url} did not answer with 2xx/3xx within {timeout}s ({got})")
    logger.info(f"{url} answered HTTP {status}.")
