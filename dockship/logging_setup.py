"""CLI logging setup: plain console output plus a timestamped per-run log file."""

import logging
import sys
from datetime import datetime
from pathlib import Path

from dockship.redact import SecretRedactingFilter


def setup_cli_logging():
    """Configure root logger with plain message format for CLI commands.

    Produces output identical to print(). Records from child loggers only
    pass through handler filters, so the redaction filter sits on each
    handler as well as on the root logger.
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    root.addFilter(SecretRedactingFilter())


def add_file_handler(log_dir=".") -> str:
    """Add a file handler writing to {log_dir}/deploy_YYYYMMDD_HHMMSS.log.

    One file per invocation; files are never rotated or cleaned up.

    Returns:
        Path to the log file.
    """
    log_dir = Path(log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"deploy_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_formatter = logging.Formatter(
        "[%(asctime)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(SecretRedactingFilter())
    logging.getLogger().addHandler(file_handler)

    return str(log_file)
