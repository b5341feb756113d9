"""Tests for CLI logging: console format, per-run log file, redaction."""

import logging
import re

import pytest

import dockship.redact as redact_module
from dockship.logging_setup import add_file_handler, setup_cli_logging


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers, saved_filters, saved_level = root.handlers[:], root.filters[:], root.level
    redact_module._patterns = None
    redact_module._registered.clear()
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.filters[:] = saved_filters
    root.setLevel(saved_level)
    redact_module._patterns = None
    redact_module._registered.clear()


def test_add_file_handler_creates_timestamped_file(clean_root, tmp_path):
    setup_cli_logging()
    log_file = add_file_handler(tmp_path / "logs")

    assert re.search(r"deploy_\d{8}_\d{6}\.log$", log_file)
    logging.getLogger("dockship.test").info("stage one")
    for handler in clean_root.handlers:
        handler.flush()

    content = open(log_file).read()
    assert "[dockship.test] stage one" in content


def test_child_logger_output_is_redacted(clean_root, tmp_path):
    setup_cli_logging()
    log_file = add_file_handler(tmp_path)
    redact_module.register_secret("ghp_LoggedTokenValue1")

    logging.getLogger("dockship.deploy.repository").info("clone https://ghp_LoggedTokenValue1@host/x.git")
    for handler in clean_root.handlers:
        handler.flush()

    content = open(log_file).read()
    assert "ghp_LoggedTokenValue1" not in content
    assert "https://***@host/x.git" in content
