"""Centralized secret redaction for console and file logs.

Two kinds of secrets are masked with ``***``:

- exact values: tokens from the environment (``_SECRET_ENV_VARS``) and any
  value passed to :func:`register_secret` at runtime;
- credentials embedded in ``https://<credentials>@host`` URLs, which git
  echoes back in clone and fetch errors.
"""

import logging
import os
import re

# Env vars whose values should be redacted from all output
_SECRET_ENV_VARS = [
    "DOCKSHIP_TOKEN",
    "GIT_TOKEN",
    "GITHUB_TOKEN",
]

_MIN_SECRET_LENGTH = 8  # skip short values to avoid false positives

_URL_CREDENTIALS = re.compile(r"(https?://)[^/@\s]+@")

# Values registered at runtime (e.g. a token typed at the prompt)
_registered: set[str] = set()

# Lazy-initialized module cache, reset whenever a secret is registered
_patterns: list[re.Pattern] | None = None


def _get_patterns() -> list[re.Pattern]:
    global _patterns
    if _patterns is None:
        values = {os.environ.get(var, "") for var in _SECRET_ENV_VARS}
        values = {v for v in values if len(v) >= _MIN_SECRET_LENGTH} | _registered
        # Longer values first so a secret containing another is fully masked
        _patterns = [re.compile(re.escape(v)) for v in sorted(values, key=len, reverse=True)]
    return _patterns


def register_secret(value: str) -> None:
    """Redact *value* from all subsequent log output.

    Any non-empty value is accepted; the minimum length only filters
    environment variables, which may hold unrelated short values.
    """
    global _patterns
    if value and value not in _registered:
        _registered.add(value)
        _patterns = None


def _apply(text: str, patterns: list[re.Pattern]) -> str:
    for p in patterns:
        text = p.sub("***", text)
    return _URL_CREDENTIALS.sub(r"\1***@", text)


def redact_secrets(text: str) -> str:
    """Replace known secret values and URL credentials with '***'."""
    return _apply(text, _get_patterns())


class SecretRedactingFilter(logging.Filter):
    """Logging filter rewriting secrets in log records.

    Handles both f-string messages (msg is pre-formatted) and
    %-style messages (msg + args).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        patterns = _get_patterns()
        record.msg = _apply(str(record.msg), patterns)
        if isinstance(record.args, dict):
            record.args = {k: _apply(v, patterns) if isinstance(v, str) else v for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(_apply(a, patterns) if isinstance(a, str) else a for a in record.args)
        return True
