"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest

from dockship.deploy.params import DeploymentRequest


PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def run_cli(project_root, tmp_path):
    """Return a callable that invokes the dockship CLI as a subprocess.

    Runs with an isolated environment. stdin is closed unless *input* is
    given, in which case it is piped to the process as prompt answers.
    """

    def _run(*args, env=None, input=None):
        full_env = {k: v for k, v in os.environ.items() if not k.startswith("DOCKSHIP_") and k != "GIT_TOKEN"}
        full_env["PYTHONPATH"] = project_root + os.pathsep + full_env.get("PYTHONPATH", "")
        full_env.update(env or {})
        result = subprocess.run(
            [sys.executable, "-m", "dockship.dockship", *args],
            capture_output=True,
            text=True,
            cwd=str(tmp_path),
            env=full_env,
            **({"input": input} if input is not None else {"stdin": subprocess.DEVNULL}),
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


class FakeRemote:
    """Recording stand-in for an SSH run_cmd callable.

    ``results`` maps a substring to (returncode, stdout, stderr); the first
    matching substring decides the result, everything else succeeds.
    """

    def __init__(self, results=None):
        self.commands = []
        self.results = dict(results or {})

    async def __call__(self, command, stream=True, timeout=600, log_output=False):
        self.commands.append(command)
        for needle, result in self.results.items():
            if needle in command:
                return result
        return 0, "", ""

    def index(self, needle):
        """Index of the first recorded command containing needle."""
        for i, command in enumerate(self.commands):
            if needle in command:
                return i
        raise AssertionError(f"no command containing {needle!r} in {self.commands}")

    def ran(self, needle):
        return any(needle in c for c in self.commands)


@pytest.fixture
def fake_remote():
    """Return a factory for FakeRemote recorders."""
    return FakeRemote


@pytest.fixture
def make_repo(tmp_path):
    """Return a factory creating tmp_path/<name> with the given files."""

    def _make(name="shop", files=("Dockerfile",)):
        repo_dir = tmp_path / name
        repo_dir.mkdir(exist_ok=True)
        for filename in files:
            (repo_dir / filename).write_text(f"# {filename}\n")
        return repo_dir

    return _make


@pytest.fixture
def make_params(tmp_path):
    """Return a factory for DeploymentRequest with sensible test defaults."""

    def _make(**overrides):
        values = {
            "repo_url": "https://github.com/acme/shop.git",
            "token": "ghp_TestToken1234567890",
            "ssh_user": "ubuntu",
            "host": "203.0.113.10",
            "ssh_key": "/home/me/.ssh/id_ed25519",
            "app_port": 3000,
            "workdir": str(tmp_path),
        }
        values.update(overrides)
        return DeploymentRequest(**values)

    return _make
