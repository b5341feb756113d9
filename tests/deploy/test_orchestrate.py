"""Unit tests for the deploy/teardown stage sequence and fail-fast behaviour."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from dockship.deploy.orchestrate import run_deploy, run_teardown_pipeline
from dockship.errors import ConnectivityError, MissingBuildDescriptorError, RemoteCommandError


VERSIONS = {
    "docker --version": (0, "Docker version 24.0.7\n", ""),
    "docker compose version": (0, "2.24.6\n", ""),
    "nginx -v": (0, "nginx version: nginx/1.24.0\n", ""),
}


@pytest.fixture
def git_ok():
    with patch("dockship.deploy.repository.run_shell_cmd", AsyncMock(return_value=(0, "", ""))) as mock:
        yield mock


@pytest.fixture
def ssh_ok():
    with patch("dockship.deploy.orchestrate.check_ssh", AsyncMock(return_value=(True, "ok"))) as mock:
        yield mock


def _run(params, host_remote, app_remote, copy=None):
    copy = copy or AsyncMock(return_value=(0, ""))
    env = asyncio.run(run_deploy(params, run_cmd=host_remote, app_run_cmd=app_remote, copy_dir=copy))
    return env, copy


def test_deploy_full_sequence(make_params, make_repo, fake_remote, git_ok, ssh_ok):
    repo = make_repo(files=["Dockerfile"])
    host, app = fake_remote(VERSIONS), fake_remote()
    env, copy = _run(make_params(), host, app)

    ssh_ok.assert_awaited_once()
    copy.assert_awaited_once()
    assert copy.call_args.args[0] == str(repo)
    assert copy.call_args.args[4] == "~/"
    assert env.compose_command == "docker compose"

    # provisioning before proxy before validation on the host runner
    assert host.index("apt-get update") < host.index("nginx -t") < host.index("docker ps")
    # app commands run in the repo dir runner
    assert app.ran("docker build -t shop .")


def test_deploy_prefers_compose(make_params, make_repo, fake_remote, git_ok, ssh_ok):
    make_repo(files=["Dockerfile", "docker-compose.yml"])
    host, app = fake_remote(VERSIONS), fake_remote()
    _run(make_params(), host, app)

    assert app.ran("docker compose -f docker-compose.yml up -d --build")
    assert not app.ran("docker build")


def test_deploy_twice_issues_same_commands(make_params, make_repo, fake_remote, git_ok, ssh_ok):
    make_repo(files=["compose.yaml"])
    runs = []
    for _ in range(2):
        host, app = fake_remote(VERSIONS), fake_remote()
        _run(make_params(), host, app)
        runs.append((host.commands, app.commands))
    assert runs[0] == runs[1]


def test_missing_descriptor_aborts_before_ssh(make_params, make_repo, fake_remote, git_ok, ssh_ok):
    make_repo(files=["README.md"])
    host, app = fake_remote(), fake_remote()
    with pytest.raises(MissingBuildDescriptorError):
        _run(make_params(), host, app)

    ssh_ok.assert_not_called()
    assert host.commands == []
    assert app.commands == []


def test_unreachable_host_aborts_before_mutation(make_params, make_repo, fake_remote, git_ok):
    make_repo(files=["Dockerfile"])
    host, app = fake_remote(), fake_remote()
    with patch("dockship.deploy.orchestrate.check_ssh", AsyncMock(return_value=(False, "Connection timed out"))):
        with pytest.raises(ConnectivityError, match="Connection timed out"):
            _run(make_params(), host, app)
    assert host.commands == []


def test_copy_failure_stops_before_deploy(make_params, make_repo, fake_remote, git_ok, ssh_ok):
    make_repo(files=["Dockerfile"])
    host, app = fake_remote(VERSIONS), fake_remote()
    with pytest.raises(RemoteCommandError, match="scp"):
        _run(make_params(), host, app, copy=AsyncMock(return_value=(1, "lost connection")))
    assert app.commands == []
    assert not host.ran("nginx -t")


def test_teardown_pipeline_checks_ssh_first(make_params, fake_remote, ssh_ok):
    remote = fake_remote(VERSIONS)
    asyncio.run(run_teardown_pipeline(make_params(app_port=None, token=""), run_cmd=remote))
    ssh_ok.assert_awaited_once()
    assert remote.ran("rm -rf ~/shop")
    assert not remote.ran("apt-get")


def test_teardown_pipeline_unreachable(make_params, fake_remote):
    remote = fake_remote()
    with patch("dockship.deploy.orchestrate.check_ssh", AsyncMock(return_value=(False, "refused"))):
        with pytest.raises(ConnectivityError):
            asyncio.run(run_teardown_pipeline(make_params(), run_cmd=remote))
    assert remote.commands == []
