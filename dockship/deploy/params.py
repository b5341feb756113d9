"""Deployment request dataclass."""

from dataclasses import dataclass

DEFAULT_BRANCH = "main"


def repo_name_from_url(repo_url: str) -> str:
    """Directory name git would pick: last path segment without '.git'."""
    name = repo_url.rstrip("/").rsplit("/", 1)[-1]
    # scp-style URLs (git@host:repo.git) have no slash before the name
    name = name.rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


@dataclass(frozen=True)
class DeploymentRequest:
    """All parameters for a single deployment run. Immutable once collected."""

    repo_url: str
    token: str
    ssh_user: str
    host: str
    ssh_key: str
    app_port: int | None
    branch: str = DEFAULT_BRANCH
    ssh_port: int = 22
    workdir: str = "."
    dry_run: bool = False
    require_http: bool = False
    all_containers: bool = False

    @property
    def repo_name(self) -> str:
        return repo_name_from_url(self.repo_url)

    @property
    def image_name(self) -> str:
        """Image tag and container name; Docker references must be lowercase."""
        return self.repo_name.lower()

    @property
    def address(self) -> str:
        """SSH address string (user@host)."""
        return f"{self.ssh_user}@{self.host}" if self.ssh_user else self.host

    @property
    def clone_url(self) -> str:
        """HTTPS clone URL with the token embedded as userinfo.

        Non-HTTPS URLs (ssh, file paths) are returned unchanged.
        """
        if not self.token or not self.repo_url.startswith("https://"):
            return self.repo_url
        return f"https://{self.token}@{self.repo_url[len('https://'):]}"
