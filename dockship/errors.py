"""Deploy pipeline errors. Any DeployError aborts the run with exit status 1."""


class DeployError(Exception):
    """Base class for all pipeline failures."""


class InputValidationError(DeployError):
    """A required deployment parameter is missing or malformed."""

    def __init__(self, message, missing=()):
        super().__init__(message)
        self.missing = tuple(missing)


class MissingBuildDescriptorError(DeployError):
    """The synced repository has neither a Dockerfile nor a compose file."""


class RepositorySyncError(DeployError):
    """A git clone/fetch/pull failed."""


class ConnectivityError(DeployError):
    """The remote host could not be reached over SSH."""


class RemoteCommandError(DeployError):
    """A required remote command exited non-zero."""

    def __init__(self, step, returncode, stderr=""):
        message = f"{step} failed (exit code {returncode})"
        if stderr.strip():
            message += f": {stderr.strip().splitlines()[-1]}"
        super().__init__(message)
        self.step = step
        self.returncode = returncode
        self.stderr = stderr


class ValidationError(DeployError):
    """The deployed application did not answer the HTTP check."""
