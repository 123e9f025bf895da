"""Exceptions raised by the isolation engine."""


class IsolationError(Exception):
    """Base class for isolation engine errors."""


class ConfigurationError(IsolationError):
    """Raised when a policy is applied with invalid or missing parameters.

    Always raised before the environment is touched.
    """


class ExecutionError(IsolationError):
    """Raised when a command inside the environment fails."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        msg = super().__str__()
        if self.stderr:
            return f"{msg}: {self.stderr.strip()}"
        return msg


class LookupWarning(UserWarning):
    """Issued when the environment user could not be resolved to a UID/GID."""
