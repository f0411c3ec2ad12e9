from __future__ import annotations

from pathlib import Path


class ServerError(Exception):
    """Base class for every failure reported by a lifecycle operation."""

    error_type = "server_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.cleanup_errors: list[Exception] = []

    def attach_cleanup_error(self, error: Exception) -> None:
        """Record a failure that happened while releasing resources after this error."""
        self.cleanup_errors.append(error)


class IllegalStateError(ServerError):
    """The operation is not allowed from the current lifecycle state."""

    error_type = "illegal_state"
    status_code = 409


class ExecutorClosedError(IllegalStateError):
    """A command was submitted after the executor was closed."""

    error_type = "executor_closed"


class AlreadyBootstrappedError(ServerError):
    """The bootstrap marker already exists, so bootstrap was attempted before."""

    error_type = "already_bootstrapped"
    status_code = 409

    def __init__(self, marker_path: Path):
        super().__init__(f"bootstrap already attempted (marker present at {marker_path})")
        self.marker_path = marker_path


class LaunchError(ServerError):
    """The child process could not be created."""

    error_type = "launch_failure"


class ChildExitError(ServerError):
    """The bootstrap child exited with a non-zero status."""

    error_type = "child_exit_failure"

    def __init__(self, returncode: int):
        super().__init__(f"bootstrap process failed with exit code {returncode}")
        self.returncode = returncode


class ScriptReadError(ServerError):
    """An initialization script could not be fully read."""

    error_type = "script_read_failure"

    def __init__(self, path: Path, reason: str):
        super().__init__(f"failed to read initialization script {path}: {reason}")
        self.path = path


class ScriptStreamError(ServerError):
    """The bootstrap script could not be fully written to the child."""

    error_type = "script_stream_failure"


class ConsoleRelayError(ServerError):
    """The child's console output could not be fully relayed."""

    error_type = "console_relay_failure"


class SignalError(ServerError):
    """The termination signal could not be delivered."""

    error_type = "signal_failure"


class WaitError(ServerError):
    """Waiting for the child process to exit failed."""

    error_type = "wait_failure"


class CleanupError(ServerError):
    """Releasing a resource failed after the primary operation succeeded."""

    error_type = "cleanup_failure"


class MarkerError(ServerError):
    """The bootstrap marker could not be created or written."""

    error_type = "marker_failure"
