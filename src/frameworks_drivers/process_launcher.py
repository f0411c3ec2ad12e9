from __future__ import annotations

import ctypes
import ctypes.util
import os
import signal
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.frameworks_drivers.config import ServerConfiguration
from src.shared.errors import LaunchError
from src.shared.logger import Logger

logger = Logger.get(__name__)

PR_SET_PDEATHSIG = 1


class LaunchIntent(str, Enum):
    BOOTSTRAP = "bootstrap"
    SERVER = "server"


@dataclass(frozen=True)
class LaunchSpec:
    """Everything needed to create a mysqld child; arguments[0] is the executable."""

    executable: str
    arguments: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    directory: str = "."


def _load_prctl():
    if not sys.platform.startswith("linux"):
        return None
    libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
    return libc.prctl


_prctl = _load_prctl()


def _parent_death_signal(parent_pid: int):
    """Build the preexec hook delivering SIGTERM to the child once its parent dies."""

    def _set_pdeathsig() -> None:
        if _prctl is not None:
            _prctl(PR_SET_PDEATHSIG, int(signal.SIGTERM))
        # The parent may have died between fork and prctl.
        if os.getppid() != parent_pid:
            os._exit(1)

    return _set_pdeathsig


class ProcessLauncher:
    """
    Builds mysqld invocations and starts them as children that never outlive the supervisor.
    Argument construction is a pure function of the configuration and the launch intent.
    """

    @staticmethod
    def prepare(configuration: ServerConfiguration, intent: LaunchIntent) -> LaunchSpec:
        """
        Prepare the invocation for the given intent.

        Args:
            configuration: The server configuration.
            intent: Bootstrap (administrative, no networking) or normal server mode.

        Returns:
            The launch specification.
        """
        if intent == LaunchIntent.BOOTSTRAP:
            return ProcessLauncher._prepare_bootstrap_execution(configuration)
        return ProcessLauncher._prepare_server_execution(configuration)

    @staticmethod
    def _prepare_server_execution(configuration: ServerConfiguration) -> LaunchSpec:
        spec = ProcessLauncher._prepare_generic_execution(configuration)
        spec.arguments.extend([
            f"--bind-address={configuration.sql_endpoint_ip}",
            f"--port={configuration.sql_endpoint_port}",
            "--extra-port=0",
            "--skip-ssl",
            "--skip-name-resolve",
            "--skip-host-cache",
        ])
        return spec

    @staticmethod
    def _prepare_bootstrap_execution(configuration: ServerConfiguration) -> LaunchSpec:
        spec = ProcessLauncher._prepare_generic_execution(configuration)
        spec.arguments.extend([
            "--bootstrap",
            "--skip-grant",
            "--skip-networking",
            "--one-thread",
        ])
        return spec

    @staticmethod
    def _prepare_generic_execution(configuration: ServerConfiguration) -> LaunchSpec:
        generic = configuration.generic
        arguments = [
            generic.executable_path,
            "--no-defaults",
            f"--basedir={generic.package_base_path}",
            f"--character-sets-dir={generic.charsets_path}",
            f"--plugin-dir={generic.plugins_path}",
            f"--datadir={generic.databases_path}",
            f"--tmpdir={generic.temporary_path}",
            f"--socket={generic.socket_path}",
            f"--pid-file={generic.pid_path}",
            "--memlock",
            "--console",
            "--log-warnings",
        ]
        return LaunchSpec(
            executable=generic.executable_path,
            arguments=arguments,
            environment=dict(configuration.environment),
            directory=generic.temporary_path,
        )

    @staticmethod
    def spawn(spec: LaunchSpec, stdin: Optional[int] = None, stderr: Optional[int] = None) -> subprocess.Popen:
        """
        Start the child described by spec with a parent-death signal.

        Args:
            spec: The launch specification.
            stdin: File descriptor connected to the child's input, None for /dev/null.
            stderr: File descriptor connected to the child's console output, None for /dev/null.

        Returns:
            The started process.

        Raises:
            LaunchError: If the process could not be created.
        """
        try:
            return subprocess.Popen(
                spec.arguments,
                executable=spec.executable,
                env=spec.environment,
                cwd=spec.directory,
                stdin=stdin if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=stderr if stderr is not None else subprocess.DEVNULL,
                close_fds=True,
                preexec_fn=_parent_death_signal(os.getpid()),
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to start {spec.executable}: {e}")
            raise LaunchError(f"failed to start {spec.executable}: {e}") from e
