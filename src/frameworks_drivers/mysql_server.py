from __future__ import annotations

import signal
import subprocess
from typing import Optional

from src.entities.commands import (
    BootstrapCommand,
    LifecycleCommand,
    StartCommand,
    StatusCommand,
    TerminateCommand,
)
from src.entities.server_state import ServerState
from src.entities.server_status import ServerStatus
from src.frameworks_drivers.bootstrap_marker import BootstrapMarker
from src.frameworks_drivers.command_executor import DEFAULT_QUEUE_SIZE, CommandExecutor
from src.frameworks_drivers.config import ServerConfiguration
from src.frameworks_drivers.console_relay import ConsoleRelay
from src.frameworks_drivers.process_launcher import LaunchIntent, ProcessLauncher
from src.frameworks_drivers.script_streamer import ScriptStreamer
from src.shared.errors import (
    ChildExitError,
    ConsoleRelayError,
    ExecutorClosedError,
    IllegalStateError,
    LaunchError,
    ScriptStreamError,
    SignalError,
    WaitError,
)
from src.shared.logger import Logger
from src.shared.protocols import TraceSinkProtocol

logger = Logger.get(__name__)

RELAY_DRAIN_TIMEOUT = 5.0


class MySqlServer:
    """
    Supervises a single mysqld instance: bootstrap, start and terminate.

    Public calls are synchronous: each one is turned into a command, queued on the
    instance's executor and answered through the command's completion future.
    State, the process handle and the console relay are only ever touched from the
    executor thread.
    """

    def __init__(self, configuration: ServerConfiguration, transcript: Optional[TraceSinkProtocol] = None,
                 queue_size: int = DEFAULT_QUEUE_SIZE, terminate_timeout: Optional[float] = None):
        self.configuration = configuration
        self.transcript = transcript or logger
        self.terminate_timeout = terminate_timeout
        self.marker = BootstrapMarker(configuration.marker_path)
        self._state = ServerState.CREATED
        self._process: Optional[subprocess.Popen] = None
        self._relay: Optional[ConsoleRelay] = None
        self._handlers = {
            BootstrapCommand: self._handle_bootstrap_command,
            StartCommand: self._handle_start_command,
            TerminateCommand: self._handle_terminate_command,
            StatusCommand: self._handle_status_command,
        }
        self._executor = CommandExecutor(self._dispatch, queue_size=queue_size, name="MySqlServerExecutor")
        self._executor.start()
        self.transcript.debug("created mysql server controller.")

    def bootstrap(self) -> None:
        """Initialize the data directory; the server is left stopped."""
        self._executor.execute(BootstrapCommand())

    def start(self, bootstrap: bool = False) -> None:
        """Start the server, bootstrapping the data directory first if requested."""
        self._executor.execute(StartCommand(bootstrap=bootstrap))

    def terminate(self) -> None:
        """Gracefully stop the running server and wait for it to exit."""
        self._executor.execute(TerminateCommand())

    def status(self) -> ServerStatus:
        return self._executor.execute(StatusCommand())

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Drain queued commands and stop the executor.
        A server still running at that point receives SIGTERM through its parent-death signal.
        """
        if not self._executor.closed and self._executor.is_alive():
            try:
                if self.status().state == ServerState.RUNNING:
                    logger.warning("Closing supervisor while mysqld is running; it will receive SIGTERM")
            except ExecutorClosedError:
                pass
        self._executor.close(timeout=timeout)

    def _dispatch(self, command: LifecycleCommand):
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"unsupported lifecycle command {type(command).__name__}")
        return handler(command)

    def _handle_bootstrap_command(self, command: BootstrapCommand) -> None:
        self._handle_bootstrap()

    def _handle_start_command(self, command: StartCommand) -> None:
        if command.bootstrap:
            self._handle_bootstrap()
        self._handle_start()

    def _handle_terminate_command(self, command: TerminateCommand) -> None:
        self._handle_stop()

    def _handle_status_command(self, command: StatusCommand) -> ServerStatus:
        state = self._state
        pid = returncode = None
        if self._process is not None:
            pid = self._process.pid
            returncode = self._process.poll()
            if state == ServerState.RUNNING and returncode is not None:
                state = ServerState.FAILED
        return ServerStatus(
            state=state,
            pid=pid,
            returncode=returncode,
            bootstrap_marker=self.marker.describe(),
            queue_size=self._executor.commands.qsize(),
        )

    def _require_state(self, expected: ServerState, operation: str) -> None:
        if self._state != expected:
            raise IllegalStateError(f"cannot {operation} server in state {self._state.value}")

    def _handle_bootstrap(self) -> None:
        self._require_state(ServerState.CREATED, "bootstrap")
        self.transcript.info("bootstrapping...")

        with self.marker:
            try:
                streamer = ScriptStreamer.from_configuration(self.configuration)
            except OSError as e:
                raise LaunchError(f"failed to create bootstrap input pipe: {e}") from e
            try:
                relay = self._open_relay("BootstrapConsoleRelay")
            except LaunchError:
                streamer.wait()
                raise
            spec = ProcessLauncher.prepare(self.configuration, LaunchIntent.BOOTSTRAP)
            streamer.start()
            relay.start()
            self.transcript.debug("process arguments: `%s`", spec.arguments)
            try:
                process = ProcessLauncher.spawn(spec, stdin=streamer.read_fd, stderr=relay.write_fd)
            except LaunchError as e:
                streamer.wait()
                relay_error = relay.wait(timeout=RELAY_DRAIN_TIMEOUT)
                if relay_error is not None:
                    e.attach_cleanup_error(relay_error)
                raise
            streamer.release_read_end()
            relay.release_write_end()

            try:
                returncode = process.wait()
            except OSError as e:
                raise WaitError(f"failed to wait for bootstrap process {process.pid}: {e}") from e
            finally:
                stream_error = streamer.wait()
                relay_error = relay.wait(timeout=RELAY_DRAIN_TIMEOUT)

            if returncode != 0:
                raise ChildExitError(returncode)
            if stream_error is not None:
                raise ScriptStreamError(f"bootstrap script was not fully delivered: {stream_error}")
            if relay_error is not None:
                raise ConsoleRelayError(f"bootstrap console output was not fully relayed: {relay_error}")

        self.transcript.info("bootstrapped.")

    def _handle_start(self) -> None:
        self._require_state(ServerState.CREATED, "start")
        self.transcript.info("starting...")

        spec = ProcessLauncher.prepare(self.configuration, LaunchIntent.SERVER)
        relay = self._open_relay("ServerConsoleRelay")
        relay.start()
        self.transcript.debug("process arguments: `%s`", spec.arguments)
        try:
            process = ProcessLauncher.spawn(spec, stderr=relay.write_fd)
        except LaunchError as e:
            relay_error = relay.wait(timeout=RELAY_DRAIN_TIMEOUT)
            if relay_error is not None:
                e.attach_cleanup_error(relay_error)
            raise
        relay.release_write_end()

        self._process = process
        self._relay = relay
        self._state = ServerState.RUNNING
        self.transcript.info("started.")

    def _handle_stop(self) -> None:
        if self._state == ServerState.TERMINATED:
            raise IllegalStateError("server already terminated")
        self._require_state(ServerState.RUNNING, "terminate")
        self.transcript.info("stopping...")

        process = self._process
        try:
            process.send_signal(signal.SIGTERM)
        except OSError as e:
            raise SignalError(f"failed to signal server process {process.pid}: {e}") from e

        try:
            self._wait_for_exit(process)
        except OSError as e:
            raise WaitError(f"failed to wait for server process {process.pid}: {e}") from e

        relay_error = None
        if self._relay is not None:
            relay_error = self._relay.wait(timeout=RELAY_DRAIN_TIMEOUT)
            self._relay = None
        self._process = None
        self._state = ServerState.TERMINATED
        if relay_error is not None:
            raise ConsoleRelayError(f"server console output was not fully relayed: {relay_error}")
        self.transcript.info("stopped.")

    def _open_relay(self, name: str) -> ConsoleRelay:
        try:
            return ConsoleRelay(self.transcript, name=name)
        except OSError as e:
            raise LaunchError(f"failed to create console pipe: {e}") from e

    def _wait_for_exit(self, process: subprocess.Popen) -> int:
        """Wait for the child, killing it once the configured grace period runs out."""
        if self.terminate_timeout is None:
            return process.wait()
        try:
            return process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Server process {process.pid} did not exit within {self.terminate_timeout}s, killing it")
            process.kill()
            return process.wait()
