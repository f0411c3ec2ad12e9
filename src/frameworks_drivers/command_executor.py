from __future__ import annotations

import queue
import threading
from typing import Callable, Optional

from src.entities.commands import LifecycleCommand, complete
from src.shared.errors import ExecutorClosedError
from src.shared.logger import Logger

logger = Logger.get(__name__)

DEFAULT_QUEUE_SIZE = 16

_STOP = object()


class CommandExecutor(threading.Thread):
    """
    Single worker draining a bounded FIFO of lifecycle commands, one at a time.

    Every command runs to completion on this thread before the next one is dequeued,
    so the handler may touch the state it owns without further locking. Producers
    block when the queue is full and then block on their command's completion future.
    """

    def __init__(self, handler: Callable[[LifecycleCommand], object], queue_size: int = DEFAULT_QUEUE_SIZE,
                 name: str = "CommandExecutor"):
        super().__init__(name=name, daemon=False)
        self.handler = handler
        self.commands: queue.Queue = queue.Queue(maxsize=queue_size)
        self._closed = False
        self._submit_lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, command: LifecycleCommand) -> LifecycleCommand:
        """
        Enqueue a command, blocking while the queue is full.

        Raises:
            ExecutorClosedError: If the executor no longer accepts commands.
        """
        with self._submit_lock:
            if self._closed:
                raise ExecutorClosedError(f"cannot submit {type(command).__name__}: executor closed")
            self.commands.put(command)
        return command

    def execute(self, command: LifecycleCommand, timeout: Optional[float] = None):
        """Submit a command and block until the executor has processed it."""
        if threading.current_thread() is self:
            raise RuntimeError("lifecycle commands cannot be executed from the executor thread")
        return self.submit(command).completion.result(timeout=timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting commands, let queued ones finish and wait for the worker to exit."""
        with self._submit_lock:
            if not self._closed:
                self._closed = True
                self.commands.put(_STOP)
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=timeout)

    def run(self) -> None:
        logger.debug(f"{self.name} started")
        while True:
            command = self.commands.get()
            try:
                if command is _STOP:
                    break
                if not command.completion.set_running_or_notify_cancel():
                    logger.debug(f"{type(command).__name__} was cancelled before it ran")
                    continue
                self._dispatch(command)
            except Exception as e:
                logger.error(f"Failed to complete {type(command).__name__}: {e}")
            finally:
                self.commands.task_done()
        logger.debug(f"{self.name} stopped")

    def _dispatch(self, command: LifecycleCommand) -> None:
        try:
            result = self.handler(command)
        except Exception as e:
            logger.info(f"{type(command).__name__} failed: {e}")
            complete(command, error=e)
        else:
            complete(command, result=result)
