from __future__ import annotations

import os
import threading
from typing import Optional

from src.shared.logger import Logger
from src.shared.protocols import TraceSinkProtocol

logger = Logger.get(__name__)


class ConsoleRelay(threading.Thread):
    """
    Forwards a child's console output to the trace sink, one line at a time.

    The child writes into the pipe's write end; this thread reads the other end
    until every writer has closed it, then closes the read end and finishes.
    A trailing line without a newline is forwarded as-is when the pipe closes.

    Attributes:
        transcript: Sink receiving each line at info level, prefixed with ">>".
        error: Read failure that ended the relay early, if any.
    """

    def __init__(self, transcript: TraceSinkProtocol, name: str = "ConsoleRelay"):
        super().__init__(name=name, daemon=True)
        self.transcript = transcript
        self.error: Optional[BaseException] = None
        self.lines = 0
        read_fd, write_fd = os.pipe()
        self._reader = os.fdopen(read_fd, "rb")
        self._write_fd: Optional[int] = write_fd

    @property
    def write_fd(self) -> int:
        """File descriptor to hand to the child as its console output."""
        if self._write_fd is None:
            raise ValueError("console relay write end already released")
        return self._write_fd

    def release_write_end(self) -> None:
        """Close the supervisor's copy of the write end so EOF follows the child's exit."""
        if self._write_fd is not None:
            os.close(self._write_fd)
            self._write_fd = None

    def run(self) -> None:
        try:
            for raw in self._reader:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                self.transcript.info(">>  %s", line)
                self.lines += 1
        except (OSError, ValueError) as e:
            logger.warning(f"Console relay read failed: {e}")
            self.error = e
        finally:
            self._reader.close()

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """
        Release the write end and wait for the relay to drain.

        Returns:
            The read error that ended the relay, or None.
        """
        self.release_write_end()
        if self.ident is None:
            self._reader.close()
        elif self.is_alive():
            self.join(timeout=timeout)
            if self.is_alive():
                logger.warning("Console relay did not drain within timeout")
        return self.error
