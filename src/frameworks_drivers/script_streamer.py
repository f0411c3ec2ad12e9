from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Optional

from src.frameworks_drivers.config import ServerConfiguration
from src.shared.errors import ScriptReadError
from src.shared.logger import Logger

logger = Logger.get(__name__)

CREATE_DATABASE_STATEMENT = b"CREATE DATABASE mysql;\n"
USE_DATABASE_STATEMENT = b"USE mysql;"
PASSWORD_STATEMENT = "UPDATE mysql.user SET password = PASSWORD ('{password}') WHERE user = 'root';"


class ScriptStreamer(threading.Thread):
    """
    Feeds the bootstrap SQL into a child's standard input through a pipe.

    Blocks are written in order, one at a time, and never concatenated; the
    write end is closed after the last block so the child sees end-of-input.

    Attributes:
        blocks: The byte blocks to write, in order.
        error: Write failure that ended streaming early, if any.
    """

    def __init__(self, blocks: list[bytes], name: str = "ScriptStreamer"):
        super().__init__(name=name, daemon=True)
        self.blocks = blocks
        self.error: Optional[BaseException] = None
        self.written = 0
        read_fd, write_fd = os.pipe()
        self._writer = os.fdopen(write_fd, "wb")
        self._read_fd: Optional[int] = read_fd

    @classmethod
    def from_configuration(cls, configuration: ServerConfiguration) -> "ScriptStreamer":
        """Read every script up front, then create the streamer and its pipe."""
        return cls(cls.prepare_blocks(configuration))

    @staticmethod
    def prepare_blocks(configuration: ServerConfiguration) -> list[bytes]:
        """
        Compose the bootstrap input.

        Raises:
            ScriptReadError: If any initialization script cannot be fully read.
        """
        blocks = [CREATE_DATABASE_STATEMENT, USE_DATABASE_STATEMENT]
        for script_path in configuration.sql_initialization_script_paths:
            blocks.append(ScriptStreamer._read_script(Path(script_path)))
        blocks.append(PASSWORD_STATEMENT.format(password=configuration.sql_administrator_password).encode("utf-8"))
        return blocks

    @staticmethod
    def _read_script(path: Path) -> bytes:
        try:
            with open(path, "rb") as f:
                expected = os.fstat(f.fileno()).st_size
                content = f.read()
        except OSError as e:
            raise ScriptReadError(path, e.strerror or str(e)) from e
        if len(content) != expected:
            raise ScriptReadError(path, f"read {len(content)} of {expected} bytes")
        return content

    @property
    def read_fd(self) -> int:
        """File descriptor to hand to the child as its standard input."""
        if self._read_fd is None:
            raise ValueError("script streamer read end already released")
        return self._read_fd

    def release_read_end(self) -> None:
        """Close the supervisor's copy of the read end; the child keeps its own."""
        if self._read_fd is not None:
            os.close(self._read_fd)
            self._read_fd = None

    def run(self) -> None:
        try:
            for block in self.blocks:
                self._writer.write(block)
                self.written += len(block)
        except OSError as e:
            logger.warning(f"Script streaming stopped after {self.written} bytes: {e}")
            self.error = e
        finally:
            try:
                self._writer.close()
            except OSError as e:
                if self.error is None:
                    self.error = e

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """
        Release the read end and wait for the writer to finish.

        Returns:
            The write error that ended streaming, or None.
        """
        self.release_read_end()
        if self.ident is None:
            self._writer.close()
        elif self.is_alive():
            self.join(timeout=timeout)
            if self.is_alive():
                logger.warning("Script streamer did not finish within timeout")
        return self.error
