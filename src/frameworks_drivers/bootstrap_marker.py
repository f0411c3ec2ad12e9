from __future__ import annotations

import os
from pathlib import Path
from types import TracebackType
from typing import IO, Optional

from src.shared.errors import AlreadyBootstrappedError, CleanupError, MarkerError, ServerError
from src.shared.logger import Logger

logger = Logger.get(__name__)

PENDING_CONTENT = b"pending...\n"
FAILED_CONTENT = b"failed!\n"
MARKER_MODE = 0o444


class BootstrapMarker:
    """
    Durable record of a bootstrap attempt, kept at <datadir>/.bootstrap.marker.

    The file is created exclusively with "pending...\\n". Used as a context manager
    it records the outcome on exit: truncated to zero length on success, or
    "failed!\\n" appended on error. A supervisor crash leaves "pending...\\n" behind.
    Any existing marker, whatever its content, means bootstrap was already attempted.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: Optional[IO[bytes]] = None

    def exists(self) -> bool:
        return self.path.exists()

    def is_completed(self) -> bool:
        """True when a bootstrap attempt finished successfully (zero-length marker)."""
        try:
            return self.path.stat().st_size == 0
        except FileNotFoundError:
            return False

    def describe(self) -> str:
        if not self.exists():
            return "absent"
        return "completed" if self.is_completed() else "attempted"

    def create(self) -> None:
        """
        Exclusively create the marker in the pending state.

        Raises:
            AlreadyBootstrappedError: If a marker already exists.
        """
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, MARKER_MODE)
        except FileExistsError as e:
            raise AlreadyBootstrappedError(self.path) from e
        except OSError as e:
            raise MarkerError(f"failed to create bootstrap marker {self.path}: {e}") from e
        self._file = os.fdopen(fd, "wb")
        try:
            self._write(PENDING_CONTENT)
        except OSError as e:
            error = MarkerError(f"failed to record pending bootstrap in {self.path}: {e}")
            self._discard(error)
            raise error from e
        logger.debug(f"Created bootstrap marker {self.path}")

    def _discard(self, error: ServerError) -> None:
        """
        Remove a marker whose pending content could not be written.
        Nothing was launched, and an empty marker would read as a completed bootstrap.
        """
        for release in (self._close, self.path.unlink):
            try:
                release()
            except OSError as e:
                logger.error(f"Failed to discard bootstrap marker {self.path}: {e}")
                error.attach_cleanup_error(e)

    def mark_succeeded(self) -> None:
        self._require_open()
        try:
            self._file.truncate(0)
            self._sync()
        finally:
            self._close()

    def mark_failed(self) -> None:
        self._require_open()
        try:
            self._write(FAILED_CONTENT)
        finally:
            self._close()

    def __enter__(self) -> "BootstrapMarker":
        self.create()
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> bool:
        if self._file is None:
            return False
        if exc_value is None:
            try:
                self.mark_succeeded()
            except OSError as e:
                raise CleanupError(f"failed to record bootstrap success in {self.path}: {e}") from e
            return False
        try:
            self.mark_failed()
        except OSError as e:
            logger.error(f"Failed to record bootstrap failure in {self.path}: {e}")
            if isinstance(exc_value, ServerError):
                exc_value.attach_cleanup_error(e)
        return False

    def _write(self, content: bytes) -> None:
        self._file.write(content)
        self._sync()

    def _sync(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def _close(self) -> None:
        try:
            self._file.close()
        finally:
            self._file = None

    def _require_open(self) -> None:
        if self._file is None:
            raise ValueError(f"bootstrap marker {self.path} is not held")
