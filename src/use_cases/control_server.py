from typing import Any

from src.shared.logger import Logger
from src.shared.protocols import ServerControlProtocol

logger = Logger.get(__name__)


class ControlServer:
    """Runs lifecycle operations and reports the resulting status."""

    def __init__(self, server: ServerControlProtocol):
        self.server = server

    def bootstrap(self) -> dict[str, Any]:
        logger.info("Bootstrap requested")
        self.server.bootstrap()
        return self._status()

    def start(self, bootstrap: bool = False) -> dict[str, Any]:
        logger.info(f"Start requested (bootstrap={bootstrap})")
        self.server.start(bootstrap=bootstrap)
        return self._status()

    def terminate(self) -> dict[str, Any]:
        logger.info("Terminate requested")
        self.server.terminate()
        return self._status()

    def _status(self) -> dict[str, Any]:
        return self.server.status().model_dump(mode="json")
