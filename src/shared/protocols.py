from typing import Any, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from src.entities.server_status import ServerStatus


class TraceSinkProtocol(Protocol):
    """Leveled, printf-style trace sink; a logging.Logger satisfies it."""

    def debug(self, msg: str, *args: Any) -> None: ...

    def info(self, msg: str, *args: Any) -> None: ...


class ServerControlProtocol(Protocol):
    def bootstrap(self) -> None: ...

    def start(self, bootstrap: bool = False) -> None: ...

    def terminate(self) -> None: ...

    def status(self) -> 'ServerStatus': ...
