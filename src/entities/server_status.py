from typing import Literal, Optional

from pydantic import BaseModel, Field

from src.entities.server_state import ServerState


class ServerStatus(BaseModel):
    """Point-in-time view of a supervised server, as reported by the executor."""

    state: ServerState
    pid: Optional[int] = None  # Child pid while a process handle is owned
    returncode: Optional[int] = None  # Set once the owned child has exited
    bootstrap_marker: Literal["absent", "attempted", "completed"] = "absent"
    queue_size: int = Field(0, ge=0)  # Commands waiting behind the one being executed
