from enum import Enum


class ServerState(str, Enum):
    """Lifecycle states of a supervised server; progression is forward-only."""

    CREATED = "created"
    RUNNING = "running"
    TERMINATED = "terminated"
    FAILED = "failed"
