from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass
class BootstrapCommand:
    """Initialize a fresh data directory; leaves the server stopped."""

    completion: Future = field(default_factory=Future, repr=False)


@dataclass
class StartCommand:
    """Launch the server, optionally bootstrapping the data directory first."""

    bootstrap: bool = False
    completion: Future = field(default_factory=Future, repr=False)


@dataclass
class TerminateCommand:
    """Gracefully stop the running server and wait for it to exit."""

    completion: Future = field(default_factory=Future, repr=False)


@dataclass
class StatusCommand:
    """Read the lifecycle state from inside the executor."""

    completion: Future = field(default_factory=Future, repr=False)


LifecycleCommand = Union[BootstrapCommand, StartCommand, TerminateCommand, StatusCommand]


def complete(command: LifecycleCommand, result: Any = None, error: BaseException | None = None) -> None:
    """Resolve a command's completion channel exactly once."""
    if command.completion.done():
        raise RuntimeError(f"{type(command).__name__} completed twice")
    if error is not None:
        command.completion.set_exception(error)
    else:
        command.completion.set_result(result)
