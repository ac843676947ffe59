"""Events emitted by the FPS monitor to its subscriber."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Union

from fps_monitor.metrics import FpsSession, FpsSnapshot


@dataclass(frozen=True)
class FpsStarted:
    """Capture is running for process_name."""

    name: ClassVar[str] = "fps-started"
    process_name: str

    def payload(self) -> str:
        return self.process_name


@dataclass(frozen=True)
class FpsUpdate:
    """Periodic live snapshot (about once per window)."""

    name: ClassVar[str] = "fps-update"
    snapshot: FpsSnapshot

    def payload(self) -> dict:
        return self.snapshot.to_dict()


@dataclass(frozen=True)
class FpsSessionComplete:
    """Full-session summary, emitted once if any valid frame was seen."""

    name: ClassVar[str] = "fps-session-complete"
    session: FpsSession

    def payload(self) -> dict:
        return self.session.to_dict()


@dataclass(frozen=True)
class FpsStopped:
    """Terminal event of every session that reached the running state."""

    name: ClassVar[str] = "fps-stopped"
    process_name: str

    def payload(self) -> str:
        return self.process_name


@dataclass(frozen=True)
class FpsError:
    """Start attempt failed (binary not found or spawn error)."""

    name: ClassVar[str] = "fps-error"
    message: str

    def payload(self) -> str:
        return self.message


FpsEvent = Union[FpsStarted, FpsUpdate, FpsSessionComplete, FpsStopped, FpsError]

EventCallback = Callable[[FpsEvent], None]


def to_message(event: FpsEvent) -> dict:
    """Wrap an event as {"event": name, "payload": ...} for transports."""
    return {"event": event.name, "payload": event.payload()}
