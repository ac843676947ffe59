"""Shared monitoring session state.

One MonitoringSession is constructed per FpsMonitor and shared between the
control methods (start/stop/status) and the ingest task. Every field access
goes through the lock, held only for that access; the lock is never held
across a read from the capture process.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fps_monitor.capture import CaptureProcess


class AlreadyMonitoringError(RuntimeError):
    """A start request arrived while another session is running."""

    def __init__(self, process_name: str):
        self.process_name = process_name
        super().__init__(f"already monitoring {process_name}")


@dataclass(frozen=True)
class FpsStatus:
    """Answer to a status inquiry."""

    running: bool
    process_name: str | None
    current_fps: float | None

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return {
            "running": self.running,
            "process_name": self.process_name,
            "current_fps": self.current_fps,
        }


@dataclass
class MonitoringSession:
    """Runtime state of the (single) monitoring session."""

    active: bool = False
    starting: bool = False
    draining: bool = False  # Stopped, but the ingest loop has not finished yet
    target_process_name: str = ""
    recent_window: list[float] = field(default_factory=list)
    full_history: list[float] = field(default_factory=list)
    start_time: float | None = None
    capture_handle: CaptureProcess | None = None
    clock: Callable[[], float] = time.monotonic
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    def reserve(self, process_name: str) -> None:
        """Claim the session for a new start request.

        A session whose loop is still draining also counts as running, so a
        new start cannot reset the history before the summary is built.

        Raises:
            AlreadyMonitoringError: If a session is running, starting or draining.
        """
        with self._lock:
            if self.active or self.starting or self.draining:
                raise AlreadyMonitoringError(self.target_process_name)
            self.starting = True
            self.target_process_name = process_name

    def release(self) -> None:
        """Return the session to idle once a start attempt or drain is over."""
        with self._lock:
            self.starting = False
            self.draining = False

    def activate(self, handle: CaptureProcess) -> bool:
        """Mark the reserved session as running with a fresh history.

        Returns False if stop() cancelled the reservation while the capture
        process was being spawned; the caller then owns the handle.
        """
        with self._lock:
            if not self.starting:
                return False
            self.starting = False
            self.active = True
            self.recent_window.clear()
            self.full_history.clear()
            self.start_time = self.clock()
            self.capture_handle = handle
            return True

    def deactivate(self) -> CaptureProcess | None:
        """Clear the active flag and hand back the capture handle, if any.

        Also cancels a pending reservation so a spawn in flight is abandoned.
        The session stays reserved (draining) until release() is called.
        """
        with self._lock:
            if self.active or self.starting:
                self.draining = True
            self.active = False
            self.starting = False
            handle = self.capture_handle
            self.capture_handle = None
            return handle

    # ─────────────────────────────────────────────────────────────
    # Field access
    # ─────────────────────────────────────────────────────────────

    def is_active(self) -> bool:
        with self._lock:
            return self.active

    def is_busy(self) -> bool:
        """True while a session is starting, running or draining."""
        with self._lock:
            return self.active or self.starting or self.draining

    def record_frame(self, frametime_ms: float) -> None:
        """Append a frame time to both the window and the session history."""
        with self._lock:
            self.recent_window.append(frametime_ms)
            self.full_history.append(frametime_ms)

    def take_window(self) -> list[float]:
        """Return the window contents and clear it."""
        with self._lock:
            window = list(self.recent_window)
            self.recent_window.clear()
            return window

    def history(self) -> list[float]:
        """Copy of the full session history."""
        with self._lock:
            return list(self.full_history)

    def recent_history(self, frames: int) -> list[float]:
        """Copy of the last `frames` entries of the history."""
        with self._lock:
            return self.full_history[-frames:]

    def elapsed_secs(self) -> float:
        """Seconds since the session started (0.0 before start)."""
        with self._lock:
            start = self.start_time
        if start is None:
            return 0.0
        return self.clock() - start

    def snapshot_identity(self) -> tuple[bool, str]:
        """Return (active, target_process_name) read under one lock."""
        with self._lock:
            return self.active, self.target_process_name
