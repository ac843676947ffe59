"""FPS monitor: control surface and the streaming ingest loop."""

import asyncio
import time
from collections.abc import Callable
from enum import Enum

import structlog

from fps_monitor.capture import CaptureError, CaptureProcess, resolve_binary
from fps_monitor.config import Config
from fps_monitor.events import (
    EventCallback,
    FpsError,
    FpsEvent,
    FpsSessionComplete,
    FpsStarted,
    FpsStopped,
    FpsUpdate,
)
from fps_monitor.metrics import WindowedAggregator, recent_fps, summarize_session
from fps_monitor.parser import CsvHeader, parse_record
from fps_monitor.session import AlreadyMonitoringError, FpsStatus, MonitoringSession

log = structlog.get_logger()


class MonitorPhase(Enum):
    """Ingest loop lifecycle."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class FpsMonitor:
    """Runs one PresentMon capture at a time and reports frame metrics.

    start() schedules the ingest loop as an asyncio task; stop() and status()
    only touch the shared MonitoringSession and may be called from anywhere.
    Events reach the subscriber strictly in the order started, updates,
    session summary (if any frames), stopped.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: MonitoringSession | None = None,
        emit: EventCallback | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or Config()
        self.session = session or MonitoringSession(clock=clock)
        self._emit_cb = emit
        self._clock = clock
        self._task: asyncio.Task | None = None
        self.phase = MonitorPhase.IDLE

    # ─────────────────────────────────────────────────────────────
    # Control surface
    # ─────────────────────────────────────────────────────────────

    def start(self, process_name: str) -> asyncio.Task:
        """Begin monitoring process_name.

        Must be called from within a running event loop.

        Raises:
            AlreadyMonitoringError: If a session is already running or starting.
        """
        try:
            self.session.reserve(process_name)
        except AlreadyMonitoringError as e:
            log.warning("monitor_already_running", current=e.process_name, requested=process_name)
            raise

        log.info("monitor_starting", process_name=process_name)
        self.phase = MonitorPhase.STARTING
        self._task = asyncio.create_task(self._run(process_name))
        return self._task

    def stop(self) -> None:
        """Request the current session to stop.

        Clears the active flag and kills the capture process; the ingest loop
        notices on its next read and drains. Safe to call when idle.
        """
        handle = self.session.deactivate()
        if handle is not None:
            handle.terminate()
            log.info("monitor_stop_requested", process_name=handle.process_name)

    def status(self) -> FpsStatus:
        """Current running state and FPS over the most recent frames."""
        running, process_name = self.session.snapshot_identity()
        recent = self.session.recent_history(self.config.metrics.status_recent_frames)
        return FpsStatus(
            running=running,
            process_name=process_name if running else None,
            current_fps=recent_fps(recent),
        )

    async def wait(self) -> None:
        """Wait for the current ingest task, if any, to finish."""
        if self._task is not None:
            await self._task

    # ─────────────────────────────────────────────────────────────
    # Ingest loop
    # ─────────────────────────────────────────────────────────────

    def _emit(self, event: FpsEvent) -> None:
        if self._emit_cb is None:
            return
        try:
            self._emit_cb(event)
        except Exception:
            log.exception("monitor_emit_failed", event=event.name)

    async def _launch(self, process_name: str) -> CaptureProcess | None:
        """Resolve and spawn the capture binary, emitting fps-error on failure."""
        try:
            binary = resolve_binary(self.config)
            log.info("capture_binary_resolved", path=str(binary))
            return await CaptureProcess.spawn(binary, process_name)
        except CaptureError as e:
            log.error("monitor_start_failed", process_name=process_name, error=str(e))
            self.session.release()
            self.phase = MonitorPhase.STOPPED
            self._emit(FpsError(message=str(e)))
            return None

    async def _run(self, process_name: str) -> None:
        try:
            capture = await self._launch(process_name)
        except BaseException:
            # Unexpected failure or cancellation before activation
            self.session.release()
            self.phase = MonitorPhase.STOPPED
            log.error("monitor_start_aborted", process_name=process_name)
            raise
        if capture is None:
            return

        if not self.session.activate(capture):
            # stop() arrived while spawning
            capture.terminate()
            await capture.wait()
            self.session.release()
            self.phase = MonitorPhase.STOPPED
            log.info("monitor_cancelled_during_start", process_name=process_name)
            return

        self.phase = MonitorPhase.RUNNING
        self._emit(FpsStarted(process_name=process_name))

        try:
            await self._ingest(capture, process_name)
        finally:
            self.phase = MonitorPhase.DRAINING
            try:
                self._drain(process_name)
            finally:
                self.session.release()
                self.phase = MonitorPhase.STOPPED
            log.info("monitor_stopped", process_name=process_name)
            self._emit(FpsStopped(process_name=process_name))
            await capture.wait()
            log.info(
                "capture_exited", process_name=process_name, returncode=capture.returncode
            )

    async def _ingest(self, capture: CaptureProcess, process_name: str) -> None:
        aggregator = WindowedAggregator(
            self.session,
            interval=self.config.metrics.window_seconds,
            clock=self._clock,
        )
        header: CsvHeader | None = None
        rejected = 0

        while True:
            line = await capture.readline()
            if line is None:
                log.info("capture_stream_closed", process_name=process_name)
                break
            if not self.session.is_active():
                break

            trimmed = line.strip()
            if not trimmed:
                continue

            # First non-empty line is always the header
            if header is None:
                header = CsvHeader.parse(trimmed)
                log.info("capture_header", columns=header.describe())
                continue

            sample = parse_record(header, trimmed)
            if sample is None:
                rejected += 1
                continue

            snapshot = aggregator.add(sample, process_name)
            if snapshot is not None:
                self._emit(FpsUpdate(snapshot=snapshot))

        log.debug("capture_ingest_finished", flushes=aggregator.flush_count, rejected=rejected)

    def _drain(self, process_name: str) -> None:
        """Deactivate, release the capture, and emit the session summary."""
        handle = self.session.deactivate()
        if handle is not None:
            handle.terminate()

        summary = summarize_session(
            self.session.history(),
            process_name=process_name,
            duration_secs=self.session.elapsed_secs(),
        )
        if summary is None:
            return

        log.info(
            "monitor_session_complete",
            process_name=summary.process_name,
            avg_fps=summary.avg_fps,
            fps_1_low=summary.fps_1_low,
            total_frames=summary.total_frames,
            duration_secs=summary.duration_secs,
        )
        self._emit(FpsSessionComplete(session=summary))
