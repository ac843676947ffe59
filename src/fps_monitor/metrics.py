"""Frame-time aggregation: windowed snapshots and session summaries.

All internal math runs at full precision; values are rounded only when an
FpsSnapshot or FpsSession is built for emission.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

from fps_monitor.parser import FrameSample
from fps_monitor.session import MonitoringSession

ONE_PERCENT = 1.0
POINT_ONE_PERCENT = 0.1


def _round_half_away(value: float, scale: float) -> float:
    # Ties round away from zero: 16.125 -> 16.13
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


def round_fps(value: float) -> float:
    """Round an FPS-scale (or seconds) value to 1 decimal."""
    return _round_half_away(value, 10.0)


def round_ms(value: float) -> float:
    """Round a millisecond-scale value to 2 decimals."""
    return _round_half_away(value, 100.0)


@dataclass(frozen=True)
class FpsSnapshot:
    """Live metrics for one window."""

    fps: float
    fps_1_low: float
    fps_01_low: float
    frametime_ms: float
    cpu_busy_ms: float
    gpu_busy_ms: float
    process_name: str
    elapsed_secs: float

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class FpsSession:
    """Summary of a complete monitoring session."""

    process_name: str
    avg_fps: float
    fps_1_low: float
    fps_01_low: float
    max_fps: float
    min_fps: float
    total_frames: int
    duration_secs: float

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return asdict(self)


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def percentile_low_fps(frame_times: Sequence[float], percentile: float) -> float:
    """FPS over the worst `percentile` percent of frames.

    The frame times are sorted worst (longest) first and the first
    ceil(percentile/100 * n) of them, clamped to [1, n], are averaged.

    Args:
        frame_times: Frame times in milliseconds
        percentile: Percent of frames to include (1.0 for "1% low")

    Returns:
        1000 / average of the selected frame times, or 0.0 for empty input
        or a non-positive average.
    """
    n = len(frame_times)
    if n == 0:
        return 0.0

    worst_first = sorted(frame_times, reverse=True)
    count = math.ceil(percentile / 100.0 * n)
    count = min(max(count, 1), n)

    avg_worst = mean(worst_first[:count])
    if avg_worst <= 0:
        return 0.0
    return 1000.0 / avg_worst


def build_snapshot(
    window: Sequence[float],
    trigger: FrameSample,
    process_name: str,
    elapsed_secs: float,
) -> FpsSnapshot:
    """Build the rounded snapshot for a non-empty window.

    Busy times come from the sample that triggered the flush, not from a
    window average.
    """
    avg_frametime = mean(window)
    return FpsSnapshot(
        fps=round_fps(1000.0 / avg_frametime),
        fps_1_low=round_fps(percentile_low_fps(window, ONE_PERCENT)),
        fps_01_low=round_fps(percentile_low_fps(window, POINT_ONE_PERCENT)),
        frametime_ms=round_ms(avg_frametime),
        cpu_busy_ms=round_ms(trigger.cpu_busy_ms),
        gpu_busy_ms=round_ms(trigger.gpu_busy_ms),
        process_name=process_name,
        elapsed_secs=round_fps(elapsed_secs),
    )


def summarize_session(
    history: Sequence[float],
    process_name: str,
    duration_secs: float,
) -> FpsSession | None:
    """Summarize a session's full frame-time history.

    Returns None when no valid frame was recorded.
    """
    if not history:
        return None

    return FpsSession(
        process_name=process_name,
        avg_fps=round_fps(1000.0 / mean(history)),
        fps_1_low=round_fps(percentile_low_fps(history, ONE_PERCENT)),
        fps_01_low=round_fps(percentile_low_fps(history, POINT_ONE_PERCENT)),
        # Fastest frame has the shortest frame time
        max_fps=round_fps(1000.0 / min(history)),
        min_fps=round_fps(1000.0 / max(history)),
        total_frames=len(history),
        duration_secs=round_fps(duration_secs),
    )


def recent_fps(recent: Sequence[float]) -> float | None:
    """FPS from the mean of the most recent frame times, or None if empty."""
    if not recent:
        return None
    return round_fps(1000.0 / mean(recent))


class WindowedAggregator:
    """Time-gated window over a MonitoringSession.

    Every sample is appended to the session's window and history. Once
    `interval` seconds have passed since the last flush, the next sample
    flushes the window into an FpsSnapshot.
    """

    def __init__(
        self,
        session: MonitoringSession,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.interval = interval
        self._clock = clock
        self._window_start = clock()
        self.flush_count = 0

    def add(self, sample: FrameSample, process_name: str) -> FpsSnapshot | None:
        """Record a sample, returning a snapshot if the window was flushed."""
        self.session.record_frame(sample.frametime_ms)

        if self._clock() - self._window_start < self.interval:
            return None

        window = self.session.take_window()
        self._window_start = self._clock()
        if not window:
            return None

        self.flush_count += 1
        return build_snapshot(
            window,
            trigger=sample,
            process_name=process_name,
            elapsed_secs=self.session.elapsed_secs(),
        )
