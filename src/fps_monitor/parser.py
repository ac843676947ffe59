"""PresentMon CSV record parsing.

PresentMon's column set changes between releases (v1 reports
MsBetweenPresents, v2 reports FrameTime/CPUBusy/GPUBusy), so columns are
always located by name from the header row, never by position.
"""

import math
from dataclasses import dataclass

APPLICATION_COLUMN = "Application"
FRAMETIME_COLUMNS = ("FrameTime", "MsBetweenPresents")
CPU_BUSY_COLUMNS = ("CPUBusy",)
GPU_BUSY_COLUMNS = ("GPUBusy", "GPUTime")

MIN_FIELDS = 5
MAX_FRAMETIME_MS = 1000.0


@dataclass(frozen=True)
class FrameSample:
    """One presented frame."""

    process_name: str
    frametime_ms: float
    cpu_busy_ms: float
    gpu_busy_ms: float


@dataclass(frozen=True)
class CsvHeader:
    """Column names from the first line of capture output."""

    columns: tuple[str, ...]

    @classmethod
    def parse(cls, line: str) -> "CsvHeader":
        """Split a header line into trimmed column names."""
        return cls(columns=tuple(col.strip() for col in line.strip().split(",")))

    def index_of(self, *names: str) -> int | None:
        """Return the index of the first column matching any of names."""
        for i, col in enumerate(self.columns):
            if col in names:
                return i
        return None

    @property
    def application_index(self) -> int | None:
        return self.index_of(APPLICATION_COLUMN)

    @property
    def frametime_index(self) -> int | None:
        return self.index_of(*FRAMETIME_COLUMNS)

    @property
    def cpu_busy_index(self) -> int:
        # Missing busy columns fall back to column 0, which holds the
        # application name and therefore reads as 0.0.
        idx = self.index_of(*CPU_BUSY_COLUMNS)
        return 0 if idx is None else idx

    @property
    def gpu_busy_index(self) -> int:
        idx = self.index_of(*GPU_BUSY_COLUMNS)
        return 0 if idx is None else idx

    def describe(self, limit: int = 10) -> list[str]:
        """First few column names, for logging."""
        return list(self.columns[:limit])


def _parse_float(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def _field(fields: list[str], idx: int | None) -> str | None:
    if idx is None or idx >= len(fields):
        return None
    return fields[idx]


def parse_record(header: CsvHeader, line: str) -> FrameSample | None:
    """Parse one CSV data row into a FrameSample.

    Returns None for rows with fewer than 5 fields, rows missing the
    application or frame-time column, and frame times outside (0, 1000) ms.
    Unparsable busy times become 0.0 instead of rejecting the row.
    """
    fields = line.split(",")
    if len(fields) < MIN_FIELDS:
        return None

    app = _field(fields, header.application_index)
    raw_frametime = _field(fields, header.frametime_index)
    if app is None or raw_frametime is None:
        return None

    frametime = _parse_float(raw_frametime)
    if frametime is None or not math.isfinite(frametime):
        return None
    if not 0.0 < frametime < MAX_FRAMETIME_MS:
        return None

    return FrameSample(
        process_name=app,
        frametime_ms=frametime,
        cpu_busy_ms=_busy_value(fields, header.cpu_busy_index),
        gpu_busy_ms=_busy_value(fields, header.gpu_busy_index),
    )


def _busy_value(fields: list[str], idx: int) -> float:
    raw = _field(fields, idx)
    if raw is None:
        return 0.0
    value = _parse_float(raw)
    if value is None or not math.isfinite(value):
        return 0.0
    return value
