"""Shared test fixtures for fps-monitor."""

import asyncio
from pathlib import Path

import pytest

from fps_monitor.config import Config
from fps_monitor.parser import FrameSample

HEADER_V2 = (
    "Application,ProcessID,SwapChainAddress,PresentRuntime,SyncInterval,"
    "PresentFlags,FrameTime,CPUBusy,CPUWait,GPULatency,GPUTime,GPUBusy"
)
HEADER_V1 = "Application,ProcessID,SwapChainAddress,Runtime,SyncInterval,MsBetweenPresents"


def make_row(
    frametime: float | str,
    cpu_busy: float | str = 4.0,
    gpu_busy: float | str = 6.0,
    app: str = "game.exe",
) -> str:
    """Create a data row matching HEADER_V2."""
    return f"{app},1234,0x1,DXGI,1,0,{frametime},{cpu_busy},1.0,0.5,7.0,{gpu_busy}"


def make_sample(
    frametime_ms: float = 16.0,
    cpu_busy_ms: float = 4.0,
    gpu_busy_ms: float = 6.0,
    process_name: str = "game.exe",
) -> FrameSample:
    """Create a FrameSample with sensible defaults for testing."""
    return FrameSample(
        process_name=process_name,
        frametime_ms=frametime_ms,
        cpu_busy_ms=cpu_busy_ms,
        gpu_busy_ms=gpu_busy_ms,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCapture:
    """Stand-in for CaptureProcess that yields scripted lines.

    Each readline() advances the clock by `step` seconds. With hold_open the
    stream stays open after the scripted lines until close() or terminate().
    """

    def __init__(
        self,
        lines: list[str],
        *,
        clock: FakeClock | None = None,
        step: float = 0.0,
        hold_open: bool = False,
        process_name: str = "game.exe",
    ) -> None:
        self.process_name = process_name
        self.clock = clock
        self.step = step
        self.terminated = False
        self.returncode: int | None = None
        self.lines_read = 0
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        for line in lines:
            self._queue.put_nowait(line + "\n")
        if not hold_open:
            self._queue.put_nowait(None)

    def push(self, line: str) -> None:
        self._queue.put_nowait(line + "\n")

    def close(self) -> None:
        self.returncode = 0
        self._queue.put_nowait(None)

    async def readline(self) -> str | None:
        line = await self._queue.get()
        if line is not None:
            self.lines_read += 1
            if self.clock is not None:
                self.clock.advance(self.step)
        return line

    def terminate(self) -> None:
        # May be called from another thread, like killing a real process
        if self.terminated:
            return
        self.terminated = True
        self.returncode = -9
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def wait(self, timeout: float = 5.0) -> int | None:
        return self.returncode


async def wait_until(condition, timeout=1.0, interval=0.01):
    """Wait until condition() returns True, or timeout."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise TimeoutError(f"Condition not met within {timeout}s")
        await asyncio.sleep(interval)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config whose capture paths point into tmp_path."""
    cfg = Config()
    cfg.capture.dev_path = str(tmp_path / "dev" / "PresentMon.exe")
    cfg.capture.resource_dir = str(tmp_path / "resources")
    return cfg
