"""PresentMon capture process: binary resolution, launch and shutdown."""

import asyncio
import shutil
import subprocess
import sys
from asyncio.subprocess import Process
from importlib import resources
from pathlib import Path

import structlog

from fps_monitor.config import Config

log = structlog.get_logger()

CAPTURE_ARGS = (
    "--output_stdout",
    "--stop_existing_session",
    "--terminate_on_proc_exit",
    "--process_name",
)


class CaptureError(RuntimeError):
    """Base class for capture start failures."""


class BinaryNotFoundError(CaptureError):
    """Capture binary not found on any resolution path."""


class CaptureLaunchError(CaptureError):
    """Capture binary found but could not be started."""


def _packaged_bin_dir() -> Path:
    return Path(str(resources.files("fps_monitor") / "bin"))


def binary_candidates(config: Config) -> list[Path]:
    """Filesystem candidates in resolution order (PATH lookup excluded)."""
    cap = config.capture
    resource_dir = Path(cap.resource_dir) if cap.resource_dir else _packaged_bin_dir()
    return [Path(cap.dev_path), resource_dir / cap.binary_name]


def resolve_binary(config: Config) -> Path:
    """Locate the capture binary.

    Order: development-relative path, packaged resource directory, PATH.

    Raises:
        BinaryNotFoundError: If no candidate exists.
    """
    candidates = binary_candidates(config)
    for candidate in candidates:
        if candidate.is_file():
            return candidate

    found = shutil.which(config.capture.binary_name)
    if found:
        return Path(found)

    searched = ", ".join(str(c) for c in candidates)
    raise BinaryNotFoundError(
        f"{config.capture.binary_name} not found (searched {searched} and PATH). "
        f"Download it from {config.capture.download_url} "
        f"and place it at {config.capture.dev_path}"
    )


def build_command(binary: Path, process_name: str) -> list[str]:
    """Command line streaming CSV frames for process_name to stdout."""
    return [str(binary), *CAPTURE_ARGS, process_name]


def _platform_kwargs() -> dict:
    # Keep PresentMon from opening a console window on Windows
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {}


class CaptureProcess:
    """A running capture binary and its stdout stream.

    stderr is piped but not read; PresentMon reports fatal conditions by
    exiting.
    """

    def __init__(self, process: Process, process_name: str) -> None:
        self._process = process
        self.process_name = process_name

    @classmethod
    async def spawn(cls, binary: Path, process_name: str) -> "CaptureProcess":
        """Launch the capture binary for process_name.

        Raises:
            CaptureLaunchError: If the process fails to start.
        """
        cmd = build_command(binary, process_name)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **_platform_kwargs(),
            )
        except PermissionError as e:
            log.error("capture_start_failed", binary=str(binary), error=str(e))
            raise CaptureLaunchError(
                f"Failed to start {binary.name}: {e}. "
                "Run as administrator to capture frame timings."
            ) from e
        except OSError as e:
            log.error("capture_start_failed", binary=str(binary), error=str(e))
            raise CaptureLaunchError(
                f"Failed to start {binary.name}: {e}. "
                "Make sure it is executable and run as administrator."
            ) from e
        except ValueError as e:
            # e.g. a NUL byte in the process name
            log.error("capture_start_failed", binary=str(binary), error=str(e))
            raise CaptureLaunchError(f"Failed to start {binary.name}: {e}") from e

        log.info("capture_started", binary=str(binary), process_name=process_name, pid=process.pid)
        return cls(process, process_name)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def readline(self) -> str | None:
        """Read one line from stdout, or None at end of stream."""
        stdout = self._process.stdout
        if stdout is None:
            return None
        try:
            raw = await stdout.readline()
        except (ValueError, asyncio.LimitOverrunError) as e:
            # Oversized line; the stream itself is still usable
            log.debug("capture_line_skipped", error=str(e))
            return ""
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace")

    def terminate(self) -> None:
        """Kill the capture process (best-effort, never raises)."""
        if self._process.returncode is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass  # Already dead
        except OSError as e:
            log.warning("capture_terminate_failed", pid=self.pid, error=str(e))
        else:
            log.info("capture_terminated", pid=self.pid)

    async def wait(self, timeout: float = 5.0) -> int | None:
        """Reap the process, killing it if it outlives timeout."""
        try:
            return await asyncio.wait_for(self._process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self.terminate()
            return self._process.returncode
