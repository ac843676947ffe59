"""Centralized console logging with Rich formatting.

This module provides:
1. Icon vocabulary (Icon class namespace)
2. Level-based styling
3. Core log functions (log, info, error)
4. Domain helpers for monitor events (monitor_started, fps_update, ...)
5. Structlog configuration (configure)

Console output uses Rich markup for colors. JSON file output via structlog
remains separate (machine-parseable, no colors).
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

from fps_monitor.formatting import format_elapsed

if TYPE_CHECKING:
    from fps_monitor.config import Config
    from fps_monitor.metrics import FpsSession, FpsSnapshot

# Rich console for colorful human-readable output
_console = Console(highlight=False)

# FPS at or above these values render green / yellow; below renders red
FPS_GOOD = 60.0
FPS_FAIR = 30.0


# ─────────────────────────────────────────────────────────────────────────────
# Icons
# ─────────────────────────────────────────────────────────────────────────────


class Icon:
    """Icon vocabulary for console output."""

    OK = "[bold green]✓[/]"
    FAIL = "[bold red]✗[/]"
    WAIT = "⏳"
    FRAME = "[cyan]▶[/]"
    SUMMARY = "📊"
    SIGNAL = "⚡"


# ─────────────────────────────────────────────────────────────────────────────
# Level Styles
# ─────────────────────────────────────────────────────────────────────────────

_LEVEL_STYLES = {
    "info": "[bright_blue]\\[info][/]",
    "error": "[bold red]\\[err][/] ",
}


# ─────────────────────────────────────────────────────────────────────────────
# Core Functions
# ─────────────────────────────────────────────────────────────────────────────


def log(level: str, msg: str, icon: str = "") -> None:
    """Print a log message with timestamp and level.

    Args:
        level: Log level (info, error)
        msg: Message to print (can include Rich markup)
        icon: Optional icon to show after level (e.g., Icon.OK)
    """
    ts = datetime.now().strftime("%H:%M:%S")
    lvl = _LEVEL_STYLES.get(level, f"[{level}]")
    icon_part = f" {icon}" if icon else ""
    _console.print(f"[dim]{ts}[/] {lvl}{icon_part} {msg}")


def info(msg: str, icon: str = "") -> None:
    """Log an info message."""
    log("info", msg, icon)


def error(msg: str, icon: str = "") -> None:
    """Log an error message."""
    log("error", msg, icon)


# ─────────────────────────────────────────────────────────────────────────────
# Styling Helpers
# ─────────────────────────────────────────────────────────────────────────────


def fps_color(fps: float) -> str:
    """Return Rich color name for an FPS value."""
    if fps >= FPS_GOOD:
        return "green"
    if fps >= FPS_FAIR:
        return "bright_yellow"
    return "bright_red"


def _fps(value: float) -> str:
    return f"[{fps_color(value)}]{value:.1f}[/]"


# ─────────────────────────────────────────────────────────────────────────────
# Domain Helpers
# ─────────────────────────────────────────────────────────────────────────────


def monitor_started(process_name: str) -> None:
    """Log capture running."""
    info(f"Monitoring [cyan]{process_name}[/]", Icon.OK)


def monitor_stopping() -> None:
    """Log stop requested."""
    info("Stopping capture...", Icon.WAIT)


def monitor_stopped(process_name: str) -> None:
    """Log session ended."""
    info(f"Stopped monitoring [cyan]{process_name}[/]", Icon.OK)


def signal_received(name: str) -> None:
    """Log signal received."""
    info(f"Received [bold]{name}[/]", Icon.SIGNAL)


def fps_update(snapshot: FpsSnapshot) -> None:
    """Log one live snapshot."""
    info(
        f"{_fps(snapshot.fps)} fps "
        f"[dim]1%[/] {_fps(snapshot.fps_1_low)} "
        f"[dim]0.1%[/] {_fps(snapshot.fps_01_low)} "
        f"[dim]· {snapshot.frametime_ms:.2f}ms, "
        f"cpu {snapshot.cpu_busy_ms:.2f}ms, gpu {snapshot.gpu_busy_ms:.2f}ms, "
        f"{format_elapsed(snapshot.elapsed_secs)}[/]",
        Icon.FRAME,
    )


def session_summary(session: FpsSession) -> None:
    """Log the final session summary."""
    info(
        f"[cyan]{session.process_name}[/] avg {_fps(session.avg_fps)} fps, "
        f"1% {_fps(session.fps_1_low)}, 0.1% {_fps(session.fps_01_low)}, "
        f"range {_fps(session.min_fps)}–{_fps(session.max_fps)} "
        f"[dim]({session.total_frames} frames in {format_elapsed(session.duration_secs)})[/]",
        Icon.SUMMARY,
    )


def capture_error(message: str) -> None:
    """Log a failed start attempt."""
    error(message, Icon.FAIL)


# ─────────────────────────────────────────────────────────────────────────────
# Structlog Configuration
# ─────────────────────────────────────────────────────────────────────────────


def _add_source(source: str) -> structlog.types.Processor:
    """Create a processor that adds a source field to log events."""

    def processor(
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        event_dict["source"] = source
        return event_dict

    return processor


def configure(config: Config) -> None:
    """Configure structlog to write JSON Lines to the rotating log file.

    Human-readable console output is handled by the Rich helpers above.

    Args:
        config: Application config with paths
    """
    config.state_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.system.log_max_bytes,
        backupCount=config.system.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                _add_source("monitor"),
                structlog.processors.format_exc_info,
            ],
        )
    )

    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(logging.INFO)
    stdlib_root.handlers.clear()
    stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            _add_source("monitor"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


