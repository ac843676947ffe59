"""Tests for console helpers and structlog configuration."""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from fps_monitor import logging as fps_log
from fps_monitor.config import Config
from fps_monitor.metrics import build_snapshot, summarize_session
from tests.conftest import make_sample


def _make_path_prop(path: Path):
    """Create a property that returns a fixed path."""
    return property(lambda self: path)


@pytest.fixture
def restore_logging():
    """Undo global logging configuration after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestFpsColor:
    """Tests for fps_color thresholds."""

    @pytest.mark.parametrize(
        ("fps", "color"),
        [
            (144.0, "green"),
            (60.0, "green"),
            (59.9, "bright_yellow"),
            (30.0, "bright_yellow"),
            (29.9, "bright_red"),
            (0.0, "bright_red"),
        ],
    )
    def test_thresholds(self, fps: float, color: str) -> None:
        assert fps_log.fps_color(fps) == color


class TestDomainHelpers:
    """Tests for console rendering of monitor events."""

    def test_fps_update_line(self, capsys) -> None:
        snap = build_snapshot([10.0, 20.0], make_sample(20.0), "game.exe", 2.0)
        fps_log.fps_update(snap)
        out = capsys.readouterr().out
        assert "66.7" in out
        assert "[info]" in out

    def test_capture_error_line(self, capsys) -> None:
        fps_log.capture_error("PresentMon.exe not found")
        out = capsys.readouterr().out
        assert "[err]" in out
        assert "PresentMon.exe not found" in out

    def test_session_summary_line(self, capsys) -> None:
        summary = summarize_session([16.0, 20.0], "game.exe", 65.0)
        assert summary is not None
        fps_log.session_summary(summary)
        out = capsys.readouterr().out
        assert "game.exe" in out
        assert "55.6" in out


class TestConfigure:
    """Tests for the JSON log file setup."""

    def test_writes_json_lines(self, tmp_path: Path, restore_logging) -> None:
        """Events logged after configure() land in the log file as JSON."""
        with patch.object(Config, "state_dir", new_callable=lambda: _make_path_prop(tmp_path)):
            config = Config()
            fps_log.configure(config)

            structlog.get_logger().info("capture_started", pid=4242)
            for handler in logging.getLogger().handlers:
                handler.flush()

            lines = config.log_path.read_text().splitlines()

        record = json.loads(lines[-1])
        assert record["event"] == "capture_started"
        assert record["pid"] == 4242
        assert record["level"] == "info"
        assert record["source"] == "monitor"
        assert "ts" in record

    def test_debug_events_filtered(self, tmp_path: Path, restore_logging) -> None:
        with patch.object(Config, "state_dir", new_callable=lambda: _make_path_prop(tmp_path)):
            config = Config()
            fps_log.configure(config)

            structlog.get_logger().debug("capture_line_skipped")
            for handler in logging.getLogger().handlers:
                handler.flush()

            content = config.log_path.read_text()

        assert "capture_line_skipped" not in content
