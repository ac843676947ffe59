"""Tests for formatting utilities."""

import pytest

from fps_monitor.formatting import format_elapsed


class TestFormatElapsed:
    """Tests for format_elapsed (session durations)."""

    def test_seconds_with_one_decimal(self) -> None:
        assert format_elapsed(12.34) == "12.3s"

    def test_zero(self) -> None:
        assert format_elapsed(0.0) == "0.0s"

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (60.0, "1m 00s"),
            (245.9, "4m 05s"),
            (3599.0, "59m 59s"),
        ],
    )
    def test_minutes(self, seconds: float, expected: str) -> None:
        """Minutes drop fractional seconds and pad the seconds field."""
        assert format_elapsed(seconds) == expected

    def test_hours(self) -> None:
        assert format_elapsed(3723.0) == "1h 02m 03s"
