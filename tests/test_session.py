"""Tests for shared monitoring session state."""

import threading
from unittest.mock import MagicMock

import pytest

from fps_monitor.session import AlreadyMonitoringError, FpsStatus, MonitoringSession
from tests.conftest import FakeClock


@pytest.fixture
def session(clock: FakeClock) -> MonitoringSession:
    return MonitoringSession(clock=clock)


class TestLifecycle:
    """Tests for reserve/activate/deactivate/release."""

    def test_initially_idle(self, session: MonitoringSession) -> None:
        assert not session.is_active()
        assert not session.is_busy()
        assert session.start_time is None
        assert session.elapsed_secs() == 0.0

    def test_reserve_then_activate(self, session: MonitoringSession, clock: FakeClock) -> None:
        handle = MagicMock()
        session.reserve("game.exe")
        assert session.is_busy()
        assert not session.is_active()

        assert session.activate(handle) is True
        assert session.is_active()
        assert session.capture_handle is handle
        assert session.start_time == clock()

    def test_reserve_rejected_while_active(self, session: MonitoringSession) -> None:
        """A second reservation names the running process."""
        session.reserve("A")
        session.activate(MagicMock())
        with pytest.raises(AlreadyMonitoringError, match="already monitoring A"):
            session.reserve("B")
        assert session.target_process_name == "A"

    def test_reserve_rejected_while_starting(self, session: MonitoringSession) -> None:
        session.reserve("A")
        with pytest.raises(AlreadyMonitoringError):
            session.reserve("B")

    def test_release_after_failed_start(self, session: MonitoringSession) -> None:
        session.reserve("A")
        session.release()
        assert not session.is_busy()
        session.reserve("B")
        assert session.target_process_name == "B"

    def test_activate_resets_history(self, session: MonitoringSession) -> None:
        session.reserve("A")
        session.activate(MagicMock())
        session.record_frame(10.0)
        session.deactivate()
        session.release()

        session.reserve("B")
        session.activate(MagicMock())
        assert session.full_history == []
        assert session.recent_window == []

    def test_deactivate_returns_handle_once(self, session: MonitoringSession) -> None:
        handle = MagicMock()
        session.reserve("A")
        session.activate(handle)

        assert session.deactivate() is handle
        assert not session.is_active()
        assert session.deactivate() is None

    def test_deactivate_when_idle(self, session: MonitoringSession) -> None:
        """Deactivating an idle session is a no-op."""
        assert session.deactivate() is None
        assert not session.is_busy()

    def test_deactivate_keeps_session_busy_until_release(
        self, session: MonitoringSession
    ) -> None:
        """A stopped session still draining blocks new starts."""
        session.reserve("A")
        session.activate(MagicMock())
        session.deactivate()

        assert session.is_busy()
        with pytest.raises(AlreadyMonitoringError):
            session.reserve("B")

        session.release()
        session.reserve("B")

    def test_deactivate_cancels_pending_start(self, session: MonitoringSession) -> None:
        """stop() during spawn makes activate() refuse the handle."""
        session.reserve("A")
        session.deactivate()
        assert session.activate(MagicMock()) is False
        assert not session.is_active()


class TestFieldAccess:
    """Tests for window/history access."""

    def test_record_frame_appends_to_both(self, session: MonitoringSession) -> None:
        session.record_frame(10.0)
        session.record_frame(20.0)
        assert session.recent_window == [10.0, 20.0]
        assert session.full_history == [10.0, 20.0]

    def test_take_window_clears_window_only(self, session: MonitoringSession) -> None:
        session.record_frame(10.0)
        assert session.take_window() == [10.0]
        assert session.recent_window == []
        assert session.full_history == [10.0]

    def test_history_is_a_copy(self, session: MonitoringSession) -> None:
        session.record_frame(10.0)
        history = session.history()
        history.append(99.0)
        assert session.full_history == [10.0]

    def test_recent_history(self, session: MonitoringSession) -> None:
        for i in range(100):
            session.record_frame(float(i + 1))
        recent = session.recent_history(60)
        assert len(recent) == 60
        assert recent[0] == 41.0
        assert recent[-1] == 100.0

    def test_elapsed_secs(self, session: MonitoringSession, clock: FakeClock) -> None:
        session.reserve("A")
        session.activate(MagicMock())
        clock.advance(2.5)
        assert session.elapsed_secs() == 2.5

    def test_concurrent_record_frame(self, session: MonitoringSession) -> None:
        """Appends from several threads are all kept."""

        def writer() -> None:
            for _ in range(1000):
                session.record_frame(16.0)

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(session.history()) == 4000
        assert len(session.take_window()) == 4000


def test_fps_status_to_dict() -> None:
    status = FpsStatus(running=True, process_name="game.exe", current_fps=60.0)
    assert status.to_dict() == {"running": True, "process_name": "game.exe", "current_fps": 60.0}
