"""Tests for the dashboard's race clock and telemetry helpers."""

from datetime import timedelta

import pytest

from dashboard import app
from speed_rush.core.race import Action, RaceController, RaceState
from speed_rush.core.telemetry import TelemetryRecorder

_TICK = timedelta(seconds=1)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Swap Streamlit's session state for a plain dict."""
    state: dict = {}
    monkeypatch.setattr(app.st, "session_state", state)
    return state


def _wall_clock(monkeypatch: pytest.MonkeyPatch, now: float) -> None:
    monkeypatch.setattr(app.time, "monotonic", lambda: now)


def _racing(duration: timedelta = timedelta(minutes=10)) -> RaceController:
    controller = RaceController()
    controller.select_car(controller.get_available_cars()[0])
    controller.start_race(duration)
    return controller


def _ticks(recorder: TelemetryRecorder) -> int:
    frame = recorder.to_frame()
    return int((frame["event"] == "tick").sum())


# ---------------------------------------------------------------------------
# Background clock
# ---------------------------------------------------------------------------


def test_clock_advances_once_per_whole_tick(
    session: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """3.5 s of wall time runs three ticks and keeps the half-second."""
    controller = _racing()
    recorder = TelemetryRecorder(controller)
    session["last_tick"] = 100.0
    _wall_clock(monkeypatch, 103.5)

    app._tick_clock(controller, recorder, _TICK)

    assert controller.remaining_time == timedelta(minutes=10) - 3 * _TICK
    assert _ticks(recorder) == 3
    assert session["last_tick"] == pytest.approx(103.0)


def test_clock_does_not_tick_before_a_full_interval(
    session: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    controller = _racing()
    recorder = TelemetryRecorder(controller)
    session["last_tick"] = 100.0
    _wall_clock(monkeypatch, 100.4)

    app._tick_clock(controller, recorder, _TICK)

    assert controller.get_elapsed_time() == timedelta(0)
    assert session["last_tick"] == 100.0


def test_clock_paused_while_pitted(
    session: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Wall time spent in the pits is not charged to the race clock."""
    controller = _racing()
    controller.execute_action(Action.PIT_STOP)
    recorder = TelemetryRecorder(controller)
    session["last_tick"] = 100.0
    _wall_clock(monkeypatch, 130.0)

    app._tick_clock(controller, recorder, _TICK)

    assert controller.get_elapsed_time() == timedelta(0)
    assert _ticks(recorder) == 0
    assert session["last_tick"] == 130.0


def test_waiting_runs_out_the_clock(
    session: dict, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A player who only waits loses the race on time."""
    controller = _racing(duration=timedelta(seconds=2))
    recorder = TelemetryRecorder(controller)
    session["last_tick"] = 0.0
    _wall_clock(monkeypatch, 10.0)

    app._tick_clock(controller, recorder, _TICK)

    assert controller.state is RaceState.OUT_OF_TIME
    assert controller.remaining_time == timedelta(0)
    assert _ticks(recorder) == 2


# ---------------------------------------------------------------------------
# New race
# ---------------------------------------------------------------------------


def test_new_race_starts_a_fresh_trace(session: dict) -> None:
    controller = _racing()
    old = TelemetryRecorder(controller)
    session["recorder"] = old
    controller.execute_action(Action.SPEED_UP)
    controller.reset_session()

    new = app._restart_recorder(controller)
    controller.start_race(timedelta(minutes=5))

    assert session["recorder"] is new
    assert len(new) == 1
    assert new.to_frame()["event"].tolist() == ["Race started!"]
    assert old.to_frame()["event"].tolist()[-1] == "Session reset"


def test_mm_ss_formatting() -> None:
    assert app._mm_ss(timedelta(minutes=9, seconds=5)) == "09:05"
    assert app._mm_ss(timedelta(0)) == "00:00"
