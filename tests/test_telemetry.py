"""Tests for the telemetry recorder."""

from datetime import timedelta

from speed_rush.core.race import Action, RaceController
from speed_rush.core.telemetry import COLUMNS, TelemetryRecorder, snapshot

# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_snapshot_without_selection() -> None:
    """Before a car is chosen, fuel and speed are reported as missing."""
    row = snapshot(RaceController())
    assert set(row) == set(COLUMNS)
    assert row["state"] == "NOT_STARTED"
    assert row["fuel"] is None
    assert row["speed"] is None
    assert row["remaining_seconds"] == 600.0


def test_empty_frame_keeps_columns() -> None:
    recorder = TelemetryRecorder(RaceController())
    frame = recorder.to_frame()
    assert frame.empty
    assert list(frame.columns) == list(COLUMNS)


def test_rows_follow_event_order() -> None:
    """One row per event, in the order the controller emitted them."""
    controller = RaceController()
    recorder = TelemetryRecorder(controller)
    controller.select_car(controller.get_available_cars()[0])
    controller.start_race(timedelta(minutes=10))
    controller.execute_action(Action.SPEED_UP)
    controller.execute_action(Action.PIT_STOP)

    frame = recorder.to_frame()
    assert list(frame["event"]) == [
        "Race started!",
        "Speed increased!",
        "Entering pit stop...",
    ]
    assert list(frame["state"]) == ["RACING", "RACING", "PIT_STOP"]
    assert list(frame["fuel"]) == [60, 48, 48]
    assert list(frame["speed"]) == [0, 20, 0]


def test_manual_record_adds_row() -> None:
    controller = RaceController()
    recorder = TelemetryRecorder(controller)
    controller.select_car(controller.get_available_cars()[0])
    controller.start_race(timedelta(minutes=10))
    controller.advance_time(timedelta(seconds=5))
    recorder.record("tick")

    assert len(recorder) == 2
    last = recorder.to_frame().iloc[-1]
    assert last["event"] == "tick"
    assert last["remaining_seconds"] == 595.0


def test_close_stops_recording() -> None:
    controller = RaceController()
    recorder = TelemetryRecorder(controller)
    recorder.close()
    recorder.close()
    controller.select_car(controller.get_available_cars()[0])
    controller.start_race(timedelta(minutes=10))
    assert len(recorder) == 0
