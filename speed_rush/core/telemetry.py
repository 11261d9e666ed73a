"""Race telemetry capture for the Speed Rush race engine.

A :class:`TelemetryRecorder` listens to a :class:`RaceController` and keeps
one row per race event, plus any rows the host records explicitly (for
example after each clock tick).  Rows are returned as a
:class:`pandas.DataFrame` for display and analysis.
"""

from __future__ import annotations

import pandas as pd

from speed_rush.core.race import RaceController, RaceEvent

COLUMNS: tuple[str, ...] = (
    "event",
    "state",
    "lap",
    "lap_progress",
    "race_progress",
    "fuel",
    "speed",
    "remaining_seconds",
)


def snapshot(controller: RaceController, event: str = "") -> dict[str, object]:
    """Capture the controller's observable state as a flat row."""
    vehicle = controller.selected_vehicle
    return {
        "event": event,
        "state": controller.state.name,
        "lap": controller.current_lap,
        "lap_progress": controller.lap_progress,
        "race_progress": controller.get_race_progress(),
        "fuel": vehicle.current_fuel if vehicle is not None else None,
        "speed": vehicle.current_speed if vehicle is not None else None,
        "remaining_seconds": controller.remaining_time.total_seconds(),
    }


class TelemetryRecorder:
    """Subscribes to a controller and accumulates state snapshots."""

    def __init__(self, controller: RaceController) -> None:
        self._controller: RaceController = controller
        self._rows: list[dict[str, object]] = []
        self._closed: bool = False
        controller.subscribe(self._on_event)

    def _on_event(self, event: RaceEvent) -> None:
        self._rows.append(snapshot(self._controller, event.message))

    def record(self, label: str) -> None:
        """Append a snapshot outside of the event stream."""
        self._rows.append(snapshot(self._controller, label))

    def __len__(self) -> int:
        return len(self._rows)

    def to_frame(self) -> pd.DataFrame:
        """Return the recorded rows, oldest first."""
        return pd.DataFrame(self._rows, columns=list(COLUMNS))

    def close(self) -> None:
        """Stop listening to the controller.  Safe to call twice."""
        if not self._closed:
            self._controller.unsubscribe(self._on_event)
            self._closed = True
