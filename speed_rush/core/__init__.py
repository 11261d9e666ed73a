"""Core race modules for the Speed Rush engine."""

from speed_rush.core.autopilot import SessionResult, choose_action, run_session
from speed_rush.core.errors import (
    InsufficientFuelError,
    InvalidRaceStateError,
    RaceError,
)
from speed_rush.core.race import (
    DEFAULT_RACE_DURATION,
    DEFAULT_ROSTER,
    TOTAL_LAPS,
    Action,
    RaceController,
    RaceEvent,
    RaceState,
)
from speed_rush.core.telemetry import TelemetryRecorder, snapshot
from speed_rush.core.vehicle import CarCategory, CarSpec, Vehicle

__all__ = [
    "Action",
    "CarCategory",
    "CarSpec",
    "DEFAULT_RACE_DURATION",
    "DEFAULT_ROSTER",
    "InsufficientFuelError",
    "InvalidRaceStateError",
    "RaceController",
    "RaceError",
    "RaceEvent",
    "RaceState",
    "SessionResult",
    "TOTAL_LAPS",
    "TelemetryRecorder",
    "Vehicle",
    "choose_action",
    "run_session",
    "snapshot",
]
