"""Scripted driver for the Speed Rush race engine.

The autopilot drives a :class:`RaceController` through a whole session by
alternating one driver action with one clock tick.  Its only randomness is
the choice between SPEED_UP and MAINTAIN, drawn from a per-call
``numpy.random.Generator`` so that a seed fully determines the session.

The policy per step is:
    1. If pitted, complete the stop.
    2. If the tank cannot cover a MAINTAIN plus a reserve for passive
       drain, enter the pits.
    3. Otherwise SPEED_UP with probability ``aggression``, else MAINTAIN.
       SPEED_UP falls back to MAINTAIN when it is unaffordable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta

import numpy as np
import pandas as pd
from numpy.random import Generator

from speed_rush.core.race import (
    SPEED_UP_FUEL_MULTIPLIER,
    Action,
    RaceController,
    RaceState,
)
from speed_rush.core.telemetry import COLUMNS, TelemetryRecorder
from speed_rush.core.vehicle import Vehicle

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_TICK: timedelta = timedelta(seconds=1)
DEFAULT_MAX_STEPS: int = 1000
_PASSIVE_RESERVE: int = 2  # must exceed the largest single-tick drain

# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class SessionResult:
    """Outcome of an autopilot session.

    Attributes:
        final_state: Race state when the session stopped.
        laps_completed: Full laps covered (capped at the race length).
        elapsed: Race clock time used.
        actions: Every action applied, in order.
        telemetry: One row per race event and per clock tick.
    """

    final_state: RaceState
    laps_completed: int
    elapsed: timedelta
    actions: tuple[Action, ...] = ()
    telemetry: pd.DataFrame = field(
        default_factory=lambda: pd.DataFrame(columns=list(COLUMNS))
    )


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def _cost(vehicle: Vehicle, action: Action) -> int:
    if action is Action.SPEED_UP:
        return math.ceil(vehicle.fuel_consumption_rate * SPEED_UP_FUEL_MULTIPLIER)
    if action is Action.MAINTAIN:
        return math.ceil(vehicle.fuel_consumption_rate)
    return 0


def _affordable(vehicle: Vehicle, action: Action) -> bool:
    return vehicle.current_fuel - _cost(vehicle, action) >= _PASSIVE_RESERVE


def choose_action(
    controller: RaceController,
    rng: Generator,
    aggression: float = 0.5,
) -> Action:
    """Pick the next action for the controller's selected vehicle.

    Args:
        controller: A controller with a race in progress.
        rng: Random generator used for the speed-up draw.
        aggression: Probability of choosing SPEED_UP when both are
            affordable.

    Returns:
        The action to execute next.

    Raises:
        ValueError: If no vehicle is selected.
    """
    vehicle = controller.selected_vehicle
    if vehicle is None:
        raise ValueError("controller has no selected vehicle.")

    if controller.state is RaceState.PIT_STOP:
        return Action.PIT_STOP
    if not _affordable(vehicle, Action.MAINTAIN):
        return Action.PIT_STOP

    wants_speed: bool = float(rng.random()) < aggression
    if wants_speed and _affordable(vehicle, Action.SPEED_UP):
        return Action.SPEED_UP
    return Action.MAINTAIN


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def run_session(
    controller: RaceController,
    car: Vehicle,
    duration: timedelta,
    tick: timedelta = DEFAULT_TICK,
    seed: int | None = None,
    aggression: float = 0.5,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> SessionResult:
    """Drive a full race session on autopilot.

    Each step executes one action chosen by :func:`choose_action` and then
    advances the clock by ``tick``.  The loop stops at a terminal state or
    after ``max_steps`` steps.

    Args:
        controller: Controller in the NOT_STARTED state.
        car: Vehicle to race, normally taken from
            ``controller.get_available_cars()``.
        duration: Race clock length.
        tick: Clock advance after every action (> 0).
        seed: Random seed for reproducibility.  ``None`` uses OS entropy.
        aggression: Probability of SPEED_UP over MAINTAIN, in [0, 1].
        max_steps: Upper bound on action/tick steps (>= 1).

    Returns:
        A :class:`SessionResult` describing the session.

    Raises:
        ValueError: If aggression, tick or max_steps are out of range.
    """
    if not 0.0 <= aggression <= 1.0:
        raise ValueError("aggression must be between 0.0 and 1.0.")
    if tick <= timedelta(0):
        raise ValueError("tick must be > 0.")
    if max_steps < 1:
        raise ValueError("max_steps must be >= 1.")

    rng: Generator = np.random.default_rng(seed)
    controller.select_car(car)

    recorder = TelemetryRecorder(controller)
    try:
        controller.start_race(duration)
        logger.info(
            "Autopilot session: %s, aggression=%.2f, seed=%s",
            car.name,
            aggression,
            seed,
        )

        for _ in range(max_steps):
            if controller.state.is_terminal:
                break
            controller.execute_action(choose_action(controller, rng, aggression))
            if controller.state.is_terminal:
                break
            controller.advance_time(tick)
            recorder.record("tick")
        telemetry = recorder.to_frame()
    finally:
        recorder.close()

    laps_completed: int = min(controller.current_lap - 1, controller.total_laps)
    logger.info(
        "Autopilot finished: %s after %d laps", controller.state.name, laps_completed
    )
    return SessionResult(
        final_state=controller.state,
        laps_completed=laps_completed,
        elapsed=controller.get_elapsed_time(),
        actions=controller.action_history,
        telemetry=telemetry,
    )
