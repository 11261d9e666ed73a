"""Race controller for the Speed Rush race engine.

The controller owns a fixed roster of vehicles and runs one timed race at a
time.  A host drives it with two kinds of calls:

- :meth:`RaceController.execute_action` for driver input (speed up,
  maintain, pit stop), and
- :meth:`RaceController.advance_time` for the clock, on whatever schedule
  the host chooses.

Both end with the same race-state update: a lap rolls over once lap
progress reaches 1.0, then the terminal checks run in the order
finished, out of fuel, out of time.  Every mutation is announced to
subscribers as a :class:`RaceEvent`, synchronously and in order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from speed_rush.core.errors import InvalidRaceStateError
from speed_rush.core.vehicle import CarCategory, CarSpec, Vehicle

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOTAL_LAPS: int = 5
DEFAULT_RACE_DURATION: timedelta = timedelta(minutes=10)

SPEED_UP_FUEL_MULTIPLIER: float = 1.5
SPEED_UP_SPEED_GAIN: int = 20
SPEED_UP_PROGRESS: float = 0.25
MAINTAIN_PROGRESS: float = 0.15

PASSIVE_FUEL_PER_SPEED: float = 0.005  # fuel per unit of speed per tick
PASSIVE_SPEED_DECAY: float = 0.5
PASSIVE_PROGRESS: float = 0.02

DEFAULT_ROSTER: tuple[CarSpec, ...] = (
    CarSpec("Eco Cruiser", CarCategory.ECONOMY, 80, 8.0, 60),
    CarSpec("Sport Thunder", CarCategory.SPORT, 120, 12.0, 50),
    CarSpec("Formula Lightning", CarCategory.FORMULA, 160, 18.0, 40),
)


class RaceState(Enum):
    """Phase of the current race session."""

    NOT_STARTED = "not_started"
    RACING = "racing"
    PIT_STOP = "pit_stop"
    FINISHED = "finished"
    OUT_OF_FUEL = "out_of_fuel"
    OUT_OF_TIME = "out_of_time"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {RaceState.FINISHED, RaceState.OUT_OF_FUEL, RaceState.OUT_OF_TIME}
)
_ACTIVE_STATES = frozenset({RaceState.RACING, RaceState.PIT_STOP})


class Action(Enum):
    """Driver inputs accepted while racing."""

    SPEED_UP = "speed_up"
    MAINTAIN = "maintain"
    PIT_STOP = "pit_stop"


@dataclass(frozen=True)
class RaceEvent:
    """Change notification delivered to subscribers.

    Attributes:
        state: Race state after the change.
        message: Short description of what happened.
        lap: Current lap after the change.
    """

    state: RaceState
    message: str
    lap: int


RaceListener = Callable[[RaceEvent], None]


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class RaceController:
    """State machine for a single timed race.

    Attributes:
        selected_vehicle: Roster entry chosen for the race, if any.
        state: Current :class:`RaceState`.
        current_lap: 1-based lap counter.
        lap_progress: Fraction of the current lap completed.
        total_laps: Laps needed to finish.
        remaining_time: Time left on the race clock.
        total_race_time: Duration the race was started with.
    """

    def __init__(
        self,
        roster: Sequence[CarSpec] | None = None,
        total_laps: int = TOTAL_LAPS,
    ) -> None:
        if total_laps < 1:
            raise ValueError("total_laps must be >= 1.")
        specs = DEFAULT_ROSTER if roster is None else tuple(roster)
        if not specs:
            raise ValueError("roster must not be empty.")

        self._cars: list[Vehicle] = [Vehicle(spec) for spec in specs]
        self._action_history: list[Action] = []
        self._listeners: list[RaceListener] = []

        self.selected_vehicle: Vehicle | None = None
        self.state: RaceState = RaceState.NOT_STARTED
        self.current_lap: int = 1
        self.lap_progress: float = 0.0
        self.total_laps: int = total_laps
        self.remaining_time: timedelta = DEFAULT_RACE_DURATION
        self.total_race_time: timedelta = DEFAULT_RACE_DURATION

    # -- Observers -----------------------------------------------------------

    def subscribe(self, listener: RaceListener) -> None:
        """Register a callback invoked on every race change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: RaceListener) -> None:
        """Remove a previously registered callback.

        Raises:
            ValueError: If the callback is not registered.
        """
        self._listeners.remove(listener)

    def _notify(self, message: str) -> None:
        event = RaceEvent(state=self.state, message=message, lap=self.current_lap)
        for listener in list(self._listeners):
            listener(event)

    # -- Queries -------------------------------------------------------------

    @property
    def action_history(self) -> tuple[Action, ...]:
        """Actions applied since the race started, oldest first."""
        return tuple(self._action_history)

    def get_available_cars(self) -> list[Vehicle]:
        """Return the roster.  The vehicles remain owned by the controller."""
        return list(self._cars)

    def get_race_progress(self) -> float:
        """Fraction of the race distance covered, in ``[0, 1]``."""
        progress = ((self.current_lap - 1) + self.lap_progress) / self.total_laps
        return min(max(progress, 0.0), 1.0)

    def get_elapsed_time(self) -> timedelta:
        return self.total_race_time - self.remaining_time

    # -- Commands ------------------------------------------------------------

    def select_car(self, vehicle: Vehicle) -> None:
        """Choose the vehicle for the next race.

        Raises:
            InvalidRaceStateError: If a race has already started.
            ValueError: If vehicle is ``None``.
        """
        if self.state is not RaceState.NOT_STARTED:
            raise InvalidRaceStateError("Cannot change car during race.")
        if vehicle is None:
            raise ValueError("vehicle must not be None.")
        self.selected_vehicle = vehicle
        vehicle.reset()
        logger.debug("Selected %s", vehicle.name)

    def start_race(self, duration: timedelta) -> None:
        """Start (or restart) a race with the selected vehicle.

        Args:
            duration: Length of the race clock.  Must be positive.

        Raises:
            InvalidRaceStateError: If no vehicle is selected.
            ValueError: If duration is not positive.
        """
        if self.selected_vehicle is None:
            raise InvalidRaceStateError("No car selected.")
        if duration <= timedelta(0):
            raise ValueError("duration must be > 0.")

        self.total_race_time = duration
        self.remaining_time = duration
        self.state = RaceState.RACING
        self.current_lap = 1
        self.lap_progress = 0.0
        self.selected_vehicle.reset()
        self._action_history.clear()

        logger.info(
            "Race started: %s, %d laps, %s on the clock",
            self.selected_vehicle.name,
            self.total_laps,
            duration,
        )
        self._notify("Race started!")

    def execute_action(self, action: Action) -> None:
        """Apply a driver action, then update the race state.

        SPEED_UP and MAINTAIN burn fuel first; if the tank cannot cover the
        cost, the error propagates and the action has no effect at all.
        PIT_STOP toggles between entering the pits and leaving with a full
        tank.

        Raises:
            InvalidRaceStateError: If the race is not running.
            InsufficientFuelError: If the action's fuel cost exceeds the tank.
        """
        if self.state not in _ACTIVE_STATES:
            raise InvalidRaceStateError("Race is not active.")
        if self.selected_vehicle is None:
            raise InvalidRaceStateError("No car selected.")

        if action is Action.SPEED_UP:
            self._speed_up(self.selected_vehicle)
        elif action is Action.MAINTAIN:
            self._maintain(self.selected_vehicle)
        elif action is Action.PIT_STOP:
            self._pit_stop(self.selected_vehicle)
        else:
            raise ValueError(f"Unknown action: {action!r}.")

        self._action_history.append(action)
        logger.debug("Action %s applied", action.name)
        self._update_race_state()

    def advance_time(self, elapsed: timedelta) -> None:
        """Run the race clock forward by one tick.

        Does nothing unless the car is out on track (not pitted, not
        finished).  Passive drag drains fuel in proportion to speed, bleeds
        off speed, and carries the car a little further round the lap.

        Raises:
            ValueError: If elapsed is negative.
        """
        if elapsed < timedelta(0):
            raise ValueError("elapsed must be >= 0.")
        vehicle = self.selected_vehicle
        if self.state is not RaceState.RACING or vehicle is None:
            return

        self.remaining_time = max(timedelta(0), self.remaining_time - elapsed)

        passive_fuel: float = vehicle.current_speed * PASSIVE_FUEL_PER_SPEED
        vehicle.current_speed = round(
            max(0.0, vehicle.current_speed - PASSIVE_SPEED_DECAY)
        )
        vehicle.drain_fuel(passive_fuel)
        self.lap_progress += PASSIVE_PROGRESS

        logger.debug(
            "Tick: %s left, fuel %d, speed %d",
            self.remaining_time,
            vehicle.current_fuel,
            vehicle.current_speed,
        )
        self._update_race_state()

    def reset_session(self) -> None:
        """Return to NOT_STARTED so a new car can be selected.

        The selected vehicle, if any, stays selected with a full tank.
        """
        self.state = RaceState.NOT_STARTED
        self.current_lap = 1
        self.lap_progress = 0.0
        self.remaining_time = self.total_race_time
        self._action_history.clear()
        if self.selected_vehicle is not None:
            self.selected_vehicle.reset()
        logger.info("Session reset")
        self._notify("Session reset")

    # -- Action handlers -----------------------------------------------------

    def _speed_up(self, vehicle: Vehicle) -> None:
        vehicle.consume_fuel(vehicle.fuel_consumption_rate * SPEED_UP_FUEL_MULTIPLIER)
        vehicle.current_speed = min(
            vehicle.max_speed, vehicle.current_speed + SPEED_UP_SPEED_GAIN
        )
        self.lap_progress += SPEED_UP_PROGRESS
        self._notify("Speed increased!")

    def _maintain(self, vehicle: Vehicle) -> None:
        vehicle.consume_fuel(vehicle.fuel_consumption_rate)
        self.lap_progress += MAINTAIN_PROGRESS
        self._notify("Maintaining speed")

    def _pit_stop(self, vehicle: Vehicle) -> None:
        if self.state is RaceState.PIT_STOP:
            vehicle.refuel()
            self._transition(RaceState.RACING, "Refuel complete! Back to racing!")
        else:
            vehicle.current_speed = 0
            self._transition(RaceState.PIT_STOP, "Entering pit stop...")

    # -- Shared race-state update ---------------------------------------------

    def _transition(self, state: RaceState, message: str) -> None:
        logger.info("%s -> %s: %s", self.state.name, state.name, message)
        self.state = state
        self._notify(message)

    def _update_race_state(self) -> None:
        """Roll the lap over if complete, then apply terminal checks."""
        if self.lap_progress >= 1.0:
            self.current_lap += 1
            self.lap_progress = 0.0
            self._notify(f"Lap {self.current_lap} started!")

        vehicle = self.selected_vehicle
        if self.current_lap > self.total_laps:
            self._transition(RaceState.FINISHED, "Race completed!")
        elif vehicle is not None and vehicle.current_fuel <= 0:
            self._transition(RaceState.OUT_OF_FUEL, "Out of fuel!")
        elif self.remaining_time <= timedelta(0):
            self._transition(RaceState.OUT_OF_TIME, "Time's up!")
