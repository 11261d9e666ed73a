"""Exception types raised by the Speed Rush race engine."""


class RaceError(Exception):
    """Base class for race engine errors."""


class InvalidRaceStateError(RaceError, RuntimeError):
    """An operation was attempted outside the race state that allows it."""


class InsufficientFuelError(RaceError, RuntimeError):
    """A fuel cost exceeds the fuel left in the tank."""
