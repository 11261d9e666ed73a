"""Vehicle model for the Speed Rush race engine.

A vehicle pairs an immutable :class:`CarSpec` with the two values that
change while racing: fuel in the tank and current speed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from speed_rush.core.errors import InsufficientFuelError


class CarCategory(Enum):
    """Car classes offered on the roster.  Descriptive only."""

    ECONOMY = "economy"
    SPORT = "sport"
    FORMULA = "formula"


@dataclass(frozen=True)
class CarSpec:
    """Static specification of a car.

    Attributes:
        name: Display name of the car.
        category: Car class.
        max_speed: Ceiling on current speed (> 0).
        fuel_consumption_rate: Base fuel cost of a Maintain action (> 0).
        fuel_capacity: Tank size, also the refuel target (> 0).
    """

    name: str
    category: CarCategory
    max_speed: int
    fuel_consumption_rate: float
    fuel_capacity: int

    def __post_init__(self) -> None:
        """Validate car parameters."""
        if not self.name:
            raise ValueError("name must not be empty.")
        if not isinstance(self.category, CarCategory):
            raise ValueError(f"category must be a CarCategory, got {self.category!r}.")
        if self.max_speed <= 0:
            raise ValueError("max_speed must be > 0.")
        if self.fuel_consumption_rate <= 0.0:
            raise ValueError("fuel_consumption_rate must be > 0.0.")
        if self.fuel_capacity <= 0:
            raise ValueError("fuel_capacity must be > 0.")


class Vehicle:
    """A car on the roster together with its live fuel and speed.

    Fuel is tracked in whole units.  Fractional costs are always rounded
    up, so a driver is never charged less than the nominal amount.

    Attributes:
        spec: The car's static specification.
        current_fuel: Fuel left in the tank, in ``[0, fuel_capacity]``.
        current_speed: Current speed, in ``[0, max_speed]``.
    """

    __slots__ = ("spec", "current_fuel", "current_speed")

    def __init__(self, spec: CarSpec) -> None:
        self.spec: CarSpec = spec
        self.current_fuel: int = spec.fuel_capacity
        self.current_speed: int = 0

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def category(self) -> CarCategory:
        return self.spec.category

    @property
    def max_speed(self) -> int:
        return self.spec.max_speed

    @property
    def fuel_consumption_rate(self) -> float:
        return self.spec.fuel_consumption_rate

    @property
    def fuel_capacity(self) -> int:
        return self.spec.fuel_capacity

    def refuel(self) -> None:
        """Fill the tank to capacity."""
        self.current_fuel = self.spec.fuel_capacity

    def consume_fuel(self, amount: float) -> None:
        """Burn fuel for a driver action.

        The check against the tank uses the unrounded amount; the charge
        applied is ``ceil(amount)``.  Nothing is burnt on failure.

        Args:
            amount: Nominal fuel cost (>= 0).

        Raises:
            ValueError: If amount is negative.
            InsufficientFuelError: If amount exceeds the fuel in the tank.
        """
        if amount < 0.0:
            raise ValueError("Fuel consumption amount must not be negative.")
        if self.current_fuel < amount:
            raise InsufficientFuelError(
                f"Insufficient fuel: {self.name} needs {amount:.1f}, "
                f"has {self.current_fuel}."
            )
        self.current_fuel = max(0, self.current_fuel - math.ceil(amount))

    def drain_fuel(self, amount: float) -> int:
        """Burn passive fuel, stopping at an empty tank.

        Args:
            amount: Nominal fuel cost (>= 0).

        Returns:
            Whole fuel units actually removed from the tank.

        Raises:
            ValueError: If amount is negative.
        """
        if amount < 0.0:
            raise ValueError("Fuel drain amount must not be negative.")
        drained: int = min(math.ceil(amount), self.current_fuel)
        self.current_fuel -= drained
        return drained

    def reset(self) -> None:
        """Restore a full tank and a standing start."""
        self.current_fuel = self.spec.fuel_capacity
        self.current_speed = 0

    def __repr__(self) -> str:
        return (
            f"Vehicle(name={self.name!r}, fuel={self.current_fuel}/"
            f"{self.fuel_capacity}, speed={self.current_speed})"
        )
