"""Configuration loader for the Speed Rush race engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import yaml

from speed_rush.core.autopilot import DEFAULT_TICK
from speed_rush.core.race import DEFAULT_RACE_DURATION, DEFAULT_ROSTER, TOTAL_LAPS
from speed_rush.core.vehicle import CarCategory, CarSpec

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
SETTINGS_PATH: Path = DATA_DIR / "race.yaml"

_REQUIRED_CAR_FIELDS: tuple[str, ...] = (
    "name",
    "category",
    "max_speed",
    "fuel_consumption_rate",
    "fuel_capacity",
)

_INTEGER_CAR_FIELDS: tuple[str, ...] = ("max_speed", "fuel_capacity")


@dataclass(frozen=True)
class RaceSettings:
    """Session settings read from the YAML file.

    Attributes:
        total_laps: Laps needed to finish the race.
        race_duration: Length of the race clock.
        tick: Clock advance per host timer tick.
        roster: Cars offered for selection.
    """

    total_laps: int = TOTAL_LAPS
    race_duration: timedelta = DEFAULT_RACE_DURATION
    tick: timedelta = DEFAULT_TICK
    roster: tuple[CarSpec, ...] = DEFAULT_ROSTER


def _positive_number(section: str, key: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(
            f"{section}: '{key}' must be numeric, got {type(value).__name__}"
        )
    if value <= 0:
        raise ValueError(f"{section}: '{key}' must be > 0, got {value}")
    return float(value)


def _parse_car(idx: int, entry: object) -> CarSpec:
    if not isinstance(entry, dict):
        raise ValueError(
            f"Car entry {idx} must be a mapping, got {type(entry).__name__}"
        )
    label = f"Car entry {idx} ({entry.get('name', '<unknown>')})"
    for field in _REQUIRED_CAR_FIELDS:
        if field not in entry:
            raise ValueError(f"{label} is missing required field '{field}'")

    try:
        category = CarCategory(str(entry["category"]).lower())
    except ValueError:
        allowed = ", ".join(c.value for c in CarCategory)
        raise ValueError(
            f"{label}: unknown category {entry['category']!r} "
            f"(expected one of {allowed})"
        ) from None

    for field in _INTEGER_CAR_FIELDS:
        if not isinstance(entry[field], int) or isinstance(entry[field], bool):
            raise ValueError(f"{label}: '{field}' must be an integer")

    return CarSpec(
        name=str(entry["name"]),
        category=category,
        max_speed=int(_positive_number(label, "max_speed", entry["max_speed"])),
        fuel_consumption_rate=_positive_number(
            label, "fuel_consumption_rate", entry["fuel_consumption_rate"]
        ),
        fuel_capacity=int(
            _positive_number(label, "fuel_capacity", entry["fuel_capacity"])
        ),
    )


def load_settings(path: Path | None = None) -> RaceSettings:
    """Load race settings and the car roster from a YAML file.

    Missing sections fall back to the built-in defaults.

    Args:
        path: Optional override for the settings file path.

    Returns:
        A validated :class:`RaceSettings`.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ValueError: If any entry is missing fields or has out-of-range
            values.
    """
    settings_path = path or SETTINGS_PATH
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with open(settings_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{settings_path}: top level must be a mapping, "
            f"got {type(data).__name__}"
        )

    race = data.get("race") or {}
    if not isinstance(race, dict):
        raise ValueError(f"race: section must be a mapping, got {type(race).__name__}")
    total_laps = race.get("total_laps", TOTAL_LAPS)
    if not isinstance(total_laps, int) or isinstance(total_laps, bool):
        raise ValueError("race: 'total_laps' must be an integer")
    if total_laps < 1:
        raise ValueError(f"race: 'total_laps' must be >= 1, got {total_laps}")

    duration = _positive_number(
        "race",
        "duration_seconds",
        race.get("duration_seconds", DEFAULT_RACE_DURATION.total_seconds()),
    )
    tick = _positive_number(
        "race", "tick_seconds", race.get("tick_seconds", DEFAULT_TICK.total_seconds())
    )

    cars = data.get("cars")
    if cars is None:
        roster = DEFAULT_ROSTER
    else:
        if not isinstance(cars, list):
            raise ValueError(f"cars: must be a list, got {type(cars).__name__}")
        if not cars:
            raise ValueError("cars: roster must not be empty")
        roster = tuple(_parse_car(idx, entry) for idx, entry in enumerate(cars))

    return RaceSettings(
        total_laps=total_laps,
        race_duration=timedelta(seconds=duration),
        tick=timedelta(seconds=tick),
        roster=roster,
    )
