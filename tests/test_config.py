"""Tests for the YAML settings loader."""

from datetime import timedelta
from pathlib import Path

import pytest

from speed_rush.config import load_settings
from speed_rush.core.autopilot import DEFAULT_TICK
from speed_rush.core.race import DEFAULT_RACE_DURATION, DEFAULT_ROSTER
from speed_rush.core.vehicle import CarCategory

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "race.yaml"
    path.write_text(text, encoding="utf-8")
    return path


_ONE_CAR = """
race:
  total_laps: 3
  duration_seconds: 120
  tick_seconds: 2
cars:
  - name: Kart
    category: Sport
    max_speed: 60
    fuel_consumption_rate: 4.5
    fuel_capacity: 30
"""

# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_default_settings_match_built_in_roster() -> None:
    """The shipped settings file describes the standard three-car session."""
    settings = load_settings()
    assert settings.total_laps == 5
    assert settings.race_duration == timedelta(minutes=10)
    assert settings.tick == timedelta(seconds=1)
    assert settings.roster == DEFAULT_ROSTER


def test_custom_file_loads(tmp_path: Path) -> None:
    settings = load_settings(_write(tmp_path, _ONE_CAR))
    assert settings.total_laps == 3
    assert settings.race_duration == timedelta(seconds=120)
    assert settings.tick == timedelta(seconds=2)
    assert len(settings.roster) == 1
    kart = settings.roster[0]
    assert kart.name == "Kart"
    assert kart.category is CarCategory.SPORT
    assert kart.fuel_consumption_rate == 4.5


def test_missing_sections_fall_back_to_defaults(tmp_path: Path) -> None:
    settings = load_settings(_write(tmp_path, "race:\n  total_laps: 2\n"))
    assert settings.total_laps == 2
    assert settings.roster == DEFAULT_ROSTER


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "nope.yaml")


def test_missing_car_field_raises(tmp_path: Path) -> None:
    text = _ONE_CAR.replace("    fuel_capacity: 30\n", "")
    with pytest.raises(ValueError, match="missing required field 'fuel_capacity'"):
        load_settings(_write(tmp_path, text))


def test_unknown_category_raises(tmp_path: Path) -> None:
    text = _ONE_CAR.replace("category: Sport", "category: truck")
    with pytest.raises(ValueError, match="unknown category"):
        load_settings(_write(tmp_path, text))


def test_non_integer_capacity_raises(tmp_path: Path) -> None:
    text = _ONE_CAR.replace("fuel_capacity: 30", "fuel_capacity: 30.5")
    with pytest.raises(ValueError, match="'fuel_capacity' must be an integer"):
        load_settings(_write(tmp_path, text))


def test_non_positive_rate_raises(tmp_path: Path) -> None:
    text = _ONE_CAR.replace("fuel_consumption_rate: 4.5", "fuel_consumption_rate: 0")
    with pytest.raises(ValueError, match="must be > 0"):
        load_settings(_write(tmp_path, text))


def test_invalid_lap_count_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="total_laps"):
        load_settings(_write(tmp_path, "race:\n  total_laps: 0\n"))


def test_empty_roster_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="roster must not be empty"):
        load_settings(_write(tmp_path, "cars: []\n"))


def test_missing_race_values_use_engine_defaults(tmp_path: Path) -> None:
    """Omitted clock values fall back to the engine constants."""
    settings = load_settings(_write(tmp_path, "race:\n  total_laps: 2\n"))
    assert settings.race_duration == DEFAULT_RACE_DURATION
    assert settings.tick == DEFAULT_TICK


@pytest.mark.parametrize(
    "text, message",
    [
        ("- race\n- cars\n", "top level must be a mapping"),
        ("42\n", "top level must be a mapping"),
        ("race: [1, 2]\n", "race: section must be a mapping"),
        ("cars: Kart\n", "cars: must be a list"),
        ("cars:\n  - Kart\n", "Car entry 0 must be a mapping"),
    ],
)
def test_malformed_structure_raises_value_error(
    tmp_path: Path, text: str, message: str
) -> None:
    """Wrongly shaped YAML is reported as ValueError, not AttributeError."""
    with pytest.raises(ValueError, match=message):
        load_settings(_write(tmp_path, text))
