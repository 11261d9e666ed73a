"""CLI entrypoint for the Speed Rush race engine."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from speed_rush import __version__
from speed_rush.config import load_settings
from speed_rush.core.autopilot import run_session
from speed_rush.core.errors import RaceError
from speed_rush.core.race import Action, RaceController


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Speed Rush race on autopilot.")
    parser.add_argument("--car", type=int, default=0, help="Roster index (default 0).")
    parser.add_argument("--seed", type=int, default=42, help="Random seed.")
    parser.add_argument(
        "--aggression",
        type=float,
        default=0.5,
        help="Probability of speeding up over maintaining (0-1).",
    )
    parser.add_argument(
        "--duration", type=float, default=None, help="Race clock in seconds."
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Settings YAML override."
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one autopilot session and print a lap-by-lap summary."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )

    print(f"Speed Rush v{__version__}")
    print("=" * 56)

    # -- Load settings and roster --------------------------------------------
    settings = load_settings(args.config)
    controller = RaceController(roster=settings.roster, total_laps=settings.total_laps)
    cars = controller.get_available_cars()

    print(f"\nRoster: {len(cars)} cars")
    for i, car in enumerate(cars):
        print(
            f"  [{i}] {car.name:<20s} {car.category.value:<8s} "
            f"max {car.max_speed:3d}  rate {car.fuel_consumption_rate:4.1f}  "
            f"tank {car.fuel_capacity:3d}"
        )

    if not 0 <= args.car < len(cars):
        print(f"\nNo car at roster index {args.car}.")
        return 1

    duration = (
        timedelta(seconds=args.duration)
        if args.duration is not None
        else settings.race_duration
    )

    # -- Run the session ------------------------------------------------------
    car = cars[args.car]
    print(f"\nRacing {car.name} for {settings.total_laps} laps ({duration} clock)")
    print("-" * 56)
    try:
        result = run_session(
            controller,
            car,
            duration,
            tick=settings.tick,
            seed=args.seed,
            aggression=args.aggression,
        )
    except (RaceError, ValueError) as exc:
        print(f"Race aborted: {exc}")
        return 1

    laps = result.telemetry[result.telemetry["event"].str.endswith("started!")]
    print(f"\n  {'Lap':>3}  {'Fuel':>4}  {'Speed':>5}  {'Clock left':>10}")
    print(f"  {'---':>3}  {'----':>4}  {'-----':>5}  {'----------':>10}")
    for row in laps.itertuples(index=False):
        print(
            f"  {int(row.lap):3d}  {int(row.fuel):4d}  {int(row.speed):5d}  "
            f"{row.remaining_seconds:9.0f}s"
        )

    pit_stops = sum(1 for a in result.actions if a is Action.PIT_STOP) // 2
    print("-" * 56)
    print(f"Result      : {result.final_state.name}")
    print(f"Laps        : {result.laps_completed}/{settings.total_laps}")
    print(f"Elapsed     : {result.elapsed}")
    print(f"Actions     : {len(result.actions)} ({pit_stops} pit stops)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
