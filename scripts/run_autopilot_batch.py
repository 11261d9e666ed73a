#!/usr/bin/env python
"""Batch autopilot runs across the whole roster.

This script runs the autopilot for every car on the roster over a range
of seeds, then:

1. Aggregates outcome rates (finished, out of fuel, out of time) per car.
2. Computes mean elapsed race time and pit stops for finished runs.
3. Saves results to ``results/autopilot_batch.json``.
4. Prints a structured summary.

Usage
-----
::

    python scripts/run_autopilot_batch.py

Requirements
------------
- ``numpy>=1.26``, ``pandas>=2.0.0`` and ``pyyaml>=6.0`` must be installed.
"""

from __future__ import annotations

import json
import os
import sys

import numpy as np

# Ensure the project root is on the import path.
_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from speed_rush.config import load_settings  # noqa: E402
from speed_rush.core.autopilot import SessionResult, run_session  # noqa: E402
from speed_rush.core.race import Action, RaceController, RaceState  # noqa: E402

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

RUNS_PER_CAR: int = 200
AGGRESSION: float = 0.6
BASE_SEED: int = 2026
RESULTS_DIR: str = os.path.join(_project_root, "results")
OUTPUT_PATH: str = os.path.join(RESULTS_DIR, "autopilot_batch.json")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def summarise_runs(results: list[SessionResult]) -> dict[str, float]:
    """Reduce a list of session results to outcome rates and means."""
    n = len(results)
    if n == 0:
        raise ValueError("results must not be empty.")
    finished = [r for r in results if r.final_state is RaceState.FINISHED]
    summary: dict[str, float] = {
        state.name.lower(): sum(1 for r in results if r.final_state is state) / n
        for state in (RaceState.FINISHED, RaceState.OUT_OF_FUEL, RaceState.OUT_OF_TIME)
    }
    if finished:
        summary["mean_elapsed_seconds"] = float(
            np.mean([r.elapsed.total_seconds() for r in finished])
        )
        summary["mean_pit_stops"] = float(
            np.mean([r.actions.count(Action.PIT_STOP) // 2 for r in finished])
        )
    else:
        summary["mean_elapsed_seconds"] = float("nan")
        summary["mean_pit_stops"] = float("nan")
    return summary


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the roster-wide autopilot batch."""
    print("=" * 60)
    print("AUTOPILOT BATCH")
    print("=" * 60)
    print()

    settings = load_settings()
    car_names = [spec.name for spec in settings.roster]
    output: dict[str, object] = {
        "metadata": {
            "runs_per_car": RUNS_PER_CAR,
            "aggression": AGGRESSION,
            "base_seed": BASE_SEED,
            "total_laps": settings.total_laps,
            "race_seconds": settings.race_duration.total_seconds(),
        },
        "cars": {},
    }

    for idx, name in enumerate(car_names):
        print(f"[{idx + 1}/{len(car_names)}] {name}: {RUNS_PER_CAR} runs")
        results: list[SessionResult] = []
        for run in range(RUNS_PER_CAR):
            controller = RaceController(
                roster=settings.roster, total_laps=settings.total_laps
            )
            car = controller.get_available_cars()[idx]
            results.append(
                run_session(
                    controller,
                    car,
                    settings.race_duration,
                    tick=settings.tick,
                    seed=BASE_SEED + run,
                    aggression=AGGRESSION,
                )
            )
        output["cars"][name] = summarise_runs(results)  # type: ignore[index]

    os.makedirs(RESULTS_DIR, exist_ok=True)
    with open(OUTPUT_PATH, "w", encoding="utf-8") as fh:
        json.dump(output, fh, indent=2, sort_keys=True)
    print(f"\nResults saved to {OUTPUT_PATH}")
    print()

    print("=" * 60)
    print("OUTCOME SUMMARY")
    print("=" * 60)
    for name, summary in output["cars"].items():  # type: ignore[attr-defined]
        print(
            f"  {name:<20s}  "
            f"finish: {summary['finished']:.3f}  "
            f"fuel-out: {summary['out_of_fuel']:.3f}  "
            f"time-out: {summary['out_of_time']:.3f}  "
            f"E[t]: {summary['mean_elapsed_seconds']:.1f}s"
        )
    print()
    print("Batch complete.")


if __name__ == "__main__":
    main()
