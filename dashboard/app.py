"""Speed Rush race dashboard.

Interactive host for the race controller built with Streamlit and Plotly.
Provides car selection, the three driver actions, a race clock that ticks
in the background while racing, fuel/speed gauges, a telemetry chart, and
an autopilot replay.

Launch with::

    streamlit run dashboard/app.py
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timedelta

import plotly.graph_objects as go
import streamlit as st

from speed_rush.config import load_settings
from speed_rush.core.autopilot import run_session
from speed_rush.core.errors import RaceError
from speed_rush.core.race import Action, RaceController, RaceEvent, RaceState
from speed_rush.core.telemetry import TelemetryRecorder

_LOG_LINES: int = 100

_STATE_COLOURS: dict[str, str] = {
    "NOT_STARTED": "#808080",
    "RACING": "#1f9d3a",
    "PIT_STOP": "#ffa500",
    "FINISHED": "#1e64c8",
    "OUT_OF_FUEL": "#e10600",
    "OUT_OF_TIME": "#e10600",
}


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


def _log(message: str) -> None:
    """Prepend a timestamped line to the action log."""
    log: list[str] = st.session_state["log"]
    log.insert(0, f"{datetime.now():%H:%M:%S} - {message}")
    del log[_LOG_LINES:]


def _new_session() -> None:
    """Build a fresh controller and recorder in the Streamlit session."""
    settings = load_settings()
    controller = RaceController(roster=settings.roster, total_laps=settings.total_laps)

    def _on_event(event: RaceEvent) -> None:
        _log(event.message)

    controller.subscribe(_on_event)
    st.session_state["settings"] = settings
    st.session_state["controller"] = controller
    st.session_state["recorder"] = TelemetryRecorder(controller)
    st.session_state["log"] = []


def _run(command: Callable[..., None], *args: object) -> None:
    """Call a controller command, showing race errors in the log."""
    try:
        command(*args)
    except RaceError as exc:
        _log(f"Error: {exc}")


def _restart_recorder(controller: RaceController) -> TelemetryRecorder:
    """Replace the session recorder so a new race starts a fresh trace."""
    st.session_state["recorder"].close()
    recorder = TelemetryRecorder(controller)
    st.session_state["recorder"] = recorder
    return recorder


def _tick_clock(
    controller: RaceController, recorder: TelemetryRecorder, tick: timedelta
) -> None:
    """Advance the race by every whole tick of wall time since the last one."""
    last: float | None = st.session_state.get("last_tick")
    now = time.monotonic()
    if controller.state is not RaceState.RACING or last is None:
        st.session_state["last_tick"] = now
        return

    step = tick.total_seconds()
    due = int((now - last) // step)
    for _ in range(due):
        controller.advance_time(tick)
        recorder.record("tick")
        if controller.state is not RaceState.RACING:
            break
    st.session_state["last_tick"] = last + due * step


def _mm_ss(value: timedelta) -> str:
    seconds = int(value.total_seconds())
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def _gauge(title: str, value: float, maximum: float, colour: str) -> go.Figure:
    fig = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=value,
            title={"text": title},
            gauge={"axis": {"range": [0, maximum]}, "bar": {"color": colour}},
        )
    )
    fig.update_layout(height=220, margin=dict(l=20, r=20, t=50, b=10))
    return fig


def _race_status() -> None:
    """Race clock, status panel and telemetry, refreshed on every tick."""
    settings = st.session_state["settings"]
    controller: RaceController = st.session_state["controller"]
    recorder: TelemetryRecorder = st.session_state["recorder"]

    was_racing = controller.state is RaceState.RACING
    _tick_clock(controller, recorder, settings.tick)
    if was_racing and controller.state.is_terminal:
        # Buttons outside this fragment must see the final state.
        st.rerun()

    # ── Section 2: Race status ───────────────────────────────────────────
    st.header("2 -- Race Status")

    vehicle = controller.selected_vehicle
    state_name = controller.state.name
    st.markdown(
        f"<h3 style='color:{_STATE_COLOURS[state_name]}'>{state_name}</h3>",
        unsafe_allow_html=True,
    )

    shown_lap = min(controller.current_lap, controller.total_laps)
    if controller.state is RaceState.FINISHED:
        st.success(f"Race completed! Time: {_mm_ss(controller.get_elapsed_time())}")
    elif controller.state is RaceState.OUT_OF_FUEL:
        st.error(f"Out of fuel! Reached lap {shown_lap}/{controller.total_laps}")
    elif controller.state is RaceState.OUT_OF_TIME:
        st.error(f"Time's up! Reached lap {shown_lap}/{controller.total_laps}")

    col_lap, col_time, col_elapsed = st.columns(3)
    col_lap.metric("Lap", f"{shown_lap}/{controller.total_laps}")
    col_time.metric("Clock", _mm_ss(controller.remaining_time))
    col_elapsed.metric("Elapsed", _mm_ss(controller.get_elapsed_time()))
    st.progress(controller.get_race_progress(), text="Race progress")

    if vehicle is not None:
        col_fuel, col_speed = st.columns(2)
        with col_fuel:
            st.plotly_chart(
                _gauge("Fuel", vehicle.current_fuel, vehicle.fuel_capacity, "#e10600"),
                use_container_width=True,
            )
        with col_speed:
            st.plotly_chart(
                _gauge("Speed", vehicle.current_speed, vehicle.max_speed, "#1e1e1e"),
                use_container_width=True,
            )

    # ── Section 3: Telemetry ─────────────────────────────────────────────
    st.header("3 -- Telemetry")

    frame = recorder.to_frame()
    if frame.empty:
        st.info('Pick a car in the sidebar, then press "Start Race".')
    else:
        fig_tel = go.Figure()
        fig_tel.add_trace(go.Scatter(y=frame["fuel"], name="Fuel", mode="lines"))
        fig_tel.add_trace(
            go.Scatter(
                y=frame["race_progress"] * 100, name="Progress (%)", mode="lines"
            )
        )
        fig_tel.update_layout(
            xaxis_title="Sample", height=320, margin=dict(l=40, r=20, t=30)
        )
        st.plotly_chart(fig_tel, use_container_width=True)

    with st.expander("Action log"):
        st.text("\n".join(st.session_state["log"]))


# ---------------------------------------------------------------------------
# Streamlit app
# ---------------------------------------------------------------------------


def main() -> None:  # noqa: C901
    """Entry point for the Streamlit dashboard."""
    st.set_page_config(page_title="Speed Rush", layout="wide")
    st.title("Speed Rush")

    if "controller" not in st.session_state:
        _new_session()

    settings = st.session_state["settings"]
    controller: RaceController = st.session_state["controller"]
    cars = controller.get_available_cars()

    # ── Sidebar ──────────────────────────────────────────────────────────
    st.sidebar.header("Race Setup")

    locked = controller.state is not RaceState.NOT_STARTED

    car_index: int = st.sidebar.selectbox(
        "Car",
        options=list(range(len(cars))),
        format_func=lambda i: f"{cars[i].name} ({cars[i].category.value})",
        disabled=locked,
    )
    minutes: int = st.sidebar.slider(
        "Race clock (minutes)",
        min_value=1,
        max_value=20,
        value=int(settings.race_duration.total_seconds() // 60),
    )

    if st.sidebar.button("Start Race", disabled=locked):
        try:
            controller.select_car(cars[car_index])
            controller.start_race(timedelta(minutes=minutes))
        except (RaceError, ValueError) as exc:
            st.sidebar.error(f"Error starting race: {exc}")
        else:
            st.session_state["last_tick"] = time.monotonic()

    if st.sidebar.button("New Race", disabled=not controller.state.is_terminal):
        controller.reset_session()
        _restart_recorder(controller)

    st.sidebar.markdown("---")
    st.sidebar.subheader("Autopilot")
    seed: int = st.sidebar.number_input("Seed", min_value=0, value=42, step=1)
    aggression: float = st.sidebar.slider("Aggression", 0.0, 1.0, 0.5, 0.05)
    if st.sidebar.button("Run Autopilot"):
        with st.spinner("Running autopilot session..."):
            replay = RaceController(
                roster=settings.roster, total_laps=settings.total_laps
            )
            st.session_state["autopilot"] = run_session(
                replay,
                replay.get_available_cars()[car_index],
                timedelta(minutes=minutes),
                tick=settings.tick,
                seed=int(seed),
                aggression=aggression,
            )

    # ── Section 1: Controls ──────────────────────────────────────────────
    st.header("1 -- Controls")

    active = controller.state in (RaceState.RACING, RaceState.PIT_STOP)
    col_up, col_keep, col_pit = st.columns(3)
    if col_up.button("Speed Up", disabled=not active):
        _run(controller.execute_action, Action.SPEED_UP)
    if col_keep.button("Maintain", disabled=not active):
        _run(controller.execute_action, Action.MAINTAIN)
    if col_pit.button("Pit Stop", disabled=not active):
        _run(controller.execute_action, Action.PIT_STOP)

    run_every = settings.tick if controller.state is RaceState.RACING else None
    st.fragment(_race_status, run_every=run_every)()

    # ── Section 4: Autopilot replay ──────────────────────────────────────
    if "autopilot" in st.session_state:
        st.header("4 -- Autopilot Replay")
        result = st.session_state["autopilot"]
        col_r1, col_r2, col_r3 = st.columns(3)
        col_r1.metric("Result", result.final_state.name)
        col_r2.metric("Laps", f"{result.laps_completed}/{settings.total_laps}")
        col_r3.metric("Elapsed", _mm_ss(result.elapsed))

        fig_ap = go.Figure(
            go.Scatter(
                y=result.telemetry["fuel"],
                name="Fuel",
                mode="lines",
                line=dict(color="#e10600"),
            )
        )
        fig_ap.update_layout(
            title="Fuel over the session", xaxis_title="Sample", height=300
        )
        st.plotly_chart(fig_ap, use_container_width=True)

    # ── Footer ───────────────────────────────────────────────────────────
    st.markdown("---")
    st.caption("Speed Rush dashboard. Race rules live in the core controller.")


if __name__ == "__main__":
    main()
