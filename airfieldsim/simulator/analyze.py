"""Post-run analysis of a simulation trace.

The simulator records one row per vehicle per tick; these helpers turn that
trace and the state store history into DataFrames and plot ground tracks.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import matplotlib.pyplot as plt
import pandas as pd

from airfieldsim.state import VehicleStateStore

TRACE_COLUMNS = ["time", "vehicle_id", "vehicle_type", "x", "y", "z", "heading", "speed", "operation", "phase"]


def trace_to_frame(trace: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Pose trace as a DataFrame sorted by vehicle and time."""
    df = pd.DataFrame(list(trace), columns=TRACE_COLUMNS)
    if df.empty:
        return df
    return df.sort_values(["vehicle_id", "time"], kind="stable").reset_index(drop=True)


def state_history_to_frame(store: VehicleStateStore, vehicle_ids: Iterable[str] | None = None) -> pd.DataFrame:
    """Every retained state change in ``store``, one row per change."""
    ids = list(store.all_states()) if vehicle_ids is None else list(vehicle_ids)
    rows = []
    for vehicle_id in ids:
        for change in store.state_history(vehicle_id):
            old = change.old_state
            rows.append(
                {
                    "vehicle_id": vehicle_id,
                    "timestamp": change.timestamp,
                    "version": change.new_state.version,
                    "operation": change.new_state.operation,
                    "phase": change.new_state.phase,
                    "previous_operation": old.operation if old else None,
                    "previous_phase": old.phase if old else None,
                }
            )
    df = pd.DataFrame(
        rows,
        columns=["vehicle_id", "timestamp", "version", "operation", "phase", "previous_operation", "previous_phase"],
    )
    return df.sort_values(["vehicle_id", "version"], kind="stable").reset_index(drop=True)


def phase_durations(frame: pd.DataFrame) -> pd.DataFrame:
    """Contiguous (operation, phase) segments per vehicle with their length.

    Args:
        frame: Output of :func:`trace_to_frame`.

    Returns:
        DataFrame with ``vehicle_id``, ``operation``, ``phase``, ``start``,
        ``end``, ``duration`` and ``ticks`` columns.
    """
    columns = ["vehicle_id", "operation", "phase", "start", "end", "duration", "ticks"]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    df = frame.copy()
    key = df["operation"].astype(str) + "/" + df["phase"].astype(str)
    # new segment whenever the vehicle or its phase changes
    boundary = (key != key.shift()) | (df["vehicle_id"] != df["vehicle_id"].shift())
    df["segment"] = boundary.cumsum()

    segments = df.groupby("segment").agg(
        vehicle_id=("vehicle_id", "first"),
        operation=("operation", "first"),
        phase=("phase", "first"),
        start=("time", "min"),
        end=("time", "max"),
        ticks=("time", "count"),
    )
    segments["duration"] = segments["end"] - segments["start"]
    return segments[columns].reset_index(drop=True)


def plot_tracks(frame: pd.DataFrame, title: str = "Ground tracks", path: str | None = None, runway=None):
    """Plot every vehicle's x/z track with altitude as a second panel.

    Returns:
        The matplotlib figure. When ``path`` is given the figure is saved
        there and closed.
    """
    fig, (track_ax, alt_ax) = plt.subplots(1, 2, figsize=(14, 6))

    if runway is not None:
        track_ax.plot(
            [runway.start.x, runway.end.x],
            [runway.start.z, runway.end.z],
            color="dimgray",
            linewidth=6,
            alpha=0.5,
            label="Runway",
        )

    for vehicle_id, group in frame.groupby("vehicle_id"):
        track_ax.plot(group["x"], group["z"], linewidth=1.5, label=vehicle_id)
        alt_ax.plot(group["time"], group["y"], linewidth=1.5, label=vehicle_id)

    track_ax.set_title(title, fontsize=14)
    track_ax.set_xlabel("x", fontsize=12)
    track_ax.set_ylabel("z", fontsize=12)
    track_ax.set_aspect("equal", adjustable="datalim")
    track_ax.grid(True, alpha=0.3)
    track_ax.legend(loc="upper right")

    alt_ax.set_title("Altitude", fontsize=14)
    alt_ax.set_xlabel("Time (s)", fontsize=12)
    alt_ax.set_ylabel("y", fontsize=12)
    alt_ax.grid(True, alpha=0.3)

    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=150)
        plt.close(fig)
    return fig
