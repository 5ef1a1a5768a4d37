from .analyze import phase_durations, plot_tracks, state_history_to_frame, trace_to_frame
from .simulator import AirfieldSimulator, configure_logging

__all__ = [
    "AirfieldSimulator",
    "configure_logging",
    "phase_durations",
    "plot_tracks",
    "state_history_to_frame",
    "trace_to_frame",
]
