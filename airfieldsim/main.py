"""Command-line entry point: dispatch a fleet and run the airfield.

Example:
    $ python -m airfieldsim.main --fleet cessna helicopter --duration 240 --plot tracks.png
"""

import argparse
import logging

from rich.table import Table

from airfieldsim.simulator import (
    AirfieldSimulator,
    configure_logging,
    phase_durations,
    plot_tracks,
    trace_to_frame,
)
from airfieldsim.simulator.simulator import CONSOLE
from airfieldsim.types import VehicleType
from airfieldsim.unit import Millisecond, Second


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Autonomous airfield operations simulator")
    parser.add_argument(
        "--fleet",
        nargs="+",
        default=["cessna", "helicopter"],
        choices=[t.value for t in VehicleType],
        help="vehicle types to park and dispatch",
    )
    parser.add_argument("--duration", type=float, default=300.0, help="simulated seconds to run")
    parser.add_argument("--dt", type=float, default=250.0, help="tick length in milliseconds")
    parser.add_argument("--plot", default=None, help="write the ground track plot to this path")
    parser.add_argument("--csv", default=None, help="write the pose trace to this CSV path")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(getattr(logging, args.log_level.upper(), logging.INFO))

    sim = AirfieldSimulator()
    for vehicle in sim.add_fleet(args.fleet):
        sim.tower.dispatch(vehicle.id)

    sim.run(Second(args.duration), dt=Millisecond(args.dt), stop_when_idle=True)

    frame = trace_to_frame(sim.trace)
    if args.csv:
        frame.to_csv(args.csv, index=False)
    if args.plot:
        plot_tracks(frame, path=args.plot, runway=sim.config.runway)

    durations = phase_durations(frame)
    table = Table(title="Phase durations")
    for column in ("vehicle_id", "operation", "phase", "start", "duration"):
        table.add_column(column)
    for row in durations.itertuples(index=False):
        table.add_row(row.vehicle_id, str(row.operation), str(row.phase), f"{row.start:.2f}", f"{row.duration:.2f}")
    CONSOLE.print(table)

    sim.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
