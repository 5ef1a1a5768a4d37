"""Fixed-step simulation host for the airfield orchestrator.

The host owns the shared services (event channel, scheduler, state store,
configuration) and hands them to every controller, then drives all of them
from a single tick:

    1. Scheduler: timers, timeouts and intervals (pushback completion, taxi
       timeouts).
    2. Taxi controller: moves every taxiing vehicle one step.
    3. Landing state machine: steps every landing sequence.
    4. Flight automation: advances phases and watches delegated operations.
    5. Control tower: recalls or parks vehicles whose flights finished.

Usage:
    >>> sim = AirfieldSimulator()
    >>> vehicle = sim.add_vehicle("cessna-1", "cessna")
    >>> sim.tower.dispatch("cessna-1")
    >>> sim.run(Second(60), dt=Millisecond(250))
"""

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from airfieldsim.config import AirfieldConfig, default_config
from airfieldsim.events import EventChannel
from airfieldsim.operations import (
    ControlTower,
    FlightAutomation,
    GroundOperationsController,
    LandingStateMachine,
    TaxiController,
)
from airfieldsim.state import VehicleStateStore
from airfieldsim.timer import Scheduler
from airfieldsim.types import VehicleType
from airfieldsim.unit import Millisecond, Second, Time, as_seconds
from airfieldsim.vehicles import Vehicle

CONSOLE = Console()
DEFAULT_DT = Millisecond(250)

logger = logging.getLogger(__name__)


def configure_logging(level: int | str = logging.INFO, console: Console | None = None) -> logging.Handler:
    """Route the package loggers through a rich console handler."""
    handler = RichHandler(console=console or CONSOLE, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger = logging.getLogger("airfieldsim")
    package_logger.setLevel(level)
    package_logger.addHandler(handler)
    return handler


class AirfieldSimulator:
    """Wires the orchestrator services together and runs them on a fixed step.

    Attributes:
        config: Static airfield configuration.
        channel: Event channel shared by every component.
        scheduler: Simulated clock and timer service.
        store: Vehicle state store.
        ground: Pushback tug pool.
        taxi: Taxi controller.
        landing: Landing sequencer.
        flights: Flight automation.
        tower: Control tower.
        vehicles: Registered vehicles by id.
        trace: One record per vehicle per tick while ``record_trace`` is on.
    """

    def __init__(self, config: AirfieldConfig | None = None, record_trace: bool = True) -> None:
        self.config = config or default_config()
        report = self.config.validate()
        for warning in report.warnings:
            logger.warning("Configuration: %s", warning)

        self.channel = EventChannel()
        self.scheduler = Scheduler(self.channel)
        self.store = VehicleStateStore(self.channel, clock=self.scheduler.clock)
        self.ground = GroundOperationsController(self.channel, self.scheduler, self.config)
        self.taxi = TaxiController(self.channel, self.scheduler, self.store, self.config)
        self.landing = LandingStateMachine(self.channel, self.scheduler, self.store, self.config)
        self.flights = FlightAutomation(
            self.channel, self.scheduler, self.store, self.config, self.taxi, self.landing
        )
        self.tower = ControlTower(self.flights, self.config)

        self.vehicles: dict[str, Vehicle] = {}
        self.record_trace = record_trace
        self.trace: list[dict[str, Any]] = []
        self.ticks = 0

    def add_vehicle(self, vehicle_id: str, vehicle_type: VehicleType | str) -> Vehicle:
        """Create a vehicle on its type's parking spot and register it."""
        return self.register(Vehicle.at_parking(vehicle_id, vehicle_type, self.config))

    def add_vehicle_from_mapping(self, data: Mapping[str, Any]) -> Vehicle:
        return self.register(Vehicle.from_mapping(data, self.config))

    def register(self, vehicle: Vehicle) -> Vehicle:
        if vehicle.id in self.vehicles:
            raise ValueError(f"duplicate vehicle id: {vehicle.id}")
        self.vehicles[vehicle.id] = vehicle
        self.tower.register(vehicle)
        self.store.set_state(vehicle.id, operation="parked", phase="idle", vehicle_type=vehicle.type.value)
        logger.info("Registered %s (%s)", vehicle.id, vehicle.type.value)
        return vehicle

    def add_fleet(self, types: Iterable[VehicleType | str]) -> list[Vehicle]:
        added = []
        for i, vehicle_type in enumerate(types, start=1):
            vehicle_type = VehicleType.parse(vehicle_type)
            added.append(self.add_vehicle(f"{vehicle_type.value}-{i}", vehicle_type))
        return added

    def step(self, dt: Time | float = DEFAULT_DT) -> None:
        """Advance every service by ``dt`` in the fixed tick order."""
        dt = as_seconds(dt)
        self.scheduler.update(dt)
        self.taxi.update_taxi_movement(dt)
        self.landing.update_all_landings(dt)
        self.flights.update_all_flights(dt)
        self.tower.update(dt)
        self.ticks += 1
        if self.record_trace:
            self._record()

    def run(self, duration: Time | float, dt: Time | float = DEFAULT_DT, stop_when_idle: bool = False) -> int:
        """Run ``duration`` of simulated time with a progress display.

        Args:
            duration: Simulated time to cover.
            dt: Tick length.
            stop_when_idle: End early once no vehicle is dispatched.

        Returns:
            The number of ticks executed.
        """
        dt = as_seconds(dt)
        total = max(int(round(float(as_seconds(duration)) / float(dt))), 0)
        executed = 0
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=CONSOLE,
            transient=True,
        ) as progress:
            task = progress.add_task("[green]Simulating airfield...", total=total)
            for _ in range(total):
                self.step(dt)
                executed += 1
                dispatched = self.tower.status()["dispatched_count"]
                progress.update(
                    task,
                    advance=1,
                    description=f"[green]t={self.scheduler.clock():7.2f}s dispatched={dispatched}",
                )
                if stop_when_idle and not dispatched:
                    break
        logger.info("Simulation finished after %d tick(s), t=%.2fs", executed, self.scheduler.clock())
        return executed

    def snapshot(self) -> dict[str, Any]:
        return {
            "time": self.scheduler.clock(),
            "vehicles": {vid: v.to_dict() for vid, v in self.vehicles.items()},
            "tower": self.tower.status(),
            "ground": self.ground.debug_info(),
            "runway_occupant": self.landing.runway_occupant,
        }

    def dispose(self) -> None:
        self.tower.dispose()
        self.flights.dispose()
        self.landing.dispose()
        self.taxi.dispose()
        self.ground.dispose()
        self.scheduler.clear_all()
        self.channel.clear()

    def _record(self) -> None:
        now = self.scheduler.clock()
        for vehicle in self.vehicles.values():
            state = self.store.get_state(vehicle.id)
            self.trace.append(
                {
                    "time": now,
                    "vehicle_id": vehicle.id,
                    "vehicle_type": vehicle.type.value,
                    "x": vehicle.position.x,
                    "y": vehicle.position.y,
                    "z": vehicle.position.z,
                    "heading": vehicle.heading,
                    "speed": vehicle.speed,
                    "operation": state.operation if state else None,
                    "phase": state.phase if state else None,
                }
            )
