"""Autonomous airfield operations orchestrator.

airfieldsim decides, tick by tick, where every vehicle at a small airfield
should be and when its current operation has finished, failed or timed out.
Operations are long-running, resumable state advanced by per-tick step calls
and coordinated only through a synchronous event channel and a simulated
clock.

Package Layout:
    • unit: Typed durations and angles (Second, Millisecond, Radian, ...)
    • events: Publish/subscribe channel with one frozen payload type per topic
    • timer: Simulated clock, timers, timeouts and intervals
    • state: Generic state machine and the versioned vehicle state store
    • geo: Vector types, position predicates, movement kinematics, routes
    • config: Static airfield configuration (specs, runway, parking, routes)
    • validation: Business rules for taxi, takeoff, landing and flight plans
    • vehicles: Aircraft and ground support vehicle records
    • operations: Ground operations, taxi, landing, flight automation and the
      control tower
    • simulator: Fixed-step host, rich progress display and trace analysis

Example:
    >>> from airfieldsim import AirfieldSimulator
    >>> sim = AirfieldSimulator()
    >>> vehicle = sim.add_vehicle("cessna-1", "cessna")
    >>> sim.tower.dispatch("cessna-1")
    True
    >>> for _ in range(40):
    ...     sim.step(0.25)
"""

import logging

from airfieldsim.config import AirfieldConfig, default_config
from airfieldsim.errors import AirfieldError
from airfieldsim.events import EventChannel
from airfieldsim.simulator import AirfieldSimulator, configure_logging
from airfieldsim.state import VehicleStateStore
from airfieldsim.timer import Scheduler
from airfieldsim.types import ApproachDirection, TaxiDirection, VehicleType
from airfieldsim.vehicles import Vehicle

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AirfieldConfig",
    "AirfieldError",
    "AirfieldSimulator",
    "ApproachDirection",
    "EventChannel",
    "Scheduler",
    "TaxiDirection",
    "Vehicle",
    "VehicleStateStore",
    "VehicleType",
    "configure_logging",
    "default_config",
]
