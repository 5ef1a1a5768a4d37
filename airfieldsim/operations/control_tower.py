"""Control tower: dispatches vehicles on flight plans and brings them home."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Any

from airfieldsim.config import AirfieldConfig
from airfieldsim.errors import AirfieldError
from airfieldsim.geo import Pose, Vec3
from airfieldsim.geo.position import is_at_parking_position
from airfieldsim.unit import Time
from airfieldsim.vehicles import Vehicle

from .flight import AutomatedFlight, FlightAutomation, FlightPlan
from .plans import dispatch_plan

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Dispatch:
    vehicle: Vehicle
    plan: FlightPlan
    flight: AutomatedFlight
    dispatched_at: float
    is_recalling: bool = False
    recall_started_at: float | None = None


class ControlTower:
    """Tracks dispatched vehicles and reacts when their flights finish.

    A finished dispatch flight is followed by a recall flight unless it
    already ended on the parking spot; a finished recall parks the vehicle.
    A failed flight of either kind resets the vehicle straight onto its
    parking spot.
    """

    def __init__(self, flights: FlightAutomation, config: AirfieldConfig, vehicles: Iterable[Vehicle] = ()) -> None:
        self._flights = flights
        self._config = config
        self.vehicles: dict[str, Vehicle] = {}
        self._dispatched: dict[str, Dispatch] = {}
        self._clock = flights.clock
        for vehicle in vehicles:
            self.register(vehicle)

    def register(self, vehicle: Vehicle) -> None:
        self.vehicles[vehicle.id] = vehicle

    def is_dispatched(self, vehicle_id: str) -> bool:
        return vehicle_id in self._dispatched

    def dispatch_info(self, vehicle_id: str) -> Dispatch | None:
        return self._dispatched.get(vehicle_id)

    def toggle(self, vehicle_id: str) -> bool:
        """Recall a dispatched vehicle, dispatch an idle one."""
        if vehicle_id in self._dispatched:
            return self.recall(vehicle_id)
        return self.dispatch(vehicle_id)

    def dispatch(self, vehicle_id: str) -> bool:
        vehicle = self.vehicles.get(vehicle_id)
        if vehicle is None or vehicle.is_active:
            return False

        plan = dispatch_plan(vehicle)
        try:
            flight = self._flights.start_automated_flight(vehicle, plan)
        except AirfieldError as exc:
            logger.error("Dispatch of %s refused: %s", vehicle_id, exc)
            return False

        vehicle.is_active = True
        self._dispatched[vehicle_id] = Dispatch(vehicle, plan, flight, self._clock())
        logger.info("Dispatched %s (%s)", vehicle_id, vehicle.type.value)
        return True

    def recall(self, vehicle_id: str) -> bool:
        """Replace the current flight by a recall flight from where the vehicle is."""
        record = self._dispatched.get(vehicle_id)
        if record is None:
            return False

        logger.info("Recalling %s", vehicle_id)
        self._flights.stop_automated_flight(record.flight)
        plan = self._flights.create_recall_flight_plan(record.vehicle)
        try:
            flight = self._flights.start_automated_flight(record.vehicle, plan)
        except AirfieldError as exc:
            logger.warning("Recall flight for %s could not start (%s), resetting to parking", vehicle_id, exc)
            return self.force_reset_to_parking(vehicle_id)

        record.flight = flight
        record.plan = plan
        record.is_recalling = True
        record.recall_started_at = self._clock()
        return True

    def emergency_recall_all(self) -> int:
        logger.warning("Emergency recall of %d vehicle(s)", len(self._dispatched))
        return sum(self.recall(vehicle_id) for vehicle_id in list(self._dispatched))

    def complete_recall(self, vehicle_id: str) -> bool:
        """Park a vehicle whose recall flight has completed.

        Refuses while the vehicle is not recalling or its recall flight has
        not finished successfully.
        """
        record = self._dispatched.get(vehicle_id)
        if record is None or not record.is_recalling or not record.flight.is_complete:
            return False
        self._park(record.vehicle)
        del self._dispatched[vehicle_id]
        logger.info("Recall of %s complete", vehicle_id)
        return True

    def force_reset_to_parking(self, vehicle_id: str) -> bool:
        """Put a dispatched vehicle back on its spot whatever it is doing."""
        record = self._dispatched.pop(vehicle_id, None)
        if record is None:
            return False
        self._flights.stop_automated_flight(record.flight)
        self._park(record.vehicle)
        logger.warning("%s reset to parking", vehicle_id)
        return True

    def update(self, dt: Time | float) -> None:
        """React to flights that finished during this tick."""
        for vehicle_id, record in list(self._dispatched.items()):
            flight = record.flight
            if not flight.is_finished:
                continue
            if flight.is_complete and record.is_recalling:
                self.complete_recall(vehicle_id)
            elif flight.is_complete and self._on_spot(record.vehicle):
                self._park(record.vehicle)
                del self._dispatched[vehicle_id]
                logger.info("%s finished its flight on its spot", vehicle_id)
            elif flight.is_complete:
                self.recall(vehicle_id)
            else:
                logger.error("Flight of %s ended %s (%s)", vehicle_id, flight.status.value, flight.failure_reason)
                self.force_reset_to_parking(vehicle_id)

    def status(self) -> dict[str, Any]:
        return {
            "dispatched_count": len(self._dispatched),
            "total_vehicles": len(self.vehicles),
            "dispatched": [
                {
                    "vehicle_id": vehicle_id,
                    "type": record.vehicle.type.value,
                    "phase": record.flight.current_phase_name,
                    "progress": round(record.flight.phase_progress * 100),
                    "recalling": record.is_recalling,
                }
                for vehicle_id, record in self._dispatched.items()
            ],
        }

    def dispose(self) -> None:
        for vehicle_id in list(self._dispatched):
            self.force_reset_to_parking(vehicle_id)

    def _on_spot(self, vehicle: Vehicle) -> bool:
        spot = self._config.parking_for(vehicle.type)
        return is_at_parking_position(vehicle.position, spot, self._config.validation.position_tolerance)

    def _park(self, vehicle: Vehicle) -> None:
        spot = self._config.parking_for(vehicle.type)
        vehicle.apply_pose(Pose(spot.position, Vec3(0.0, spot.heading, 0.0), 0.0))
        vehicle.is_active = False
        vehicle.is_being_towed = False
        vehicle.active_operation = None
