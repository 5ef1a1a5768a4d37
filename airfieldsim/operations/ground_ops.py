"""Pushback tug pool driven entirely by channel events.

Protocol:
    ``ground.vehicle.request``        -> ``ground.vehicle.available`` (tug reserved)
                                      or ``ground.vehicle.unavailable``
    ``ground.vehicle.start.pushback`` -> vehicle towed and offset, completion scheduled
                                      or ``ground.vehicle.unavailable`` (tug not reserved)
    (pushback duration later)         -> ``ground.vehicle.pushback.complete``
    ``ground.vehicle.release``        -> pending pushback cancelled, tug released
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Any

from airfieldsim.config import AirfieldConfig, TugSpec
from airfieldsim.events import (
    EventChannel,
    GroundVehicleAvailable,
    GroundVehicleRelease,
    GroundVehicleRequest,
    GroundVehicleUnavailable,
    PushbackComplete,
    StartPushback,
)
from airfieldsim.timer import Scheduler
from airfieldsim.validation import validate_ground_vehicle_operation
from airfieldsim.vehicles import GroundSupportVehicle, Vehicle

logger = logging.getLogger(__name__)


@dataclass
class PushbackJob:
    support: GroundSupportVehicle
    vehicle: Vehicle
    timeout_id: str


class GroundOperationsController:
    """Allocates tugs to aircraft and simulates pushback with a scheduler timeout."""

    def __init__(
        self,
        channel: EventChannel,
        scheduler: Scheduler,
        config: AirfieldConfig,
        tugs: Iterable[TugSpec] | None = None,
    ) -> None:
        self._channel = channel
        self._scheduler = scheduler
        self._config = config
        self.vehicles = [
            GroundSupportVehicle(spec.id, spec.type, spec.position)
            for spec in (config.tugs if tugs is None else tugs)
        ]
        self._jobs: dict[str, PushbackJob] = {}
        self._unsubscribers = [
            channel.subscribe(GroundVehicleRequest.TOPIC, self._on_request),
            channel.subscribe(StartPushback.TOPIC, self._on_start_pushback),
            channel.subscribe(GroundVehicleRelease.TOPIC, self._on_release),
        ]
        logger.info("Ground operations ready with %d tug(s)", len(self.vehicles))

    def available_vehicle(self) -> GroundSupportVehicle | None:
        return next((v for v in self.vehicles if v.available), None)

    def get_vehicle(self, support_id: str) -> GroundSupportVehicle | None:
        return next((v for v in self.vehicles if v.id == support_id), None)

    def active_pushbacks(self) -> dict[str, PushbackJob]:
        return dict(self._jobs)

    def _on_request(self, event: GroundVehicleRequest) -> None:
        support = self.available_vehicle()
        if support is None:
            logger.warning("No ground vehicle available for %s", event.vehicle_id)
            self._channel.emit(GroundVehicleUnavailable(event.vehicle_id))
            return

        check = validate_ground_vehicle_operation(support, event.operation)
        if not check.is_valid:
            logger.warning("Tug %s unsuitable for %s: %s", support.id, event.operation, ", ".join(check.violations))
            self._channel.emit(GroundVehicleUnavailable(event.vehicle_id))
            return

        support.reserve(event.vehicle_id)
        logger.info("Tug %s assigned to %s", support.id, event.vehicle_id)
        self._channel.emit(GroundVehicleAvailable(event.vehicle_id, support))

    def _on_start_pushback(self, event: StartPushback) -> None:
        support = self.get_vehicle(event.support_vehicle_id)
        vehicle = event.vehicle
        if support is None or support.assigned_to != vehicle.id:
            logger.warning("Tug %s not reserved for %s, pushback refused", event.support_vehicle_id, vehicle.id)
            self._channel.emit(GroundVehicleUnavailable(vehicle.id))
            return

        vehicle.is_being_towed = True
        pose = vehicle.pose()
        vehicle.apply_pose(pose.moved(position=pose.position + self._config.timing.pushback_offset))
        support.position = vehicle.position

        timeout_id = self._scheduler.set_timeout(
            lambda: self._complete_pushback(support.id), self._config.pushback_duration
        )
        self._jobs[support.id] = PushbackJob(support, vehicle, timeout_id)
        logger.info("Pushback of %s by %s started", vehicle.id, support.id)

    def _complete_pushback(self, support_id: str) -> None:
        job = self._jobs.pop(support_id, None)
        if job is None:
            return
        job.vehicle.is_being_towed = False
        job.support.release()
        logger.info("Pushback of %s by %s complete", job.vehicle.id, support_id)
        self._channel.emit(PushbackComplete(support_id, job.vehicle.id))

    def _on_release(self, event: GroundVehicleRelease) -> None:
        for support in self.vehicles:
            if support.assigned_to != event.vehicle_id:
                continue
            job = self._jobs.pop(support.id, None)
            if job is not None:
                self._scheduler.clear_timeout(job.timeout_id)
                job.vehicle.is_being_towed = False
            support.release()
            logger.info("Tug %s released from %s (%s)", support.id, event.vehicle_id, event.reason)

    def debug_info(self) -> dict[str, Any]:
        return {
            "vehicles": [
                {"id": v.id, "available": v.available, "assigned_to": v.assigned_to} for v in self.vehicles
            ],
            "active_pushbacks": sorted(self._jobs),
        }

    def dispose(self) -> None:
        for job in self._jobs.values():
            self._scheduler.clear_timeout(job.timeout_id)
            job.vehicle.is_being_towed = False
        self._jobs.clear()
        for support in self.vehicles:
            support.reset()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
