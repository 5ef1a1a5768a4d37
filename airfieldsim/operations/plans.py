"""Standard dispatch flight plans."""

from __future__ import annotations

from airfieldsim.geo import Vec3
from airfieldsim.types import VehicleType
from airfieldsim.unit import Millisecond
from airfieldsim.vehicles import Vehicle

from .flight import FlightPhase, FlightPlan


def fixed_wing_plan(vehicle: Vehicle) -> FlightPlan:
    """Taxi out, take off, fly a pattern around the field, land and taxi in."""
    max_speed = vehicle.specs.max_speed
    phases = (
        FlightPhase("taxi_to_runway"),
        FlightPhase("takeoff", Millisecond(12_000), Vec3(50.0, 30.0, 0.0), max_speed * 0.8),
        FlightPhase("climb", Millisecond(10_000), Vec3(150.0, 60.0, 100.0), max_speed),
        FlightPhase("cruise_out", Millisecond(15_000), Vec3(300.0, 80.0, 200.0), max_speed),
        FlightPhase("cruise_pattern", Millisecond(20_000), Vec3(200.0, 70.0, -200.0), max_speed * 0.9),
        FlightPhase("return_leg", Millisecond(12_000), Vec3(-100.0, 50.0, -100.0), max_speed * 0.8),
        FlightPhase("traffic_pattern", Millisecond(8_000), Vec3(150.0, 40.0, 50.0), max_speed * 0.6),
        FlightPhase("final_approach", Millisecond(8_000), Vec3(120.0, 30.0, 0.0), max_speed * 0.5),
        FlightPhase("landing"),
        FlightPhase("taxi_to_parking"),
    )
    return FlightPlan(vehicle.type, vehicle.position, phases)


def helicopter_plan(vehicle: Vehicle) -> FlightPlan:
    """Lift off vertically, patrol four sectors and settle back on the pad."""
    max_speed = vehicle.specs.max_speed
    start = vehicle.position
    phases = (
        FlightPhase("vertical_takeoff", Millisecond(6_000), start.with_(y=35.0), max_speed * 0.6),
        FlightPhase("departure", Millisecond(8_000), Vec3(0.0, 40.0, 0.0), max_speed * 0.8),
        FlightPhase("patrol_north", Millisecond(12_000), Vec3(150.0, 45.0, 150.0), max_speed),
        FlightPhase("patrol_east", Millisecond(10_000), Vec3(200.0, 40.0, -100.0), max_speed * 0.9),
        FlightPhase("patrol_south", Millisecond(12_000), Vec3(-100.0, 35.0, -200.0), max_speed * 0.8),
        FlightPhase("patrol_west", Millisecond(10_000), Vec3(-200.0, 40.0, 100.0), max_speed * 0.7),
        FlightPhase("return_approach", Millisecond(8_000), Vec3(start.x - 20.0, 25.0, start.z), max_speed * 0.6),
        FlightPhase("hover_approach", Millisecond(4_000), start.with_(y=15.0), 0.2),
        FlightPhase("vertical_landing", Millisecond(5_000), start, 0.1),
    )
    return FlightPlan(vehicle.type, start, phases)


def dispatch_plan(vehicle: Vehicle) -> FlightPlan:
    if vehicle.type is VehicleType.HELICOPTER or vehicle.is_vertical_takeoff:
        return helicopter_plan(vehicle)
    return fixed_wing_plan(vehicle)
