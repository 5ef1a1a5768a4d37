from .ground_support import GroundSupportVehicle
from .vehicle import Vehicle

__all__ = ["GroundSupportVehicle", "Vehicle"]
