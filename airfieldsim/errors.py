"""
Airfield Operation Exceptions
Error types raised or reported by the orchestration layer
"""

from collections.abc import Iterable


class AirfieldError(Exception):
    """Base class for all airfield orchestration errors"""
    pass


class ValidationFailure(AirfieldError):
    """Operation preconditions are not met"""
    def __init__(self, violations: Iterable[str], message="Validation failed"):
        self.violations = list(violations)
        super().__init__(f"{message}: {', '.join(self.violations)}" if self.violations else message)


class InvalidTransition(AirfieldError, ValueError):
    """State machine received a transition outside its table"""
    def __init__(self, source, target, message="Illegal transition"):
        self.source = source
        self.target = target
        super().__init__(f"{message} {getattr(source, 'name', source)} → {getattr(target, 'name', target)}")


class OperationTimeout(AirfieldError):
    """Operation exceeded its configured time budget"""
    def __init__(self, operation, budget, message="Operation timed out"):
        self.operation = operation
        self.budget = budget
        super().__init__(f"{message}: {operation} after {budget}")


class ResourceUnavailable(AirfieldError):
    """A contended resource (tug, runway) could not be reserved"""
    def __init__(self, resource, message="Resource unavailable"):
        self.resource = resource
        super().__init__(f"{message}: {resource}")


class OperationInProgress(AirfieldError):
    """Vehicle already has an active operation of this kind"""
    def __init__(self, vehicle_id, operation, message="Operation already in progress"):
        self.vehicle_id = vehicle_id
        self.operation = operation
        super().__init__(f"{message}: {operation} for {vehicle_id}")


class OperationCancelled(AirfieldError):
    """Operation was terminated before completion"""
    def __init__(self, vehicle_id, reason, message="Operation cancelled"):
        self.vehicle_id = vehicle_id
        self.reason = reason
        super().__init__(f"{message} for {vehicle_id}: {reason}")


class RouteNotFound(AirfieldError):
    """No taxi route is configured for a vehicle type and direction"""
    def __init__(self, vehicle_type, direction, message="No route configured"):
        self.vehicle_type = vehicle_type
        self.direction = direction
        super().__init__(f"{message} for {vehicle_type} ({direction})")


class ConfigurationError(AirfieldError):
    """Invalid or unknown configuration entry"""
    def __init__(self, config_name, message="Configuration error"):
        self.config_name = config_name
        super().__init__(f"{message}: {config_name}")
