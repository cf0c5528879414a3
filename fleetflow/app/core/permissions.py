"""
Role capability table.

Which caller role may invoke which fleet operation. Kept as data plus
one pure lookup so transition logic never checks roles itself.
"""

import enum
from typing import Dict, FrozenSet

from fleetflow.app.models.enums import UserRole


class Operation(str, enum.Enum):
    """Operations exposed through the API."""
    VIEW_FLEET = "VIEW_FLEET"

    MANAGE_VEHICLES = "MANAGE_VEHICLES"
    SET_VEHICLE_STATUS = "SET_VEHICLE_STATUS"
    DELETE_VEHICLE = "DELETE_VEHICLE"

    MANAGE_DRIVERS = "MANAGE_DRIVERS"
    SET_DRIVER_STATUS = "SET_DRIVER_STATUS"
    DELETE_DRIVER = "DELETE_DRIVER"

    CREATE_TRIP = "CREATE_TRIP"
    DISPATCH_TRIP = "DISPATCH_TRIP"
    COMPLETE_TRIP = "COMPLETE_TRIP"
    CANCEL_TRIP = "CANCEL_TRIP"

    LOG_MAINTENANCE = "LOG_MAINTENANCE"
    RESOLVE_MAINTENANCE = "RESOLVE_MAINTENANCE"

    RECORD_FUEL = "RECORD_FUEL"
    DELETE_FUEL = "DELETE_FUEL"

    VIEW_COST_ANALYTICS = "VIEW_COST_ANALYTICS"
    VIEW_UTILIZATION = "VIEW_UTILIZATION"
    VIEW_DRIVER_PERFORMANCE = "VIEW_DRIVER_PERFORMANCE"
    MANAGE_USERS = "MANAGE_USERS"


_ALL_STAFF = frozenset({
    UserRole.ADMIN, UserRole.DISPATCHER, UserRole.SAFETY_OFFICER,
    UserRole.FINANCE_OFFICER, UserRole.DRIVER,
})

CAPABILITIES: Dict[Operation, FrozenSet[UserRole]] = {
    Operation.VIEW_FLEET: _ALL_STAFF,

    Operation.MANAGE_VEHICLES: frozenset({UserRole.ADMIN}),
    Operation.SET_VEHICLE_STATUS: frozenset({UserRole.ADMIN}),
    Operation.DELETE_VEHICLE: frozenset({UserRole.ADMIN}),

    Operation.MANAGE_DRIVERS: frozenset({UserRole.ADMIN, UserRole.SAFETY_OFFICER}),
    Operation.SET_DRIVER_STATUS: frozenset({UserRole.ADMIN, UserRole.SAFETY_OFFICER}),
    Operation.DELETE_DRIVER: frozenset({UserRole.ADMIN}),

    Operation.CREATE_TRIP: frozenset({UserRole.ADMIN, UserRole.DISPATCHER}),
    Operation.DISPATCH_TRIP: frozenset({UserRole.ADMIN, UserRole.DISPATCHER}),
    # drivers may complete, but only their own trips (checked at the endpoint)
    Operation.COMPLETE_TRIP: frozenset({UserRole.ADMIN, UserRole.DISPATCHER, UserRole.DRIVER}),
    Operation.CANCEL_TRIP: frozenset({UserRole.ADMIN, UserRole.DISPATCHER}),

    Operation.LOG_MAINTENANCE: frozenset({UserRole.ADMIN}),
    Operation.RESOLVE_MAINTENANCE: frozenset({UserRole.ADMIN}),

    Operation.RECORD_FUEL: frozenset({UserRole.ADMIN, UserRole.DISPATCHER, UserRole.FINANCE_OFFICER}),
    Operation.DELETE_FUEL: frozenset({UserRole.ADMIN, UserRole.FINANCE_OFFICER}),

    Operation.VIEW_COST_ANALYTICS: frozenset({UserRole.ADMIN, UserRole.FINANCE_OFFICER}),
    Operation.VIEW_UTILIZATION: frozenset({UserRole.ADMIN, UserRole.DISPATCHER, UserRole.FINANCE_OFFICER}),
    Operation.VIEW_DRIVER_PERFORMANCE: frozenset({UserRole.ADMIN, UserRole.SAFETY_OFFICER}),
    Operation.MANAGE_USERS: frozenset({UserRole.ADMIN}),
}


def is_allowed(role: UserRole, operation: Operation) -> bool:
    """Return True if `role` may perform `operation`. Unknown operations are denied."""
    return role in CAPABILITIES.get(operation, frozenset())
