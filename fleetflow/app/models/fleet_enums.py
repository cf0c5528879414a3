"""
Fleet status enumerations.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "AVAILABLE"
    ON_TRIP = "ON_TRIP"  # Held by exactly one DISPATCHED trip
    IN_SHOP = "IN_SHOP"  # Has unresolved maintenance
    RETIRED = "RETIRED"


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    AVAILABLE = "AVAILABLE"
    ON_TRIP = "ON_TRIP"  # Assigned to exactly one DISPATCHED trip
    SUSPENDED = "SUSPENDED"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "DRAFT"  # Created, vehicle and driver not yet claimed
    DISPATCHED = "DISPATCHED"  # Holding its vehicle and driver
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

