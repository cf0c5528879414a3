"""
Precondition checks for fleet transitions.

Pure functions over already-loaded rows. Each raises a CoordinatorError
subclass when the precondition fails and returns None otherwise.
"""

from datetime import date
from typing import Dict, Iterable

from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus, TripStatus
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.domain.fleet.errors import (
    BadRequestError, ConflictError, UnprocessableEntityError
)


def ensure_vehicle_available(vehicle: Vehicle) -> None:
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise ConflictError(
            f"Vehicle is not available. Current status: {vehicle.status.value}",
            {"vehicle_id": vehicle.id, "status": vehicle.status.value}
        )


def ensure_within_capacity(vehicle: Vehicle, cargo_weight_kg: float) -> None:
    if cargo_weight_kg > vehicle.max_capacity_kg:
        raise UnprocessableEntityError(
            f"Cargo weight ({cargo_weight_kg} kg) exceeds vehicle max capacity "
            f"({vehicle.max_capacity_kg} kg)",
            {"vehicle_id": vehicle.id, "cargo_weight_kg": cargo_weight_kg,
             "max_capacity_kg": vehicle.max_capacity_kg}
        )


def ensure_driver_available(driver: Driver) -> None:
    if driver.status == DriverStatus.SUSPENDED:
        raise ConflictError(
            "Driver is suspended and cannot be assigned",
            {"driver_id": driver.id, "status": driver.status.value}
        )
    if driver.status != DriverStatus.AVAILABLE:
        raise ConflictError(
            f"Driver is not available. Current status: {driver.status.value}",
            {"driver_id": driver.id, "status": driver.status.value}
        )


def ensure_license_valid(driver: Driver, today: date) -> None:
    # valid through the expiry date itself
    if driver.license_expiry < today:
        raise UnprocessableEntityError(
            f"Driver license expired on {driver.license_expiry.isoformat()}",
            {"driver_id": driver.id, "license_expiry": driver.license_expiry.isoformat()}
        )


def ensure_trip_status(trip: Trip, allowed: Iterable[TripStatus], action: str) -> None:
    allowed = tuple(allowed)
    if trip.status not in allowed:
        raise ConflictError(
            f"Trip cannot be {action}. Current status: {trip.status.value}",
            {"trip_id": trip.id, "status": trip.status.value,
             "allowed": [s.value for s in allowed]}
        )


def ensure_odometer_forward(trip: Trip, end_odometer) -> None:
    if end_odometer is None or trip.start_odometer is None:
        return
    if end_odometer < trip.start_odometer:
        raise UnprocessableEntityError(
            "End odometer cannot be less than start odometer",
            {"trip_id": trip.id, "start_odometer": trip.start_odometer,
             "end_odometer": end_odometer}
        )


def ensure_manual_status(entity_name: str, current, target) -> None:
    """
    Administrative status override rules, shared by vehicles and drivers.

    ON_TRIP is only reachable through dispatch, and a row held by a
    dispatched trip cannot be overridden.
    """
    if target.value == "ON_TRIP":
        raise BadRequestError(
            f"Cannot manually set {entity_name} status to ON_TRIP. Dispatch a trip instead.",
            {"status": target.value}
        )
    if current.value == "ON_TRIP":
        raise ConflictError(
            f"Cannot change status of a {entity_name} that is currently ON_TRIP",
            {"status": current.value}
        )


def ensure_not_on_trip(entity_name: str, entity_id: int, current) -> None:
    if current.value == "ON_TRIP":
        raise ConflictError(
            f"Cannot delete a {entity_name} that is currently ON_TRIP",
            {"id": entity_id, "status": current.value}
        )


def ensure_no_history(entity_name: str, entity_id: int, references: Dict[str, int]) -> None:
    """Trips, maintenance and fuel logs outlive deletes, so a row they reference stays."""
    held = {name: count for name, count in references.items() if count}
    if held:
        raise ConflictError(
            f"Cannot delete a {entity_name} with recorded history",
            {"id": entity_id, **held}
        )
