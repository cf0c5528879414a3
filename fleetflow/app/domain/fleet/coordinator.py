"""
Fleet Resource Coordinator (Domain Logic).

Owns the status of vehicles, drivers, trips and maintenance logs. Every
operation that changes more than one of them runs as a single unit of
work: lock the affected rows (vehicle before driver), validate, write,
commit. A failed precondition aborts with nothing written.
"""

import logging
from datetime import date
from typing import Callable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from fleetflow.app.db.session import utcnow
from fleetflow.app.db.unit_of_work import UnitOfWork, count_of
from fleetflow.app.domain.fleet import rules
from fleetflow.app.domain.fleet.errors import ConflictError, NotFoundError
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus, TripStatus
from fleetflow.app.models.fuel_log import FuelLog
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


def make_trip_code(trip_id: int, created: date) -> str:
    """Human-readable trip code, e.g. TRIP-20260301-0042."""
    return f"TRIP-{created.strftime('%Y%m%d')}-{trip_id:04d}"


class FleetCoordinator:
    """
    Stateless between calls: holds only the session factory and a clock.

    Args:
        session_factory: Factory producing sessions bound to the store
        today: Returns the current date; license checks use it at call time
    """

    def __init__(self, session_factory: async_sessionmaker, today: Callable[[], date] = date.today):
        self._session_factory = session_factory
        self._today = today

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    # ------------------------------------------------------------------
    # Trip lifecycle
    # ------------------------------------------------------------------

    async def create_trip(
        self,
        vehicle_id: int,
        driver_id: int,
        origin: str,
        destination: str,
        cargo_weight_kg: float,
        cargo_description: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> Trip:
        """
        Create a DRAFT trip.

        Validates (in order):
        - Vehicle exists and is AVAILABLE
        - Cargo weight fits the vehicle capacity
        - Driver exists and is AVAILABLE
        - Driver license not expired

        Vehicle and driver are not claimed until dispatch.
        """
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            rules.ensure_vehicle_available(vehicle)
            rules.ensure_within_capacity(vehicle, cargo_weight_kg)

            driver = await uow.get_for_update(Driver, driver_id, "Driver")
            rules.ensure_driver_available(driver)
            rules.ensure_license_valid(driver, self._today())

            trip = Trip(
                vehicle_id=vehicle.id,
                driver_id=driver.id,
                origin=origin,
                destination=destination,
                cargo_description=cargo_description,
                cargo_weight_kg=cargo_weight_kg,
                notes=notes,
                status=TripStatus.DRAFT,
                created_by=created_by,
            )
            uow.add(trip)
            await uow.flush()
            trip.trip_code = make_trip_code(trip.id, trip.created_at)

        logger.info("Trip %s created as DRAFT (vehicle=%s, driver=%s)", trip.id, vehicle_id, driver_id)
        return trip

    async def dispatch_trip(self, trip_id: int, start_odometer: Optional[float] = None) -> Trip:
        """
        Dispatch a DRAFT trip, claiming its vehicle and driver.

        Availability and license are re-validated against the current rows,
        not the state seen at creation.
        """
        async with self._unit_of_work() as uow:
            trip = await uow.get_for_update(Trip, trip_id, "Trip")
            rules.ensure_trip_status(trip, [TripStatus.DRAFT], "dispatched")

            vehicle = await uow.get_for_update(Vehicle, trip.vehicle_id, "Vehicle")
            rules.ensure_vehicle_available(vehicle)

            driver = await uow.get_for_update(Driver, trip.driver_id, "Driver")
            rules.ensure_driver_available(driver)
            rules.ensure_license_valid(driver, self._today())

            # conditional claims: a zero row count means another dispatch won
            if not await uow.compare_and_set_status(
                Vehicle, vehicle.id, VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP
            ):
                raise ConflictError("Vehicle was claimed by another trip", {"vehicle_id": vehicle.id})
            if not await uow.compare_and_set_status(
                Driver, driver.id, DriverStatus.AVAILABLE, DriverStatus.ON_TRIP
            ):
                raise ConflictError("Driver was claimed by another trip", {"driver_id": driver.id})

            trip.status = TripStatus.DISPATCHED
            trip.dispatched_at = utcnow()
            trip.start_odometer = start_odometer if start_odometer is not None else vehicle.odometer_km
            await uow.flush()

        logger.info("Trip %s dispatched (vehicle=%s, driver=%s)", trip.id, trip.vehicle_id, trip.driver_id)
        return trip

    async def complete_trip(
        self,
        trip_id: int,
        end_odometer: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Trip:
        """Complete a DISPATCHED trip and release its vehicle and driver."""
        async with self._unit_of_work() as uow:
            trip = await uow.get_for_update(Trip, trip_id, "Trip")
            rules.ensure_trip_status(trip, [TripStatus.DISPATCHED], "completed")
            rules.ensure_odometer_forward(trip, end_odometer)

            vehicle = await uow.get_for_update(Vehicle, trip.vehicle_id, "Vehicle")
            driver = await uow.get_for_update(Driver, trip.driver_id, "Driver")

            trip.status = TripStatus.COMPLETED
            trip.completed_at = utcnow()
            if end_odometer is not None:
                trip.end_odometer = end_odometer
                vehicle.odometer_km = end_odometer
            if notes is not None:
                trip.notes = notes

            vehicle.status = VehicleStatus.AVAILABLE
            driver.status = DriverStatus.AVAILABLE
            driver.trips_completed = (driver.trips_completed or 0) + 1
            await uow.flush()

        logger.info("Trip %s completed, vehicle %s and driver %s released",
                    trip.id, trip.vehicle_id, trip.driver_id)
        return trip

    async def cancel_trip(self, trip_id: int) -> Trip:
        """
        Cancel a DRAFT or DISPATCHED trip.

        Only a DISPATCHED trip holds resources, so only then are the vehicle
        and driver released.
        """
        async with self._unit_of_work() as uow:
            trip = await uow.get_for_update(Trip, trip_id, "Trip")
            rules.ensure_trip_status(trip, [TripStatus.DRAFT, TripStatus.DISPATCHED], "cancelled")
            was_dispatched = trip.status == TripStatus.DISPATCHED

            if was_dispatched:
                vehicle = await uow.get_for_update(Vehicle, trip.vehicle_id, "Vehicle")
                driver = await uow.get_for_update(Driver, trip.driver_id, "Driver")
                vehicle.status = VehicleStatus.AVAILABLE
                driver.status = DriverStatus.AVAILABLE

            trip.status = TripStatus.CANCELLED
            trip.cancelled_at = utcnow()
            await uow.flush()

        logger.info("Trip %s cancelled (released resources: %s)", trip.id, was_dispatched)
        return trip

    # ------------------------------------------------------------------
    # Maintenance lifecycle
    # ------------------------------------------------------------------

    async def log_maintenance(
        self,
        vehicle_id: int,
        description: str,
        cost: float = 0,
        service_type: Optional[str] = None,
        vendor: Optional[str] = None,
        service_date: Optional[date] = None,
        odometer_at_service: Optional[float] = None,
        logged_by: Optional[int] = None,
    ) -> MaintenanceLog:
        """Open a maintenance log and force the vehicle IN_SHOP."""
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            if vehicle.status == VehicleStatus.ON_TRIP:
                raise ConflictError(
                    "Cannot log maintenance for a vehicle that is currently ON_TRIP",
                    {"vehicle_id": vehicle.id, "status": vehicle.status.value}
                )

            log = MaintenanceLog(
                vehicle_id=vehicle.id,
                description=description,
                cost=cost,
                service_type=service_type,
                vendor=vendor,
                service_date=service_date or self._today(),
                odometer_at_service=odometer_at_service,
                logged_by=logged_by,
            )
            uow.add(log)
            vehicle.status = VehicleStatus.IN_SHOP
            await uow.flush()

        logger.info("Maintenance %s logged, vehicle %s now IN_SHOP", log.id, vehicle_id)
        return log

    async def resolve_maintenance(self, log_id: int) -> Tuple[MaintenanceLog, Vehicle]:
        """
        Resolve one maintenance log.

        The vehicle returns to AVAILABLE only if it is IN_SHOP and no other
        unresolved log remains for it.
        """
        async with self._unit_of_work() as uow:
            # vehicle is locked before the log, same order as log_maintenance
            peek = await uow.get(MaintenanceLog, log_id)
            if peek is None:
                raise NotFoundError("Maintenance log", log_id)
            vehicle = await uow.get_for_update(Vehicle, peek.vehicle_id, "Vehicle")
            log = await uow.get_for_update(MaintenanceLog, log_id, "Maintenance log")

            if log.is_resolved:
                raise ConflictError("Maintenance log is already resolved", {"log_id": log.id})

            open_others = await uow.count(
                count_of(MaintenanceLog).where(
                    MaintenanceLog.vehicle_id == vehicle.id,
                    MaintenanceLog.id != log.id,
                    MaintenanceLog.resolved_at.is_(None),
                )
            )

            log.resolved_at = utcnow()
            if open_others == 0 and vehicle.status == VehicleStatus.IN_SHOP:
                vehicle.status = VehicleStatus.AVAILABLE
            await uow.flush()

        logger.info("Maintenance %s resolved, vehicle %s is %s (%d open logs remain)",
                    log.id, vehicle.id, vehicle.status.value, open_others)
        return log, vehicle

    async def release_vehicle(self, vehicle_id: int) -> Tuple[Vehicle, int]:
        """
        Release an IN_SHOP vehicle: resolve all its open logs, set AVAILABLE.

        Returns the vehicle and the number of logs resolved.
        """
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            if vehicle.status != VehicleStatus.IN_SHOP:
                raise ConflictError(
                    f"Only IN_SHOP vehicles can be released. Current status: {vehicle.status.value}",
                    {"vehicle_id": vehicle.id, "status": vehicle.status.value}
                )

            open_logs = await uow.select_for_update(
                select(MaintenanceLog).where(
                    MaintenanceLog.vehicle_id == vehicle.id,
                    MaintenanceLog.resolved_at.is_(None),
                )
            )
            resolved_at = utcnow()
            for log in open_logs:
                log.resolved_at = resolved_at

            vehicle.status = VehicleStatus.AVAILABLE
            await uow.flush()

        logger.info("Vehicle %s released from shop, %d logs resolved", vehicle_id, len(open_logs))
        return vehicle, len(open_logs)

    # ------------------------------------------------------------------
    # Administrative overrides
    # ------------------------------------------------------------------

    async def set_vehicle_status(self, vehicle_id: int, status: VehicleStatus) -> Vehicle:
        """Direct status write. ON_TRIP can neither be set nor overridden."""
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            rules.ensure_manual_status("vehicle", vehicle.status, status)
            vehicle.status = status
            await uow.flush()

        logger.info("Vehicle %s status set to %s", vehicle_id, status.value)
        return vehicle

    async def set_driver_status(self, driver_id: int, status: DriverStatus) -> Driver:
        async with self._unit_of_work() as uow:
            driver = await uow.get_for_update(Driver, driver_id, "Driver")
            rules.ensure_manual_status("driver", driver.status, status)
            driver.status = status
            await uow.flush()

        logger.info("Driver %s status set to %s", driver_id, status.value)
        return driver

    async def delete_vehicle(self, vehicle_id: int) -> None:
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            rules.ensure_not_on_trip("vehicle", vehicle.id, vehicle.status)
            rules.ensure_no_history("vehicle", vehicle.id, {
                "trips": await uow.count(count_of(Trip).where(Trip.vehicle_id == vehicle.id)),
                "maintenance_logs": await uow.count(
                    count_of(MaintenanceLog).where(MaintenanceLog.vehicle_id == vehicle.id)
                ),
                "fuel_logs": await uow.count(count_of(FuelLog).where(FuelLog.vehicle_id == vehicle.id)),
            })
            await uow.delete(Vehicle, vehicle.id)

        logger.info("Vehicle %s deleted", vehicle_id)

    async def delete_driver(self, driver_id: int) -> None:
        async with self._unit_of_work() as uow:
            driver = await uow.get_for_update(Driver, driver_id, "Driver")
            rules.ensure_not_on_trip("driver", driver.id, driver.status)
            rules.ensure_no_history("driver", driver.id, {
                "trips": await uow.count(count_of(Trip).where(Trip.driver_id == driver.id)),
            })
            await uow.delete(Driver, driver.id)

        logger.info("Driver %s deleted", driver_id)
