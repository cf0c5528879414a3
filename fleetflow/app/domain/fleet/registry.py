"""
Fleet Registry.

Administrative reads and writes that never touch a status field:
registering vehicles and drivers, editing their attributes, listing
trips and logs, and the append-only fuel log.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from fleetflow.app.db.unit_of_work import UnitOfWork
from fleetflow.app.domain.fleet.errors import NotFoundError, UnprocessableEntityError
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus, TripStatus
from fleetflow.app.models.fuel_log import FuelLog
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

# Columns an update payload may touch. Status is owned by FleetCoordinator.
VEHICLE_FIELDS = frozenset({
    "name", "model", "license_plate", "vehicle_type", "region",
    "max_capacity_kg", "odometer_km", "acquisition_cost",
})
DRIVER_FIELDS = frozenset({
    "name", "phone", "license_number", "license_category", "license_expiry", "safety_score",
})
MAINTENANCE_FIELDS = frozenset({
    "service_type", "description", "cost", "vendor", "service_date", "odometer_at_service",
})


def _apply(entity, changes: Dict[str, Any], allowed: frozenset) -> List[str]:
    updated = []
    for field, value in changes.items():
        if field in allowed:
            setattr(entity, field, value)
            updated.append(field)
    return updated


class FleetRegistry:
    """CRUD over fleet records, run through the same unit of work."""

    def __init__(self, session_factory: async_sessionmaker, today: Callable[[], date] = date.today):
        self._session_factory = session_factory
        self._today = today

    def _unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory)

    async def _get(self, model, entity_id: int, resource: str):
        async with self._unit_of_work() as uow:
            entity = await uow.get(model, entity_id)
        if entity is None:
            raise NotFoundError(resource, entity_id)
        return entity

    async def _list(self, statement) -> list:
        async with self._unit_of_work() as uow:
            result = await uow.session.execute(statement)
            return list(result.scalars().all())

    # Vehicles

    async def create_vehicle(self, data: Dict[str, Any], created_by: Optional[int] = None) -> Vehicle:
        vehicle = Vehicle(created_by=created_by, status=VehicleStatus.AVAILABLE)
        _apply(vehicle, data, VEHICLE_FIELDS)
        async with self._unit_of_work() as uow:
            uow.add(vehicle)
            await uow.flush()
        logger.info("Vehicle %s registered (%s)", vehicle.id, vehicle.license_plate)
        return vehicle

    async def update_vehicle(self, vehicle_id: int, changes: Dict[str, Any]) -> Vehicle:
        async with self._unit_of_work() as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            _apply(vehicle, changes, VEHICLE_FIELDS)
            await uow.flush()
        return vehicle

    async def get_vehicle(self, vehicle_id: int) -> Vehicle:
        return await self._get(Vehicle, vehicle_id, "Vehicle")

    async def list_vehicles(
        self,
        status: Optional[VehicleStatus] = None,
        vehicle_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[Vehicle]:
        query = select(Vehicle)
        if status:
            query = query.where(Vehicle.status == status)
        if vehicle_type:
            query = query.where(Vehicle.vehicle_type == vehicle_type)
        if region:
            query = query.where(Vehicle.region.ilike(f"%{region}%"))
        return await self._list(query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()))

    # Drivers

    async def create_driver(self, data: Dict[str, Any], created_by: Optional[int] = None) -> Driver:
        driver = Driver(created_by=created_by, status=DriverStatus.AVAILABLE, trips_completed=0)
        _apply(driver, data, DRIVER_FIELDS)
        if driver.license_category:
            driver.license_category = driver.license_category.upper()
        async with self._unit_of_work() as uow:
            uow.add(driver)
            await uow.flush()
        logger.info("Driver %s registered (%s)", driver.id, driver.license_number)
        return driver

    async def update_driver(self, driver_id: int, changes: Dict[str, Any]) -> Driver:
        if changes.get("license_category"):
            changes = {**changes, "license_category": changes["license_category"].upper()}
        async with self._unit_of_work() as uow:
            driver = await uow.get_for_update(Driver, driver_id, "Driver")
            _apply(driver, changes, DRIVER_FIELDS)
            await uow.flush()
        return driver

    async def get_driver(self, driver_id: int) -> Driver:
        return await self._get(Driver, driver_id, "Driver")

    async def list_drivers(self, status: Optional[DriverStatus] = None) -> List[Driver]:
        query = select(Driver)
        if status:
            query = query.where(Driver.status == status)
        return await self._list(query.order_by(Driver.created_at.desc(), Driver.id.desc()))

    # Trips (read-only here, transitions live in FleetCoordinator)

    async def get_trip(self, trip_id: int) -> Trip:
        return await self._get(Trip, trip_id, "Trip")

    async def list_trips(
        self,
        status: Optional[TripStatus] = None,
        vehicle_id: Optional[int] = None,
        driver_id: Optional[int] = None,
    ) -> List[Trip]:
        query = select(Trip)
        if status:
            query = query.where(Trip.status == status)
        if vehicle_id:
            query = query.where(Trip.vehicle_id == vehicle_id)
        if driver_id:
            query = query.where(Trip.driver_id == driver_id)
        return await self._list(query.order_by(Trip.created_at.desc(), Trip.id.desc()))

    # Maintenance

    async def get_maintenance_log(self, log_id: int) -> MaintenanceLog:
        return await self._get(MaintenanceLog, log_id, "Maintenance log")

    async def list_maintenance_logs(
        self,
        vehicle_id: Optional[int] = None,
        resolved: Optional[bool] = None,
    ) -> List[MaintenanceLog]:
        query = select(MaintenanceLog)
        if vehicle_id:
            query = query.where(MaintenanceLog.vehicle_id == vehicle_id)
        if resolved is True:
            query = query.where(MaintenanceLog.resolved_at.is_not(None))
        elif resolved is False:
            query = query.where(MaintenanceLog.resolved_at.is_(None))
        return await self._list(
            query.order_by(MaintenanceLog.service_date.desc(), MaintenanceLog.id.desc())
        )

    async def update_maintenance_log(self, log_id: int, changes: Dict[str, Any]) -> MaintenanceLog:
        async with self._unit_of_work() as uow:
            log = await uow.get_for_update(MaintenanceLog, log_id, "Maintenance log")
            _apply(log, changes, MAINTENANCE_FIELDS)
            await uow.flush()
        return log

    # Fuel

    async def record_fuel(
        self,
        vehicle_id: int,
        liters: float,
        cost_per_liter: float,
        trip_id: Optional[int] = None,
        odometer_at_fill: Optional[float] = None,
        fuel_date: Optional[date] = None,
        logged_by: Optional[int] = None,
    ) -> FuelLog:
        """Append a fuel log. total_cost is derived, never supplied."""
        async with self._unit_of_work() as uow:
            vehicle = await uow.get(Vehicle, vehicle_id)
            if vehicle is None:
                raise NotFoundError("Vehicle", vehicle_id)
            if trip_id is not None:
                trip = await uow.get(Trip, trip_id)
                if trip is None:
                    raise NotFoundError("Trip", trip_id)
                if trip.vehicle_id != vehicle_id:
                    raise UnprocessableEntityError(
                        "Trip does not belong to this vehicle",
                        {"trip_id": trip_id, "vehicle_id": vehicle_id}
                    )

            fuel_log = FuelLog(
                vehicle_id=vehicle_id,
                trip_id=trip_id,
                liters=liters,
                cost_per_liter=cost_per_liter,
                total_cost=round(liters * cost_per_liter, 2),
                odometer_at_fill=odometer_at_fill,
                fuel_date=fuel_date or self._today(),
                logged_by=logged_by,
            )
            uow.add(fuel_log)
            await uow.flush()
        return fuel_log

    async def get_fuel_log(self, fuel_log_id: int) -> FuelLog:
        return await self._get(FuelLog, fuel_log_id, "Fuel log")

    async def list_fuel_logs(self, vehicle_id: Optional[int] = None) -> List[FuelLog]:
        query = select(FuelLog)
        if vehicle_id:
            query = query.where(FuelLog.vehicle_id == vehicle_id)
        return await self._list(query.order_by(FuelLog.fuel_date.desc(), FuelLog.id.desc()))

    async def delete_fuel_log(self, fuel_log_id: int) -> None:
        async with self._unit_of_work() as uow:
            await uow.get_for_update(FuelLog, fuel_log_id, "Fuel log")
            await uow.delete(FuelLog, fuel_log_id)
