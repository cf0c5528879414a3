"""
Trip lifecycle tests against the coordinator.

Covers creation checks, dispatch re-validation, completion and
cancellation, and that rejected operations leave nothing behind.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from fleetflow.app.domain.fleet.coordinator import FleetCoordinator, make_trip_code
from fleetflow.app.domain.fleet.errors import (
    ConflictError, NotFoundError, UnprocessableEntityError
)
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus, TripStatus
from fleetflow.app.models.trip import Trip


async def _trip_rows(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(Trip))
        return result.scalars().all()


@pytest.mark.asyncio
async def test_create_trip_is_draft_and_claims_nothing(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()

    trip = await coordinator.create_trip(vehicle.id, driver.id, "Pune", "Mumbai", 400)

    assert trip.status == TripStatus.DRAFT
    assert trip.trip_code.startswith("TRIP-")
    assert trip.trip_code.endswith(f"-{trip.id:04d}")
    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.AVAILABLE
    assert (await registry.get_driver(driver.id)).status == DriverStatus.AVAILABLE


def test_trip_code_format(today):
    assert make_trip_code(42, today) == "TRIP-20260301-0042"


@pytest.mark.asyncio
async def test_cargo_over_capacity_is_rejected(coordinator, session_factory, make_vehicle, make_driver):
    vehicle = await make_vehicle(max_capacity_kg=500)
    driver = await make_driver()

    with pytest.raises(UnprocessableEntityError):
        await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 600)

    assert await _trip_rows(session_factory) == []

    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 500)
    assert trip.cargo_weight_kg == 500


@pytest.mark.asyncio
async def test_expired_license_blocks_creation(coordinator, session_factory, make_vehicle, make_driver, today):
    vehicle = await make_vehicle()
    driver = await make_driver(license_expiry=today - timedelta(days=1))

    with pytest.raises(UnprocessableEntityError) as exc_info:
        await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)

    assert "license expired" in exc_info.value.message
    assert await _trip_rows(session_factory) == []


@pytest.mark.asyncio
async def test_license_expiring_after_creation_blocks_dispatch(session_factory, make_vehicle, make_driver, today):
    vehicle = await make_vehicle()
    driver = await make_driver(license_expiry=today)

    creating = FleetCoordinator(session_factory, today=lambda: today)
    trip = await creating.create_trip(vehicle.id, driver.id, "A", "B", 100)

    next_day = FleetCoordinator(session_factory, today=lambda: today + timedelta(days=1))
    with pytest.raises(UnprocessableEntityError):
        await next_day.dispatch_trip(trip.id)

    async with session_factory() as session:
        stored = await session.get(Trip, trip.id)
        assert stored.status == TripStatus.DRAFT


@pytest.mark.asyncio
async def test_unknown_vehicle_or_driver_is_not_found(coordinator, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()

    with pytest.raises(NotFoundError):
        await coordinator.create_trip(9999, driver.id, "A", "B", 1)
    with pytest.raises(NotFoundError):
        await coordinator.create_trip(vehicle.id, 9999, "A", "B", 1)
    with pytest.raises(NotFoundError):
        await coordinator.dispatch_trip(9999)


@pytest.mark.asyncio
async def test_suspended_driver_cannot_be_assigned(coordinator, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    await coordinator.set_driver_status(driver.id, DriverStatus.SUSPENDED)

    with pytest.raises(ConflictError):
        await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)


@pytest.mark.asyncio
async def test_dispatch_then_complete_releases_everything(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer_km=10000)
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "Pune", "Nashik", 300)

    dispatched = await coordinator.dispatch_trip(trip.id)
    assert dispatched.status == TripStatus.DISPATCHED
    assert dispatched.start_odometer == 10000
    assert dispatched.dispatched_at is not None
    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.ON_TRIP
    assert (await registry.get_driver(driver.id)).status == DriverStatus.ON_TRIP

    completed = await coordinator.complete_trip(trip.id, end_odometer=10210, notes="on time")
    assert completed.status == TripStatus.COMPLETED
    assert completed.end_odometer == 10210
    assert completed.notes == "on time"

    vehicle = await registry.get_vehicle(vehicle.id)
    driver = await registry.get_driver(driver.id)
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.odometer_km == 10210
    assert driver.status == DriverStatus.AVAILABLE
    assert driver.trips_completed == 1


@pytest.mark.asyncio
async def test_end_odometer_below_start_is_rejected(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id, start_odometer=5000)

    with pytest.raises(UnprocessableEntityError):
        await coordinator.complete_trip(trip.id, end_odometer=4999)

    assert (await registry.get_trip(trip.id)).status == TripStatus.DISPATCHED
    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.ON_TRIP


@pytest.mark.asyncio
async def test_cancel_draft_leaves_resources_untouched(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)

    # someone else takes the vehicle to the shop meanwhile
    await coordinator.log_maintenance(vehicle.id, "brake check")

    cancelled = await coordinator.cancel_trip(trip.id)
    assert cancelled.status == TripStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.IN_SHOP


@pytest.mark.asyncio
async def test_cancel_dispatched_releases_resources(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)

    await coordinator.cancel_trip(trip.id)

    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.AVAILABLE
    assert (await registry.get_driver(driver.id)).status == DriverStatus.AVAILABLE
    assert (await registry.get_driver(driver.id)).trips_completed == 0


@pytest.mark.asyncio
async def test_terminal_trips_are_immutable(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()

    done = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(done.id)
    await coordinator.complete_trip(done.id)

    dropped = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.cancel_trip(dropped.id)

    for trip_id in (done.id, dropped.id):
        with pytest.raises(ConflictError):
            await coordinator.dispatch_trip(trip_id)
        with pytest.raises(ConflictError):
            await coordinator.complete_trip(trip_id)
        with pytest.raises(ConflictError):
            await coordinator.cancel_trip(trip_id)

    assert (await registry.get_trip(done.id)).status == TripStatus.COMPLETED
    assert (await registry.get_trip(dropped.id)).status == TripStatus.CANCELLED
    assert (await registry.get_driver(driver.id)).trips_completed == 1


@pytest.mark.asyncio
async def test_draft_cannot_be_completed(coordinator, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)

    with pytest.raises(ConflictError):
        await coordinator.complete_trip(trip.id)


@pytest.mark.asyncio
async def test_dispatch_revalidates_vehicle_availability(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)

    await coordinator.set_vehicle_status(vehicle.id, VehicleStatus.RETIRED)

    with pytest.raises(ConflictError):
        await coordinator.dispatch_trip(trip.id)
    assert (await registry.get_driver(driver.id)).status == DriverStatus.AVAILABLE
