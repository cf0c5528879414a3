"""
Maintenance lifecycle tests.

Opening a log sends a vehicle IN_SHOP; the vehicle comes back only when
no unresolved log remains.
"""

import pytest

from fleetflow.app.domain.fleet.errors import ConflictError, NotFoundError
from fleetflow.app.models.fleet_enums import VehicleStatus


@pytest.mark.asyncio
async def test_log_maintenance_sends_vehicle_to_shop(coordinator, registry, make_vehicle, today):
    vehicle = await make_vehicle()

    log = await coordinator.log_maintenance(vehicle.id, "oil change", cost=120.5, service_type="OIL_CHANGE")

    assert log.resolved_at is None
    assert log.service_date == today
    assert (await registry.get_vehicle(vehicle.id)).status == VehicleStatus.IN_SHOP


@pytest.mark.asyncio
async def test_in_shop_vehicle_cannot_start_trips(coordinator, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    await coordinator.log_maintenance(vehicle.id, "tyres")

    with pytest.raises(ConflictError):
        await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)


@pytest.mark.asyncio
async def test_on_trip_vehicle_cannot_be_logged(coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)

    with pytest.raises(ConflictError):
        await coordinator.log_maintenance(vehicle.id, "noise")

    assert await registry.list_maintenance_logs(vehicle_id=vehicle.id) == []


@pytest.mark.asyncio
async def test_vehicle_stays_in_shop_until_last_log_resolved(coordinator, registry, make_vehicle):
    vehicle = await make_vehicle()
    first = await coordinator.log_maintenance(vehicle.id, "brakes")
    second = await coordinator.log_maintenance(vehicle.id, "clutch")

    log, vehicle_after = await coordinator.resolve_maintenance(first.id)
    assert log.is_resolved
    assert vehicle_after.status == VehicleStatus.IN_SHOP

    log, vehicle_after = await coordinator.resolve_maintenance(second.id)
    assert vehicle_after.status == VehicleStatus.AVAILABLE
    assert await registry.list_maintenance_logs(vehicle_id=vehicle.id, resolved=False) == []


@pytest.mark.asyncio
async def test_resolve_twice_conflicts(coordinator, make_vehicle):
    vehicle = await make_vehicle()
    log = await coordinator.log_maintenance(vehicle.id, "lights")
    await coordinator.resolve_maintenance(log.id)

    with pytest.raises(ConflictError):
        await coordinator.resolve_maintenance(log.id)


@pytest.mark.asyncio
async def test_resolve_unknown_log(coordinator):
    with pytest.raises(NotFoundError):
        await coordinator.resolve_maintenance(4242)


@pytest.mark.asyncio
async def test_resolving_does_not_unretire_vehicle(coordinator, registry, make_vehicle):
    vehicle = await make_vehicle()
    log = await coordinator.log_maintenance(vehicle.id, "final inspection")
    await coordinator.set_vehicle_status(vehicle.id, VehicleStatus.RETIRED)

    _, vehicle_after = await coordinator.resolve_maintenance(log.id)

    assert vehicle_after.status == VehicleStatus.RETIRED


@pytest.mark.asyncio
async def test_release_resolves_all_open_logs(coordinator, registry, make_vehicle):
    vehicle = await make_vehicle()
    await coordinator.log_maintenance(vehicle.id, "a")
    await coordinator.log_maintenance(vehicle.id, "b")

    released, count = await coordinator.release_vehicle(vehicle.id)

    assert count == 2
    assert released.status == VehicleStatus.AVAILABLE
    logs = await registry.list_maintenance_logs(vehicle_id=vehicle.id)
    assert len(logs) == 2
    assert all(log.is_resolved for log in logs)


@pytest.mark.asyncio
async def test_release_requires_in_shop(coordinator, make_vehicle):
    vehicle = await make_vehicle()

    with pytest.raises(ConflictError):
        await coordinator.release_vehicle(vehicle.id)


@pytest.mark.asyncio
async def test_update_log_keeps_resolution_state(coordinator, registry, make_vehicle):
    vehicle = await make_vehicle()
    log = await coordinator.log_maintenance(vehicle.id, "paint")

    updated = await registry.update_maintenance_log(
        log.id, {"cost": 300.0, "vendor": "Body Shop", "resolved_at": None, "vehicle_id": 999}
    )

    assert updated.cost == 300.0
    assert updated.vendor == "Body Shop"
    assert updated.vehicle_id == vehicle.id
