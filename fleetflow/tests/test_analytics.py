"""
Analytics tests: dashboard counts and the per-vehicle, per-driver and monthly reports.
"""

from datetime import date, timedelta

import pytest

from fleetflow.app.models.enums import UserRole
from fleetflow.app.services.analytics import AnalyticsService


@pytest.mark.asyncio
async def test_dashboard_counts(session_factory, coordinator, make_vehicle, make_driver, today):
    busy = await make_vehicle()
    shop = await make_vehicle()
    await make_vehicle()
    driver = await make_driver()
    await make_driver(license_expiry=today - timedelta(days=3))

    trip = await coordinator.create_trip(busy.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.log_maintenance(shop.id, "service")

    async with session_factory() as db:
        stats = await AnalyticsService.get_dashboard(db, today=today)

    assert stats.fleet.total == 3
    assert stats.fleet.on_trip == 1
    assert stats.fleet.in_shop == 1
    assert stats.fleet.available == 1
    assert stats.fleet.utilization_rate_pct == 33.33
    assert stats.drivers.on_trip == 1
    assert stats.drivers.expired_licenses == 1
    assert stats.trips.dispatched == 1
    assert stats.open_maintenance == 1


@pytest.mark.asyncio
async def test_cost_report(session_factory, coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle(name="Alpha", odometer_km=1000)
    idle = await make_vehicle(name="Bravo")
    driver = await make_driver()

    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.complete_trip(trip.id, end_odometer=1200)
    await registry.record_fuel(vehicle.id, liters=20, cost_per_liter=2, trip_id=trip.id)
    await registry.record_fuel(vehicle.id, liters=10, cost_per_liter=2)
    log = await coordinator.log_maintenance(vehicle.id, "tyres", cost=140)
    await coordinator.resolve_maintenance(log.id)

    async with session_factory() as db:
        report = await AnalyticsService.get_cost_report(db)

    alpha, bravo = report.vehicles
    assert alpha.vehicle_id == vehicle.id
    assert alpha.total_fuel_cost == 60.0
    assert alpha.total_maintenance_cost == 140.0
    assert alpha.total_operational_cost == 200.0
    assert alpha.completed_trips == 1
    assert alpha.total_distance_km == 200.0
    assert alpha.cost_per_km == 1.0

    assert bravo.vehicle_id == idle.id
    assert bravo.total_operational_cost == 0
    assert bravo.cost_per_km is None
    assert report.total_fuel_cost == 60.0


@pytest.mark.asyncio
async def test_cost_report_is_finance_only(client, headers_for):
    assert (await client.get("/v1/analytics/costs", headers=await headers_for(UserRole.DISPATCHER))).status_code == 403
    assert (await client.get("/v1/analytics/costs", headers=await headers_for(UserRole.FINANCE_OFFICER))).status_code == 200
    assert (await client.get("/v1/analytics/dashboard", headers=await headers_for(UserRole.DRIVER))).status_code == 200


@pytest.mark.asyncio
async def test_fuel_efficiency(session_factory, registry, make_vehicle):
    vehicle = await make_vehicle(name="Alpha", odometer_km=10300)
    idle = await make_vehicle(name="Bravo")
    await registry.record_fuel(vehicle.id, liters=20, cost_per_liter=2, odometer_at_fill=10000)
    await registry.record_fuel(vehicle.id, liters=10, cost_per_liter=2, odometer_at_fill=10300)
    # no reading, so it counts towards totals but not the ratio
    await registry.record_fuel(vehicle.id, liters=5, cost_per_liter=2)

    async with session_factory() as db:
        report = await AnalyticsService.get_fuel_efficiency(db)

    alpha, bravo = report.vehicles
    assert alpha.vehicle_id == vehicle.id
    assert alpha.total_liters == 35.0
    assert alpha.total_fuel_cost == 70.0
    assert alpha.current_odometer_km == 10300
    assert alpha.km_per_liter == 10.0

    assert bravo.vehicle_id == idle.id
    assert bravo.total_liters == 0
    assert bravo.km_per_liter is None

    async with session_factory() as db:
        only = await AnalyticsService.get_fuel_efficiency(db, vehicle_id=idle.id)
    assert [v.vehicle_id for v in only.vehicles] == [idle.id]


@pytest.mark.asyncio
async def test_vehicle_roi(session_factory, coordinator, registry, make_vehicle, make_driver):
    vehicle = await make_vehicle(name="Alpha", odometer_km=1000, acquisition_cost=20000)
    await make_vehicle(name="Bravo")
    driver = await make_driver()

    trip = await coordinator.create_trip(vehicle.id, driver.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.complete_trip(trip.id, end_odometer=1150)
    await registry.record_fuel(vehicle.id, liters=30, cost_per_liter=2)
    log = await coordinator.log_maintenance(vehicle.id, "tyres", cost=140)
    await coordinator.resolve_maintenance(log.id)

    async with session_factory() as db:
        report = await AnalyticsService.get_vehicle_roi(db)

    alpha, bravo = report.vehicles
    assert alpha.total_operational_cost == 200.0
    assert alpha.completed_trips == 1
    assert alpha.total_km_driven == 150.0
    assert alpha.cost_to_acquisition_ratio_pct == 1.0
    # no acquisition cost recorded
    assert bravo.cost_to_acquisition_ratio_pct is None


@pytest.mark.asyncio
async def test_utilization_by_month(session_factory, coordinator, make_vehicle, make_driver):
    first = await make_vehicle(odometer_km=1000)
    second = await make_vehicle(odometer_km=500)
    third = await make_vehicle()
    drivers = [await make_driver() for _ in range(3)]

    trip = await coordinator.create_trip(first.id, drivers[0].id, "A", "B", 100)
    dispatched = await coordinator.dispatch_trip(trip.id)
    await coordinator.complete_trip(trip.id, end_odometer=1200)

    trip = await coordinator.create_trip(second.id, drivers[1].id, "A", "C", 300)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.complete_trip(trip.id)

    trip = await coordinator.create_trip(third.id, drivers[2].id, "A", "D", 50)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.cancel_trip(trip.id)

    async with session_factory() as db:
        report = await AnalyticsService.get_utilization(db)

    assert len(report.months) == 1
    month = report.months[0]
    assert month.month == dispatched.dispatched_at.strftime("%Y-%m")
    assert month.total_trips == 2
    assert month.unique_vehicles_used == 2
    # the trip completed without an end reading has no distance
    assert month.avg_distance_km == 200.0
    assert month.total_cargo_kg == 400.0


@pytest.mark.asyncio
async def test_driver_performance(session_factory, coordinator, make_vehicle, make_driver, today):
    vehicle = await make_vehicle(odometer_km=1000)
    steady = await make_driver(safety_score=90)
    lapsed = await make_driver(safety_score=95, license_expiry=today - timedelta(days=1))

    trip = await coordinator.create_trip(vehicle.id, steady.id, "A", "B", 100)
    await coordinator.dispatch_trip(trip.id)
    await coordinator.complete_trip(trip.id, end_odometer=1200)

    async with session_factory() as db:
        report = await AnalyticsService.get_driver_performance(db, today=today)

    first, second = report.drivers
    assert first.driver_id == lapsed.id
    assert first.license_expired is True
    assert first.trips_completed == 0
    assert first.total_km_driven == 0

    assert second.driver_id == steady.id
    assert second.license_expired is False
    assert second.trips_completed == 1
    assert second.avg_trip_distance_km == 200.0
    assert second.total_km_driven == 200.0


@pytest.mark.asyncio
async def test_financial_summary(session_factory, coordinator, registry, make_vehicle, today):
    vehicle = await make_vehicle()
    await registry.record_fuel(vehicle.id, liters=25, cost_per_liter=2, fuel_date=date(2026, 1, 15))
    await registry.record_fuel(vehicle.id, liters=10, cost_per_liter=2)
    await registry.record_fuel(vehicle.id, liters=99, cost_per_liter=2, fuel_date=date(2025, 12, 31))
    await coordinator.log_maintenance(vehicle.id, "gearbox", cost=100, service_date=date(2026, 3, 10))

    async with session_factory() as db:
        summary = await AnalyticsService.get_financial_summary(db, year=today.year)

    assert summary.year == 2026
    assert [m.month for m in summary.months][:3] == ["2026-01", "2026-02", "2026-03"]
    assert len(summary.months) == 12
    assert summary.months[0].total_fuel_cost == 50.0
    assert summary.months[1].total_operational_cost == 0
    assert summary.months[2].total_fuel_cost == 20.0
    assert summary.months[2].total_maintenance_cost == 100.0
    assert summary.months[2].total_operational_cost == 120.0
    assert summary.total_fuel_cost == 70.0
    assert summary.total_operational_cost == 170.0


@pytest.mark.asyncio
async def test_report_endpoints_follow_roles(client, headers_for):
    dispatcher = await headers_for(UserRole.DISPATCHER)
    safety = await headers_for(UserRole.SAFETY_OFFICER)
    finance = await headers_for(UserRole.FINANCE_OFFICER)

    assert (await client.get("/v1/analytics/utilization", headers=dispatcher)).status_code == 200
    assert (await client.get("/v1/analytics/utilization", headers=safety)).status_code == 403
    assert (await client.get("/v1/analytics/driver-performance", headers=safety)).status_code == 200
    assert (await client.get("/v1/analytics/driver-performance", headers=finance)).status_code == 403
    assert (await client.get("/v1/analytics/fuel-efficiency", headers=finance)).status_code == 200
    assert (await client.get("/v1/analytics/vehicle-roi", headers=dispatcher)).status_code == 403

    response = await client.get("/v1/analytics/financial-summary?year=2026", headers=finance)
    assert response.status_code == 200
    assert len(response.json()["months"]) == 12

    response = await client.get("/v1/analytics/financial-summary?year=1999", headers=finance)
    assert response.status_code == 422
