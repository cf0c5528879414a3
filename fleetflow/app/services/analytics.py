"""
Analytics Service.

Handles data aggregation for dashboards, cost and efficiency reports.
Focused on READ-ONLY operations.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case

from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import VehicleStatus, DriverStatus, TripStatus
from fleetflow.app.models.fuel_log import FuelLog
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.schemas.analytics import (
    DashboardStats, FleetStatusCounts, DriverStatusCounts, TripStatusCounts,
    VehicleCostSummary, CostReport,
    VehicleFuelEfficiency, FuelEfficiencyReport,
    VehicleROI, VehicleROIReport,
    MonthlyUtilization, UtilizationReport,
    DriverPerformance, DriverPerformanceReport,
    MonthlyFinancials, FinancialSummary
)

# Distance of a completed trip. NULL when it was completed without an end reading.
TRIP_DISTANCE = Trip.end_odometer - Trip.start_odometer


async def _count_by_status(db: AsyncSession, model) -> Dict:
    stmt = select(model.status, func.count(model.id)).group_by(model.status)
    rows = await db.execute(stmt)
    return {status: count for status, count in rows}


async def _vehicle_costs(db: AsyncSession, vehicle_id: Optional[int] = None):
    """Per-vehicle fuel, maintenance and completed-trip totals, one row per vehicle."""
    # Aggregate each log table separately so the joins don't multiply rows
    fuel = (
        select(FuelLog.vehicle_id, func.sum(FuelLog.total_cost).label("fuel_cost"))
        .group_by(FuelLog.vehicle_id)
        .subquery()
    )
    maintenance = (
        select(MaintenanceLog.vehicle_id, func.sum(MaintenanceLog.cost).label("maintenance_cost"))
        .group_by(MaintenanceLog.vehicle_id)
        .subquery()
    )
    trips = (
        select(
            Trip.vehicle_id,
            func.count(Trip.id).label("completed_trips"),
            func.sum(TRIP_DISTANCE).label("distance_km")
        )
        .where(Trip.status == TripStatus.COMPLETED)
        .group_by(Trip.vehicle_id)
        .subquery()
    )

    stmt = (
        select(
            Vehicle.id,
            Vehicle.name,
            Vehicle.license_plate,
            Vehicle.acquisition_cost,
            func.coalesce(fuel.c.fuel_cost, 0).label("fuel_cost"),
            func.coalesce(maintenance.c.maintenance_cost, 0).label("maintenance_cost"),
            func.coalesce(trips.c.completed_trips, 0).label("completed_trips"),
            func.coalesce(trips.c.distance_km, 0).label("distance_km")
        )
        .outerjoin(fuel, fuel.c.vehicle_id == Vehicle.id)
        .outerjoin(maintenance, maintenance.c.vehicle_id == Vehicle.id)
        .outerjoin(trips, trips.c.vehicle_id == Vehicle.id)
        .order_by(Vehicle.name, Vehicle.id)
    )
    if vehicle_id:
        stmt = stmt.where(Vehicle.id == vehicle_id)

    return await db.execute(stmt)


class AnalyticsService:

    @staticmethod
    async def get_dashboard(db: AsyncSession, today: Optional[date] = None) -> DashboardStats:
        """Status counts across the fleet plus open maintenance."""
        today = today or date.today()

        vehicles = await _count_by_status(db, Vehicle)
        total_vehicles = sum(vehicles.values())
        on_trip = vehicles.get(VehicleStatus.ON_TRIP, 0)
        utilization = round(on_trip / total_vehicles * 100, 2) if total_vehicles else 0.0

        drivers = await _count_by_status(db, Driver)
        expired = (await db.execute(
            select(func.count(Driver.id)).where(Driver.license_expiry < today)
        )).scalar() or 0

        trips = await _count_by_status(db, Trip)

        open_maintenance = (await db.execute(
            select(func.count(MaintenanceLog.id)).where(MaintenanceLog.resolved_at.is_(None))
        )).scalar() or 0

        return DashboardStats(
            fleet=FleetStatusCounts(
                total=total_vehicles,
                available=vehicles.get(VehicleStatus.AVAILABLE, 0),
                on_trip=on_trip,
                in_shop=vehicles.get(VehicleStatus.IN_SHOP, 0),
                retired=vehicles.get(VehicleStatus.RETIRED, 0),
                utilization_rate_pct=utilization
            ),
            drivers=DriverStatusCounts(
                total=sum(drivers.values()),
                available=drivers.get(DriverStatus.AVAILABLE, 0),
                on_trip=drivers.get(DriverStatus.ON_TRIP, 0),
                suspended=drivers.get(DriverStatus.SUSPENDED, 0),
                expired_licenses=expired
            ),
            trips=TripStatusCounts(
                draft=trips.get(TripStatus.DRAFT, 0),
                dispatched=trips.get(TripStatus.DISPATCHED, 0),
                completed=trips.get(TripStatus.COMPLETED, 0),
                cancelled=trips.get(TripStatus.CANCELLED, 0)
            ),
            open_maintenance=open_maintenance
        )

    @staticmethod
    async def get_cost_report(db: AsyncSession, vehicle_id: Optional[int] = None) -> CostReport:
        """Fuel and maintenance spend per vehicle, with cost per km driven."""
        data: List[VehicleCostSummary] = []
        for row in await _vehicle_costs(db, vehicle_id):
            operational = float(row.fuel_cost) + float(row.maintenance_cost)
            distance = float(row.distance_km)
            data.append(VehicleCostSummary(
                vehicle_id=row.id,
                vehicle_name=row.name,
                license_plate=row.license_plate,
                acquisition_cost=row.acquisition_cost,
                total_fuel_cost=round(float(row.fuel_cost), 2),
                total_maintenance_cost=round(float(row.maintenance_cost), 2),
                total_operational_cost=round(operational, 2),
                completed_trips=row.completed_trips,
                total_distance_km=round(distance, 2),
                cost_per_km=round(operational / distance, 4) if distance > 0 else None
            ))

        return CostReport(
            vehicles=data,
            total_fuel_cost=round(sum(v.total_fuel_cost for v in data), 2),
            total_maintenance_cost=round(sum(v.total_maintenance_cost for v in data), 2)
        )

    @staticmethod
    async def get_vehicle_roi(db: AsyncSession, vehicle_id: Optional[int] = None) -> VehicleROIReport:
        """
        Operational spend against acquisition cost.

        Revenue is not tracked, so the ratio is cost-side only:
        (fuel + maintenance) / acquisition_cost * 100.
        """
        data = []
        for row in await _vehicle_costs(db, vehicle_id):
            operational = float(row.fuel_cost) + float(row.maintenance_cost)
            acquisition = float(row.acquisition_cost or 0)
            data.append(VehicleROI(
                vehicle_id=row.id,
                vehicle_name=row.name,
                license_plate=row.license_plate,
                acquisition_cost=acquisition,
                total_fuel_cost=round(float(row.fuel_cost), 2),
                total_maintenance_cost=round(float(row.maintenance_cost), 2),
                total_operational_cost=round(operational, 2),
                completed_trips=row.completed_trips,
                total_km_driven=round(float(row.distance_km), 2),
                cost_to_acquisition_ratio_pct=(
                    round(operational / acquisition * 100, 2) if acquisition > 0 else None
                )
            ))
        return VehicleROIReport(vehicles=data)

    @staticmethod
    async def get_fuel_efficiency(db: AsyncSession, vehicle_id: Optional[int] = None) -> FuelEfficiencyReport:
        """
        km per litre per vehicle.

        Distance is the spread between the highest and lowest odometer
        readings recorded at fill-up; only litres from logs carrying a
        reading count towards the ratio.
        """
        has_reading = FuelLog.odometer_at_fill.is_not(None)
        fuel = (
            select(
                FuelLog.vehicle_id,
                func.sum(FuelLog.liters).label("liters"),
                func.sum(FuelLog.total_cost).label("cost"),
                func.sum(case((has_reading, FuelLog.liters), else_=0)).label("tracked_liters"),
                func.max(FuelLog.odometer_at_fill).label("max_odometer"),
                func.min(FuelLog.odometer_at_fill).label("min_odometer")
            )
            .group_by(FuelLog.vehicle_id)
            .subquery()
        )
        stmt = (
            select(
                Vehicle.id, Vehicle.name, Vehicle.license_plate, Vehicle.odometer_km,
                fuel.c.liters, fuel.c.cost, fuel.c.tracked_liters,
                fuel.c.max_odometer, fuel.c.min_odometer
            )
            .outerjoin(fuel, fuel.c.vehicle_id == Vehicle.id)
            .order_by(Vehicle.name, Vehicle.id)
        )
        if vehicle_id:
            stmt = stmt.where(Vehicle.id == vehicle_id)

        data = []
        for row in await db.execute(stmt):
            tracked = float(row.tracked_liters or 0)
            efficiency = None
            if tracked > 0 and row.max_odometer is not None:
                efficiency = round((row.max_odometer - row.min_odometer) / tracked, 2)
            data.append(VehicleFuelEfficiency(
                vehicle_id=row.id,
                vehicle_name=row.name,
                license_plate=row.license_plate,
                total_liters=round(float(row.liters or 0), 2),
                total_fuel_cost=round(float(row.cost or 0), 2),
                current_odometer_km=row.odometer_km,
                km_per_liter=efficiency
            ))
        return FuelEfficiencyReport(vehicles=data)

    @staticmethod
    async def get_utilization(db: AsyncSession, months: int = 12) -> UtilizationReport:
        """Completed trips per dispatch month, most recent `months` months that have any."""
        stmt = (
            select(Trip.dispatched_at, Trip.vehicle_id, Trip.cargo_weight_kg, TRIP_DISTANCE.label("distance"))
            .where(Trip.status == TripStatus.COMPLETED, Trip.dispatched_at.is_not(None))
        )

        # bucketed in Python, no dialect-specific date functions
        buckets = defaultdict(lambda: {"trips": 0, "vehicles": set(), "distances": [], "cargo": 0.0})
        for row in await db.execute(stmt):
            bucket = buckets[row.dispatched_at.strftime("%Y-%m")]
            bucket["trips"] += 1
            bucket["vehicles"].add(row.vehicle_id)
            bucket["cargo"] += row.cargo_weight_kg
            if row.distance is not None:
                bucket["distances"].append(row.distance)

        data = []
        for month in sorted(buckets, reverse=True)[:months]:
            bucket = buckets[month]
            distances = bucket["distances"]
            data.append(MonthlyUtilization(
                month=month,
                total_trips=bucket["trips"],
                unique_vehicles_used=len(bucket["vehicles"]),
                avg_distance_km=round(sum(distances) / len(distances), 2) if distances else None,
                total_cargo_kg=round(bucket["cargo"], 2)
            ))
        return UtilizationReport(months=data)

    @staticmethod
    async def get_driver_performance(db: AsyncSession, today: Optional[date] = None) -> DriverPerformanceReport:
        """Safety score, completed trips and distance per driver, safest first."""
        today = today or date.today()

        trips = (
            select(
                Trip.driver_id,
                func.avg(TRIP_DISTANCE).label("avg_distance"),
                func.sum(TRIP_DISTANCE).label("total_distance")
            )
            .where(Trip.status == TripStatus.COMPLETED)
            .group_by(Trip.driver_id)
            .subquery()
        )
        stmt = (
            select(
                Driver,
                func.coalesce(trips.c.avg_distance, 0).label("avg_distance"),
                func.coalesce(trips.c.total_distance, 0).label("total_distance")
            )
            .outerjoin(trips, trips.c.driver_id == Driver.id)
            .order_by(Driver.safety_score.desc(), Driver.id)
        )

        data = []
        for driver, avg_distance, total_distance in await db.execute(stmt):
            data.append(DriverPerformance(
                driver_id=driver.id,
                name=driver.name,
                license_number=driver.license_number,
                status=driver.status,
                safety_score=driver.safety_score,
                trips_completed=driver.trips_completed,
                license_expiry=driver.license_expiry,
                license_expired=driver.license_expiry < today,
                avg_trip_distance_km=round(float(avg_distance), 2),
                total_km_driven=round(float(total_distance), 2)
            ))
        return DriverPerformanceReport(drivers=data)

    @staticmethod
    async def get_financial_summary(db: AsyncSession, year: int) -> FinancialSummary:
        """Fuel and maintenance spend for every month of `year`, zero-filled."""
        start, end = date(year, 1, 1), date(year, 12, 31)

        fuel = defaultdict(float)
        rows = await db.execute(
            select(FuelLog.fuel_date, FuelLog.total_cost)
            .where(FuelLog.fuel_date >= start, FuelLog.fuel_date <= end)
        )
        for fuel_date, cost in rows:
            fuel[fuel_date.month] += cost

        maintenance = defaultdict(float)
        rows = await db.execute(
            select(MaintenanceLog.service_date, MaintenanceLog.cost)
            .where(MaintenanceLog.service_date >= start, MaintenanceLog.service_date <= end)
        )
        for service_date, cost in rows:
            maintenance[service_date.month] += cost

        months = [
            MonthlyFinancials(
                month=f"{year}-{month:02d}",
                total_fuel_cost=round(fuel[month], 2),
                total_maintenance_cost=round(maintenance[month], 2),
                total_operational_cost=round(fuel[month] + maintenance[month], 2)
            )
            for month in range(1, 13)
        ]
        total_fuel = round(sum(fuel.values()), 2)
        total_maintenance = round(sum(maintenance.values()), 2)

        return FinancialSummary(
            year=year,
            months=months,
            total_fuel_cost=total_fuel,
            total_maintenance_cost=total_maintenance,
            total_operational_cost=round(total_fuel + total_maintenance, 2)
        )
