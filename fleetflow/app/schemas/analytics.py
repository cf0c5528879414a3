"""
Analytics schemas for the dashboard, cost, efficiency and financial views.
"""

from datetime import date
from pydantic import BaseModel
from typing import List, Optional

from fleetflow.app.models.fleet_enums import DriverStatus


class FleetStatusCounts(BaseModel):
    total: int
    available: int
    on_trip: int
    in_shop: int
    retired: int
    utilization_rate_pct: float


class DriverStatusCounts(BaseModel):
    total: int
    available: int
    on_trip: int
    suspended: int
    expired_licenses: int


class TripStatusCounts(BaseModel):
    draft: int
    dispatched: int
    completed: int
    cancelled: int


class DashboardStats(BaseModel):
    """High-level KPIs visible to every role."""
    fleet: FleetStatusCounts
    drivers: DriverStatusCounts
    trips: TripStatusCounts
    open_maintenance: int


class VehicleCostSummary(BaseModel):
    """Operational cost breakdown per vehicle."""
    vehicle_id: int
    vehicle_name: str
    license_plate: str
    acquisition_cost: float
    total_fuel_cost: float
    total_maintenance_cost: float
    total_operational_cost: float
    completed_trips: int
    total_distance_km: float
    cost_per_km: Optional[float]


class CostReport(BaseModel):
    vehicles: List[VehicleCostSummary]
    total_fuel_cost: float
    total_maintenance_cost: float


class VehicleFuelEfficiency(BaseModel):
    """Distance per litre, from the odometer readings recorded at fill-up."""
    vehicle_id: int
    vehicle_name: str
    license_plate: str
    total_liters: float
    total_fuel_cost: float
    current_odometer_km: float
    km_per_liter: Optional[float]


class FuelEfficiencyReport(BaseModel):
    vehicles: List[VehicleFuelEfficiency]


class VehicleROI(BaseModel):
    vehicle_id: int
    vehicle_name: str
    license_plate: str
    acquisition_cost: float
    total_fuel_cost: float
    total_maintenance_cost: float
    total_operational_cost: float
    completed_trips: int
    total_km_driven: float
    cost_to_acquisition_ratio_pct: Optional[float]


class VehicleROIReport(BaseModel):
    vehicles: List[VehicleROI]


class MonthlyUtilization(BaseModel):
    month: str  # YYYY-MM
    total_trips: int
    unique_vehicles_used: int
    avg_distance_km: Optional[float]
    total_cargo_kg: float


class UtilizationReport(BaseModel):
    """Completed trips bucketed by dispatch month, newest first."""
    months: List[MonthlyUtilization]


class DriverPerformance(BaseModel):
    driver_id: int
    name: str
    license_number: str
    status: DriverStatus
    safety_score: float
    trips_completed: int
    license_expiry: date
    license_expired: bool
    avg_trip_distance_km: float
    total_km_driven: float


class DriverPerformanceReport(BaseModel):
    drivers: List[DriverPerformance]


class MonthlyFinancials(BaseModel):
    month: str
    total_fuel_cost: float
    total_maintenance_cost: float
    total_operational_cost: float


class FinancialSummary(BaseModel):
    """Fuel and maintenance spend for each month of one calendar year."""
    year: int
    months: List[MonthlyFinancials]
    total_fuel_cost: float
    total_maintenance_cost: float
    total_operational_cost: float
