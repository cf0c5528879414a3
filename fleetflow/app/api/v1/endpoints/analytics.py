"""
Analytics API Endpoints.

Read-only dashboard for all roles. Cost, efficiency and financial views
for admins and finance; utilization adds dispatchers; driver performance
is for safety officers.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.db.session import get_db
from fleetflow.app.core.guards import require_permission
from fleetflow.app.core.permissions import Operation
from fleetflow.app.services.analytics import AnalyticsService
from fleetflow.app.schemas.analytics import (
    DashboardStats, CostReport, FuelEfficiencyReport, VehicleROIReport,
    UtilizationReport, DriverPerformanceReport, FinancialSummary
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    db: AsyncSession = Depends(get_db)
):
    """Fleet, driver and trip status counts."""
    return await AnalyticsService.get_dashboard(db)


@router.get("/costs", response_model=CostReport)
async def get_costs(
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Operation.VIEW_COST_ANALYTICS)),
    db: AsyncSession = Depends(get_db)
):
    """Fuel and maintenance spend per vehicle."""
    return await AnalyticsService.get_cost_report(db, vehicle_id=vehicle_id)


@router.get("/fuel-efficiency", response_model=FuelEfficiencyReport)
async def get_fuel_efficiency(
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Operation.VIEW_COST_ANALYTICS)),
    db: AsyncSession = Depends(get_db)
):
    """km per litre per vehicle."""
    return await AnalyticsService.get_fuel_efficiency(db, vehicle_id=vehicle_id)


@router.get("/vehicle-roi", response_model=VehicleROIReport)
async def get_vehicle_roi(
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Operation.VIEW_COST_ANALYTICS)),
    db: AsyncSession = Depends(get_db)
):
    """Operational spend relative to acquisition cost."""
    return await AnalyticsService.get_vehicle_roi(db, vehicle_id=vehicle_id)


@router.get("/utilization", response_model=UtilizationReport)
async def get_utilization(
    current_user: dict = Depends(require_permission(Operation.VIEW_UTILIZATION)),
    db: AsyncSession = Depends(get_db)
):
    """Completed trips per month over the last twelve active months."""
    return await AnalyticsService.get_utilization(db)


@router.get("/driver-performance", response_model=DriverPerformanceReport)
async def get_driver_performance(
    current_user: dict = Depends(require_permission(Operation.VIEW_DRIVER_PERFORMANCE)),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.get_driver_performance(db)


@router.get("/financial-summary", response_model=FinancialSummary)
async def get_financial_summary(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Calendar year, defaults to the current one"),
    current_user: dict = Depends(require_permission(Operation.VIEW_COST_ANALYTICS)),
    db: AsyncSession = Depends(get_db)
):
    """Monthly fuel and maintenance spend."""
    return await AnalyticsService.get_financial_summary(db, year=year or date.today().year)
