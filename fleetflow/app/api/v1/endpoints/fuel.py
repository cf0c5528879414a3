"""
Fuel log API Endpoints.

Fuel logs are append-only records; they never change any status.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.db.session import get_db
from fleetflow.app.core.dependencies import get_registry
from fleetflow.app.core.guards import require_permission
from fleetflow.app.core.permissions import Operation
from fleetflow.app.domain.fleet.registry import FleetRegistry
from fleetflow.app.schemas.fuel import FuelLogCreate, FuelLogResponse, FuelLogListResponse
from fleetflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/fuel", tags=["Fuel"])


@router.get("", response_model=FuelLogListResponse)
async def list_fuel_logs(
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    fuel_logs = await registry.list_fuel_logs(vehicle_id=vehicle_id)
    return FuelLogListResponse(
        fuel_logs=[FuelLogResponse.model_validate(f) for f in fuel_logs],
        total=len(fuel_logs)
    )


@router.post("", response_model=FuelLogResponse, status_code=status.HTTP_201_CREATED)
async def record_fuel(
    fuel_data: FuelLogCreate,
    current_user: dict = Depends(require_permission(Operation.RECORD_FUEL)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    fuel_log = await registry.record_fuel(
        vehicle_id=fuel_data.vehicle_id,
        liters=fuel_data.liters,
        cost_per_liter=fuel_data.cost_per_liter,
        trip_id=fuel_data.trip_id,
        odometer_at_fill=fuel_data.odometer_at_fill,
        fuel_date=fuel_data.fuel_date,
        logged_by=current_user["user_id"]
    )

    await log_user_action(
        db, current_user, AuditAction.FUEL_RECORDED,
        metadata={"fuel_log_id": fuel_log.id, "vehicle_id": fuel_log.vehicle_id, "total_cost": fuel_log.total_cost}
    )

    return FuelLogResponse.model_validate(fuel_log)


@router.get("/{fuel_log_id}", response_model=FuelLogResponse)
async def get_fuel_log(
    fuel_log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    return FuelLogResponse.model_validate(await registry.get_fuel_log(fuel_log_id))


@router.delete("/{fuel_log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fuel_log(
    fuel_log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_permission(Operation.DELETE_FUEL)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    await registry.delete_fuel_log(fuel_log_id)

    await log_user_action(db, current_user, AuditAction.FUEL_DELETED, metadata={"fuel_log_id": fuel_log_id})
