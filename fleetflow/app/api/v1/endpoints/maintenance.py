"""
Maintenance API Endpoints.

Opening a log sends the vehicle to the shop; resolving the last open log
(or releasing the vehicle) brings it back.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.db.session import get_db
from fleetflow.app.core.dependencies import get_coordinator, get_registry
from fleetflow.app.core.guards import require_permission
from fleetflow.app.core.permissions import Operation
from fleetflow.app.domain.fleet.coordinator import FleetCoordinator
from fleetflow.app.domain.fleet.registry import FleetRegistry
from fleetflow.app.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceResponse, MaintenanceListResponse,
    MaintenanceResolveResponse, VehicleReleaseResponse
)
from fleetflow.app.schemas.vehicle import VehicleResponse
from fleetflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.get("", response_model=MaintenanceListResponse)
async def list_maintenance_logs(
    vehicle_id: Optional[int] = Query(None),
    resolved: Optional[bool] = Query(None, description="Filter by resolution state"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    logs = await registry.list_maintenance_logs(vehicle_id=vehicle_id, resolved=resolved)
    return MaintenanceListResponse(
        logs=[MaintenanceResponse.model_validate(log) for log in logs],
        total=len(logs)
    )


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def log_maintenance(
    log_data: MaintenanceCreate,
    current_user: dict = Depends(require_permission(Operation.LOG_MAINTENANCE)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Open a maintenance log. The vehicle goes IN_SHOP; ON_TRIP vehicles answer 409."""
    log = await coordinator.log_maintenance(
        vehicle_id=log_data.vehicle_id,
        description=log_data.description,
        cost=log_data.cost,
        service_type=log_data.service_type,
        vendor=log_data.vendor,
        service_date=log_data.service_date,
        odometer_at_service=log_data.odometer_at_service,
        logged_by=current_user["user_id"]
    )

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_LOGGED,
        metadata={"log_id": log.id, "vehicle_id": log.vehicle_id, "cost": log.cost}
    )

    return MaintenanceResponse.model_validate(log)


@router.get("/{log_id}", response_model=MaintenanceResponse)
async def get_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    return MaintenanceResponse.model_validate(await registry.get_maintenance_log(log_id))


@router.patch("/{log_id}", response_model=MaintenanceResponse)
async def update_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    log_data: MaintenanceUpdate = ...,
    current_user: dict = Depends(require_permission(Operation.LOG_MAINTENANCE)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    update_data = log_data.model_dump(exclude_unset=True)
    log = await registry.update_maintenance_log(log_id, update_data)

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_UPDATED,
        metadata={"log_id": log.id, "updated_fields": list(update_data.keys())}
    )

    return MaintenanceResponse.model_validate(log)


@router.post("/{log_id}/resolve", response_model=MaintenanceResolveResponse)
async def resolve_maintenance(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_permission(Operation.RESOLVE_MAINTENANCE)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Resolve one log. The vehicle is released only when no open log remains."""
    log, vehicle = await coordinator.resolve_maintenance(log_id)

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_RESOLVED,
        metadata={"log_id": log.id, "vehicle_id": vehicle.id, "vehicle_status": vehicle.status.value}
    )

    return MaintenanceResolveResponse(
        log=MaintenanceResponse.model_validate(log),
        vehicle=VehicleResponse.model_validate(vehicle)
    )


@router.post("/release/{vehicle_id}", response_model=VehicleReleaseResponse)
async def release_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(Operation.RESOLVE_MAINTENANCE)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Resolve every open log of an IN_SHOP vehicle and make it AVAILABLE."""
    vehicle, resolved_count = await coordinator.release_vehicle(vehicle_id)

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_RELEASED,
        metadata={"vehicle_id": vehicle.id, "resolved_logs": resolved_count}
    )

    return VehicleReleaseResponse(
        vehicle=VehicleResponse.model_validate(vehicle),
        resolved_logs=resolved_count
    )
