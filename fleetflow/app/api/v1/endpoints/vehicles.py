"""
Vehicle API Endpoints.

Registry CRUD for vehicles. Status writes go through the coordinator so
they are checked against the trip and maintenance lifecycle.
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
from fleetflow.app.models.fleet_enums import VehicleStatus
from fleetflow.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleStatusUpdate, VehicleResponse, VehicleListResponse
)
from fleetflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    vehicle_type: Optional[str] = Query(None),
    region: Optional[str] = Query(None, description="Case-insensitive substring match"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    vehicles = await registry.list_vehicles(status=status_filter, vehicle_type=vehicle_type, region=region)
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles)
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_permission(Operation.MANAGE_VEHICLES)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    """Register a vehicle. New vehicles start AVAILABLE."""
    vehicle = await registry.create_vehicle(vehicle_data.model_dump(), created_by=current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_CREATED,
        metadata={"vehicle_id": vehicle.id, "license_plate": vehicle.license_plate}
    )

    return VehicleResponse.model_validate(vehicle)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    return VehicleResponse.model_validate(await registry.get_vehicle(vehicle_id))


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    vehicle_data: VehicleUpdate = ...,
    current_user: dict = Depends(require_permission(Operation.MANAGE_VEHICLES)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    """Update vehicle attributes (only fields provided)."""
    update_data = vehicle_data.model_dump(exclude_unset=True)
    vehicle = await registry.update_vehicle(vehicle_id, update_data)

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_UPDATED,
        metadata={"vehicle_id": vehicle.id, "updated_fields": list(update_data.keys())}
    )

    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}/status", response_model=VehicleResponse)
async def set_vehicle_status(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    status_data: VehicleStatusUpdate = ...,
    current_user: dict = Depends(require_permission(Operation.SET_VEHICLE_STATUS)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """
    Administrative status override.

    ON_TRIP is only reachable through dispatch, and a vehicle on a trip
    cannot be overridden.
    """
    vehicle = await coordinator.set_vehicle_status(vehicle_id, status_data.status)

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_STATUS_CHANGED,
        metadata={"vehicle_id": vehicle.id, "status": vehicle.status.value}
    )

    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_permission(Operation.DELETE_VEHICLE)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Delete a vehicle with its trips and logs. Refused while ON_TRIP."""
    await coordinator.delete_vehicle(vehicle_id)

    await log_user_action(db, current_user, AuditAction.VEHICLE_DELETED, metadata={"vehicle_id": vehicle_id})
