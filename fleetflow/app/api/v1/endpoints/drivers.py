"""
Driver API Endpoints.

Drivers are managed by admins and safety officers. Suspension and
reinstatement go through the coordinator.
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
from fleetflow.app.models.fleet_enums import DriverStatus
from fleetflow.app.schemas.driver import (
    DriverCreate, DriverUpdate, DriverStatusUpdate, DriverResponse, DriverListResponse
)
from fleetflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    drivers = await registry.list_drivers(status=status_filter)
    return DriverListResponse(
        drivers=[DriverResponse.model_validate(d) for d in drivers],
        total=len(drivers)
    )


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: dict = Depends(require_permission(Operation.MANAGE_DRIVERS)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    driver = await registry.create_driver(driver_data.model_dump(), created_by=current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.DRIVER_CREATED,
        metadata={"driver_id": driver.id, "license_number": driver.license_number}
    )

    return DriverResponse.model_validate(driver)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    return DriverResponse.model_validate(await registry.get_driver(driver_id))


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: int = Path(..., description="Driver ID"),
    driver_data: DriverUpdate = ...,
    current_user: dict = Depends(require_permission(Operation.MANAGE_DRIVERS)),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    update_data = driver_data.model_dump(exclude_unset=True)
    driver = await registry.update_driver(driver_id, update_data)

    await log_user_action(
        db, current_user, AuditAction.DRIVER_UPDATED,
        metadata={"driver_id": driver.id, "updated_fields": list(update_data.keys())}
    )

    return DriverResponse.model_validate(driver)


@router.patch("/{driver_id}/status", response_model=DriverResponse)
async def set_driver_status(
    driver_id: int = Path(..., description="Driver ID"),
    status_data: DriverStatusUpdate = ...,
    current_user: dict = Depends(require_permission(Operation.SET_DRIVER_STATUS)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Suspend or reinstate a driver. Drivers on a trip cannot be changed."""
    driver = await coordinator.set_driver_status(driver_id, status_data.status)

    await log_user_action(
        db, current_user, AuditAction.DRIVER_STATUS_CHANGED,
        metadata={"driver_id": driver.id, "status": driver.status.value}
    )

    return DriverResponse.model_validate(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_permission(Operation.DELETE_DRIVER)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    await coordinator.delete_driver(driver_id)

    await log_user_action(db, current_user, AuditAction.DRIVER_DELETED, metadata={"driver_id": driver_id})
