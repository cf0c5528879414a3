"""
Maintenance log Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List
from fleetflow.app.schemas.vehicle import VehicleResponse


class MaintenanceCreate(BaseModel):
    """Opening a log forces the vehicle IN_SHOP."""
    vehicle_id: int = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    service_type: Optional[str] = Field(None, max_length=50, description="e.g. OIL_CHANGE, TYRES, REPAIR")
    cost: float = Field(0, ge=0)
    vendor: Optional[str] = Field(None, max_length=100)
    service_date: Optional[date] = Field(None, description="Defaults to today")
    odometer_at_service: Optional[float] = Field(None, ge=0)


class MaintenanceUpdate(BaseModel):
    """Edits descriptive fields only; resolution has its own endpoint."""
    description: Optional[str] = Field(None, min_length=1)
    service_type: Optional[str] = Field(None, max_length=50)
    cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = Field(None, max_length=100)
    service_date: Optional[date] = None
    odometer_at_service: Optional[float] = Field(None, ge=0)

    @field_validator("description", "cost")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    service_type: Optional[str]
    description: str
    cost: float
    vendor: Optional[str]
    service_date: Optional[date]
    odometer_at_service: Optional[float]
    logged_by: Optional[int]
    created_at: datetime
    resolved_at: Optional[datetime]
    is_resolved: bool

    class Config:
        from_attributes = True


class MaintenanceListResponse(BaseModel):
    logs: List[MaintenanceResponse]
    total: int


class MaintenanceResolveResponse(BaseModel):
    log: MaintenanceResponse
    vehicle: VehicleResponse


class VehicleReleaseResponse(BaseModel):
    vehicle: VehicleResponse
    resolved_logs: int
