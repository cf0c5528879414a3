"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from fleetflow.app.models.fleet_enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    model: Optional[str] = Field(None, max_length=100, description="Make and model")
    license_plate: str = Field(..., min_length=1, max_length=20, description="Unique registration plate")
    vehicle_type: str = Field("VAN", max_length=50, description="Vehicle type (e.g., TRUCK, VAN, BIKE)")
    region: Optional[str] = Field(None, max_length=100)

    max_capacity_kg: float = Field(..., gt=0, description="Maximum cargo weight in kg")
    odometer_km: float = Field(0, ge=0, description="Current odometer reading in km")
    acquisition_cost: float = Field(0, ge=0)


class VehicleUpdate(BaseModel):
    """Schema for updating vehicle attributes. Status has its own endpoint."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    region: Optional[str] = Field(None, max_length=100)
    max_capacity_kg: Optional[float] = Field(None, gt=0)
    odometer_km: Optional[float] = Field(None, ge=0)
    acquisition_cost: Optional[float] = Field(None, ge=0)

    @field_validator("name", "license_plate", "vehicle_type", "max_capacity_kg", "odometer_km", "acquisition_cost")
    @classmethod
    def reject_null(cls, value):
        # omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("must not be null")
        return value


class VehicleStatusUpdate(BaseModel):
    """Administrative status override. ON_TRIP is rejected by the coordinator."""
    status: VehicleStatus


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    model: Optional[str]
    license_plate: str
    vehicle_type: str
    region: Optional[str]
    max_capacity_kg: float
    odometer_km: float
    acquisition_cost: float
    status: VehicleStatus
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int
