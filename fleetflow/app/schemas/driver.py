"""
Driver Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List
from fleetflow.app.models.fleet_enums import DriverStatus


class DriverCreate(BaseModel):
    """Schema for registering a new driver."""
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    license_number: str = Field(..., min_length=1, max_length=50, description="Unique license number")
    license_category: Optional[str] = Field(None, max_length=20, description="License class, stored upper-case")
    license_expiry: date = Field(..., description="Expiry date; an expired license blocks trips")
    safety_score: float = Field(100, ge=0, le=100)


class DriverUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    license_number: Optional[str] = Field(None, min_length=1, max_length=50)
    license_category: Optional[str] = Field(None, max_length=20)
    license_expiry: Optional[date] = None
    safety_score: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("name", "license_number", "license_expiry", "safety_score")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class DriverStatusUpdate(BaseModel):
    """Administrative status override. ON_TRIP is rejected by the coordinator."""
    status: DriverStatus


class DriverResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    license_number: str
    license_category: Optional[str]
    license_expiry: date
    safety_score: float
    trips_completed: int
    status: DriverStatus
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DriverListResponse(BaseModel):
    drivers: List[DriverResponse]
    total: int
