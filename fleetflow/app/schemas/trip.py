"""
Trip Pydantic schemas.

Defines request and response models for the trip lifecycle.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from fleetflow.app.models.fleet_enums import TripStatus


class TripCreate(BaseModel):
    """
    Schema for creating a DRAFT trip.

    Vehicle and driver are validated but not claimed until dispatch.
    """
    vehicle_id: int = Field(..., gt=0)
    driver_id: int = Field(..., gt=0)
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    cargo_weight_kg: float = Field(..., gt=0, description="Must not exceed the vehicle's capacity")
    cargo_description: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class TripDispatch(BaseModel):
    """Defaults to the vehicle's current odometer when omitted."""
    start_odometer: Optional[float] = Field(None, ge=0)


class TripComplete(BaseModel):
    end_odometer: Optional[float] = Field(None, ge=0, description="Must not be below start_odometer")
    notes: Optional[str] = None


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    trip_code: Optional[str]
    vehicle_id: int
    driver_id: int
    origin: str
    destination: str
    cargo_description: Optional[str]
    cargo_weight_kg: float
    start_odometer: Optional[float]
    end_odometer: Optional[float]
    notes: Optional[str]
    status: TripStatus
    created_by: Optional[int]
    created_at: datetime
    dispatched_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True


class TripListResponse(BaseModel):
    trips: List[TripResponse]
    total: int
