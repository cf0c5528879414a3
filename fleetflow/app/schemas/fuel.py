"""
Fuel log Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List


class FuelLogCreate(BaseModel):
    """total_cost is derived as liters x cost_per_liter."""
    vehicle_id: int = Field(..., gt=0)
    trip_id: Optional[int] = Field(None, gt=0, description="Must belong to the same vehicle")
    liters: float = Field(..., gt=0)
    cost_per_liter: float = Field(..., gt=0)
    odometer_at_fill: Optional[float] = Field(None, ge=0)
    fuel_date: Optional[date] = Field(None, description="Defaults to today")


class FuelLogResponse(BaseModel):
    id: int
    vehicle_id: int
    trip_id: Optional[int]
    liters: float
    cost_per_liter: float
    total_cost: float
    odometer_at_fill: Optional[float]
    fuel_date: date
    logged_by: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class FuelLogListResponse(BaseModel):
    fuel_logs: List[FuelLogResponse]
    total: int
