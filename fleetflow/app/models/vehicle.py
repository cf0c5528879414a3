"""
Vehicle database model.

Vehicles are registered by administrators; their status is driven by
trip dispatch/completion and maintenance.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from fleetflow.app.db.session import Base, utcnow
from fleetflow.app.models.fleet_enums import VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    ON_TRIP is only ever set by trip dispatch and cleared by completion
    or cancellation of that trip.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    name = Column(String(100), nullable=False)
    model = Column(String(100), nullable=True)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(50), nullable=False, default="VAN")
    region = Column(String(100), nullable=True)

    # Capacity (authoritative for trip creation)
    max_capacity_kg = Column(Float, nullable=False)

    odometer_km = Column(Float, nullable=False, default=0)
    acquisition_cost = Column(Float, nullable=False, default=0)

    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    created_by = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
