"""
Trip database model.

Trips are created as DRAFT and claim their vehicle and driver on dispatch.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum, Index, text
from fleetflow.app.db.session import Base, utcnow
from fleetflow.app.models.fleet_enums import TripStatus

_DISPATCHED = text("status = 'DISPATCHED'")


class Trip(Base):
    """
    Trip model.

    At most one DISPATCHED trip may reference a given vehicle or driver,
    enforced by partial unique indexes.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_code = Column(String(30), unique=True, nullable=True, index=True)

    # Assignment
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id', ondelete="RESTRICT"), nullable=False, index=True)

    # Route and cargo
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    cargo_description = Column(String(255), nullable=True)
    cargo_weight_kg = Column(Float, nullable=False)

    # Odometer readings
    start_odometer = Column(Float, nullable=True)
    end_odometer = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)

    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False, index=True)

    created_by = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_trips_dispatched_vehicle', 'vehicle_id', unique=True,
              postgresql_where=_DISPATCHED, sqlite_where=_DISPATCHED),
        Index('ix_trips_dispatched_driver', 'driver_id', unique=True,
              postgresql_where=_DISPATCHED, sqlite_where=_DISPATCHED),
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, code='{self.trip_code}', status='{self.status.value}')>"
