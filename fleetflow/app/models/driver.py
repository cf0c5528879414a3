"""
Driver database model.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Enum
from fleetflow.app.db.session import Base, utcnow
from fleetflow.app.models.fleet_enums import DriverStatus


class Driver(Base):
    """
    Driver model.

    License expiry gates trip creation and dispatch. SUSPENDED drivers
    cannot be assigned to new trips.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)

    # License
    license_number = Column(String(50), unique=True, nullable=False, index=True)
    license_category = Column(String(20), nullable=True)
    license_expiry = Column(Date, nullable=False)

    safety_score = Column(Float, nullable=False, default=100)
    trips_completed = Column(Integer, nullable=False, default=0)

    status = Column(Enum(DriverStatus), default=DriverStatus.AVAILABLE, nullable=False, index=True)

    created_by = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, license='{self.license_number}', status='{self.status.value}')>"
