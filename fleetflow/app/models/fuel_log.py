"""
Fuel Log database model.

Append-only record of fuel fills; no status behaviour.
"""

from sqlalchemy import Column, Integer, Float, Date, DateTime, ForeignKey
from fleetflow.app.db.session import Base, utcnow


class FuelLog(Base):
    """Fuel log model."""
    __tablename__ = "fuel_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete="SET NULL"), nullable=True, index=True)

    liters = Column(Float, nullable=False)
    cost_per_liter = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False)
    odometer_at_fill = Column(Float, nullable=True)
    fuel_date = Column(Date, nullable=False)

    logged_by = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<FuelLog(id={self.id}, vehicle_id={self.vehicle_id}, liters={self.liters})>"
