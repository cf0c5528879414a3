"""
Maintenance Log database model.

An unresolved log keeps its vehicle IN_SHOP.
"""

from sqlalchemy import Column, Integer, String, Float, Text, Date, DateTime, ForeignKey
from fleetflow.app.db.session import Base, utcnow


class MaintenanceLog(Base):
    """Maintenance log model. resolved_at is NULL while the service is open."""
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="RESTRICT"), nullable=False, index=True)

    service_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)
    cost = Column(Float, nullable=False, default=0)
    vendor = Column(String(255), nullable=True)
    service_date = Column(Date, nullable=True)
    odometer_at_service = Column(Float, nullable=True)

    logged_by = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def __repr__(self):
        return f"<MaintenanceLog(id={self.id}, vehicle_id={self.vehicle_id}, resolved={self.is_resolved})>"
