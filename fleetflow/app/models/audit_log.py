"""
Audit Log Database Model.

Tracks fleet transitions and admin actions for later review.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from fleetflow.app.db.session import Base, utcnow


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - TRIP_CREATED / TRIP_DISPATCHED / TRIP_COMPLETED / TRIP_CANCELLED
    - MAINTENANCE_LOGGED / MAINTENANCE_RESOLVED / VEHICLE_RELEASED
    - VEHICLE_* / DRIVER_* administrative changes
    - USER_ACTIVATED / USER_DEACTIVATED, LOGIN_SUCCESS / LOGIN_FAILED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username})>"
