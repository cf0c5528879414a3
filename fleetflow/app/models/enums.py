"""
User roles enumeration.

Defines the role types for the FleetFlow backend.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Fleet administrator, full access to assets and users
        DISPATCHER: Creates and moves trips through their lifecycle
        SAFETY_OFFICER: Manages drivers and their compliance
        FINANCE_OFFICER: Records fuel spend, reads cost analytics
        DRIVER: Views trips, completes their own dispatched trips
    """
    ADMIN = "ADMIN"
    DISPATCHER = "DISPATCHER"
    SAFETY_OFFICER = "SAFETY_OFFICER"
    FINANCE_OFFICER = "FINANCE_OFFICER"
    DRIVER = "DRIVER"
