"""
Security guards for role-based access control.

Provides dependencies for protecting endpoints against the static
capability table in core.permissions.
"""

from fastapi import Depends
from fleetflow.app.models.enums import UserRole
from fleetflow.app.core.dependencies import get_current_user
from fleetflow.app.core.exceptions import InsufficientPermissionsError
from fleetflow.app.core.permissions import Operation, is_allowed


def _resolve_role(current_user: dict) -> UserRole:
    user_role_str = current_user.get("role")

    if not user_role_str:
        raise InsufficientPermissionsError("Role information missing from token")

    try:
        return UserRole(user_role_str)
    except ValueError:
        raise InsufficientPermissionsError("Invalid role in token", {"role": user_role_str})


def require_permission(operation: Operation):
    """
    Dependency factory for operation-based access control.

    Usage:
        @router.post("/trips/{trip_id}/dispatch")
        async def dispatch(current_user: dict = Depends(require_permission(Operation.DISPATCH_TRIP))):
            ...

    Raises:
        InsufficientPermissionsError (403) if the caller's role may not perform the operation
    """
    async def permission_checker(current_user: dict = Depends(get_current_user)) -> dict:
        role = _resolve_role(current_user)

        if not is_allowed(role, operation):
            raise InsufficientPermissionsError(
                f"Access denied. Role {role.value} may not perform {operation.value}",
                {"role": role.value, "operation": operation.value}
            )

        return current_user

    return permission_checker


def ensure_own_trip(current_user: dict, trip_driver_id: int) -> None:
    """DRIVER-role callers may only act on trips assigned to their linked driver record."""
    if current_user.get("role") != UserRole.DRIVER.value:
        return
    if current_user.get("driver_id") is None or current_user["driver_id"] != trip_driver_id:
        raise InsufficientPermissionsError(
            "Drivers can only complete their own trips",
            {"driver_id": current_user.get("driver_id")}
        )
