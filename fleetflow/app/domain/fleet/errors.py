"""
Coordinator failure kinds.

These carry no transport details; the API layer maps them to responses.
"""

from typing import Any, Dict


class CoordinatorError(Exception):
    """Base class for business-rule failures. Raised before any write."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(CoordinatorError):
    """Referenced vehicle, driver, trip or log does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, {"resource": resource, "id": resource_id})


class ConflictError(CoordinatorError):
    """Entity is not in a state that permits the transition."""


class UnprocessableEntityError(CoordinatorError):
    """Well-formed request that breaks a business rule (capacity, license)."""


class BadRequestError(CoordinatorError):
    """Disallowed direct state assignment, e.g. setting ON_TRIP by hand."""


class StorageError(Exception):
    """
    Unexpected storage failure (connection loss, deadlock, lock timeout).

    Distinct from CoordinatorError: the operation may be retried as is.
    """

    def __init__(self, message: str = "Storage operation failed"):
        self.message = message
        super().__init__(message)
