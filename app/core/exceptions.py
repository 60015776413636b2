"""
Domain exceptions raised by the service layer.

The API layer maps each class to an HTTP status in app.main.
"""
from typing import Optional


class TrackerError(Exception):
    """Base class for service-layer failures."""

    status_code = 500
    error_type = "TrackerError"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(TrackerError):
    """A referenced item, control or sub-control id does not exist."""

    status_code = 404
    error_type = "NotFound"

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with id {resource_id} not found"
        super().__init__(message)


class ValidationError(TrackerError):
    """Bad enum value, missing field or malformed request payload."""

    status_code = 422
    error_type = "ValidationError"


class PreconditionFailedError(TrackerError):
    """Illegal status transition, e.g. green while sub-controls are not all green."""

    status_code = 409
    error_type = "PreconditionFailed"


class StorageError(TrackerError):
    """Constraint violation or I/O failure in the storage engine."""

    status_code = 500
    error_type = "StorageFailure"
