"""
Error taxonomy shared by the storage layer, the routes and the automation tools.

Every error carries the HTTP status the route layer answers with, so handlers
in ``main.py`` can translate them without knowing each type.
"""
from typing import Optional


class TrackerError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(TrackerError):
    """Malformed or missing input. Only the first violated constraint is reported."""

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, field: Optional[str], message: str):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class Unauthorized(TrackerError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(TrackerError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(TrackerError):
    status_code = 404
    default_message = "Not found"


class Internal(TrackerError):
    status_code = 500
    default_message = "Internal server error"


class StoreError(Internal):
    """The document store failed. Never retried; details stay in the logs."""
