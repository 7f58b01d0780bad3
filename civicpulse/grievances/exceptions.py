"""
Error kinds raised by the grievance lifecycle and feedback operations.

Every guard raises before the grievance is mutated, so a caught error means
the stored record is untouched. Views map ``status_code`` onto the response.
"""

from typing import Any, Dict, Optional


class GrievanceError(Exception):
    status_code = 400
    error_code = "GRIEVANCE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        payload = {"error": self.error_code, "detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(GrievanceError):
    """Referenced grievance, user or feedback is missing."""

    status_code = 404
    error_code = "NOT_FOUND"


class InvalidArgumentError(GrievanceError):
    """Malformed status literal, rating outside 1..5, missing reason."""

    status_code = 400
    error_code = "INVALID_ARGUMENT"


class PreconditionFailedError(GrievanceError):
    """Grievance is in the wrong verification or status state."""

    status_code = 409
    error_code = "PRECONDITION_FAILED"


class ConflictError(GrievanceError):
    status_code = 409
    error_code = "CONFLICT"


class ForbiddenError(GrievanceError):
    status_code = 403
    error_code = "FORBIDDEN"
