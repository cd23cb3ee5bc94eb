"""
Domain error taxonomy.

The exceptions subclass FastAPI's HTTPException so services can raise them
directly and the framework renders the matching status code, while tests and
other callers can catch them by domain meaning.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class TimesheetError(HTTPException):
    """Base class for every domain error raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any = None, headers: Optional[dict] = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class ValidationError(TimesheetError):
    """Malformed input: non-positive hours, unknown WBS code, missing field."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(TimesheetError):
    """The caller may not perform the requested mutation."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(PermissionDeniedError):
    """The entry's current status does not allow the requested transition."""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(TimesheetError):
    status_code = status.HTTP_404_NOT_FOUND


class ExternalServiceError(TimesheetError):
    """The notification sink or the AI suggestion gateway failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
