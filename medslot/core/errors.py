# medslot/core/errors.py
from __future__ import annotations

from fastapi import status


class SchedulingError(Exception):
    """
    Base for every error the booking core reports to its caller.

    Each error is scoped to one request. `code` is a stable snake_case
    identifier for clients, `message` is meant for the user.
    """

    code = "scheduling_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None, *, code: str | None = None):
        if code:
            self.code = code
        self.message = message or self.code
        super().__init__(self.message)


class InvalidTimeFormat(SchedulingError, ValueError):
    """Malformed HH:MM input."""

    code = "invalid_time_format"
    status_code = 422  # unprocessable entity


class InvalidAvailabilityRange(SchedulingError, ValueError):
    """Start is not strictly before end in a weekly rule or an override."""

    code = "invalid_availability_range"
    status_code = 422  # unprocessable entity


class SlotUnavailable(SchedulingError):
    code = "slot_unavailable"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(SchedulingError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class RemarksRequired(SchedulingError):
    code = "remarks_required"
    status_code = 422  # unprocessable entity


class NotFound(SchedulingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(SchedulingError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class SlotConflict(Exception):
    """
    Raised by the appointment repository when the storage layer rejects a
    second scheduled row for the same doctor, day and start time.
    """


__all__ = [
    "SchedulingError",
    "InvalidTimeFormat",
    "InvalidAvailabilityRange",
    "SlotUnavailable",
    "InvalidTransition",
    "RemarksRequired",
    "NotFound",
    "Forbidden",
    "SlotConflict",
]
