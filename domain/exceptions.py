"""Domain Exceptions

Every error raised by the reservation core derives from
``ReservationSystemError`` and carries a machine readable ``code`` plus a
``context`` dict with the offending ids and statuses, so the API layer can
build an actionable response without parsing messages.
"""
from typing import Any, Dict, Optional


class ReservationSystemError(Exception):
    """Base class for reservation core errors"""

    code = "RESERVATION_SYSTEM_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "detail": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


def _jsonable(value: Any) -> Any:
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


# ==================== VALIDATION ====================

class ValidationFailure(ReservationSystemError):
    """Input rejected before any storage access"""

    code = "VALIDATION_ERROR"


class InvalidDateRange(ValidationFailure):
    code = "INVALID_DATE_RANGE"


class PastCheckInDate(ValidationFailure):
    code = "PAST_CHECK_IN_DATE"

    def __init__(self, check_in, today):
        super().__init__(
            "Check-in date cannot be in the past. Reservations must be for today or future dates.",
            check_in=check_in,
            today=today,
        )


# ==================== BUSINESS RULES ====================

class BusinessRuleViolation(ReservationSystemError):
    code = "BUSINESS_RULE_VIOLATION"


class RoomNotAvailable(BusinessRuleViolation):
    code = "ROOM_NOT_AVAILABLE"

    def __init__(self, room_id, check_in=None, check_out=None, reason: Optional[str] = None, **context: Any):
        if reason is None:
            reason = f"Room {room_id} is not available from {check_in} to {check_out}"
        super().__init__(reason, room_id=room_id, check_in=check_in, check_out=check_out, **context)


class InvalidStatusTransition(BusinessRuleViolation):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current_status, requested_status, reservation_id=None, reason: Optional[str] = None):
        current = getattr(current_status, "value", current_status)
        requested = getattr(requested_status, "value", requested_status)
        message = f"Cannot transition from {current} to {requested}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            reservation_id=reservation_id,
            current_status=current_status,
            requested_status=requested_status,
        )
        self.current_status = current_status
        self.requested_status = requested_status


class DuplicateRoomNumber(BusinessRuleViolation):
    code = "DUPLICATE_ROOM_NUMBER"

    def __init__(self, room_number: str):
        super().__init__(f"Room with number {room_number} already exists", room_number=room_number)


# ==================== ACCESS ====================

class UnauthorizedAccess(ReservationSystemError):
    code = "UNAUTHORIZED_ACCESS"

    def __init__(self, user_id, reservation_id):
        super().__init__(
            f"User {user_id} is not authorized to access reservation {reservation_id}",
            user_id=user_id,
            reservation_id=reservation_id,
        )


# ==================== LOOKUP ====================

class NotFound(ReservationSystemError):
    code = "NOT_FOUND"


class ReservationNotFound(NotFound):
    code = "RESERVATION_NOT_FOUND"

    def __init__(self, reservation_id):
        super().__init__(f"Reservation with ID {reservation_id} not found", reservation_id=reservation_id)


class RoomNotFound(NotFound):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_id):
        super().__init__(f"Room with ID {room_id} not found", room_id=room_id)


# ==================== STORAGE ====================

class StorageFailure(ReservationSystemError):
    """Collaborator I/O error. The message never includes the underlying cause."""

    code = "STORAGE_FAILURE"

    def __init__(self, operation: str, **context: Any):
        super().__init__(f"Storage operation failed: {operation}", operation=operation, **context)


class OverlapConflict(StorageFailure):
    """Raised by storage when an insert would break the no-overlap constraint"""

    code = "OVERLAP_CONFLICT"

    def __init__(self, room_id, check_in, check_out):
        super().__init__("insert reservation", room_id=room_id)
        self.room_id = room_id
        self.check_in = check_in
        self.check_out = check_out
