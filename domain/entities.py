"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List
from decimal import Decimal

from domain import state_machine
from domain.enums import ACTIVE_STATUSES, ReservationStatus, RoomStatus, RoomType
from domain.exceptions import InvalidStatusTransition
from domain.value_objects import DateRange


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References
    user_id: UUID
    room_id: UUID

    # Value Objects
    date_range: DateRange

    status: ReservationStatus = ReservationStatus.PENDING

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(user_id: UUID, room_id: UUID, date_range: DateRange) -> "Reservation":
        """New reservations always start PENDING"""
        return Reservation(
            user_id=user_id,
            room_id=room_id,
            date_range=date_range,
            status=ReservationStatus.PENDING,
        )

    # ==================== STATE TRANSITION METHODS ====================
    def confirm(self) -> ReservationStatus:
        return self.transition_to(ReservationStatus.CONFIRMED)

    def check_in(self) -> ReservationStatus:
        return self.transition_to(ReservationStatus.CHECKED_IN)

    def check_out(self) -> ReservationStatus:
        return self.transition_to(ReservationStatus.CHECKED_OUT)

    def cancel(self, privileged: bool = False) -> ReservationStatus:
        return self.transition_to(ReservationStatus.CANCELLED, privileged=privileged)

    def transition_to(self, target: ReservationStatus, privileged: bool = True) -> ReservationStatus:
        """Move to ``target`` if the state machine allows it; returns the previous status"""
        state_machine.ensure_transition(
            self.status, target, privileged=privileged, reservation_id=self.reservation_id
        )
        previous = self.status
        self.status = target
        self.updated_at = _utcnow()
        self.version += 1
        return previous

    # ==================== QUERY METHODS ====================
    @property
    def check_in_date(self) -> date:
        return self.date_range.check_in

    @property
    def check_out_date(self) -> date:
        return self.date_range.check_out

    def is_active(self) -> bool:
        """Active reservations hold the room calendar"""
        return self.status in ACTIVE_STATUSES

    def is_terminal(self) -> bool:
        return state_machine.is_terminal(self.status)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    def get_nights(self) -> int:
        """Get number of nights"""
        return self.date_range.nights()


class Room(BaseModel):
    """Room Aggregate Root Entity"""

    # Identity
    room_id: UUID = Field(default_factory=uuid4)
    room_number: str = Field(min_length=1, max_length=10)

    room_type: RoomType = RoomType.STANDARD
    price_per_night: Decimal = Field(ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    capacity: int = Field(ge=1, default=2)
    amenities: List[str] = []
    description: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    class Config:
        from_attributes = True

    # ==================== STATUS METHODS ====================
    def occupy(self) -> None:
        """Guest checked in"""
        self._set_status(RoomStatus.OCCUPIED)

    def release(self) -> bool:
        """Guest left; a room under maintenance keeps its status. Returns True if changed."""
        if self.status == RoomStatus.MAINTENANCE:
            return False
        self._set_status(RoomStatus.AVAILABLE)
        return True

    def apply_status(self, status: RoomStatus) -> bool:
        """Apply a status implied by a reservation transition"""
        if status == RoomStatus.OCCUPIED:
            self.occupy()
            return True
        return self.release()

    def set_administrative_status(self, status: RoomStatus) -> None:
        """Maintenance override set by an administrator"""
        if status == RoomStatus.OCCUPIED:
            raise InvalidStatusTransition(
                self.status, status,
                reason="rooms become occupied only through check-in",
            )
        self._set_status(status)

    def is_under_maintenance(self) -> bool:
        return self.status == RoomStatus.MAINTENANCE

    def _set_status(self, status: RoomStatus) -> None:
        self.status = status
        self.updated_at = _utcnow()
