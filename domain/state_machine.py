"""Reservation status state machine.

The legal lifecycle is written down as a table rather than spread across
conditionals; a status with no outgoing edges is terminal.
"""
from typing import Dict, FrozenSet, Optional

from domain.enums import ReservationStatus, RoomStatus
from domain.exceptions import InvalidStatusTransition

S = ReservationStatus

VALID_STATUS_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELLED}),
    S.CHECKED_IN: frozenset({S.CHECKED_OUT, S.CANCELLED}),
    S.CHECKED_OUT: frozenset(),
    S.CANCELLED: frozenset(),
}

# Edges only an administrator may take
PRIVILEGED_TRANSITIONS = frozenset({
    (S.CHECKED_IN, S.CANCELLED),
})

# Room status to apply when a transition commits; None leaves the room alone
ROOM_EFFECTS: Dict[tuple, Optional[RoomStatus]] = {
    (S.CONFIRMED, S.CHECKED_IN): RoomStatus.OCCUPIED,
    (S.CHECKED_IN, S.CHECKED_OUT): RoomStatus.AVAILABLE,
    (S.CHECKED_IN, S.CANCELLED): RoomStatus.AVAILABLE,
}

TERMINAL_STATUSES = frozenset(s for s, targets in VALID_STATUS_TRANSITIONS.items() if not targets)


def allowed_transitions(current: ReservationStatus) -> FrozenSet[ReservationStatus]:
    return VALID_STATUS_TRANSITIONS[current]


def is_terminal(status: ReservationStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: ReservationStatus, target: ReservationStatus, privileged: bool = True) -> bool:
    if target not in VALID_STATUS_TRANSITIONS[current]:
        return False
    if (current, target) in PRIVILEGED_TRANSITIONS and not privileged:
        return False
    return True


def ensure_transition(
    current: ReservationStatus,
    target: ReservationStatus,
    privileged: bool = True,
    reservation_id=None,
) -> None:
    """Raise InvalidStatusTransition unless ``current -> target`` is legal for the caller"""
    if target not in VALID_STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransition(current, target, reservation_id=reservation_id)
    if (current, target) in PRIVILEGED_TRANSITIONS and not privileged:
        raise InvalidStatusTransition(
            current, target, reservation_id=reservation_id,
            reason="only an administrator may cancel a checked-in stay",
        )


def room_effect(current: ReservationStatus, target: ReservationStatus) -> Optional[RoomStatus]:
    """Room status implied by a transition, if any"""
    return ROOM_EFFECTS.get((current, target))
