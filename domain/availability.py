"""Room availability - the admission control predicate.

The caller supplies the reservations to compare against; nothing here
touches storage, so the check can run inside whatever transaction the
caller holds.
"""
from typing import Iterable, List
from uuid import UUID

from domain import date_rules
from domain.entities import Reservation
from domain.enums import ACTIVE_STATUSES


def find_conflicts(room_id: UUID, candidate_range, reservations: Iterable[Reservation]) -> List[Reservation]:
    """Active reservations for ``room_id`` that overlap the candidate range"""
    date_rules.is_valid(candidate_range.check_in, candidate_range.check_out)
    return [
        r for r in reservations
        if r.room_id == room_id
        and r.status in ACTIVE_STATUSES
        and date_rules.overlaps(r.date_range, candidate_range)
    ]


def is_room_available(room_id: UUID, candidate_range, active_reservations: Iterable[Reservation]) -> bool:
    """True iff no active reservation for the room overlaps ``candidate_range``.

    Exact duplicates and containment both count as overlap; a stay that
    starts on another's check-out day does not.
    """
    return not find_conflicts(room_id, candidate_range, active_reservations)
