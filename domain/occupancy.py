"""Occupancy and revenue aggregation over room / reservation snapshots"""
from collections import Counter
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel

from domain import date_rules
from domain.entities import Reservation, Room
from domain.enums import ACTIVE_STATUSES, REALIZED_STATUSES, ReservationStatus, RoomStatus
from domain.exceptions import InvalidDateRange

TWO_PLACES = Decimal("0.01")


def _round2(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DashboardStats(BaseModel):
    total_rooms: int
    available_rooms: int
    occupancy_rate: Decimal
    total_reservations: int
    pending_reservations: int
    confirmed_reservations: int
    checked_in_guests: int
    checked_out_reservations: int
    cancelled_reservations: int
    revenue: Decimal


class OccupancyPoint(BaseModel):
    date: date
    occupied_rooms: int
    total_rooms: int
    rate: Decimal


class RoomStatusDrift(BaseModel):
    room_id: UUID
    room_number: str
    recorded_status: RoomStatus
    expected_status: RoomStatus


def occupancy_rate(occupied: int, total: int) -> Decimal:
    if total == 0:
        return _round2(0)
    return _round2(Decimal(occupied) * 100 / Decimal(total))


def dashboard_stats(rooms: Sequence[Room], reservations: Sequence[Reservation]) -> DashboardStats:
    total_rooms = len(rooms)
    available_rooms = sum(1 for r in rooms if r.status == RoomStatus.AVAILABLE)
    by_status = Counter(r.status for r in reservations)
    prices: Dict[UUID, Decimal] = {room.room_id: room.price_per_night for room in rooms}

    revenue = Decimal("0")
    for reservation in reservations:
        if reservation.status not in REALIZED_STATUSES:
            continue
        price = prices.get(reservation.room_id)
        if price is None:
            continue
        nights = date_rules.night_count(reservation.check_in_date, reservation.check_out_date)
        revenue += nights * price

    return DashboardStats(
        total_rooms=total_rooms,
        available_rooms=available_rooms,
        occupancy_rate=occupancy_rate(total_rooms - available_rooms, total_rooms),
        total_reservations=len(reservations),
        pending_reservations=by_status[ReservationStatus.PENDING],
        confirmed_reservations=by_status[ReservationStatus.CONFIRMED],
        checked_in_guests=by_status[ReservationStatus.CHECKED_IN],
        checked_out_reservations=by_status[ReservationStatus.CHECKED_OUT],
        cancelled_reservations=by_status[ReservationStatus.CANCELLED],
        revenue=_round2(revenue),
    )


def room_occupancy_series(
    rooms: Sequence[Room],
    reservations: Iterable[Reservation],
    from_date: date_rules.DateLike,
    to_date: date_rules.DateLike,
) -> List[OccupancyPoint]:
    """Occupied room count for every day of ``[from_date, to_date]``.

    Only active reservations (pending, confirmed or checked in) hold a room;
    the check-out day itself is not occupied.
    """
    start = date_rules.to_calendar_date(from_date, "start_date")
    end = date_rules.to_calendar_date(to_date, "end_date")
    if start > end:
        raise InvalidDateRange(
            "Start date must be before or equal to end date",
            start_date=start,
            end_date=end,
        )

    total_rooms = len(rooms)
    if total_rooms == 0:
        return []

    room_ids = {room.room_id for room in rooms}
    stays = [
        r for r in reservations
        if r.status in ACTIVE_STATUSES
        and r.room_id in room_ids
        and r.check_in_date <= end
        and r.check_out_date > start
    ]

    series = []
    for day in date_rules.each_day(start, end):
        occupied = len({r.room_id for r in stays if r.date_range.contains(day)})
        series.append(OccupancyPoint(
            date=day,
            occupied_rooms=occupied,
            total_rooms=total_rooms,
            rate=occupancy_rate(occupied, total_rooms),
        ))
    return series


def average_rate(series: Sequence[OccupancyPoint]) -> Optional[Decimal]:
    if not series:
        return None
    return _round2(sum(p.rate for p in series) / len(series))


def room_status_audit(rooms: Sequence[Room], reservations: Iterable[Reservation]) -> List[RoomStatusDrift]:
    """Rooms whose cached status disagrees with their checked-in reservations"""
    checked_in = {r.room_id for r in reservations if r.status == ReservationStatus.CHECKED_IN}

    drifts = []
    for room in rooms:
        if room.status == RoomStatus.MAINTENANCE:
            continue
        expected = RoomStatus.OCCUPIED if room.room_id in checked_in else RoomStatus.AVAILABLE
        if room.status != expected:
            drifts.append(RoomStatusDrift(
                room_id=room.room_id,
                room_number=room.room_number,
                recorded_status=room.status,
                expected_status=expected,
            ))
    return drifts
