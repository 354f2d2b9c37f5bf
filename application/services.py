"""Application Services - Business use cases"""
import functools
import logging
import time
from uuid import UUID
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from domain import availability, date_rules, occupancy, state_machine
from domain.auth import User
from domain.clock import Clock, get_clock
from domain.entities import Reservation, Room
from domain.enums import ReservationStatus, RoomStatus, RoomType, UserRole
from domain.exceptions import (
    OverlapConflict, ReservationNotFound, ReservationSystemError, RoomNotAvailable,
    RoomNotFound, StorageFailure, DuplicateRoomNumber, UnauthorizedAccess, ValidationFailure,
)
from domain.repositories import UnitOfWork, UserRepository
from domain.value_objects import DateRange, PageMeta, Pagination

logger = logging.getLogger(__name__)


def surfaces_storage_errors(operation: str):
    """Let domain errors through; turn anything else raised by storage into StorageFailure"""
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ReservationSystemError:
                raise
            except Exception as exc:
                logger.exception("Storage failure during %s", operation)
                raise StorageFailure(operation) from exc
        return wrapper
    return decorator


class ReservationService:
    """Admission control and the reservation lifecycle"""

    def __init__(self,
                 uow: UnitOfWork,
                 clock: Optional[Clock] = None,
                 max_stay_nights: int = 30,
                 max_advance_days: int = 365,
                 max_page_size: int = 100):
        self.uow = uow
        self.clock = clock
        self.max_stay_nights = max_stay_nights
        self.max_advance_days = max_advance_days
        self.max_page_size = max_page_size

    def _validate_request_dates(self, check_in, check_out) -> DateRange:
        """All date checks happen here, before any storage access"""
        clock = self.clock or get_clock()
        date_rules.is_valid(check_in, check_out)
        date_rules.is_valid_check_in(check_in, clock)
        date_rules.ensure_stay_limits(
            check_in, check_out, self.max_stay_nights, self.max_advance_days, clock
        )
        return DateRange.of(check_in, check_out)

    async def _load_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.uow.reservations.find_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    async def _load_room(self, room_id: UUID) -> Room:
        room = await self.uow.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    # ==================== ADMISSION ====================
    @surfaces_storage_errors("check room availability")
    async def check_availability(self, room_id: UUID, check_in, check_out) -> bool:
        """Whether a new reservation for these dates would be admitted right now"""
        date_range = self._validate_request_dates(check_in, check_out)
        room = await self._load_room(room_id)
        if room.is_under_maintenance():
            return False

        active = await self.uow.reservations.find_active_by_room(room_id)
        is_available = availability.is_room_available(room_id, date_range, active)
        logger.info(
            "Room availability check: room=%s %s..%s available=%s",
            room_id, date_range.check_in, date_range.check_out, is_available,
        )
        return is_available

    @surfaces_storage_errors("create reservation")
    async def create_reservation(self, user_id: UUID, room_id: UUID, check_in, check_out) -> Reservation:
        """Create a PENDING reservation if the room is free for the whole stay"""
        date_range = self._validate_request_dates(check_in, check_out)
        logger.info(
            "Creating reservation: user=%s room=%s %s..%s",
            user_id, room_id, date_range.check_in, date_range.check_out,
        )

        async with self.uow.transaction(room_id):
            room = await self._load_room(room_id)
            if room.is_under_maintenance():
                raise RoomNotAvailable(
                    room_id, date_range.check_in, date_range.check_out,
                    reason=f"Room {room.room_number} is under maintenance",
                    room_status=room.status,
                )

            active = await self.uow.reservations.find_active_by_room(room_id)
            conflicts = availability.find_conflicts(room_id, date_range, active)
            if conflicts:
                logger.warning(
                    "Reservation rejected: room=%s %s..%s overlaps %d active reservation(s)",
                    room_id, date_range.check_in, date_range.check_out, len(conflicts),
                )
                raise RoomNotAvailable(
                    room_id, date_range.check_in, date_range.check_out,
                    conflicting_reservation_id=conflicts[0].reservation_id,
                )

            reservation = Reservation.create(user_id=user_id, room_id=room_id, date_range=date_range)
            try:
                await self.uow.reservations.insert(reservation)
            except OverlapConflict as exc:
                raise RoomNotAvailable(room_id, date_range.check_in, date_range.check_out) from exc

        logger.info("Reservation created: id=%s status=%s", reservation.reservation_id, reservation.status.value)
        return reservation

    # ==================== LIFECYCLE ====================
    async def _apply_transition(
        self,
        reservation_id: UUID,
        target: ReservationStatus,
        privileged: bool = True,
    ) -> Reservation:
        # Room id is needed to pick the lock; state is re-read under it
        located = await self._load_reservation(reservation_id)

        async with self.uow.transaction(located.room_id):
            reservation = await self._load_reservation(reservation_id)
            previous = reservation.transition_to(target, privileged=privileged)
            await self.uow.reservations.update_status(reservation)

            effect = state_machine.room_effect(previous, target)
            if effect is not None:
                room = await self._load_room(reservation.room_id)
                if room.apply_status(effect):
                    await self.uow.rooms.update_status(room.room_id, room.status)
                else:
                    logger.info("Room %s left in %s", room.room_number, room.status.value)

        logger.info(
            "Reservation %s: %s -> %s", reservation_id, previous.value, reservation.status.value
        )
        return reservation

    @surfaces_storage_errors("confirm reservation")
    async def confirm(self, reservation_id: UUID) -> Reservation:
        """PENDING -> CONFIRMED"""
        return await self._apply_transition(reservation_id, ReservationStatus.CONFIRMED)

    @surfaces_storage_errors("check in")
    async def check_in(self, reservation_id: UUID) -> Reservation:
        """CONFIRMED -> CHECKED_IN; the room becomes OCCUPIED"""
        return await self._apply_transition(reservation_id, ReservationStatus.CHECKED_IN)

    @surfaces_storage_errors("check out")
    async def check_out(self, reservation_id: UUID) -> Reservation:
        """CHECKED_IN -> CHECKED_OUT; the room becomes AVAILABLE unless under maintenance"""
        return await self._apply_transition(reservation_id, ReservationStatus.CHECKED_OUT)

    @surfaces_storage_errors("cancel reservation")
    async def cancel(self, reservation_id: UUID, requesting_user_id: UUID, is_admin: bool) -> Reservation:
        """Cancel a reservation.

        Owners and admins may cancel PENDING or CONFIRMED reservations; only
        admins may cancel a CHECKED_IN stay, which frees the room. Ownership
        is checked before the status.
        """
        reservation = await self._load_reservation(reservation_id)
        if not is_admin and not reservation.is_owned_by(requesting_user_id):
            logger.warning("User %s denied cancel of reservation %s", requesting_user_id, reservation_id)
            raise UnauthorizedAccess(requesting_user_id, reservation_id)

        return await self._apply_transition(
            reservation_id, ReservationStatus.CANCELLED, privileged=is_admin
        )

    # ==================== QUERIES ====================
    @surfaces_storage_errors("fetch reservation")
    async def get_reservation(self, reservation_id: UUID, requesting_user_id: UUID, is_admin: bool) -> Reservation:
        reservation = await self._load_reservation(reservation_id)
        if not is_admin and not reservation.is_owned_by(requesting_user_id):
            raise UnauthorizedAccess(requesting_user_id, reservation_id)
        return reservation

    @surfaces_storage_errors("fetch reservations")
    async def list_reservations(
        self,
        requesting_user_id: UUID,
        is_admin: bool,
        status: Optional[ReservationStatus] = None,
        user_id: Optional[UUID] = None,
        room_id: Optional[UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Reservation], PageMeta]:
        """Guests only ever see their own reservations; admins may filter by user"""
        pagination = Pagination.clamp(page, limit, self.max_page_size)

        if is_admin:
            reservations = (
                await self.uow.reservations.find_by_user(user_id) if user_id
                else await self.uow.reservations.find_all()
            )
        else:
            reservations = await self.uow.reservations.find_by_user(requesting_user_id)

        if status is not None:
            reservations = [r for r in reservations if r.status == status]
        if room_id is not None:
            reservations = [r for r in reservations if r.room_id == room_id]
        if date_from is not None:
            reservations = [r for r in reservations if r.check_in_date >= date_from]
        if date_to is not None:
            reservations = [r for r in reservations if r.check_out_date <= date_to]

        reservations.sort(key=lambda r: r.created_at, reverse=True)
        page_items = reservations[pagination.offset:pagination.offset + pagination.limit]
        return page_items, PageMeta.build(pagination, len(reservations))


class RoomService:
    """Room catalogue and the administrative maintenance override"""

    def __init__(self, uow: UnitOfWork, max_page_size: int = 100):
        self.uow = uow
        self.max_page_size = max_page_size

    async def _load_room(self, room_id: UUID) -> Room:
        room = await self.uow.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    @staticmethod
    def _build_room(**fields) -> Room:
        try:
            return Room(**fields)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first["loc"])
            raise ValidationFailure(f"Invalid room {field}: {first['msg']}", field=field) from exc

    @surfaces_storage_errors("fetch rooms")
    async def list_rooms(
        self,
        room_type: Optional[RoomType] = None,
        status: Optional[RoomStatus] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Room], PageMeta]:
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationFailure(
                "Minimum price cannot be greater than maximum price",
                min_price=min_price, max_price=max_price,
            )
        pagination = Pagination.clamp(page, limit, self.max_page_size)

        rooms = await self.uow.rooms.find_all()
        if room_type is not None:
            rooms = [r for r in rooms if r.room_type == room_type]
        if status is not None:
            rooms = [r for r in rooms if r.status == status]
        if min_price is not None:
            rooms = [r for r in rooms if r.price_per_night >= min_price]
        if max_price is not None:
            rooms = [r for r in rooms if r.price_per_night <= max_price]

        page_items = rooms[pagination.offset:pagination.offset + pagination.limit]
        return page_items, PageMeta.build(pagination, len(rooms))

    @surfaces_storage_errors("fetch room")
    async def get_room(self, room_id: UUID) -> Room:
        return await self._load_room(room_id)

    @surfaces_storage_errors("create room")
    async def create_room(
        self,
        room_number: str,
        room_type: RoomType,
        price_per_night: Decimal,
        capacity: int = 2,
        amenities: Optional[List[str]] = None,
        description: Optional[str] = None,
        status: RoomStatus = RoomStatus.AVAILABLE,
    ) -> Room:
        room = self._build_room(
            room_number=room_number,
            room_type=room_type,
            price_per_night=price_per_night,
            capacity=capacity,
            amenities=amenities or [],
            description=description,
        )
        room.set_administrative_status(status)

        async with self.uow.transaction():
            if await self.uow.rooms.find_by_number(room_number):
                raise DuplicateRoomNumber(room_number)
            await self.uow.rooms.save(room)

        logger.info("Room created: %s (%s) id=%s", room.room_number, room.room_type.value, room.room_id)
        return room

    @surfaces_storage_errors("update room")
    async def update_room(
        self,
        room_id: UUID,
        room_number: Optional[str] = None,
        room_type: Optional[RoomType] = None,
        price_per_night: Optional[Decimal] = None,
        capacity: Optional[int] = None,
        amenities: Optional[List[str]] = None,
        description: Optional[str] = None,
        status: Optional[RoomStatus] = None,
    ) -> Room:
        async with self.uow.transaction(room_id):
            room = await self._load_room(room_id)

            if room_number is not None and room_number != room.room_number:
                existing = await self.uow.rooms.find_by_number(room_number)
                if existing and existing.room_id != room_id:
                    raise DuplicateRoomNumber(room_number)

            changes = {
                "room_number": room_number,
                "room_type": room_type,
                "price_per_night": price_per_night,
                "capacity": capacity,
                "amenities": amenities,
                "description": description,
            }
            data = room.model_dump()
            data.update({k: v for k, v in changes.items() if v is not None})
            updated = self._build_room(**data)

            if status is not None:
                updated.set_administrative_status(status)
                if status == RoomStatus.AVAILABLE:
                    # Lifting maintenance restores the status derived from current stays
                    active = await self.uow.reservations.find_active_by_room(room_id)
                    if any(r.status == ReservationStatus.CHECKED_IN for r in active):
                        updated.occupy()

            updated.updated_at = datetime.now(timezone.utc)
            await self.uow.rooms.save(updated)

        logger.info("Room updated: %s status=%s", updated.room_number, updated.status.value)
        return updated

    @surfaces_storage_errors("delete room")
    async def delete_room(self, room_id: UUID) -> None:
        async with self.uow.transaction(room_id):
            room = await self._load_room(room_id)
            active = await self.uow.reservations.find_active_by_room(room_id)
            if active:
                raise RoomNotAvailable(
                    room_id,
                    reason=f"Room {room.room_number} has {len(active)} active reservation(s)",
                )
            await self.uow.rooms.delete(room_id)
        logger.info("Room deleted: %s", room.room_number)


# ==================== ADMIN READ MODELS ====================

class RecentReservation(BaseModel):
    reservation: Reservation
    user_email: Optional[str] = None
    room_number: Optional[str] = None
    room_type: Optional[RoomType] = None
    price_per_night: Optional[Decimal] = None


class UserListItem(BaseModel):
    user: User
    reservation_count: int


USER_SORT_FIELDS = ("created_at", "username", "email", "reservation_count")


class AdminService:
    """Dashboard statistics, occupancy reports and user listings"""

    def __init__(self,
                 uow: UnitOfWork,
                 users: UserRepository,
                 clock: Optional[Clock] = None,
                 default_occupancy_days: int = 30,
                 max_recent_limit: int = 50,
                 max_page_size: int = 100):
        self.uow = uow
        self.users = users
        self.clock = clock
        self.default_occupancy_days = default_occupancy_days
        self.max_recent_limit = max_recent_limit
        self.max_page_size = max_page_size

    @surfaces_storage_errors("calculate dashboard statistics")
    async def get_dashboard_stats(self) -> occupancy.DashboardStats:
        started = time.perf_counter()
        rooms = await self.uow.rooms.find_all()
        reservations = await self.uow.reservations.find_all()

        stats = occupancy.dashboard_stats(rooms, reservations)
        logger.info(
            "Dashboard statistics calculated in %.1fms: occupancy=%s%% reservations=%d revenue=%s",
            (time.perf_counter() - started) * 1000,
            stats.occupancy_rate, stats.total_reservations, stats.revenue,
        )
        return stats

    @surfaces_storage_errors("calculate room occupancy")
    async def get_room_occupancy(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[occupancy.OccupancyPoint]:
        """Daily occupancy; defaults to the last ``default_occupancy_days`` through today"""
        today = (self.clock or get_clock()).today()
        end = date_rules.to_calendar_date(end_date, "end_date") if end_date else today
        start = (
            date_rules.to_calendar_date(start_date, "start_date") if start_date
            else today - timedelta(days=self.default_occupancy_days)
        )

        rooms = await self.uow.rooms.find_all()
        reservations = await self.uow.reservations.find_all()
        series = occupancy.room_occupancy_series(rooms, reservations, start, end)

        if not series:
            logger.warning("No rooms found in system")
        else:
            logger.info(
                "Room occupancy calculated: %s..%s days=%d average=%s%%",
                start, end, len(series), occupancy.average_rate(series),
            )
        return series

    @surfaces_storage_errors("fetch recent reservations")
    async def get_recent_reservations(self, limit: int = 10) -> List[RecentReservation]:
        limit = min(max(limit, 1), self.max_recent_limit)

        reservations = await self.uow.reservations.find_all()
        reservations.sort(key=lambda r: r.created_at, reverse=True)

        recent = []
        for reservation in reservations[:limit]:
            user = await self.users.find_by_id(reservation.user_id)
            room = await self.uow.rooms.get(reservation.room_id)
            recent.append(RecentReservation(
                reservation=reservation,
                user_email=user.email if user else None,
                room_number=room.room_number if room else None,
                room_type=room.room_type if room else None,
                price_per_night=room.price_per_night if room else None,
            ))
        return recent

    @surfaces_storage_errors("fetch user list")
    async def get_users(
        self,
        page: int = 1,
        page_size: int = 20,
        role: Optional[UserRole] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[UserListItem], PageMeta]:
        if sort_by not in USER_SORT_FIELDS:
            raise ValidationFailure(f"Cannot sort users by {sort_by}", sort_by=sort_by)
        if sort_order not in ("asc", "desc"):
            raise ValidationFailure("Sort order must be 'asc' or 'desc'", sort_order=sort_order)
        pagination = Pagination.clamp(page, page_size, self.max_page_size)

        users = await self.users.find_all()
        if role is not None:
            users = [u for u in users if u.role == role]

        reservations = await self.uow.reservations.find_all()
        counts = {}
        for reservation in reservations:
            counts[reservation.user_id] = counts.get(reservation.user_id, 0) + 1

        items = [
            UserListItem(
                user=User(**u.model_dump(exclude={"hashed_password"})),
                reservation_count=counts.get(u.user_id, 0),
            )
            for u in users
        ]

        def sort_key(item: UserListItem):
            if sort_by == "reservation_count":
                return item.reservation_count
            return getattr(item.user, sort_by) or ""

        items.sort(key=sort_key, reverse=(sort_order == "desc"))
        page_items = items[pagination.offset:pagination.offset + pagination.limit]
        return page_items, PageMeta.build(pagination, len(items))

    @surfaces_storage_errors("audit room status")
    async def audit_room_status(self) -> List[occupancy.RoomStatusDrift]:
        rooms = await self.uow.rooms.find_all()
        reservations = await self.uow.reservations.find_all()
        drifts = occupancy.room_status_audit(rooms, reservations)
        if drifts:
            logger.warning("Room status drift detected in %d room(s)", len(drifts))
        return drifts
