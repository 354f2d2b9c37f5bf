"""In-Memory Repository Implementations

Stored aggregates are copied on the way in and on the way out, so a caller
mutating an entity changes nothing until it writes it back. Writes made
inside ``InMemoryUnitOfWork.transaction`` are journaled and undone if the
block raises.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Dict, Hashable, List, Optional
from uuid import UUID

from domain import date_rules
from domain.auth import UserInDB
from domain.entities import Reservation, Room
from domain.enums import ACTIVE_STATUSES, RoomStatus
from domain.exceptions import DuplicateRoomNumber, OverlapConflict, RoomNotFound, ReservationNotFound
from domain.repositories import ReservationRepository, RoomRepository, UnitOfWork, UserRepository

logger = logging.getLogger(__name__)

_MISSING = object()

# Undo entries for the transaction running in the current task
_journal: ContextVar[Optional[list]] = ContextVar("in_memory_journal", default=None)


class _JournaledStore:
    """Dict-backed storage that records prior values while a transaction is open"""

    def __init__(self):
        self._storage: Dict[Hashable, Any] = {}

    def _put(self, key: Hashable, value: Any) -> None:
        self._remember(key)
        self._storage[key] = value.model_copy(deep=True)

    def _remove(self, key: Hashable) -> None:
        self._remember(key)
        del self._storage[key]

    def _get(self, key: Hashable) -> Optional[Any]:
        value = self._storage.get(key)
        return value.model_copy(deep=True) if value is not None else None

    def _values(self) -> List[Any]:
        return [v.model_copy(deep=True) for v in self._storage.values()]

    def _remember(self, key: Hashable) -> None:
        journal = _journal.get()
        if journal is not None:
            journal.append((self._storage, key, self._storage.get(key, _MISSING)))


class InMemoryReservationRepository(_JournaledStore, ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    async def insert(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory, enforcing the no-overlap constraint"""
        for existing in self._storage.values():
            if (
                existing.room_id == reservation.room_id
                and existing.status in ACTIVE_STATUSES
                and date_rules.overlaps(existing.date_range, reservation.date_range)
            ):
                raise OverlapConflict(
                    reservation.room_id,
                    reservation.check_in_date,
                    reservation.check_out_date,
                )
        self._put(reservation.reservation_id, reservation)
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._get(reservation_id)

    async def find_active_by_room(self, room_id: UUID) -> List[Reservation]:
        """Find active reservations for a room"""
        return [r for r in self._values() if r.room_id == room_id and r.status in ACTIVE_STATUSES]

    async def find_by_user(self, user_id: UUID) -> List[Reservation]:
        """Find reservations by user ID"""
        return [r for r in self._values() if r.user_id == user_id]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return self._values()

    async def update_status(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.reservation_id not in self._storage:
            raise ReservationNotFound(reservation.reservation_id)
        self._put(reservation.reservation_id, reservation)
        return reservation


class InMemoryRoomRepository(_JournaledStore, RoomRepository):
    """In-memory implementation of RoomRepository"""

    async def get(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        return self._get(room_id)

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by number"""
        for room in self._storage.values():
            if room.room_number == room_number:
                return room.model_copy(deep=True)
        return None

    async def find_all(self) -> List[Room]:
        """Find all rooms, ordered by room number"""
        return sorted(self._values(), key=lambda r: r.room_number)

    async def save(self, room: Room) -> Room:
        """Save room to memory, enforcing unique room numbers"""
        for existing in self._storage.values():
            if existing.room_number == room.room_number and existing.room_id != room.room_id:
                raise DuplicateRoomNumber(room.room_number)
        self._put(room.room_id, room)
        return room

    async def update_status(self, room_id: UUID, status: RoomStatus) -> Room:
        """Update room status"""
        room = self._get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        room.status = status
        self._put(room_id, room)
        return room

    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        if room_id in self._storage:
            self._remove(room_id)
            return True
        return False


class InMemoryUserRepository(_JournaledStore, UserRepository):
    """In-memory implementation of UserRepository"""

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        for user in self._storage.values():
            if user.username == username:
                return user.model_copy(deep=True)
        return None

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        return self._get(user_id)

    async def find_all(self) -> List[UserInDB]:
        return self._values()

    async def save(self, user: UserInDB) -> UserInDB:
        self._put(user.user_id, user)
        return user


class InMemoryUnitOfWork(UnitOfWork):
    """One lock per room; a failed transaction restores every row it wrote"""

    # Lock key for work not tied to a single room (e.g. room catalogue edits)
    CATALOG = "catalog"

    def __init__(
        self,
        reservations: Optional[InMemoryReservationRepository] = None,
        rooms: Optional[InMemoryRoomRepository] = None,
    ):
        self.reservations = reservations or InMemoryReservationRepository()
        self.rooms = rooms or InMemoryRoomRepository()
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def transaction(self, room_id: Optional[UUID] = None) -> AsyncIterator[None]:
        key = room_id if room_id is not None else self.CATALOG
        async with self._lock_for(key):
            journal: list = []
            token = _journal.set(journal)
            try:
                yield
            except BaseException:
                self._rollback(journal)
                logger.warning("Transaction on %s rolled back (%d writes undone)", key, len(journal))
                raise
            finally:
                _journal.reset(token)

    @staticmethod
    def _rollback(journal: list) -> None:
        for storage, key, previous in reversed(journal):
            if previous is _MISSING:
                storage.pop(key, None)
            else:
                storage[key] = previous
