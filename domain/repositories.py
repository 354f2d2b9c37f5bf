"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional, List
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Reservation, Room
from domain.enums import RoomStatus


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def insert(self, reservation: Reservation) -> Reservation:
        """Insert a new reservation; rejects overlaps with active reservations"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_active_by_room(self, room_id: UUID) -> List[Reservation]:
        """Find PENDING, CONFIRMED and CHECKED_IN reservations for a room"""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> List[Reservation]:
        """Find reservations made by a user"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update_status(self, reservation: Reservation) -> Reservation:
        """Persist a status transition already applied to the aggregate"""
        pass


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def get(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by its unique number"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        """Find all rooms"""
        pass

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Insert or replace a room; room numbers are unique"""
        pass

    @abstractmethod
    async def update_status(self, room_id: UUID, status: RoomStatus) -> Room:
        """Set the room's operational status"""
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        pass


class UserRepository(ABC):
    """Repository interface for users"""

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_all(self) -> List[UserInDB]:
        pass

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        pass


class UnitOfWork(ABC):
    """Transaction boundary over the reservation and room repositories"""

    reservations: ReservationRepository
    rooms: RoomRepository

    @abstractmethod
    def transaction(self, room_id: Optional[UUID] = None) -> AsyncContextManager[None]:
        """Serialize work on ``room_id``; commit on exit, roll back on error"""
        pass
