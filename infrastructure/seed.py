"""Demo users and rooms loaded into the in-memory store at startup"""
import logging
from decimal import Decimal
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Room
from domain.enums import RoomType, UserRole
from domain.repositories import RoomRepository, UserRepository
from infrastructure.security import get_password_hash

logger = logging.getLogger(__name__)

# Fixed ids so tokens and fixtures stay stable across restarts
DEMO_USERS = [
    {
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174000"),
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@hotel.com",
        "role": UserRole.ADMIN,
        "plain_password": "admin123",
    },
    {
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174001"),
        "username": "frontdesk",
        "full_name": "Front Desk",
        "email": "frontdesk@hotel.com",
        "role": UserRole.STAFF,
        "plain_password": "staff123",
    },
    {
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174002"),
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "role": UserRole.GUEST,
        "plain_password": "guest123",
    },
    {
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174003"),
        "username": "guest2",
        "full_name": "Second Guest",
        "email": "guest2@example.com",
        "role": UserRole.GUEST,
        "plain_password": "guest123",
    },
]

DEMO_ROOMS = [
    ("101", RoomType.STANDARD, "99.99", 2),
    ("102", RoomType.STANDARD, "99.99", 2),
    ("201", RoomType.DELUXE, "149.99", 3),
    ("202", RoomType.DELUXE, "149.99", 3),
    ("301", RoomType.SUITE, "249.99", 4),
    ("302", RoomType.SUITE, "249.99", 4),
]


async def seed_users(users: UserRepository) -> None:
    for data in DEMO_USERS:
        if await users.find_by_username(data["username"]):
            continue
        fields = {k: v for k, v in data.items() if k != "plain_password"}
        await users.save(UserInDB(hashed_password=get_password_hash(data["plain_password"]), **fields))
    logger.info("Seeded %d demo users", len(DEMO_USERS))


async def seed_rooms(rooms: RoomRepository) -> None:
    for number, room_type, price, capacity in DEMO_ROOMS:
        if await rooms.find_by_number(number):
            continue
        await rooms.save(Room(
            room_number=number,
            room_type=room_type,
            price_per_night=Decimal(price),
            capacity=capacity,
            amenities=["wifi", "tv"] if room_type == RoomType.STANDARD else ["wifi", "tv", "minibar"],
        ))
    logger.info("Seeded %d demo rooms", len(DEMO_ROOMS))
