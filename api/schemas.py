"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.enums import ReservationStatus, RoomStatus, RoomType, UserRole
from domain.value_objects import PageMeta


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    room_id: UUID
    # Accept strings so date checks run in the domain and report its error codes
    check_in: str
    check_out: str


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    user_id: UUID
    room_id: UUID
    check_in: date
    check_out: date
    nights: int
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime
    version: int


class ReservationListResponse(BaseModel):
    """Paginated reservation list DTO"""
    data: List[ReservationResponse]
    pagination: PageMeta


class AvailabilityResponse(BaseModel):
    """Room availability response DTO"""
    room_id: UUID
    check_in: date
    check_out: date
    available: bool


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1, max_length=10)
    room_type: RoomType = RoomType.STANDARD
    price_per_night: Decimal = Field(ge=0)
    capacity: int = Field(ge=1, le=20, default=2)
    amenities: List[str] = []
    description: Optional[str] = None
    status: RoomStatus = RoomStatus.AVAILABLE


class UpdateRoomRequest(BaseModel):
    """Update room request DTO"""
    room_number: Optional[str] = Field(None, min_length=1, max_length=10)
    room_type: Optional[RoomType] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=1, le=20)
    amenities: Optional[List[str]] = None
    description: Optional[str] = None
    status: Optional[RoomStatus] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    room_number: str
    room_type: RoomType
    price_per_night: Decimal
    status: RoomStatus
    capacity: int
    amenities: List[str]
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RoomListResponse(BaseModel):
    """Paginated room list DTO"""
    data: List[RoomResponse]
    pagination: PageMeta


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================

class DashboardStatsResponse(BaseModel):
    """Dashboard statistics DTO"""
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


class OccupancyPointResponse(BaseModel):
    """Daily occupancy DTO"""
    date: date
    occupied_rooms: int
    total_rooms: int
    rate: Decimal


class RecentReservationResponse(BaseModel):
    """Recent reservation DTO, with user and room summary"""
    reservation_id: UUID
    user_id: UUID
    user_email: Optional[str] = None
    room_id: UUID
    room_number: Optional[str] = None
    room_type: Optional[RoomType] = None
    check_in: date
    check_out: date
    nights: int
    status: ReservationStatus
    total_amount: Optional[Decimal] = None
    created_at: datetime


class RoomStatusDriftResponse(BaseModel):
    """Room status drift DTO"""
    room_id: UUID
    room_number: str
    recorded_status: RoomStatus
    expected_status: RoomStatus


class AdminUserResponse(BaseModel):
    """User list item DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    disabled: bool
    created_at: datetime
    reservation_count: int


class UserListResponse(BaseModel):
    """Paginated user list DTO"""
    data: List[AdminUserResponse]
    pagination: PageMeta


class ErrorResponse(BaseModel):
    """Error body DTO"""
    error: str
    detail: str
    context: Dict[str, Any] = {}


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    disabled: bool
