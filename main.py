import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, ReservationResponse, ReservationListResponse, AvailabilityResponse,
    # Room
    CreateRoomRequest, UpdateRoomRequest, RoomResponse, RoomListResponse,
    # Admin
    DashboardStatsResponse, OccupancyPointResponse, RecentReservationResponse,
    RoomStatusDriftResponse, AdminUserResponse, UserListResponse,
    # Auth
    Token, UserResponse
)

from api import dependencies
from api.dependencies import (
    authenticate_user, get_current_active_user, get_admin_user,
    get_reservation_service, get_room_service, get_admin_service,
)
from api.errors import register_error_handlers
from infrastructure.config import settings
from infrastructure.logging_config import configure_logging
from infrastructure.security import create_access_token
from infrastructure.seed import seed_rooms, seed_users
from domain.auth import User
from domain.entities import Reservation, Room
from domain.enums import ReservationStatus, RoomStatus, RoomType, UserRole
from application.services import (
    AdminService, RecentReservation, ReservationService, RoomService, UserListItem,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and load demo data"""
    configure_logging()
    if settings.SEED_DEMO_DATA:
        await seed_users(dependencies.user_repo)
        await seed_rooms(dependencies.uow.rooms)
    logger.info("%s v%s started", settings.APP_NAME, settings.VERSION)
    yield
    logger.info("Application shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    description="Room reservation API with admission control, a reservation lifecycle and occupancy reports",
    version=settings.VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [f"{item.name}" for item in ReservationStatus],
        "description": "Reservation status values: PENDING, CONFIRMED, CHECKED_IN, CHECKED_OUT, CANCELLED"
    }

@app.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus enum values"""
    return {
        "values": [f"{item.name}" for item in RoomStatus],
        "description": "Room status values: AVAILABLE, OCCUPIED, MAINTENANCE"
    }

@app.get("/api/enums/room-type", tags=["Enum Reference"])
async def get_room_types():
    """Get all RoomType enum values"""
    return {
        "values": [f"{item.name}" for item in RoomType],
        "description": "Room type values: STANDARD, DELUXE, SUITE, EXECUTIVE, PRESIDENTIAL"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = await authenticate_user(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=RoomListResponse, tags=["Rooms"])
async def list_rooms(
    room_type: Optional[RoomType] = None,
    status: Optional[RoomStatus] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: RoomService = Depends(get_room_service)
):
    """List rooms with optional filters"""
    rooms, meta = await service.list_rooms(
        room_type=room_type, status=status, min_price=min_price, max_price=max_price,
        page=page, limit=limit,
    )
    return RoomListResponse(data=[_room_to_response(r) for r in rooms], pagination=meta)

@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(room_id: UUID, service: RoomService = Depends(get_room_service)):
    """Get room by ID"""
    return _room_to_response(await service.get_room(room_id))

@app.get("/api/rooms/{room_id}/availability", response_model=AvailabilityResponse, tags=["Rooms"])
async def check_room_availability(
    room_id: UUID,
    check_in: date,
    check_out: date,
    service: ReservationService = Depends(get_reservation_service)
):
    """Check whether a room can be booked for the given dates"""
    available = await service.check_availability(room_id, check_in, check_out)
    return AvailabilityResponse(room_id=room_id, check_in=check_in, check_out=check_out, available=available)

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_admin_user)
):
    """Create a room (admin only)"""
    room = await service.create_room(
        room_number=request.room_number,
        room_type=request.room_type,
        price_per_night=request.price_per_night,
        capacity=request.capacity,
        amenities=request.amenities,
        description=request.description,
        status=request.status,
    )
    return _room_to_response(room)

@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_admin_user)
):
    """Update a room; status accepts AVAILABLE or MAINTENANCE (admin only)"""
    room = await service.update_room(room_id, **request.model_dump(exclude_unset=True))
    return _room_to_response(room)

@app.delete("/api/rooms/{room_id}", status_code=204, tags=["Rooms"])
async def delete_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_admin_user)
):
    """Delete a room without active reservations (admin only)"""
    await service.delete_room(room_id)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation for the current user"""
    reservation = await service.create_reservation(
        user_id=current_user.user_id,
        room_id=request.room_id,
        check_in=request.check_in,
        check_out=request.check_out,
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations", response_model=ReservationListResponse, tags=["Reservations"])
async def list_reservations(
    status: Optional[ReservationStatus] = None,
    user_id: Optional[UUID] = None,
    room_id: Optional[UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_RESERVATION_LIMIT, ge=1, le=settings.MAX_PAGE_SIZE),
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """List reservations; guests only see their own"""
    reservations, meta = await service.list_reservations(
        requesting_user_id=current_user.user_id,
        is_admin=current_user.is_admin,
        status=status,
        user_id=user_id,
        room_id=room_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return ReservationListResponse(
        data=[_reservation_to_response(r) for r in reservations], pagination=meta
    )

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(
        reservation_id, current_user.user_id, current_user.is_admin
    )
    return _reservation_to_response(reservation)

@app.put("/api/reservations/{reservation_id}/confirm", response_model=ReservationResponse, tags=["Reservations"])
async def confirm_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_admin_user)
):
    """Confirm reservation"""
    return _reservation_to_response(await service.confirm(reservation_id))

@app.put("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_admin_user)
):
    """Check-in guest; the room becomes OCCUPIED"""
    return _reservation_to_response(await service.check_in(reservation_id))

@app.put("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Reservations"])
async def check_out_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_admin_user)
):
    """Check-out guest; the room becomes AVAILABLE"""
    return _reservation_to_response(await service.check_out(reservation_id))

@app.put("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation (owner or admin)"""
    reservation = await service.cancel(
        reservation_id, current_user.user_id, current_user.is_admin
    )
    return _reservation_to_response(reservation)

# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================

@app.get("/api/admin/dashboard", response_model=DashboardStatsResponse, tags=["Admin"])
async def get_dashboard_stats(
    service: AdminService = Depends(get_admin_service),
    current_user: User = Depends(get_admin_user)
):
    """Room, reservation and revenue totals"""
    stats = await service.get_dashboard_stats()
    return DashboardStatsResponse(**stats.model_dump())

@app.get("/api/admin/reservations/recent", response_model=List[RecentReservationResponse], tags=["Admin"])
async def get_recent_reservations(
    limit: int = Query(settings.DEFAULT_RECENT_LIMIT, ge=1, le=settings.MAX_RECENT_LIMIT),
    service: AdminService = Depends(get_admin_service),
    current_user: User = Depends(get_admin_user)
):
    """Newest reservations with user and room details"""
    recent = await service.get_recent_reservations(limit)
    return [_recent_to_response(item) for item in recent]

@app.get("/api/admin/rooms/occupancy", response_model=List[OccupancyPointResponse], tags=["Admin"])
async def get_room_occupancy(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: AdminService = Depends(get_admin_service),
    current_user: User = Depends(get_admin_user)
):
    """Daily occupancy; defaults to the last 30 days"""
    series = await service.get_room_occupancy(start_date, end_date)
    return [OccupancyPointResponse(**point.model_dump()) for point in series]

@app.get("/api/admin/rooms/audit", response_model=List[RoomStatusDriftResponse], tags=["Admin"])
async def audit_room_status(
    service: AdminService = Depends(get_admin_service),
    current_user: User = Depends(get_admin_user)
):
    """Rooms whose status disagrees with their checked-in reservations"""
    drifts = await service.audit_room_status()
    return [RoomStatusDriftResponse(**d.model_dump()) for d in drifts]

@app.get("/api/admin/users", response_model=UserListResponse, tags=["Admin"])
async def get_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    role: Optional[UserRole] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|username|email|reservation_count)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    service: AdminService = Depends(get_admin_service),
    current_user: User = Depends(get_admin_user)
):
    """Users with their reservation counts"""
    items, meta = await service.get_users(
        page=page, page_size=page_size, role=role, sort_by=sort_by, sort_order=sort_order
    )
    return UserListResponse(data=[_user_item_to_response(item) for item in items], pagination=meta)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation: Reservation) -> ReservationResponse:
    """Convert domain reservation to response DTO"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        user_id=reservation.user_id,
        room_id=reservation.room_id,
        check_in=reservation.check_in_date,
        check_out=reservation.check_out_date,
        nights=reservation.get_nights(),
        status=reservation.status,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        version=reservation.version
    )

def _room_to_response(room: Room) -> RoomResponse:
    """Convert domain room to response DTO"""
    return RoomResponse(**room.model_dump())

def _recent_to_response(item: RecentReservation) -> RecentReservationResponse:
    reservation = item.reservation
    nights = reservation.get_nights()
    return RecentReservationResponse(
        reservation_id=reservation.reservation_id,
        user_id=reservation.user_id,
        user_email=item.user_email,
        room_id=reservation.room_id,
        room_number=item.room_number,
        room_type=item.room_type,
        check_in=reservation.check_in_date,
        check_out=reservation.check_out_date,
        nights=nights,
        status=reservation.status,
        total_amount=nights * item.price_per_night if item.price_per_night is not None else None,
        created_at=reservation.created_at
    )

def _user_item_to_response(item: UserListItem) -> AdminUserResponse:
    return AdminUserResponse(**item.user.model_dump(), reservation_count=item.reservation_count)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
