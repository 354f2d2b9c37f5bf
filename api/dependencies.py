"""API Dependencies - Authentication and service wiring"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from domain.auth import User, UserInDB
from infrastructure.config import settings
from infrastructure.security import decode_access_token, verify_password
from infrastructure.repositories.in_memory_repositories import InMemoryUnitOfWork, InMemoryUserRepository
from application.services import AdminService, ReservationService, RoomService
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Process-wide stores; replaced wholesale by tests
uow = InMemoryUnitOfWork()
user_repo = InMemoryUserRepository()


# ============================================================================
# SERVICES
# ============================================================================

def get_reservation_service() -> ReservationService:
    return ReservationService(
        uow,
        max_stay_nights=settings.MAX_STAY_NIGHTS,
        max_advance_days=settings.MAX_ADVANCE_DAYS,
        max_page_size=settings.MAX_PAGE_SIZE,
    )

def get_room_service() -> RoomService:
    return RoomService(uow, max_page_size=settings.MAX_PAGE_SIZE)

def get_admin_service() -> AdminService:
    return AdminService(
        uow,
        user_repo,
        default_occupancy_days=settings.DEFAULT_OCCUPANCY_DAYS,
        max_recent_limit=settings.MAX_RECENT_LIMIT,
        max_page_size=settings.MAX_PAGE_SIZE,
    )


# ============================================================================
# AUTHENTICATION
# ============================================================================

async def authenticate_user(username: str, password: str):
    user = await user_repo.find_by_username(username)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user

async def get_current_user(token: str = Depends(oauth2_scheme)) -> UserInDB:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception
    username: str = payload.get("sub")
    if username is None:
        raise credentials_exception
    token_data = TokenData(username=username)

    user = await user_repo.find_by_username(token_data.username)
    if user is None:
        raise credentials_exception
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

async def get_admin_user(current_user: User = Depends(get_current_active_user)):
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return current_user
