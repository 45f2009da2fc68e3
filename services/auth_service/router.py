from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import (
    NicknameAvailability,
    NicknameUpdate,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from .service import AuthService, normalize_nickname

router = APIRouter(tags=["Authentication"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "auth", "status": "running"}


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT access token",
)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await AuthService.login(db, payload)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_user_by_id(db, user_id)


@router.get(
    "/nickname/available",
    response_model=NicknameAvailability,
    summary="Check whether a nickname is free for the caller",
)
async def nickname_available(
    nickname: str = Query(...),
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    value = normalize_nickname(nickname)
    available = await AuthService.is_nickname_available(db, value, self_id=user_id)
    return NicknameAvailability(nickname=value, available=available)


@router.put(
    "/me/nickname",
    response_model=UserResponse,
    summary="Change the caller's nickname",
)
async def update_nickname(
    payload: NicknameUpdate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.update_nickname(db, user_id, payload.nickname)
