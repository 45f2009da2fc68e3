"""
Account and profile rules: registration, login and nicknames.

Nicknames are unique case-insensitively. The availability check is a
courtesy for the form; the unique constraint is the actual guard, so a
race between two registrations still ends in Conflict rather than a 500.
"""
from typing import Optional

import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, NotFound, ValidationError
from shared.security.jwt_handler import create_access_token

from .models import User
from .repository import UserRepository
from .schemas import TokenResponse, UserCreate, UserLogin

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

NICKNAME_MAX_LENGTH = 30


def normalize_nickname(value: Optional[str]) -> str:
    nickname = (value or "").strip()
    if not nickname:
        raise ValidationError("Enter a nickname.")
    if len(nickname) > NICKNAME_MAX_LENGTH:
        raise ValidationError(f"Nickname must be at most {NICKNAME_MAX_LENGTH} characters.")
    return nickname


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> User:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise Conflict("Email already registered")

        nickname = None
        if data.nickname is not None:
            nickname = normalize_nickname(data.nickname)
            if not await AuthService.is_nickname_available(db, nickname):
                raise Conflict("Nickname is already taken")

        user = User(
            email=data.email,
            hashed_password=AuthService._hash_password(data.password),
            nickname=nickname,
        )
        try:
            user = await UserRepository.create(db, user)
        except IntegrityError:
            await db.rollback()
            raise Conflict("Email or nickname already registered")
        logger.info("user_registered", user_id=user.id)
        return user

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_email(db, data.email)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled",
            )
        token = create_access_token(user.id)
        return TokenResponse(access_token=token)

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    async def is_nickname_available(
        db: AsyncSession, nickname: str, self_id: Optional[int] = None
    ) -> bool:
        holder = await UserRepository.get_by_nickname(db, nickname.strip())
        return holder is None or holder.id == self_id

    @staticmethod
    async def update_nickname(db: AsyncSession, user_id: int, value: str) -> User:
        nickname = normalize_nickname(value)
        user = await AuthService.get_user_by_id(db, user_id)
        if not await AuthService.is_nickname_available(db, nickname, self_id=user_id):
            raise Conflict("Nickname is already taken")

        user.nickname = nickname
        try:
            return await UserRepository.save(db, user)
        except IntegrityError:
            await db.rollback()
            raise Conflict("Nickname is already taken")
