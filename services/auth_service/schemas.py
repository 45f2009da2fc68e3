from typing import Optional

from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    nickname: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class NicknameUpdate(BaseModel):
    nickname: str


class NicknameAvailability(BaseModel):
    nickname: str
    available: bool


class UserResponse(BaseModel):
    id: int
    email: str
    nickname: Optional[str] = None
    is_active: bool
    is_admin: bool

    class Config:
        from_attributes = True
