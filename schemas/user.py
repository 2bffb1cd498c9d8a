from pydantic import Field
from datetime import datetime
from typing import Optional

from schemas.base import CamelModel


class RegisterRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(CamelModel):
    """Изменяемые поля профиля. Смена email или пароля увеличивает tokenVersion"""
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    password: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str


class UserResponse(CamelModel):
    user_id: str
    username: str
    email: str
    token_version: int = 0
    role: Optional[str] = None
    status: str = "offline"
    team_id: Optional[str] = None
    join_date: Optional[datetime] = None
    image: Optional[str] = None
    phone: Optional[str] = None
    gitlab_access_token: Optional[str] = None
    gitlab_user_id: Optional[int] = None
    created_at: Optional[datetime] = None


class UserStatusResponse(CamelModel):
    user_id: str
    status: str
