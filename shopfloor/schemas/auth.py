from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    username: str
    password: str


class UserPublic(BaseModel):
    """User fields safe to hand to the UI (never the password hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
    expires_at: datetime


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


class TokenCheck(BaseModel):
    valid: bool
