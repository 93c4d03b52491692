# wayfarer/app/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from wayfarer.app.models.user import Role


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=72)
    name: Optional[str] = Field(None, max_length=100)


# Never exposes hashed_password
class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    role: Role
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_at: datetime


class TokenPayload(BaseModel):
    sub: str
    sid: str
    # Advisory copy of the role at issue time; authorization re-reads the DB
    role: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Role


class RoleChangeResponse(BaseModel):
    success: bool
    user: UserResponse
    message: str
