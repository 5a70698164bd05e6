from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field
from typing import Literal
from uuid import UUID
from datetime import datetime

Office = Literal["yop-canaris", "cocody-insacc", "annani", "attingier"]
Role = Literal["user", "admin"]

class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=3, max_length=120)
    email: EmailStr
    longrich_code: str = Field(min_length=6, max_length=32)
    office: Office

class LoginRequest(BaseModel):
    email: EmailStr
    longrich_code: str = Field(min_length=6, max_length=128)

class UserPublic(BaseModel):
    id: UUID
    email: EmailStr
    full_name: str
    office: Office
    role: Role
    current_level: int
    terms_accepted: bool
    terms_accepted_at: datetime | None = None
    avatar_url: str | None = None
    created_at: datetime

class TokenPair(BaseModel):
    access: str
    refresh: str

class SessionPublic(BaseModel):
    user: UserPublic
    is_admin: bool

def user_public(u) -> UserPublic:
    return UserPublic(
        id=u.id, email=u.email, full_name=u.full_name, office=u.office, role=u.role,
        current_level=u.current_level, terms_accepted=u.terms_accepted,
        terms_accepted_at=u.terms_accepted_at, avatar_url=u.avatar_url, created_at=u.created_at,
    )
