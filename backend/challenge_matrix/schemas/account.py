from __future__ import annotations
from pydantic import BaseModel, Field
from challenge_matrix.schemas.auth import Office, Role

class AccountUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=3, max_length=120)
    office: Office | None = None

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)

class RoleUpdate(BaseModel):
    role: Role
