"""
Meta Lav Auditorias - User Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.core.permissions import Role


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(None, max_length=255)
    role: Role = Role.AUDITOR


class UserRoleUpdate(BaseModel):
    role: Role


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    is_active: bool = True
    last_login_at: Optional[str] = None
    created_at: Optional[str] = None

    class Config:
        from_attributes = True
