"""
Meta Lav Auditorias - Auth Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class SetupRequest(BaseModel):
    """Criacao do primeiro gestor (so funciona com a tabela de usuarios vazia)"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None


class MeResponse(BaseModel):
    user: dict
    role: Optional[str]
