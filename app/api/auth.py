"""
Meta Lav Auditorias - Auth API
Login por email/senha, sessao em JWT (header Bearer ou cookie) e checagem de perfil
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models import Profile
from app.schemas import LoginRequest, LoginResponse, SetupRequest, MeResponse
from app.core import (
    verify_password,
    get_password_hash,
    create_access_token,
    verify_access_token,
    settings,
    Role,
    parse_role,
    role_at_least
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
me_router = APIRouter(tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def _token_from_request(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Profile:
    """Dependency para obter o usuario da sessao (401 sem sessao valida)"""
    token = _token_from_request(request, credentials)
    payload = verify_access_token(token) if token else None

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado"
        )

    result = await db.execute(
        select(Profile).where(Profile.id == payload.get("sub"))
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado"
        )

    return user


def require_role(minimum: Role):
    """Dependency que exige perfil >= minimum (403 caso contrario)"""

    async def _checker(user: Profile = Depends(get_current_user)) -> Profile:
        if not role_at_least(user.role, minimum):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Sem permissão"
            )
        return user

    return _checker


def _set_session_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production"
    )


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Login de usuario (auditor, interno ou gestor)"""
    result = await db.execute(
        select(Profile).where(Profile.email == request.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(request.password, user.hashed_password):
        logger.warning(f"Login recusado para {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha inválidos"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Conta desativada"
        )

    # Atualiza último login
    user.last_login_at = datetime.utcnow()
    await db.commit()

    access_token = create_access_token(
        data={"sub": user.id, "email": user.email, "role": user.role}
    )
    _set_session_cookie(response, access_token)

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=user.to_dict()
    )


@router.post("/logout")
async def logout(response: Response):
    """Remove o cookie de sessao"""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"ok": True}


@router.post("/setup", status_code=status.HTTP_201_CREATED)
async def initial_setup(request: Optional[SetupRequest] = None, db: AsyncSession = Depends(get_db)):
    """Setup inicial - cria o primeiro gestor (ADMIN_EMAIL/ADMIN_PASSWORD se sem corpo)"""
    result = await db.execute(select(Profile).limit(1))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Setup já realizado"
        )

    email = request.email.lower() if request else settings.ADMIN_EMAIL
    password = request.password if request else settings.ADMIN_PASSWORD

    gestor = Profile(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=(request.full_name if request else None) or "Gestor",
        role=Role.GESTOR.value
    )

    db.add(gestor)
    await db.commit()

    logger.info(f"Setup inicial: gestor {email} criado")
    return {"message": "Setup concluído", "email": email}


@me_router.get("/me", response_model=MeResponse)
async def get_me(user: Profile = Depends(get_current_user)):
    """Retorna o usuario atual e seu perfil"""
    role = parse_role(user.role)
    return MeResponse(user=user.to_dict(), role=role.value if role else None)
