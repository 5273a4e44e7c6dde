"""
Meta Lav Auditorias - Users API
Gestao de usuarios (apenas gestor)
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete

from app.database import get_db
from app.models import Profile, Auditoria, AuditoriaHistorico, AuditorCondominio
from app.schemas import UserCreate, UserRoleUpdate, UserResponse
from app.core import get_password_hash, Role
from app.api.auth import require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


async def _get_user_or_404(db: AsyncSession, user_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuário não encontrado"
        )
    return user


@router.get("", response_model=List[UserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    gestor: Profile = Depends(require_role(Role.GESTOR))
):
    """Lista todos os usuarios"""
    result = await db.execute(select(Profile).order_by(Profile.email))
    return [u.to_dict() for u in result.scalars().all()]


@router.get("/auditores", response_model=List[UserResponse])
async def list_auditores(
    db: AsyncSession = Depends(get_db),
    staff: Profile = Depends(require_role(Role.INTERNO))
):
    """Auditores ativos (para atribuicao)"""
    result = await db.execute(
        select(Profile)
        .where(Profile.role == Role.AUDITOR.value, Profile.is_active == True)  # noqa: E712
        .order_by(Profile.email)
    )
    return [u.to_dict() for u in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    db: AsyncSession = Depends(get_db),
    gestor: Profile = Depends(require_role(Role.GESTOR))
):
    """Cria novo usuario"""
    email = request.email.lower()
    result = await db.execute(select(Profile).where(Profile.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email já cadastrado"
        )

    user = Profile(
        email=email,
        hashed_password=get_password_hash(request.password),
        full_name=request.full_name,
        role=request.role.value
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Usuario criado: {user.email} ({user.role}) por {gestor.email}")
    return user.to_dict()


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    request: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    gestor: Profile = Depends(require_role(Role.GESTOR))
):
    """Altera o perfil de um usuario"""
    user = await _get_user_or_404(db, user_id)

    if user.id == gestor.id and request.role != Role.GESTOR:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Você não pode remover seu próprio perfil de gestor"
        )

    user.role = request.role.value
    await db.commit()
    await db.refresh(user)

    logger.info(f"Perfil de {user.email} alterado para {user.role} por {gestor.email}")
    return user.to_dict()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    gestor: Profile = Depends(require_role(Role.GESTOR))
):
    """Remove usuario (nao pode remover a si mesmo nem usuario com auditorias)"""
    if user_id == gestor.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Você não pode excluir seu próprio usuário"
        )

    user = await _get_user_or_404(db, user_id)

    result = await db.execute(
        select(func.count(Auditoria.id)).where(
            or_(
                Auditoria.auditor_id == user_id,
                Auditoria.created_by == user_id,
                Auditoria.fechado_por == user_id
            )
        )
    )
    vinculos = result.scalar() or 0

    result = await db.execute(
        select(func.count(AuditoriaHistorico.id)).where(AuditoriaHistorico.actor_id == user_id)
    )
    vinculos += result.scalar() or 0

    if vinculos > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Usuário possui auditorias vinculadas; altere o perfil em vez de excluir"
        )

    await db.execute(delete(AuditorCondominio).where(AuditorCondominio.auditor_id == user_id))

    await db.delete(user)
    await db.commit()

    logger.info(f"Usuario {user.email} removido por {gestor.email}")
    return {"ok": True}
