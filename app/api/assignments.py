"""
Meta Lav Auditorias - Assignments API
Atribuicao de auditores a condominios (interno/gestor)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from app.database import get_db
from app.models import AuditorCondominio, Profile
from app.schemas import AssignmentRequest
from app.core import Role, parse_role
from app.api.auth import require_role
from app.api.condominios import get_condominio_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get("")
async def list_assignments(
    auditor_id: Optional[str] = Query(None),
    condominio_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Lista atribuicoes"""
    query = select(AuditorCondominio)
    if auditor_id:
        query = query.where(AuditorCondominio.auditor_id == auditor_id)
    if condominio_id:
        query = query.where(AuditorCondominio.condominio_id == condominio_id)

    result = await db.execute(query.order_by(AuditorCondominio.created_at.desc()))
    return {"data": [a.to_dict() for a in result.scalars().all()]}


@router.post("")
async def upsert_assignment(
    request: AssignmentRequest,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Atribui auditor ao condominio (idempotente)"""
    result = await db.execute(select(Profile).where(Profile.id == request.auditor_id))
    auditor = result.scalar_one_or_none()
    if not auditor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Auditor não encontrado"
        )
    if parse_role(auditor.role) != Role.AUDITOR:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuário informado não é auditor"
        )

    await get_condominio_or_404(db, request.condominio_id)

    result = await db.execute(
        select(AuditorCondominio).where(
            AuditorCondominio.auditor_id == request.auditor_id,
            AuditorCondominio.condominio_id == request.condominio_id
        )
    )
    if result.scalar_one_or_none():
        return {"ok": True, "created": False}

    db.add(AuditorCondominio(auditor_id=request.auditor_id, condominio_id=request.condominio_id))
    await db.commit()

    logger.info(f"Auditor {auditor.email} atribuido ao condominio {request.condominio_id} por {user.email}")
    return {"ok": True, "created": True}


@router.delete("")
async def delete_assignment(
    auditor_id: str = Query(...),
    condominio_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Remove atribuicao"""
    result = await db.execute(
        delete(AuditorCondominio).where(
            AuditorCondominio.auditor_id == auditor_id,
            AuditorCondominio.condominio_id == condominio_id
        )
    )
    await db.commit()

    if not result.rowcount:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Atribuição não encontrada"
        )

    logger.info(f"Atribuicao removida: auditor {auditor_id} / condominio {condominio_id} por {user.email}")
    return {"ok": True}
