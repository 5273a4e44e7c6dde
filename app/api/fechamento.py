"""
Meta Lav Auditorias - Fechamento API
Contagem de ciclos, itens de fechamento e finalizacao da auditoria
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from app.database import get_db
from app.models import AuditoriaCiclo, AuditoriaFechamentoItem, CondominioMaquina, Profile, normalize_categoria
from app.schemas import CiclosUpsert, FechamentoItemCreate, FinalizarRequest
from app.core import Role
from app.api.auth import require_role
from app.api.auditorias import get_auditoria_or_404, workflow_http_error
from app.services import workflow
from app.services.fechamento import tipos_do_condominio
from app.services.relatorios import carregar_fechamento, resumo_ciclos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auditorias", tags=["Fechamento"])


@router.get("/{auditoria_id}/ciclos")
async def get_ciclos(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Ciclos por tipo de maquina com precos e totais do fechamento"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    dados = await carregar_fechamento(db, auditoria)
    return {"ok": True, "data": resumo_ciclos(dados)}


@router.post("/{auditoria_id}/ciclos")
async def upsert_ciclos(
    auditoria_id: str,
    request: CiclosUpsert,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Grava a contagem de ciclos (upsert por categoria + capacidade)"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)

    result = await db.execute(
        select(CondominioMaquina).where(CondominioMaquina.condominio_id == auditoria.condominio_id)
    )
    permitidos = set(tipos_do_condominio([m.to_dict() for m in result.scalars().all()]))

    result = await db.execute(select(AuditoriaCiclo).where(AuditoriaCiclo.auditoria_id == auditoria_id))
    existentes = {(c.categoria, c.capacidade_kg): c for c in result.scalars().all()}

    for item in request.itens:
        key = (normalize_categoria(item.categoria), item.capacidade_kg)
        if key not in permitidos:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Tipo não cadastrado no condomínio: {key[0]} {key[1]}kg"
            )

        row = existentes.get(key)
        if row:
            row.ciclos = item.ciclos
        else:
            row = AuditoriaCiclo(
                auditoria_id=auditoria_id,
                categoria=key[0],
                capacidade_kg=key[1],
                ciclos=item.ciclos
            )
            db.add(row)
            existentes[key] = row

    await db.commit()

    itens = sorted(existentes.values(), key=lambda c: (c.categoria, c.capacidade_kg))
    logger.info(f"Ciclos da auditoria {auditoria_id} gravados por {user.email}")
    return {"ok": True, "data": {"itens": [c.to_dict() for c in itens]}}


@router.get("/{auditoria_id}/fechamento/itens")
async def list_fechamento_itens(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Itens de fechamento lancados"""
    await get_auditoria_or_404(db, auditoria_id)
    result = await db.execute(
        select(AuditoriaFechamentoItem)
        .where(AuditoriaFechamentoItem.auditoria_id == auditoria_id)
        .order_by(AuditoriaFechamentoItem.created_at)
    )
    return {"data": [i.to_dict() for i in result.scalars().all()]}


@router.post("/{auditoria_id}/fechamento/itens", status_code=status.HTTP_201_CREATED)
async def create_fechamento_item(
    auditoria_id: str,
    request: FechamentoItemCreate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Lanca item de fechamento"""
    await get_auditoria_or_404(db, auditoria_id)

    item = AuditoriaFechamentoItem(auditoria_id=auditoria_id, **request.model_dump())
    db.add(item)
    await db.commit()

    return {"data": item.to_dict()}


@router.delete("/{auditoria_id}/fechamento/itens/{item_id}")
async def delete_fechamento_item(
    auditoria_id: str,
    item_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Remove item de fechamento"""
    result = await db.execute(
        delete(AuditoriaFechamentoItem).where(
            AuditoriaFechamentoItem.id == item_id,
            AuditoriaFechamentoItem.auditoria_id == auditoria_id
        )
    )
    await db.commit()

    if not result.rowcount:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item não encontrado"
        )
    return {"ok": True}


async def _finalizar(db: AsyncSession, auditoria_id: str, user: Profile, request: Optional[FinalizarRequest]):
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    try:
        auditoria = await workflow.finalizar(
            db, auditoria, user,
            comprovante_url=request.comprovante_fechamento_url if request else None,
            fechamento_obs=request.fechamento_obs if request else None
        )
    except workflow.WorkflowError as e:
        raise workflow_http_error(e)
    return {"ok": True, "data": auditoria.to_dict()}


@router.post("/{auditoria_id}/finalizar")
async def finalizar_auditoria(
    auditoria_id: str,
    request: Optional[FinalizarRequest] = None,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Finaliza a auditoria (idempotente)"""
    return await _finalizar(db, auditoria_id, user, request)


@router.patch("/{auditoria_id}/fechamento")
async def patch_fechamento(
    auditoria_id: str,
    request: Optional[FinalizarRequest] = None,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Mesma regra de /finalizar (rota usada pela tela de fechamento)"""
    return await _finalizar(db, auditoria_id, user, request)
