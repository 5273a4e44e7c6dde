"""
Meta Lav Auditorias - Implantacoes API
Acompanhamento da implantacao de novos condominios (checklist por secao)
"""
import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_

from app.database import get_db
from app.models import (
    Implantacao,
    ImplantacaoChecklist,
    ImplantacaoChecklistPadrao,
    ChecklistStatus,
    Profile
)
from app.schemas import ImplantacaoCreate, ChecklistItemUpdate, ChecklistPadraoReplace
from app.core import Role
from app.api.auth import require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/implantacoes", tags=["Implantacoes"])

# finalizadas continuam na lista por alguns dias
DIAS_FINALIZADA_VISIVEL = 10


async def get_implantacao_or_404(db: AsyncSession, implantacao_id: str) -> Implantacao:
    result = await db.execute(
        select(Implantacao)
        .where(Implantacao.id == implantacao_id)
        .execution_options(populate_existing=True)
    )
    implantacao = result.scalar_one_or_none()
    if not implantacao:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Implantação não encontrada"
        )
    return implantacao


@router.get("")
async def list_implantacoes(
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Implantacoes em andamento ou finalizadas nos ultimos dias"""
    corte = datetime.utcnow() - timedelta(days=DIAS_FINALIZADA_VISIVEL)
    result = await db.execute(
        select(Implantacao)
        .where(or_(Implantacao.finalizada_em.is_(None), Implantacao.finalizada_em >= corte))
        .order_by(Implantacao.created_at.desc())
    )
    return {"data": [i.to_dict() for i in result.scalars().all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_implantacao(
    request: ImplantacaoCreate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Cria a implantacao com uma copia do checklist padrao (itens pendentes)"""
    result = await db.execute(
        select(ImplantacaoChecklistPadrao)
        .where(ImplantacaoChecklistPadrao.ativo == True)  # noqa: E712
        .order_by(ImplantacaoChecklistPadrao.secao, ImplantacaoChecklistPadrao.ordem)
    )
    padrao = result.scalars().all()

    implantacao = Implantacao(
        nome_condominio=request.nome_condominio,
        endereco=request.endereco,
        data_contrato=request.data_contrato,
        created_by=user.id,
        checklist=[
            ImplantacaoChecklist(
                secao=p.secao,
                descricao=p.descricao,
                ordem=p.ordem,
                status=ChecklistStatus.PENDENTE.value,
            )
            for p in padrao
        ],
    )
    db.add(implantacao)
    await db.commit()

    logger.info(
        f"Implantacao criada: {implantacao.nome_condominio} ({len(padrao)} itens) por {user.email}"
    )
    return {"ok": True, "implantacao_id": implantacao.id, "data": implantacao.to_dict(com_checklist=True)}


@router.get("/checklist-padrao")
async def get_checklist_padrao(
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    result = await db.execute(
        select(ImplantacaoChecklistPadrao)
        .order_by(ImplantacaoChecklistPadrao.secao, ImplantacaoChecklistPadrao.ordem)
    )
    return {"data": [p.to_dict() for p in result.scalars().all()]}


@router.put("/checklist-padrao")
async def replace_checklist_padrao(
    request: ChecklistPadraoReplace,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.GESTOR))
):
    """Substitui o checklist padrao. Implantacoes ja criadas mantem a sua copia."""
    await db.execute(delete(ImplantacaoChecklistPadrao))
    for item in request.itens:
        db.add(ImplantacaoChecklistPadrao(**item.model_dump()))
    await db.commit()

    logger.info(f"Checklist padrao substituido ({len(request.itens)} itens) por {user.email}")

    result = await db.execute(
        select(ImplantacaoChecklistPadrao)
        .order_by(ImplantacaoChecklistPadrao.secao, ImplantacaoChecklistPadrao.ordem)
    )
    return {"data": [p.to_dict() for p in result.scalars().all()]}


@router.get("/{implantacao_id}")
async def get_implantacao(
    implantacao_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    implantacao = await get_implantacao_or_404(db, implantacao_id)
    return {"data": implantacao.to_dict(com_checklist=True)}


@router.patch("/{implantacao_id}/checklist/{item_id}")
async def update_checklist_item(
    implantacao_id: str,
    item_id: str,
    request: ChecklistItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Marca o item como ok/pendente e grava a observacao do item"""
    await get_implantacao_or_404(db, implantacao_id)

    result = await db.execute(
        select(ImplantacaoChecklist).where(
            ImplantacaoChecklist.id == item_id,
            ImplantacaoChecklist.implantacao_id == implantacao_id
        )
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item não encontrado"
        )

    update_data = request.model_dump(exclude_unset=True)
    if update_data.get("status") is None:
        update_data.pop("status", None)
    else:
        update_data["status"] = update_data["status"].value
    for field, value in update_data.items():
        setattr(item, field, value)

    await db.commit()
    return {"data": item.to_dict()}


@router.post("/{implantacao_id}/finalizar")
async def finalizar_implantacao(
    implantacao_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Marca a implantacao como finalizada (idempotente)"""
    implantacao = await get_implantacao_or_404(db, implantacao_id)
    if implantacao.finalizada_em is None:
        implantacao.finalizada_em = datetime.utcnow()
        await db.commit()
        logger.info(f"Implantacao {implantacao.id} finalizada por {user.email}")
    return {"data": implantacao.to_dict(com_checklist=True)}
