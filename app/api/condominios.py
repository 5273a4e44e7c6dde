"""
Meta Lav Auditorias - Condominios API
Cadastro de condominios e parque de maquinas
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_, func

from app.database import get_db
from app.models import Condominio, CondominioMaquina, AuditorCondominio, CategoriaMaquina, Profile
from app.schemas import CondominioCreate, CondominioUpdate, CondominioAtivoUpdate, MaquinasReplace
from app.core import Role, is_staff
from app.api.auth import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/condominios", tags=["Condominios"])


async def auditor_atribuido(db: AsyncSession, auditor_id: str, condominio_id: str) -> bool:
    result = await db.execute(
        select(AuditorCondominio.id).where(
            AuditorCondominio.auditor_id == auditor_id,
            AuditorCondominio.condominio_id == condominio_id
        )
    )
    return result.first() is not None


async def get_condominio_or_404(db: AsyncSession, condominio_id: str) -> Condominio:
    result = await db.execute(select(Condominio).where(Condominio.id == condominio_id))
    condominio = result.scalar_one_or_none()
    if not condominio:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Condomínio não encontrado"
        )
    return condominio


async def _checar_leitura(db: AsyncSession, user: Profile, condominio_id: str):
    """Auditor so enxerga condominios atribuidos a ele"""
    if is_staff(user.role):
        return
    if not await auditor_atribuido(db, user.id, condominio_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )


@router.get("")
async def list_condominios(
    search: Optional[str] = Query(None),
    ativo: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Lista condominios (auditor ve apenas os atribuidos)"""
    query = select(Condominio)

    if not is_staff(user.role):
        query = query.join(
            AuditorCondominio, AuditorCondominio.condominio_id == Condominio.id
        ).where(AuditorCondominio.auditor_id == user.id)

    if search:
        query = query.where(
            or_(
                Condominio.nome.ilike(f"%{search}%"),
                Condominio.cidade.ilike(f"%{search}%"),
                Condominio.codigo_condominio.ilike(f"%{search}%")
            )
        )

    if ativo is not None:
        query = query.where(Condominio.ativo == ativo)

    result = await db.execute(query.order_by(Condominio.nome))
    return {"data": [c.to_dict() for c in result.scalars().all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_condominio(
    request: CondominioCreate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Cria novo condominio"""
    data = request.model_dump()
    data["uf"] = data["uf"].upper()
    condominio = Condominio(**data, maquinas=[])

    db.add(condominio)
    await db.commit()

    logger.info(f"Condominio criado: {condominio.nome} por {user.email}")
    return {"data": condominio.to_dict()}


@router.get("/{condominio_id}")
async def get_condominio(
    condominio_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Retorna um condominio"""
    condominio = await get_condominio_or_404(db, condominio_id)
    await _checar_leitura(db, user, condominio_id)
    return {"data": condominio.to_dict()}


@router.patch("/{condominio_id}")
async def update_condominio(
    condominio_id: str,
    request: CondominioUpdate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Atualiza dados do condominio"""
    condominio = await get_condominio_or_404(db, condominio_id)

    update_data = request.model_dump(exclude_unset=True)
    if update_data.get("uf"):
        update_data["uf"] = update_data["uf"].upper()
    for field, value in update_data.items():
        setattr(condominio, field, value)

    await db.commit()

    return {"data": condominio.to_dict()}


@router.patch("/{condominio_id}/ativo")
async def set_condominio_ativo(
    condominio_id: str,
    request: CondominioAtivoUpdate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Ativa/inativa condominio (inativos ficam fora da criacao mensal)"""
    condominio = await get_condominio_or_404(db, condominio_id)
    condominio.ativo = request.ativo
    await db.commit()

    logger.info(f"Condominio {condominio.nome} {'ativado' if request.ativo else 'inativado'} por {user.email}")
    return {"ok": True, "id": condominio.id, "ativo": condominio.ativo}


@router.get("/{condominio_id}/maquinas")
async def list_maquinas(
    condominio_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Parque de maquinas do condominio"""
    await get_condominio_or_404(db, condominio_id)
    await _checar_leitura(db, user, condominio_id)

    result = await db.execute(
        select(CondominioMaquina)
        .where(CondominioMaquina.condominio_id == condominio_id)
        .order_by(CondominioMaquina.categoria, CondominioMaquina.capacidade_kg)
    )
    return {"data": [m.to_dict() for m in result.scalars().all()]}


@router.get("/{condominio_id}/lavadoras")
async def count_lavadoras(
    condominio_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Quantidade de lavadoras ativas (soma de quantidade)"""
    await get_condominio_or_404(db, condominio_id)
    await _checar_leitura(db, user, condominio_id)

    result = await db.execute(
        select(func.coalesce(func.sum(CondominioMaquina.quantidade), 0)).where(
            CondominioMaquina.condominio_id == condominio_id,
            CondominioMaquina.categoria == CategoriaMaquina.LAVADORA.value,
            CondominioMaquina.ativo == True  # noqa: E712
        )
    )
    return {"count": int(result.scalar() or 0)}


@router.put("/{condominio_id}/maquinas")
async def replace_maquinas(
    condominio_id: str,
    request: MaquinasReplace,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Substitui o cadastro de maquinas (uma linha por categoria + capacidade)"""
    await get_condominio_or_404(db, condominio_id)

    vistos = set()
    for item in request.itens:
        key = (item.categoria, item.capacidade_kg)
        if key in vistos:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Tipo duplicado: {item.categoria} {item.capacidade_kg}kg"
            )
        vistos.add(key)

    await db.execute(delete(CondominioMaquina).where(CondominioMaquina.condominio_id == condominio_id))
    for item in request.itens:
        db.add(CondominioMaquina(condominio_id=condominio_id, **item.model_dump()))
    await db.commit()

    result = await db.execute(
        select(CondominioMaquina)
        .where(CondominioMaquina.condominio_id == condominio_id)
        .order_by(CondominioMaquina.categoria, CondominioMaquina.capacidade_kg)
    )
    maquinas = result.scalars().all()

    logger.info(f"Maquinas do condominio {condominio_id} atualizadas ({len(maquinas)} tipos) por {user.email}")
    return {"data": [m.to_dict() for m in maquinas]}
