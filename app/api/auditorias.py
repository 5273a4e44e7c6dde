"""
Meta Lav Auditorias - Auditorias API
CRUD de auditorias, leituras base, historico e transicoes de status
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_

from app.database import get_db
from app.models import Auditoria, AuditoriaStatus, AuditoriaHistorico, AuditorCondominio, Profile
from app.schemas import AuditoriaCreate, AuditoriaUpdate, BaseLeiturasUpdate, MotivoRequest
from app.core import Role, is_staff, parse_role
from app.api.auth import get_current_user, require_role
from app.api.condominios import get_condominio_or_404, auditor_atribuido
from app.services import workflow
from app.utils.formatters import parse_mes_ref

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auditorias", tags=["Auditorias"])

# auditor nao altera leituras depois de enviar para conferencia
_STATUS_BLOQUEADOS_AUDITOR = {AuditoriaStatus.EM_CONFERENCIA, AuditoriaStatus.FINAL}


async def get_auditoria_or_404(db: AsyncSession, auditoria_id: str) -> Auditoria:
    result = await db.execute(
        select(Auditoria)
        .where(Auditoria.id == auditoria_id)
        .execution_options(populate_existing=True)
    )
    auditoria = result.scalar_one_or_none()
    if not auditoria:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Auditoria não encontrada"
        )
    return auditoria


async def pode_ver(db: AsyncSession, user: Profile, auditoria: Auditoria) -> bool:
    """Staff ve tudo; auditor ve as suas e as livres dos condominios atribuidos"""
    if is_staff(user.role):
        return True
    if parse_role(user.role) != Role.AUDITOR:
        return False
    if auditoria.auditor_id == user.id:
        return True
    return auditoria.auditor_id is None and await auditor_atribuido(db, user.id, auditoria.condominio_id)


def workflow_http_error(e: workflow.WorkflowError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


async def _validar_auditor(db: AsyncSession, auditor_id: Optional[str]):
    if not auditor_id:
        return
    result = await db.execute(select(Profile).where(Profile.id == auditor_id))
    auditor = result.scalar_one_or_none()
    if not auditor or parse_role(auditor.role) != Role.AUDITOR:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="auditor_id não corresponde a um auditor"
        )


@router.get("")
async def list_auditorias(
    mes_ref: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    condominio_id: Optional[str] = Query(None),
    auditor_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Lista auditorias com filtros"""
    query = select(Auditoria)

    if not is_staff(user.role):
        atribuidos = select(AuditorCondominio.condominio_id).where(AuditorCondominio.auditor_id == user.id)
        query = query.where(
            or_(
                Auditoria.auditor_id == user.id,
                and_(Auditoria.auditor_id.is_(None), Auditoria.condominio_id.in_(atribuidos))
            )
        )

    if mes_ref:
        mes = parse_mes_ref(mes_ref)
        if mes is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parâmetro mes_ref inválido (use YYYY-MM-01)"
            )
        query = query.where(Auditoria.mes_ref == mes)

    if status_filter:
        st = workflow.normalize_status(status_filter)
        if st is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Status inválido: {status_filter}"
            )
        query = query.where(Auditoria.status == st.value)

    if condominio_id:
        query = query.where(Auditoria.condominio_id == condominio_id)
    if auditor_id:
        query = query.where(Auditoria.auditor_id == auditor_id)

    query = query.order_by(Auditoria.mes_ref.desc(), Auditoria.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return {"data": [a.to_dict() for a in result.scalars().all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_auditoria(
    request: AuditoriaCreate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Cria auditoria manualmente (uma por condominio e mes)"""
    await get_condominio_or_404(db, request.condominio_id)
    await _validar_auditor(db, request.auditor_id)

    result = await db.execute(
        select(Auditoria.id).where(
            Auditoria.condominio_id == request.condominio_id,
            Auditoria.mes_ref == request.mes_ref
        )
    )
    if result.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Já existe auditoria para este condomínio neste mês"
        )

    auditoria = Auditoria(
        condominio_id=request.condominio_id,
        mes_ref=request.mes_ref,
        auditor_id=request.auditor_id,
        status=AuditoriaStatus.ABERTA.value,
        created_by=user.id
    )
    db.add(auditoria)
    await db.commit()

    auditoria = await get_auditoria_or_404(db, auditoria.id)
    logger.info(f"Auditoria criada: {auditoria.id} ({request.mes_ref.isoformat()}) por {user.email}")
    return {"data": auditoria.to_dict()}


@router.get("/{auditoria_id}")
async def get_auditoria(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Retorna uma auditoria"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    if not await pode_ver(db, user, auditoria):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )
    return {"data": auditoria.to_dict()}


@router.patch("/{auditoria_id}")
async def update_auditoria(
    auditoria_id: str,
    request: AuditoriaUpdate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Salva leituras/observacoes e, opcionalmente, avanca o status"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)

    if not workflow.pode_editar(user, auditoria):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )

    update_data = request.model_dump(exclude_unset=True)
    novo_status = update_data.pop("status", None)

    staff = is_staff(user.role)
    if not staff:
        if "auditor_id" in update_data or "fechamento_obs" in update_data:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Sem permissão"
            )
        if update_data and workflow.status_atual(auditoria) in _STATUS_BLOQUEADOS_AUDITOR:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Auditoria em conferência/finalizada não pode ser alterada pelo auditor"
            )

    if "auditor_id" in update_data:
        await _validar_auditor(db, update_data["auditor_id"])

    for field, value in update_data.items():
        setattr(auditoria, field, value)

    if update_data:
        await db.commit()
        auditoria = await get_auditoria_or_404(db, auditoria_id)

    if novo_status:
        try:
            auditoria = await workflow.alterar_status(db, auditoria, user, novo_status)
        except workflow.WorkflowError as e:
            raise workflow_http_error(e)

    return {"ok": True, "data": auditoria.to_dict()}


@router.patch("/{auditoria_id}/base")
async def update_base(
    auditoria_id: str,
    request: BaseLeiturasUpdate,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Leituras base manuais (usadas quando nao ha auditoria do mes anterior)"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(auditoria, field, value)
    await db.commit()

    return {
        "ok": True,
        "base": {
            "agua_leitura_base": auditoria.agua_leitura_base,
            "energia_leitura_base": auditoria.energia_leitura_base,
            "gas_leitura_base": auditoria.gas_leitura_base,
        }
    }


@router.get("/{auditoria_id}/historico")
async def get_historico(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Historico de transicoes de status"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    if not await pode_ver(db, user, auditoria):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )

    result = await db.execute(
        select(AuditoriaHistorico)
        .where(AuditoriaHistorico.auditoria_id == auditoria_id)
        .order_by(AuditoriaHistorico.created_at.desc())
    )
    return {"data": [h.to_dict() for h in result.scalars().all()]}


@router.post("/{auditoria_id}/devolver")
async def devolver_auditoria(
    auditoria_id: str,
    request: Optional[MotivoRequest] = None,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Devolve para o auditor (em_conferencia -> em_andamento)"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    try:
        auditoria = await workflow.devolver(db, auditoria, user, request.motivo if request else None)
    except workflow.WorkflowError as e:
        raise workflow_http_error(e)
    return {"ok": True, "data": auditoria.to_dict()}


@router.post("/{auditoria_id}/reabrir")
async def reabrir_auditoria(
    auditoria_id: str,
    request: Optional[MotivoRequest] = None,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Reabre a auditoria (qualquer status -> em_andamento)"""
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    try:
        auditoria = await workflow.reabrir(db, auditoria, user, request.motivo if request else None)
    except workflow.WorkflowError as e:
        raise workflow_http_error(e)
    return {"ok": True, "data": auditoria.to_dict()}
