"""
Meta Lav Auditorias - Jobs API
Criacao mensal de auditorias (cron e manual) e painel do mes atual
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.database import get_db
from app.models import Auditoria, AuditoriaStatus, Condominio, Profile
from app.core import Role, verify_cron_secret
from app.api.auth import require_role
from app.services.auditorias_mensais import criar_auditorias_mensais, listar_job_logs
from app.utils.formatters import parse_mes_ref, mes_atual

logger = logging.getLogger(__name__)

cron_router = APIRouter(prefix="/cron", tags=["Jobs"])
router = APIRouter(prefix="/admin", tags=["Jobs"])


def _mes_ref_opcional(value: Optional[str]):
    if not value:
        return None
    mes = parse_mes_ref(value)
    if mes is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parâmetro mes_ref inválido (use YYYY-MM-01)"
        )
    return mes


@cron_router.post("/gerar-auditorias-mensais")
async def cron_gerar_auditorias(
    request: Request,
    mes_ref: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Chamado pelo agendador externo (Authorization: Bearer <CRON_SECRET>)"""
    if not verify_cron_secret(request.headers.get("Authorization")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autorizado"
        )

    resultado = await criar_auditorias_mensais(db, _mes_ref_opcional(mes_ref))
    return {"ok": True, **resultado}


@router.post("/criar-auditorias")
async def admin_criar_auditorias(
    mes_ref: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Execucao manual do job (interno/gestor)"""
    resultado = await criar_auditorias_mensais(db, _mes_ref_opcional(mes_ref), actor_id=user.id)
    logs, logs_error = await listar_job_logs(db, limit=20)

    resposta = {"ok": True, **resultado, "logs": logs}
    warning = resultado.get("log_error") or logs_error
    if warning:
        resposta["warning"] = warning

    logger.info(f"Criacao manual de auditorias ({resultado['mes_ref']}) por {user.email}")
    return resposta


@router.get("/relatorios/mes-atual")
async def dashboard_mes_atual(
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Painel do mes atual"""
    mes = mes_atual()

    # Auditorias por status
    result = await db.execute(
        select(Auditoria.status, func.count(Auditoria.id))
        .where(Auditoria.mes_ref == mes)
        .group_by(Auditoria.status)
    )
    por_status = {s.value: 0 for s in AuditoriaStatus}
    for st, total in result.all():
        por_status[st] = total

    # Condominios
    result = await db.execute(select(func.count(Condominio.id)))
    total_condominios = result.scalar() or 0

    result = await db.execute(
        select(func.count(Condominio.id)).where(Condominio.ativo == True)  # noqa: E712
    )
    condominios_ativos = result.scalar() or 0

    logs, logs_error = await listar_job_logs(db, limit=10)

    resposta = {
        "mes_ref": mes.isoformat(),
        "auditorias": {
            "total": sum(por_status.values()),
            "por_status": por_status,
        },
        "condominios": {
            "total": total_condominios,
            "ativos": condominios_ativos,
        },
        "logs": logs,
    }
    if logs_error:
        resposta["warning"] = logs_error
    return resposta
