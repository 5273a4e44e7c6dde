"""
Meta Lav Auditorias - Criacao Mensal de Auditorias
Cria uma auditoria 'aberta' por condominio ativo no mes de referencia.
Idempotente: um unico INSERT ... ON CONFLICT DO NOTHING na chave
(condominio, mes_ref); pares ja existentes (inclusive criados em paralelo)
sao ignorados.
"""
import logging
import uuid
from datetime import date, datetime
from typing import Optional, Tuple, List

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Auditoria, AuditoriaStatus, AuditoriaJobLog, Condominio
from app.utils.formatters import mes_atual

logger = logging.getLogger(__name__)

JOB_NAME = "criar_auditorias_mensais"


def _insert_ignorando_existentes(db: AsyncSession, linhas: List[dict]):
    """INSERT multi-linha que ignora conflito em (condominio_id, mes_ref)"""
    dialeto = postgresql if db.get_bind().dialect.name == "postgresql" else sqlite
    return (
        dialeto.insert(Auditoria)
        .values(linhas)
        .on_conflict_do_nothing(index_elements=["condominio_id", "mes_ref"])
    )


async def registrar_job_log(
    db: AsyncSession,
    mes_ref: date,
    started_at: datetime,
    ok: bool,
    condominios_ativos: int = 0,
    criadas: int = 0,
    error_message: Optional[str] = None
) -> Optional[str]:
    """Grava a execucao no log. Retorna a mensagem de erro se nao conseguiu gravar."""
    try:
        db.add(AuditoriaJobLog(
            job_name=JOB_NAME,
            mes_ref=mes_ref,
            started_at=started_at,
            finished_at=datetime.utcnow(),
            ok=ok,
            condominios_ativos=condominios_ativos,
            criadas=criadas,
            error_message=error_message,
        ))
        await db.commit()
        return None
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Falha ao gravar log do job {JOB_NAME}: {e}")
        return str(e)


async def criar_auditorias_mensais(
    db: AsyncSession,
    mes_ref: Optional[date] = None,
    actor_id: Optional[str] = None
) -> dict:
    """Executa o job e retorna o resumo da execucao"""
    mes = mes_ref or mes_atual()
    started_at = datetime.utcnow()

    try:
        result = await db.execute(select(Condominio.id).where(Condominio.ativo == True))  # noqa: E712
        ativos = [row[0] for row in result.all()]

        criadas = 0
        if ativos:
            agora = datetime.utcnow()
            linhas = [
                {
                    "id": str(uuid.uuid4()),
                    "condominio_id": condominio_id,
                    "mes_ref": mes,
                    "status": AuditoriaStatus.ABERTA.value,
                    "created_by": actor_id,
                    "created_at": agora,
                    "updated_at": agora,
                }
                for condominio_id in ativos
            ]
            result = await db.execute(_insert_ignorando_existentes(db, linhas))
            criadas = max(result.rowcount or 0, 0)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Job {JOB_NAME} falhou para {mes.isoformat()}: {e}")
        await registrar_job_log(db, mes, started_at, ok=False, error_message=str(e))
        raise

    logger.info(
        f"Job {JOB_NAME} {mes.isoformat()}: {len(ativos)} condominios ativos, {criadas} auditorias criadas"
    )

    resumo = {
        "job_name": JOB_NAME,
        "mes_ref": mes.isoformat(),
        "condominios_ativos": len(ativos),
        "criadas": criadas,
        "ja_existentes": len(ativos) - criadas,
    }

    log_error = await registrar_job_log(
        db, mes, started_at, ok=True,
        condominios_ativos=len(ativos),
        criadas=criadas
    )
    if log_error:
        resumo["log_error"] = log_error

    return resumo


async def listar_job_logs(db: AsyncSession, limit: int = 20) -> Tuple[List[dict], Optional[str]]:
    """Ultimas execucoes do job; erro de leitura vira aviso"""
    try:
        result = await db.execute(
            select(AuditoriaJobLog)
            .order_by(AuditoriaJobLog.started_at.desc())
            .limit(limit)
        )
        return [log.to_dict() for log in result.scalars().all()], None
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Falha ao ler log do job {JOB_NAME}: {e}")
        return [], str(e)
