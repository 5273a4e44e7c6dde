"""
Meta Lav Auditorias - Workflow de Status
aberta -> em_andamento -> em_conferencia -> final
Devolucao (em_conferencia -> em_andamento) e reabertura (* -> em_andamento).
"""
import logging
import unicodedata
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import is_staff, parse_role, Role
from app.models import (
    Auditoria,
    AuditoriaStatus,
    AuditoriaCiclo,
    AuditoriaFechamentoItem,
    AuditoriaHistorico,
    normalize_tipo_pagamento
)

logger = logging.getLogger(__name__)

MOTIVO_MAX_LEN = 500

_STATUS_ALIASES = {
    "aberta": AuditoriaStatus.ABERTA,
    "aberto": AuditoriaStatus.ABERTA,
    "em_andamento": AuditoriaStatus.EM_ANDAMENTO,
    "andamento": AuditoriaStatus.EM_ANDAMENTO,
    "em_conferencia": AuditoriaStatus.EM_CONFERENCIA,
    "conferencia": AuditoriaStatus.EM_CONFERENCIA,
    "final": AuditoriaStatus.FINAL,
    "finalizada": AuditoriaStatus.FINAL,
    "finalizado": AuditoriaStatus.FINAL,
    "fechada": AuditoriaStatus.FINAL,
}

# transicoes "normais" (auditor dono ou interno/gestor)
_FLUXO = {
    AuditoriaStatus.ABERTA: {AuditoriaStatus.EM_ANDAMENTO},
    AuditoriaStatus.EM_ANDAMENTO: {AuditoriaStatus.EM_CONFERENCIA},
}


class WorkflowError(Exception):
    """Transicao recusada; status_code segue a semantica HTTP"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def normalize_status(value) -> Optional[AuditoriaStatus]:
    """'Em Conferência', 'em-conferencia', 'finalizado'... -> AuditoriaStatus"""
    if isinstance(value, AuditoriaStatus):
        return value
    s = unicodedata.normalize("NFKD", str(value or "")).encode("ascii", "ignore").decode()
    s = s.strip().lower().replace("-", "_").replace(" ", "_")
    return _STATUS_ALIASES.get(s)


def status_atual(auditoria: Auditoria) -> AuditoriaStatus:
    return normalize_status(auditoria.status) or AuditoriaStatus.ABERTA


def is_final(auditoria: Auditoria) -> bool:
    return status_atual(auditoria) == AuditoriaStatus.FINAL


def pode_editar(user, auditoria: Auditoria) -> bool:
    """Interno/gestor editam qualquer auditoria; auditor so a propria"""
    if is_staff(user.role):
        return True
    return parse_role(user.role) == Role.AUDITOR and auditoria.auditor_id == user.id


def _exigir_staff(user):
    if not is_staff(user.role):
        raise WorkflowError("Sem permissão (apenas interno/gestor)", 403)


def _motivo(value, obrigatorio: bool, mensagem: str) -> Optional[str]:
    motivo = str(value or "").strip()
    if not motivo:
        if obrigatorio:
            raise WorkflowError(mensagem)
        return None
    if len(motivo) > MOTIVO_MAX_LEN:
        raise WorkflowError(f"Motivo muito longo (máx {MOTIVO_MAX_LEN} caracteres).")
    return motivo


async def registrar_historico(
    db: AsyncSession,
    auditoria_id: str,
    de_status: Optional[str],
    para_status: str,
    actor_id: Optional[str],
    motivo: Optional[str] = None
) -> bool:
    """
    Grava a transicao no historico apos o commit da transicao.
    Falha aqui so gera warning: a transicao ja esta salva.
    """
    try:
        db.add(AuditoriaHistorico(
            auditoria_id=auditoria_id,
            de_status=de_status,
            para_status=para_status,
            actor_id=actor_id,
            motivo=motivo,
        ))
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Falha ao gravar historico da auditoria {auditoria_id}: {e}")
        return False


async def _aplicar(
    db: AsyncSession,
    auditoria: Auditoria,
    para: AuditoriaStatus,
    user,
    motivo: Optional[str] = None
) -> Auditoria:
    de = status_atual(auditoria)
    auditoria.status = para.value
    auditoria.updated_at = datetime.utcnow()
    await db.commit()

    await registrar_historico(db, auditoria.id, de.value, para.value, user.id, motivo)
    await db.refresh(auditoria)

    logger.info(f"Auditoria {auditoria.id}: {de.value} -> {para.value} por {user.email}")
    return auditoria


async def alterar_status(db: AsyncSession, auditoria: Auditoria, user, para) -> Auditoria:
    """
    Transicoes do fluxo normal: iniciar (aberta -> em_andamento) e
    enviar para conferencia (em_andamento -> em_conferencia).
    """
    destino = normalize_status(para)
    if destino is None:
        raise WorkflowError(f"Status inválido: {para}")

    if destino == AuditoriaStatus.FINAL:
        raise WorkflowError("Use a finalização para encerrar a auditoria")

    if not pode_editar(user, auditoria):
        raise WorkflowError("Sem permissão", 403)

    origem = status_atual(auditoria)
    if origem == destino:
        return auditoria

    if destino not in _FLUXO.get(origem, set()):
        raise WorkflowError(f"Transição inválida: {origem.value} -> {destino.value}")

    return await _aplicar(db, auditoria, destino, user)


def anexar_observacao(observacoes: Optional[str], motivo: str, quando: Optional[datetime] = None) -> str:
    """Anexa o motivo da devolucao sem apagar o texto anterior"""
    quando = quando or datetime.now()
    linha = f"[DEVOLVIDO PELO INTERNO em {quando.strftime('%d/%m/%Y %H:%M')}] {motivo}"
    anterior = (observacoes or "").strip()
    return f"{anterior}\n\n{linha}" if anterior else linha


async def devolver(db: AsyncSession, auditoria: Auditoria, user, motivo) -> Auditoria:
    """em_conferencia -> em_andamento, com motivo anexado as observacoes"""
    _exigir_staff(user)
    texto = _motivo(motivo, True, "Informe o motivo da devolução")

    if status_atual(auditoria) != AuditoriaStatus.EM_CONFERENCIA:
        raise WorkflowError("Só é possível devolver quando o status está em conferência")

    auditoria.observacoes = anexar_observacao(auditoria.observacoes, texto)
    return await _aplicar(db, auditoria, AuditoriaStatus.EM_ANDAMENTO, user, texto)


async def reabrir(db: AsyncSession, auditoria: Auditoria, user, motivo=None) -> Auditoria:
    """Qualquer status -> em_andamento (motivo opcional)"""
    _exigir_staff(user)
    texto = _motivo(motivo, False, "")
    return await _aplicar(db, auditoria, AuditoriaStatus.EM_ANDAMENTO, user, texto)


async def contar_evidencias(db: AsyncSession, auditoria_id: str) -> int:
    """Itens de fechamento + linhas de ciclos com contagem"""
    itens = await db.execute(
        select(func.count(AuditoriaFechamentoItem.id))
        .where(AuditoriaFechamentoItem.auditoria_id == auditoria_id)
    )
    ciclos = await db.execute(
        select(func.count(AuditoriaCiclo.id))
        .where(AuditoriaCiclo.auditoria_id == auditoria_id)
    )
    return (itens.scalar() or 0) + (ciclos.scalar() or 0)


async def finalizar(
    db: AsyncSession,
    auditoria: Auditoria,
    user,
    comprovante_url: Optional[str] = None,
    fechamento_obs: Optional[str] = None
) -> Auditoria:
    """
    Encerra a auditoria (interno/gestor).

    Exige ao menos um item de fechamento ou linha de ciclos. Comprovante
    so e exigido quando o condominio recebe por pagamento direto.
    Finalizar uma auditoria ja final nao altera nada.
    """
    _exigir_staff(user)

    if is_final(auditoria):
        return auditoria

    if await contar_evidencias(db, auditoria.id) == 0:
        raise WorkflowError("Não é possível finalizar sem lançamentos de ciclos/fechamento")

    tipo_pagamento = normalize_tipo_pagamento(
        auditoria.condominio.tipo_pagamento if auditoria.condominio else None
    )
    comprovante = (comprovante_url or "").strip() or auditoria.comprovante_fechamento_url
    if tipo_pagamento == "direto" and not comprovante:
        raise WorkflowError("Comprovante de pagamento obrigatório para condomínios com pagamento direto")

    if comprovante:
        auditoria.comprovante_fechamento_url = comprovante
    if fechamento_obs is not None:
        auditoria.fechamento_obs = fechamento_obs

    auditoria.fechado_por = user.id
    auditoria.fechado_em = datetime.utcnow()
    return await _aplicar(db, auditoria, AuditoriaStatus.FINAL, user)
