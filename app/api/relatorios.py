"""
Meta Lav Auditorias - Relatorios API
Relatorio final do condominio e financeiro mensal (JSON, PDF e XLSX)
"""
import logging
import re
import unicodedata
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Profile
from app.core import Role
from app.api.auth import require_role
from app.api.auditorias import get_auditoria_or_404
from app.services import workflow
from app.services.relatorios import (
    carregar_fechamento,
    montar_relatorio_final,
    carregar_anexos_pdf,
    relatorio_financeiro
)
from app.utils.formatters import parse_mes_ref
from app.utils.pdf_report import generate_relatorio_final_pdf, generate_financeiro_pdf
from app.utils.xlsx_report import gerar_xlsx_financeiro, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/relatorios", tags=["Relatorios"])


def _slug(texto: str) -> str:
    s = unicodedata.normalize("NFKD", texto or "").encode("ascii", "ignore").decode()
    s = re.sub(r"[^A-Za-z0-9]+", "_", s).strip("_").lower()
    return s[:40] or "condominio"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename={filename}"
        }
    )


def _mes_ref_ou_400(value: str) -> date:
    mes = parse_mes_ref(value)
    if mes is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parâmetro mes_ref inválido (use YYYY-MM-01)"
        )
    return mes


async def _relatorio_final(db: AsyncSession, auditoria_id: str) -> dict:
    auditoria = await get_auditoria_or_404(db, auditoria_id)
    if not workflow.is_final(auditoria):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Relatório disponível apenas para auditoria finalizada"
        )
    dados = await carregar_fechamento(db, auditoria)
    return montar_relatorio_final(dados)


@router.get("/condominio/final/{auditoria_id}")
async def get_relatorio_final(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Relatorio final do condominio (JSON)"""
    return {"ok": True, "data": await _relatorio_final(db, auditoria_id)}


@router.get("/condominio/final/{auditoria_id}/pdf")
async def get_relatorio_final_pdf(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Relatorio final do condominio em PDF, com fotos anexadas"""
    relatorio = await _relatorio_final(db, auditoria_id)
    anexos = await carregar_anexos_pdf(relatorio)
    pdf_bytes = generate_relatorio_final_pdf(relatorio, anexos)

    meta = relatorio["meta"]
    filename = f"relatorio_{_slug(meta['condominio_nome'])}_{meta['mes_ref'][:7]}.pdf"
    logger.info(f"PDF do relatorio final gerado: {filename} ({len(anexos)} anexos) por {user.email}")
    return _attachment(pdf_bytes, "application/pdf", filename)


@router.get("/financeiro")
async def get_financeiro(
    mes_ref: str = Query(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Relatorio financeiro do mes (uma linha por auditoria)"""
    mes = _mes_ref_ou_400(mes_ref)
    return {"ok": True, "data": await relatorio_financeiro(db, mes)}


@router.get("/financeiro/export/pdf")
async def export_financeiro_pdf(
    mes_ref: str = Query(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    mes = _mes_ref_ou_400(mes_ref)
    relatorio = await relatorio_financeiro(db, mes)
    pdf_bytes = generate_financeiro_pdf(relatorio)
    return _attachment(pdf_bytes, "application/pdf", f"financeiro_{mes.strftime('%Y-%m')}.pdf")


@router.get("/financeiro/export/xlsx")
async def export_financeiro_xlsx(
    mes_ref: str = Query(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(require_role(Role.INTERNO))
):
    mes = _mes_ref_ou_400(mes_ref)
    relatorio = await relatorio_financeiro(db, mes)
    content = gerar_xlsx_financeiro(relatorio)
    return _attachment(content, XLSX_MEDIA_TYPE, f"financeiro_{mes.strftime('%Y-%m')}.xlsx")
