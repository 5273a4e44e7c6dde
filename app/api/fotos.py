"""
Meta Lav Auditorias - Fotos API
Upload de evidencias da auditoria, fotos de proveta por maquina
e "claim" da auditoria pelo auditor
"""
import logging
import re

from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.database import get_db
from app.models import Auditoria, AuditoriaStatus, AuditoriaProveta, FOTO_COLUMNS, Profile
from app.core import Role, is_staff, parse_role
from app.api.auth import get_current_user
from app.api.auditorias import get_auditoria_or_404, workflow_http_error
from app.api.condominios import auditor_atribuido
from app.services import workflow
from app.services.storage import salvar_arquivo
from app.utils.image import is_image_content_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auditorias", tags=["Fotos"])

KIND_COMPROVANTE = "comprovante_fechamento"
KIND_PROVETA = "proveta"


def _validar_arquivo(kind: str, content_type: str):
    if is_image_content_type(content_type):
        return
    if kind == KIND_COMPROVANTE and content_type == "application/pdf":
        return
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Tipo de arquivo não permitido: {content_type or 'desconhecido'}"
    )


async def _claim(db: AsyncSession, auditoria: Auditoria, user: Profile) -> Auditoria:
    """Assume uma auditoria sem auditor (apenas se ainda estiver livre)"""
    result = await db.execute(
        update(Auditoria)
        .where(Auditoria.id == auditoria.id, Auditoria.auditor_id.is_(None))
        .values(auditor_id=user.id)
    )
    await db.commit()

    if not result.rowcount:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Auditoria já foi assumida por outro auditor"
        )

    logger.info(f"Auditoria {auditoria.id} assumida por {user.email}")
    auditoria = await get_auditoria_or_404(db, auditoria.id)

    if workflow.status_atual(auditoria) == AuditoriaStatus.ABERTA:
        try:
            auditoria = await workflow.alterar_status(db, auditoria, user, AuditoriaStatus.EM_ANDAMENTO)
        except workflow.WorkflowError as e:
            raise workflow_http_error(e)
    return auditoria


async def _autorizar_envio(db: AsyncSession, auditoria: Auditoria, user: Profile) -> Auditoria:
    """
    Staff envia em qualquer auditoria. Auditor envia nas suas; auditoria livre
    de condominio atribuido a ele e assumida no primeiro envio.
    """
    if is_staff(user.role):
        return auditoria

    if parse_role(user.role) != Role.AUDITOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )
    if auditoria.auditor_id is None:
        if not await auditor_atribuido(db, user.id, auditoria.condominio_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Sem permissão"
            )
        return await _claim(db, auditoria, user)
    if auditoria.auditor_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão"
        )
    return auditoria


async def _ler_arquivo(file: UploadFile) -> bytes:
    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Arquivo vazio"
        )
    return content


@router.post("/{auditoria_id}/fotos")
async def upload_foto(
    auditoria_id: str,
    kind: str = Form(...),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Envia foto (ou comprovante) e grava a URL na auditoria"""
    kind = (kind or "").strip().lower()
    if kind not in FOTO_COLUMNS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"kind inválido: {kind}"
        )

    auditoria = await get_auditoria_or_404(db, auditoria_id)

    if kind == KIND_COMPROVANTE and not is_staff(user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Comprovante de fechamento é enviado pelo interno/gestor"
        )

    content_type = (file.content_type or "").lower()
    _validar_arquivo(kind, content_type)
    # arquivo invalido nao assume a auditoria
    content = await _ler_arquivo(file)

    auditoria = await _autorizar_envio(db, auditoria, user)

    url = salvar_arquivo(auditoria.id, kind, content, file.filename, content_type)

    column = FOTO_COLUMNS[kind]
    setattr(auditoria, column, url)
    await db.commit()

    return {"ok": True, "kind": kind, "url": url, "field": column}


@router.get("/{auditoria_id}/provetas")
async def list_provetas(
    auditoria_id: str,
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Fotos de proveta por maquina. Auditor ve apenas as auditorias dele."""
    auditoria = await get_auditoria_or_404(db, auditoria_id)

    if not is_staff(user.role) and (not auditoria.auditor_id or auditoria.auditor_id != user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sem permissão para acessar esta auditoria"
        )

    result = await db.execute(
        select(AuditoriaProveta)
        .where(AuditoriaProveta.auditoria_id == auditoria.id)
        .order_by(AuditoriaProveta.maquina_tag, AuditoriaProveta.maquina_idx)
    )
    return {"data": [p.to_dict() for p in result.scalars().all()]}


@router.post("/{auditoria_id}/provetas")
async def upload_proveta(
    auditoria_id: str,
    maquina_tag: str = Form(...),
    maquina_idx: int = Form(1),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Envia (ou substitui) a foto da proveta de uma maquina"""
    tag = (maquina_tag or "").strip().upper()
    if not tag or len(tag) > 50:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="maquina_tag inválida"
        )
    if maquina_idx < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="maquina_idx deve ser >= 1"
        )

    auditoria = await get_auditoria_or_404(db, auditoria_id)

    content_type = (file.content_type or "").lower()
    _validar_arquivo(KIND_PROVETA, content_type)
    content = await _ler_arquivo(file)

    auditoria = await _autorizar_envio(db, auditoria, user)

    slug = re.sub(r"[^a-z0-9]+", "-", tag.lower()).strip("-") or "maquina"
    url = salvar_arquivo(
        auditoria.id, f"{KIND_PROVETA}-{slug}-{maquina_idx}", content, file.filename, content_type
    )

    result = await db.execute(
        select(AuditoriaProveta).where(
            AuditoriaProveta.auditoria_id == auditoria.id,
            AuditoriaProveta.maquina_tag == tag,
            AuditoriaProveta.maquina_idx == maquina_idx
        )
    )
    proveta = result.scalar_one_or_none()
    if proveta:
        proveta.foto_url = url
    else:
        proveta = AuditoriaProveta(
            auditoria_id=auditoria.id,
            maquina_tag=tag,
            maquina_idx=maquina_idx,
            foto_url=url,
        )
        db.add(proveta)
    await db.commit()

    logger.info(f"Proveta {tag}#{maquina_idx} da auditoria {auditoria.id} enviada por {user.email}")
    return {"ok": True, "data": proveta.to_dict()}
