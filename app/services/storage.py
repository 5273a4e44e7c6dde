"""
Meta Lav Auditorias - Storage
Fotos e comprovantes gravados no diretorio de uploads e servidos em /uploads
"""
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Tuple

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

UPLOADS_PREFIX = "/uploads/"

_EXTENSOES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
}


def _extensao(filename: Optional[str], content_type: Optional[str]) -> str:
    if content_type and content_type.lower() in _EXTENSOES:
        return _EXTENSOES[content_type.lower()]
    suffix = Path(filename or "").suffix.lower()
    return suffix if suffix and len(suffix) <= 6 else ".bin"


def public_url(relative_path: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}{UPLOADS_PREFIX}{relative_path}"


def salvar_arquivo(
    auditoria_id: str,
    kind: str,
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None
) -> str:
    """
    Grava em <uploads>/<bucket>/<auditoria_id>/<kind>-<uuid>.<ext>
    e retorna a URL publica.
    """
    relative = f"{settings.STORAGE_BUCKET}/{auditoria_id}/{kind}-{uuid.uuid4().hex[:12]}{_extensao(filename, content_type)}"
    destino = settings.uploads_path / relative
    destino.parent.mkdir(parents=True, exist_ok=True)

    with open(destino, "wb") as f:
        f.write(content)

    logger.info(f"Upload salvo: {destino} ({len(content)} bytes)")
    return public_url(relative)


def _caminho_local(url: str) -> Optional[Path]:
    """Resolve URLs de /uploads para o arquivo local; None para URLs externas"""
    base = settings.PUBLIC_BASE_URL.rstrip('/')
    path = url
    if base and path.startswith(base):
        path = path[len(base):]
    if not path.startswith(UPLOADS_PREFIX):
        return None

    raiz = settings.uploads_path.resolve()
    arquivo = (raiz / path[len(UPLOADS_PREFIX):]).resolve()
    if raiz not in arquivo.parents:
        return None
    return arquivo


async def carregar_arquivo(url: Optional[str], timeout: float = 15.0) -> Optional[Tuple[bytes, str]]:
    """
    Busca o conteudo de um anexo (local ou remoto).
    Retorna (bytes, content_type) ou None se nao foi possivel obter.
    """
    if not url:
        return None

    local = _caminho_local(url)
    if local is not None:
        if not local.exists():
            logger.warning(f"Anexo nao encontrado no storage: {url}")
            return None
        content_type = mimetypes.guess_type(local.name)[0] or "application/octet-stream"
        return local.read_bytes(), content_type

    if not url.lower().startswith(("http://", "https://")):
        return None

    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Falha ao baixar anexo {url}: {e}")
        return None

    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return response.content, content_type or "application/octet-stream"
