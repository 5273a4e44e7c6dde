"""
Meta Lav Auditorias - Imagens
Reencoda fotos de evidencia em JPEG com lado maximo limitado antes de
embutir no PDF.
"""
import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.config import settings

logger = logging.getLogger(__name__)


def is_image_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


def preparar_jpeg(
    data: bytes,
    max_side: Optional[int] = None,
    quality: Optional[int] = None
) -> Optional[bytes]:
    """
    Redimensiona (mantendo proporcao) e converte para JPEG.
    Retorna None quando os bytes nao sao uma imagem legivel.
    """
    max_side = max_side or settings.IMAGE_MAX_SIDE
    quality = quality or settings.IMAGE_JPEG_QUALITY

    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Anexo ignorado (nao e imagem): {e}")
        return None

    if img.mode not in ("RGB", "L"):
        # JPEG nao suporta alpha
        fundo = Image.new("RGB", img.size, (255, 255, 255))
        if img.mode in ("RGBA", "LA") or "transparency" in img.info:
            rgba = img.convert("RGBA")
            fundo.paste(rgba, mask=rgba.split()[-1])
        else:
            fundo.paste(img.convert("RGB"))
        img = fundo

    img.thumbnail((max_side, max_side), Image.LANCZOS)

    out = io.BytesIO()
    img.save(out, format="JPEG", quality=quality, optimize=True)
    return out.getvalue()
