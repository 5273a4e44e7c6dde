"""
Meta Lav Auditorias - Diagnostico API
"""
import logging

from fastapi import APIRouter, Depends, Request

from app.models import Profile
from app.core import Role, settings
from app.core.rate_limit import limiter
from app.api.auth import require_role
from app.services.diagnostico import DiagnosticoInput, diagnosticar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ia", tags=["Diagnostico"])


@router.post("/diagnostico")
@limiter.limit(settings.DIAGNOSTICO_RATE_LIMIT)
async def diagnostico(
    request: Request,
    entrada: DiagnosticoInput,
    user: Profile = Depends(require_role(Role.INTERNO))
):
    """Diagnostico heuristico de um log de erro colado pela equipe"""
    resultado = diagnosticar(entrada)
    logger.info(f"Diagnostico solicitado por {user.email}: {len(resultado.probable_causes)} hipoteses")
    return {"ok": True, "data": resultado.model_dump()}
