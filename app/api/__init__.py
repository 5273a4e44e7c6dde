from .auth import router as auth_router, me_router
from .users import router as users_router
from .condominios import router as condominios_router
from .assignments import router as assignments_router
from .auditorias import router as auditorias_router
from .fechamento import router as fechamento_router
from .fotos import router as fotos_router
from .relatorios import router as relatorios_router
from .jobs import router as jobs_router, cron_router
from .diagnostico import router as diagnostico_router
from .implantacoes import router as implantacoes_router

__all__ = [
    "auth_router",
    "me_router",
    "users_router",
    "condominios_router",
    "assignments_router",
    "auditorias_router",
    "fechamento_router",
    "fotos_router",
    "relatorios_router",
    "jobs_router",
    "cron_router",
    "diagnostico_router",
    "implantacoes_router"
]
