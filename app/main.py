"""
Meta Lav Auditorias - Main Application
Back-office de auditorias mensais dos condominios atendidos pela Meta Lav
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from app.core import settings
from app.core.errors import register_exception_handlers
from app.core.rate_limit import limiter
from app.database import init_db
from app.api import (
    auth_router,
    me_router,
    users_router,
    condominios_router,
    assignments_router,
    auditorias_router,
    fechamento_router,
    fotos_router,
    relatorios_router,
    jobs_router,
    cron_router,
    diagnostico_router,
    implantacoes_router
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle do aplicativo"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    await init_db()

    yield

    logger.info("Shutting down...")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adiciona headers de seguranca em todas as respostas"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Cache control para endpoints de autenticacao
        if "/auth" in request.url.path or request.url.path.endswith("/me"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Auditorias mensais, fechamento financeiro e relatorios dos condominios",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)

app.state.limiter = limiter
register_exception_handlers(app)

# Headers de seguranca (adicionar ANTES do CORS)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router, prefix="/api")
app.include_router(me_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(condominios_router, prefix="/api")
app.include_router(assignments_router, prefix="/api")
app.include_router(auditorias_router, prefix="/api")
app.include_router(fechamento_router, prefix="/api")
app.include_router(fotos_router, prefix="/api")
app.include_router(relatorios_router, prefix="/api")
app.include_router(jobs_router, prefix="/api")
app.include_router(cron_router, prefix="/api")
app.include_router(diagnostico_router, prefix="/api")
app.include_router(implantacoes_router, prefix="/api")

# Fotos e comprovantes
uploads_dir = settings.uploads_path
uploads_dir.mkdir(parents=True, exist_ok=True)
logger.info(f"Uploads directory: {uploads_dir}")
app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
