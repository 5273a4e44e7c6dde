"""
Meta Lav Auditorias - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env com override para sobrescrever variáveis do sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Meta Lav Auditorias"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./metalav.db"

    # Sessao (JWT em header Bearer ou cookie)
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    SESSION_COOKIE_NAME: str = "access_token"

    # Token do agendador externo (cron)
    CRON_SECRET: Optional[str] = None

    # Storage de fotos/comprovantes
    UPLOADS_DIR: Optional[str] = None
    PUBLIC_BASE_URL: str = ""
    STORAGE_BUCKET: str = "auditorias"

    # Pre-processamento de imagens para o PDF
    IMAGE_MAX_SIDE: int = 1600
    IMAGE_JPEG_QUALITY: int = 72

    # Rate limit (memory:// e local ao processo; use redis://... em producao)
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    DIAGNOSTICO_RATE_LIMIT: str = "20/minute"

    # Admin inicial (gestor)
    ADMIN_EMAIL: str = "gestor@metalav.com.br"
    ADMIN_PASSWORD: str = "change-me-in-production"

    # CORS
    CORS_ORIGINS: list = ["*"]

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True

    @property
    def uploads_path(self) -> Path:
        """Diretorio de uploads (producao usa /app/uploads)"""
        if self.UPLOADS_DIR:
            return Path(self.UPLOADS_DIR)
        if Path("/app/uploads").exists():
            return Path("/app/uploads")
        return Path(__file__).parent.parent.parent / "uploads"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
