"""
Meta Lav Auditorias - Rate Limiting
Contador por usuario (slowapi). O storage vem de RATE_LIMIT_STORAGE_URI:
memory:// conta por processo; redis://host:6379 compartilha entre instancias.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings
from .security import verify_access_token


def user_or_ip_key(request: Request) -> str:
    """Chave do limite: id do usuario logado, senao IP"""
    token = None
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
    if not token:
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)

    if token:
        payload = verify_access_token(token)
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=user_or_ip_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    headers_enabled=False
)
