"""
Meta Lav Auditorias - Error Handlers
Todas as respostas de erro seguem o formato {"error": "<mensagem>"}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int = 400, **extra) -> JSONResponse:
    """Monta resposta de erro padrao"""
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        # detail ja estruturado: {"error": ..., "details": ...}
        content = detail if "error" in detail else {"error": str(detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(detail)},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Erros de validacao do pydantic viram 400 com a primeira mensagem"""
    errors = exc.errors()
    message = "Payload inválido"
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", []) if p not in ("body", "query", "path"))
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit excedido em {request.url.path}: {exc.detail}")
    return error_response("Muitas requisições. Tente novamente em instantes.", status.HTTP_429_TOO_MANY_REQUESTS)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erro inesperado em {request.method} {request.url.path}: {exc}")
    return error_response(str(exc) or "Erro inesperado", status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
