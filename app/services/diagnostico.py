"""
Meta Lav Auditorias - Diagnostico
Analise heuristica de logs de erro colados pela equipe interna.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class PatchSugestao(BaseModel):
    file: Optional[str] = None
    description: str
    diff: Optional[str] = None
    risk: str = "low"
    verify: List[str] = Field(default_factory=list)


class CausaProvavel(BaseModel):
    cause: str
    confidence: float
    evidence: List[str] = Field(default_factory=list)


class DiagnosticoInput(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    route: Optional[str] = Field(None, max_length=500)
    method: Optional[str] = Field(None, max_length=20)
    when: Optional[str] = Field(None, max_length=80)
    request_id: Optional[str] = Field(None, max_length=200)
    logs: Optional[str] = None
    code_context: Optional[str] = None
    repro_steps: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    env_notes: Optional[str] = None


class DiagnosticoOutput(BaseModel):
    summary: str
    probable_causes: List[CausaProvavel]
    next_steps: List[str]
    suggested_patches: List[PatchSugestao]
    safety_notes: List[str]
    meta: dict


MAX_TEXTO = 80_000


def _clamp(texto: Optional[str], limite: int = MAX_TEXTO) -> str:
    t = texto or ""
    return t[:limite] + "\n...[TRUNCADO]" if len(t) > limite else t


def _contem(texto: str, *termos: str) -> bool:
    return any(t in texto for t in termos)


def diagnosticar(entrada: DiagnosticoInput) -> DiagnosticoOutput:
    """Heuristicas para os erros mais comuns da aplicacao"""
    logs = _clamp(entrada.logs).lower()
    route = (entrada.route or "").lower()

    causas: List[CausaProvavel] = []
    patches: List[PatchSugestao] = []
    proximos: List[str] = []

    if _contem(logs, "badly formed hexadecimal uuid", "invalid input syntax for type uuid", "invalid uuid"):
        causas.append(CausaProvavel(
            cause="ID com aspas/escape/URL mal formada (UUID com caracteres extras).",
            confidence=0.85,
            evidence=["Mensagem de erro menciona UUID inválido."],
        ))
        patches.append(PatchSugestao(
            file="rota que recebe o id no path",
            description="Extrair o UUID por regex antes de consultar o banco.",
            diff="m = re.search(r'[0-9a-fA-F-]{36}', auditoria_id)",
            verify=["Testar URL com espaços/aspas (%20, %22).", "Garantir que IDs válidos continuam funcionando."],
        ))

    if _contem(logs, "413", "request entity too large", "payload too large"):
        causas.append(CausaProvavel(
            cause="Upload maior que o limite do proxy/servidor.",
            confidence=0.9,
            evidence=["Erro explícito de payload too large / 413."],
        ))
        patches.append(PatchSugestao(
            file="app/api/fotos.py",
            description="Reduzir a foto no cliente (lado máximo 1600px, JPEG) ou aumentar client_max_body_size no proxy.",
            risk="medium",
            verify=["Subir uma foto de 5-10MB sem bater no limite."],
        ))

    if _contem(logs, "unidentifiedimageerror", "cannot identify image file", "pil.", "decoder jpeg not available"):
        causas.append(CausaProvavel(
            cause="Falha do Pillow ao abrir/converter a imagem (formato, perfil de cor ou arquivo corrompido).",
            confidence=0.9,
            evidence=["Logs citam Pillow/UnidentifiedImageError."],
        ))
        patches.append(PatchSugestao(
            file="app/utils/image.py",
            description="Regravar como JPEG RGB (sem alpha) e ignorar anexos que não abrem.",
            verify=["Gerar o PDF final e confirmar que todas as imagens aparecem."],
        ))

    if _contem(logs, "integrityerror", "unique constraint", "duplicate key"):
        causas.append(CausaProvavel(
            cause="Registro duplicado (ex.: auditoria já existe para condomínio + mês).",
            confidence=0.8,
            evidence=["Violação de constraint única nos logs."],
        ))
        proximos.append("Conferir se o job mensal já criou a auditoria antes da criação manual.")

    if _contem(logs, "database is locked"):
        causas.append(CausaProvavel(
            cause="SQLite bloqueado por escrita concorrente.",
            confidence=0.75,
            evidence=["Logs mostram 'database is locked'."],
        ))
        proximos.append("Em produção use PostgreSQL (DATABASE_URL=postgresql+asyncpg://...).")

    if _contem(logs, "sem permissão", "permission", "not authorized", "403", "401"):
        causas.append(CausaProvavel(
            cause="Perfil do usuário sem permissão para a ação (auditor/interno/gestor).",
            confidence=0.8,
            evidence=["Logs sugerem 401/403/permission."],
        ))
        proximos.append("Confirmar o role do usuário em /api/me e a atribuição auditor -> condomínio.")

    if "/pdf" in route and _contem(logs, "connecterror", "connection refused", "invalid url", "readtimeout"):
        causas.append(CausaProvavel(
            cause="Falha ao baixar anexo remoto para o PDF (URL inválida ou storage inacessível).",
            confidence=0.7,
            evidence=["Logs indicam falha de conexão/URL."],
        ))
        proximos.append("Verificar PUBLIC_BASE_URL e se as URLs dos anexos apontam para /uploads.")

    if not causas:
        causas.append(CausaProvavel(
            cause="Sem sinais suficientes nos logs para causa raiz automática.",
            confidence=0.3,
            evidence=["Logs/code_context não trazem erro claro."],
        ))
        proximos.append("Cole o log completo (incluindo traceback) e o trecho do arquivo onde ocorreu a exceção.")

    causas.sort(key=lambda c: c.confidence, reverse=True)

    return DiagnosticoOutput(
        summary=f"Diagnóstico inicial baseado em heurísticas. Encontradas {len(causas)} hipóteses.",
        probable_causes=causas,
        next_steps=[
            "Reproduzir uma vez e coletar a resposta completa.",
            "Confirmar o traceback e o ponto exato do código (arquivo + linha).",
            *proximos,
        ],
        suggested_patches=patches,
        safety_notes=[
            "Não publicar mudanças grandes sem smoke test das rotas críticas.",
            "Evitar logs com segredos (token, cookie, chaves).",
        ],
        meta={"mode": "heuristic"},
    )
