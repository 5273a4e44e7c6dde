"""
Meta Lav Auditorias - Auditoria Schemas
"""
from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from app.utils.formatters import parse_mes_ref


class AuditoriaCreate(BaseModel):
    condominio_id: str
    mes_ref: date
    auditor_id: Optional[str] = None

    @field_validator("mes_ref", mode="before")
    @classmethod
    def validar_mes_ref(cls, v):
        mes = parse_mes_ref(v)
        if mes is None:
            raise ValueError("mes_ref deve estar no formato YYYY-MM-01")
        return mes


class AuditoriaUpdate(BaseModel):
    agua_leitura: Optional[float] = Field(None, ge=0)
    energia_leitura: Optional[float] = Field(None, ge=0)
    gas_leitura: Optional[float] = Field(None, ge=0)
    observacoes: Optional[str] = None
    status: Optional[str] = None
    # apenas interno/gestor
    auditor_id: Optional[str] = None
    fechamento_obs: Optional[str] = None


class BaseLeiturasUpdate(BaseModel):
    agua_leitura_base: Optional[float] = Field(None, ge=0)
    energia_leitura_base: Optional[float] = Field(None, ge=0)
    gas_leitura_base: Optional[float] = Field(None, ge=0)


class CicloItem(BaseModel):
    categoria: str = Field(..., min_length=1, max_length=20)
    capacidade_kg: int = Field(..., gt=0)
    ciclos: float

    @field_validator("ciclos")
    @classmethod
    def truncar_ciclos(cls, v):
        # contagem negativa vira 0
        return max(0, int(v))


class CiclosUpsert(BaseModel):
    itens: List[CicloItem]


class FechamentoItemCreate(BaseModel):
    maquina_tag: Optional[str] = Field(None, max_length=50)
    tipo: Optional[str] = Field(None, max_length=20)
    ciclos: int = Field(0, ge=0)
    valor_total: float = Field(0, ge=0)
    valor_repasse: float = Field(0, ge=0)
    valor_cashback: float = Field(0, ge=0)
    observacoes: Optional[str] = None


class FinalizarRequest(BaseModel):
    comprovante_fechamento_url: Optional[str] = None
    fechamento_obs: Optional[str] = None


class MotivoRequest(BaseModel):
    motivo: Optional[str] = None
