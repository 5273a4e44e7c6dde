"""
Meta Lav Auditorias - Implantacao Schemas
"""
from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from app.models.implantacao import ChecklistStatus
from app.utils.formatters import parse_data


class ImplantacaoCreate(BaseModel):
    nome_condominio: str = Field(..., max_length=255)
    endereco: Optional[str] = None
    # "YYYY-MM-DD" (input date) ou "DD/MM/YYYY"
    data_contrato: date

    @field_validator("nome_condominio")
    @classmethod
    def validar_nome(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Nome do condomínio é obrigatório")
        return v

    @field_validator("endereco")
    @classmethod
    def limpar_endereco(cls, v):
        return (v or "").strip() or None

    @field_validator("data_contrato", mode="before")
    @classmethod
    def validar_data_contrato(cls, v):
        data = parse_data(v)
        if data is None:
            raise ValueError("data_contrato deve estar no formato YYYY-MM-DD ou DD/MM/YYYY")
        return data


class ChecklistItemUpdate(BaseModel):
    status: Optional[ChecklistStatus] = None
    observacao: Optional[str] = Field(None, max_length=1000)


class ChecklistPadraoItem(BaseModel):
    secao: str = Field(..., min_length=1, max_length=100)
    descricao: str = Field(..., min_length=1)
    ordem: int = Field(0, ge=0)
    ativo: bool = True


class ChecklistPadraoReplace(BaseModel):
    itens: List[ChecklistPadraoItem]
