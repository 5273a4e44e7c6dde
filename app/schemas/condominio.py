"""
Meta Lav Auditorias - Condominio Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal


class CondominioBase(BaseModel):
    nome: str = Field(..., min_length=2, max_length=255)
    codigo_condominio: Optional[str] = Field(None, max_length=50)
    cidade: str = Field(..., min_length=2, max_length=100)
    uf: str = Field(..., min_length=2, max_length=2)
    cep: Optional[str] = Field(None, max_length=10)
    rua: Optional[str] = Field(None, max_length=255)
    numero: Optional[str] = Field(None, max_length=20)
    bairro: Optional[str] = Field(None, max_length=100)
    complemento: Optional[str] = Field(None, max_length=255)

    sindico_nome: Optional[str] = Field(None, max_length=255)
    sindico_telefone: Optional[str] = Field(None, max_length=30)
    zelador_nome: Optional[str] = Field(None, max_length=255)
    zelador_telefone: Optional[str] = Field(None, max_length=30)

    tipo_pagamento: Literal["direto", "boleto"] = "direto"
    banco: Optional[str] = Field(None, max_length=100)
    agencia: Optional[str] = Field(None, max_length=20)
    conta: Optional[str] = Field(None, max_length=30)
    tipo_conta: Optional[str] = Field(None, max_length=20)
    pix: Optional[str] = Field(None, max_length=255)
    favorecido_nome: Optional[str] = Field(None, max_length=255)
    favorecido_cnpj: Optional[str] = Field(None, max_length=20)

    cashback_percent: float = Field(0, ge=0, le=100)
    tarifa_agua_m3: Optional[float] = Field(None, ge=0)
    tarifa_energia_kwh: Optional[float] = Field(None, ge=0)
    tarifa_gas_m3: Optional[float] = Field(None, ge=0)
    usa_gas: bool = False

    valor_ciclo_lavadora: Optional[float] = Field(None, ge=0)
    valor_ciclo_secadora: Optional[float] = Field(None, ge=0)

    notes: Optional[str] = None


class CondominioCreate(CondominioBase):
    pass


class CondominioUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=2, max_length=255)
    codigo_condominio: Optional[str] = Field(None, max_length=50)
    cidade: Optional[str] = Field(None, min_length=2, max_length=100)
    uf: Optional[str] = Field(None, min_length=2, max_length=2)
    cep: Optional[str] = Field(None, max_length=10)
    rua: Optional[str] = Field(None, max_length=255)
    numero: Optional[str] = Field(None, max_length=20)
    bairro: Optional[str] = Field(None, max_length=100)
    complemento: Optional[str] = Field(None, max_length=255)

    sindico_nome: Optional[str] = Field(None, max_length=255)
    sindico_telefone: Optional[str] = Field(None, max_length=30)
    zelador_nome: Optional[str] = Field(None, max_length=255)
    zelador_telefone: Optional[str] = Field(None, max_length=30)

    tipo_pagamento: Optional[Literal["direto", "boleto"]] = None
    banco: Optional[str] = Field(None, max_length=100)
    agencia: Optional[str] = Field(None, max_length=20)
    conta: Optional[str] = Field(None, max_length=30)
    tipo_conta: Optional[str] = Field(None, max_length=20)
    pix: Optional[str] = Field(None, max_length=255)
    favorecido_nome: Optional[str] = Field(None, max_length=255)
    favorecido_cnpj: Optional[str] = Field(None, max_length=20)

    cashback_percent: Optional[float] = Field(None, ge=0, le=100)
    tarifa_agua_m3: Optional[float] = Field(None, ge=0)
    tarifa_energia_kwh: Optional[float] = Field(None, ge=0)
    tarifa_gas_m3: Optional[float] = Field(None, ge=0)
    usa_gas: Optional[bool] = None

    valor_ciclo_lavadora: Optional[float] = Field(None, ge=0)
    valor_ciclo_secadora: Optional[float] = Field(None, ge=0)

    notes: Optional[str] = None


class CondominioAtivoUpdate(BaseModel):
    ativo: bool


class MaquinaItem(BaseModel):
    categoria: Literal["lavadora", "secadora"]
    capacidade_kg: int = Field(..., gt=0, le=100)
    quantidade: int = Field(1, ge=1, le=100)
    valor_ciclo: Optional[float] = Field(None, ge=0)
    limpeza_quimica_ciclos: int = Field(500, ge=1)
    limpeza_mecanica_ciclos: int = Field(2000, ge=1)
    ativo: bool = True


class MaquinasReplace(BaseModel):
    """Substitui o parque de maquinas inteiro do condominio"""
    itens: List[MaquinaItem]


class AssignmentRequest(BaseModel):
    auditor_id: str
    condominio_id: str
