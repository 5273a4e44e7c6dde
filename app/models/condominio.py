"""
Meta Lav Auditorias - Condominio Models
Cadastro de condominios, parque de maquinas e atribuicao de auditores
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, Integer, Float, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database import Base


class TipoPagamento(str, enum.Enum):
    """Forma de pagamento do cashback/repasse ao condominio"""
    DIRETO = "direto"
    BOLETO = "boleto"


class CategoriaMaquina(str, enum.Enum):
    LAVADORA = "lavadora"
    SECADORA = "secadora"


def normalize_tipo_pagamento(value) -> str:
    """Qualquer valor diferente de 'boleto' e tratado como direto (regra mais rigida)"""
    s = str(value or "").strip().lower()
    return TipoPagamento.BOLETO.value if s == "boleto" else TipoPagamento.DIRETO.value


def normalize_categoria(value) -> str:
    s = str(value or "").strip().lower()
    return CategoriaMaquina.SECADORA.value if s.startswith("sec") else CategoriaMaquina.LAVADORA.value


class Condominio(Base):
    """Modelo de Condominio atendido"""
    __tablename__ = "condominios"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    nome = Column(String(255), nullable=False, index=True)
    codigo_condominio = Column(String(50))

    # Endereço
    cidade = Column(String(100), nullable=False)
    uf = Column(String(2), nullable=False)
    cep = Column(String(10))
    rua = Column(String(255))
    numero = Column(String(20))
    bairro = Column(String(100))
    complemento = Column(String(255))

    # Contatos
    sindico_nome = Column(String(255))
    sindico_telefone = Column(String(30))
    zelador_nome = Column(String(255))
    zelador_telefone = Column(String(30))

    # Dados de pagamento
    tipo_pagamento = Column(String(10), default=TipoPagamento.DIRETO.value, nullable=False)
    banco = Column(String(100))
    agencia = Column(String(20))
    conta = Column(String(30))
    tipo_conta = Column(String(20))
    pix = Column(String(255))
    favorecido_nome = Column(String(255))
    favorecido_cnpj = Column(String(20))

    # Financeiro
    cashback_percent = Column(Float, default=0)
    tarifa_agua_m3 = Column(Float)
    tarifa_energia_kwh = Column(Float)
    tarifa_gas_m3 = Column(Float)
    usa_gas = Column(Boolean, default=False)

    # Precos legados por categoria (usados quando a maquina nao tem valor_ciclo)
    valor_ciclo_lavadora = Column(Float)
    valor_ciclo_secadora = Column(Float)

    ativo = Column(Boolean, default=True, index=True)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    maquinas = relationship(
        "CondominioMaquina",
        back_populates="condominio",
        lazy="selectin",
        cascade="all, delete-orphan"
    )

    def pagamento_texto(self) -> str:
        """Linha unica com os dados de pagamento (PIX tem prioridade sobre banco)"""
        doc_txt = f" • CNPJ/CPF: {self.favorecido_cnpj}" if self.favorecido_cnpj else ""
        if self.pix:
            return f"PIX: {self.pix}{doc_txt}"

        banco_txt = f"Banco: {self.banco}" if self.banco else "Banco"
        ag_txt = f" • Agência: {self.agencia}" if self.agencia else ""
        cc_txt = f" • Conta: {self.conta}" if self.conta else ""
        return f"{banco_txt}{ag_txt}{cc_txt}{doc_txt}".strip()

    def pagamento_dict(self) -> dict:
        return {
            "favorecido_nome": self.favorecido_nome or "",
            "favorecido_cnpj": self.favorecido_cnpj or "",
            "pix": self.pix or "",
            "banco": self.banco or "",
            "agencia": self.agencia or "",
            "conta": self.conta or "",
            "tipo_conta": self.tipo_conta or "",
        }

    def to_dict(self):
        return {
            "id": self.id,
            "nome": self.nome,
            "codigo_condominio": self.codigo_condominio,
            "cidade": self.cidade,
            "uf": self.uf,
            "cep": self.cep,
            "rua": self.rua,
            "numero": self.numero,
            "bairro": self.bairro,
            "complemento": self.complemento,
            "sindico_nome": self.sindico_nome,
            "sindico_telefone": self.sindico_telefone,
            "zelador_nome": self.zelador_nome,
            "zelador_telefone": self.zelador_telefone,
            "tipo_pagamento": normalize_tipo_pagamento(self.tipo_pagamento),
            "banco": self.banco,
            "agencia": self.agencia,
            "conta": self.conta,
            "tipo_conta": self.tipo_conta,
            "pix": self.pix,
            "favorecido_nome": self.favorecido_nome,
            "favorecido_cnpj": self.favorecido_cnpj,
            "cashback_percent": self.cashback_percent,
            "tarifa_agua_m3": self.tarifa_agua_m3,
            "tarifa_energia_kwh": self.tarifa_energia_kwh,
            "tarifa_gas_m3": self.tarifa_gas_m3,
            "usa_gas": bool(self.usa_gas),
            "valor_ciclo_lavadora": self.valor_ciclo_lavadora,
            "valor_ciclo_secadora": self.valor_ciclo_secadora,
            "ativo": bool(self.ativo),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "maquinas_count": len(self.maquinas) if self.maquinas else 0,
        }


class CondominioMaquina(Base):
    """Tipo de maquina instalada (categoria + capacidade) com preco por ciclo"""
    __tablename__ = "condominio_maquinas"
    __table_args__ = (
        UniqueConstraint("condominio_id", "categoria", "capacidade_kg", name="uq_maquina_tipo"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    condominio_id = Column(String(36), ForeignKey("condominios.id", ondelete="CASCADE"), nullable=False, index=True)
    condominio = relationship("Condominio", back_populates="maquinas")

    categoria = Column(String(20), nullable=False, default=CategoriaMaquina.LAVADORA.value)
    capacidade_kg = Column(Integer, nullable=False)
    quantidade = Column(Integer, default=1)
    valor_ciclo = Column(Float)

    # Manutencao preventiva (em ciclos)
    limpeza_quimica_ciclos = Column(Integer, default=500)
    limpeza_mecanica_ciclos = Column(Integer, default=2000)

    ativo = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "condominio_id": self.condominio_id,
            "categoria": self.categoria,
            "capacidade_kg": self.capacidade_kg,
            "quantidade": self.quantidade,
            "valor_ciclo": self.valor_ciclo,
            "limpeza_quimica_ciclos": self.limpeza_quimica_ciclos,
            "limpeza_mecanica_ciclos": self.limpeza_mecanica_ciclos,
            "ativo": bool(self.ativo),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditorCondominio(Base):
    """Vinculo auditor -> condominio"""
    __tablename__ = "auditor_condominios"
    __table_args__ = (
        UniqueConstraint("auditor_id", "condominio_id", name="uq_auditor_condominio"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    auditor_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    condominio_id = Column(String(36), ForeignKey("condominios.id", ondelete="CASCADE"), nullable=False, index=True)

    auditor = relationship("Profile", lazy="selectin")
    condominio = relationship("Condominio", lazy="selectin")

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "auditor_id": self.auditor_id,
            "condominio_id": self.condominio_id,
            "auditor_email": self.auditor.email if self.auditor else None,
            "condominio": {
                "id": self.condominio.id,
                "nome": self.condominio.nome,
                "cidade": self.condominio.cidade,
                "uf": self.condominio.uf,
            } if self.condominio else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
