"""
Meta Lav Auditorias - Auditoria Models
Auditoria mensal por condominio, ciclos por maquina, itens de fechamento,
historico de status e fotos de proveta
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, Date, Text, Integer, Float, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from app.database import Base


class AuditoriaStatus(str, enum.Enum):
    """Status do ciclo de vida da auditoria"""
    ABERTA = "aberta"
    EM_ANDAMENTO = "em_andamento"
    EM_CONFERENCIA = "em_conferencia"
    FINAL = "final"


# kind do upload -> coluna da auditoria
FOTO_COLUMNS = {
    "agua": "foto_agua_url",
    "energia": "foto_energia_url",
    "gas": "foto_gas_url",
    "quimicos": "foto_quimicos_url",
    "bombonas": "foto_bombonas_url",
    "conector_bala": "foto_conector_bala_url",
    "comprovante_fechamento": "comprovante_fechamento_url",
}


class Auditoria(Base):
    """Auditoria de um condominio em um mes de referencia"""
    __tablename__ = "auditorias"
    __table_args__ = (
        UniqueConstraint("condominio_id", "mes_ref", name="uq_auditoria_condominio_mes"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    condominio_id = Column(String(36), ForeignKey("condominios.id", ondelete="CASCADE"), nullable=False, index=True)
    condominio = relationship("Condominio", lazy="selectin")

    # Sempre dia 1 (YYYY-MM-01)
    mes_ref = Column(Date, nullable=False, index=True)
    status = Column(String(20), default=AuditoriaStatus.ABERTA.value, nullable=False, index=True)

    auditor_id = Column(String(36), ForeignKey("profiles.id"), index=True)
    auditor = relationship("Profile", foreign_keys=[auditor_id], lazy="selectin")

    # Leituras do mes
    agua_leitura = Column(Float)
    energia_leitura = Column(Float)
    gas_leitura = Column(Float)

    # Leituras base (informadas manualmente quando nao ha mes anterior)
    agua_leitura_base = Column(Float)
    energia_leitura_base = Column(Float)
    gas_leitura_base = Column(Float)

    observacoes = Column(Text)
    fechamento_obs = Column(Text)
    comprovante_fechamento_url = Column(Text)

    # Evidencias
    foto_agua_url = Column(Text)
    foto_energia_url = Column(Text)
    foto_gas_url = Column(Text)
    foto_quimicos_url = Column(Text)
    foto_bombonas_url = Column(Text)
    foto_conector_bala_url = Column(Text)

    created_by = Column(String(36), ForeignKey("profiles.id"))
    fechado_por = Column(String(36), ForeignKey("profiles.id"))
    fechado_em = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        data = {
            "id": self.id,
            "condominio_id": self.condominio_id,
            "mes_ref": self.mes_ref.isoformat() if self.mes_ref else None,
            "status": self.status,
            "auditor_id": self.auditor_id,
            "auditor_email": self.auditor.email if self.auditor else None,
            "agua_leitura": self.agua_leitura,
            "energia_leitura": self.energia_leitura,
            "gas_leitura": self.gas_leitura,
            "agua_leitura_base": self.agua_leitura_base,
            "energia_leitura_base": self.energia_leitura_base,
            "gas_leitura_base": self.gas_leitura_base,
            "observacoes": self.observacoes,
            "fechamento_obs": self.fechamento_obs,
            "created_by": self.created_by,
            "fechado_por": self.fechado_por,
            "fechado_em": self.fechado_em.isoformat() if self.fechado_em else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        for column in FOTO_COLUMNS.values():
            data[column] = getattr(self, column)

        if self.condominio:
            data["condominio"] = {
                "id": self.condominio.id,
                "nome": self.condominio.nome,
                "cidade": self.condominio.cidade,
                "uf": self.condominio.uf,
                "tipo_pagamento": self.condominio.tipo_pagamento,
                "usa_gas": bool(self.condominio.usa_gas),
            }
        return data


class AuditoriaCiclo(Base):
    """Contagem de ciclos por tipo de maquina (categoria + capacidade)"""
    __tablename__ = "auditoria_ciclos"
    __table_args__ = (
        UniqueConstraint("auditoria_id", "categoria", "capacidade_kg", name="uq_ciclo_tipo"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    auditoria_id = Column(String(36), ForeignKey("auditorias.id", ondelete="CASCADE"), nullable=False, index=True)
    categoria = Column(String(20), nullable=False)
    capacidade_kg = Column(Integer, nullable=False)
    ciclos = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "auditoria_id": self.auditoria_id,
            "categoria": self.categoria,
            "capacidade_kg": self.capacidade_kg,
            "ciclos": self.ciclos,
        }


class AuditoriaFechamentoItem(Base):
    """Lancamento livre do fechamento (por maquina/tag)"""
    __tablename__ = "auditoria_fechamento_itens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    auditoria_id = Column(String(36), ForeignKey("auditorias.id", ondelete="CASCADE"), nullable=False, index=True)
    maquina_tag = Column(String(50))
    tipo = Column(String(20))
    ciclos = Column(Integer, default=0)
    valor_total = Column(Float, default=0)
    valor_repasse = Column(Float, default=0)
    valor_cashback = Column(Float, default=0)
    observacoes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "auditoria_id": self.auditoria_id,
            "maquina_tag": self.maquina_tag,
            "tipo": self.tipo,
            "ciclos": self.ciclos,
            "valor_total": self.valor_total,
            "valor_repasse": self.valor_repasse,
            "valor_cashback": self.valor_cashback,
            "observacoes": self.observacoes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditoriaHistorico(Base):
    """Log append-only das transicoes de status"""
    __tablename__ = "auditorias_historico"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    auditoria_id = Column(String(36), ForeignKey("auditorias.id", ondelete="CASCADE"), nullable=False, index=True)
    de_status = Column(String(20))
    para_status = Column(String(20), nullable=False)
    actor_id = Column(String(36), ForeignKey("profiles.id"))
    motivo = Column(Text)

    actor = relationship("Profile", lazy="selectin")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "auditoria_id": self.auditoria_id,
            "de_status": self.de_status,
            "para_status": self.para_status,
            "actor_id": self.actor_id,
            "actor": {
                "id": self.actor.id,
                "email": self.actor.email,
                "role": self.actor.role,
            } if self.actor else None,
            "motivo": self.motivo,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AuditoriaProveta(Base):
    """Foto da proveta de dosagem quimica, por maquina (tag + indice)"""
    __tablename__ = "auditoria_provetas"
    __table_args__ = (
        UniqueConstraint("auditoria_id", "maquina_tag", "maquina_idx", name="uq_proveta_maquina"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    auditoria_id = Column(String(36), ForeignKey("auditorias.id", ondelete="CASCADE"), nullable=False, index=True)
    maquina_tag = Column(String(50), nullable=False)
    maquina_idx = Column(Integer, nullable=False, default=1)
    foto_url = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "auditoria_id": self.auditoria_id,
            "maquina_tag": self.maquina_tag,
            "maquina_idx": self.maquina_idx,
            "foto_url": self.foto_url,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
