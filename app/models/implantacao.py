"""
Meta Lav Auditorias - Implantacao Models
Projetos de implantacao de novos condominios e o checklist de cada um
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Integer, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class ChecklistStatus(str, enum.Enum):
    PENDENTE = "pendente"
    OK = "ok"


class Implantacao(Base):
    """Implantacao de um condominio recem contratado"""
    __tablename__ = "implantacoes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    nome_condominio = Column(String(255), nullable=False)
    endereco = Column(Text)
    data_contrato = Column(Date, nullable=False)
    finalizada_em = Column(DateTime)

    created_by = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    checklist = relationship(
        "ImplantacaoChecklist",
        back_populates="implantacao",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=lambda: [ImplantacaoChecklist.secao, ImplantacaoChecklist.ordem]
    )

    def to_dict(self, com_checklist: bool = False):
        data = {
            "id": self.id,
            "nome_condominio": self.nome_condominio,
            "endereco": self.endereco,
            "data_contrato": self.data_contrato.isoformat() if self.data_contrato else None,
            "finalizada_em": self.finalizada_em.isoformat() if self.finalizada_em else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if com_checklist:
            itens = self.checklist or []
            data["checklist"] = [item.to_dict() for item in itens]
            data["pendentes"] = sum(1 for item in itens if item.status == ChecklistStatus.PENDENTE.value)
        return data


class ImplantacaoChecklistPadrao(Base):
    """Modelo de checklist copiado para cada nova implantacao"""
    __tablename__ = "implantacao_checklist_padrao"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    secao = Column(String(100), nullable=False)
    descricao = Column(Text, nullable=False)
    ordem = Column(Integer, default=0)
    ativo = Column(Boolean, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "secao": self.secao,
            "descricao": self.descricao,
            "ordem": self.ordem,
            "ativo": bool(self.ativo),
        }


class ImplantacaoChecklist(Base):
    """Item do checklist de uma implantacao"""
    __tablename__ = "implantacao_checklist"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    implantacao_id = Column(String(36), ForeignKey("implantacoes.id", ondelete="CASCADE"), nullable=False, index=True)
    implantacao = relationship("Implantacao", back_populates="checklist")

    secao = Column(String(100), nullable=False)
    descricao = Column(Text, nullable=False)
    ordem = Column(Integer, default=0)
    status = Column(String(20), default=ChecklistStatus.PENDENTE.value, nullable=False)
    observacao = Column(Text)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "secao": self.secao,
            "descricao": self.descricao,
            "ordem": self.ordem,
            "status": self.status,
            "observacao": self.observacao,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
