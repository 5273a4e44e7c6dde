"""
Meta Lav Auditorias - Job Log Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Text, Integer

from app.database import Base


class AuditoriaJobLog(Base):
    """Uma linha por execucao do job de criacao mensal"""
    __tablename__ = "auditorias_jobs_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    job_name = Column(String(100), nullable=False, index=True)
    mes_ref = Column(Date)
    started_at = Column(DateTime, default=datetime.utcnow, index=True)
    finished_at = Column(DateTime)
    ok = Column(Boolean, default=False)
    condominios_ativos = Column(Integer, default=0)
    criadas = Column(Integer, default=0)
    error_message = Column(Text)

    def to_dict(self):
        return {
            "id": self.id,
            "job_name": self.job_name,
            "mes_ref": self.mes_ref.isoformat() if self.mes_ref else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "ok": bool(self.ok),
            "condominios_ativos": self.condominios_ativos,
            "criadas": self.criadas,
            "error_message": self.error_message,
        }
