"""
Meta Lav Auditorias - Profile Model
Usuarios do sistema (auditor, interno, gestor)
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime

from app.database import Base
from app.core.permissions import Role


class Profile(Base):
    """Modelo de usuario com perfil de acesso"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))

    role = Column(String(20), default=Role.AUDITOR.value, nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
