"""
Meta Lav Auditorias - Roles
Hierarquia de perfis: auditor < interno < gestor
"""
import enum
from typing import Optional, Union


class Role(str, enum.Enum):
    """Perfis de acesso"""
    AUDITOR = "auditor"
    INTERNO = "interno"
    GESTOR = "gestor"


_RANK = {
    Role.AUDITOR: 1,
    Role.INTERNO: 2,
    Role.GESTOR: 3,
}


def parse_role(value) -> Optional[Role]:
    """Normaliza string de role; retorna None para valores desconhecidos"""
    if isinstance(value, Role):
        return value
    s = str(value or "").strip().lower()
    try:
        return Role(s)
    except ValueError:
        return None


def role_at_least(role: Union[Role, str, None], minimum: Union[Role, str]) -> bool:
    """True se role >= minimum na hierarquia. Role ausente/invalida nunca passa."""
    r = parse_role(role)
    m = parse_role(minimum)
    if r is None or m is None:
        return False
    return _RANK[r] >= _RANK[m]


def is_staff(role: Union[Role, str, None]) -> bool:
    """Interno ou gestor"""
    return role_at_least(role, Role.INTERNO)
