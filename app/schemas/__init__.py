from .auth import LoginRequest, LoginResponse, SetupRequest, MeResponse
from .user import UserCreate, UserRoleUpdate, UserResponse
from .condominio import (
    CondominioCreate,
    CondominioUpdate,
    CondominioAtivoUpdate,
    MaquinaItem,
    MaquinasReplace,
    AssignmentRequest
)
from .auditoria import (
    AuditoriaCreate,
    AuditoriaUpdate,
    BaseLeiturasUpdate,
    CicloItem,
    CiclosUpsert,
    FechamentoItemCreate,
    FinalizarRequest,
    MotivoRequest
)
from .implantacao import (
    ImplantacaoCreate,
    ChecklistItemUpdate,
    ChecklistPadraoItem,
    ChecklistPadraoReplace
)

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "SetupRequest",
    "MeResponse",
    "UserCreate",
    "UserRoleUpdate",
    "UserResponse",
    "CondominioCreate",
    "CondominioUpdate",
    "CondominioAtivoUpdate",
    "MaquinaItem",
    "MaquinasReplace",
    "AssignmentRequest",
    "AuditoriaCreate",
    "AuditoriaUpdate",
    "BaseLeiturasUpdate",
    "CicloItem",
    "CiclosUpsert",
    "FechamentoItemCreate",
    "FinalizarRequest",
    "MotivoRequest",
    "ImplantacaoCreate",
    "ChecklistItemUpdate",
    "ChecklistPadraoItem",
    "ChecklistPadraoReplace"
]
