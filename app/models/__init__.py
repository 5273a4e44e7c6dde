from .profile import Profile
from .condominio import (
    Condominio,
    CondominioMaquina,
    AuditorCondominio,
    TipoPagamento,
    CategoriaMaquina,
    normalize_tipo_pagamento,
    normalize_categoria
)
from .auditoria import (
    Auditoria,
    AuditoriaStatus,
    AuditoriaCiclo,
    AuditoriaFechamentoItem,
    AuditoriaHistorico,
    AuditoriaProveta,
    FOTO_COLUMNS
)
from .implantacao import (
    Implantacao,
    ImplantacaoChecklistPadrao,
    ImplantacaoChecklist,
    ChecklistStatus
)
from .job_log import AuditoriaJobLog

__all__ = [
    "Profile",
    "Condominio",
    "CondominioMaquina",
    "AuditorCondominio",
    "TipoPagamento",
    "CategoriaMaquina",
    "normalize_tipo_pagamento",
    "normalize_categoria",
    "Auditoria",
    "AuditoriaStatus",
    "AuditoriaCiclo",
    "AuditoriaFechamentoItem",
    "AuditoriaHistorico",
    "AuditoriaProveta",
    "FOTO_COLUMNS",
    "Implantacao",
    "ImplantacaoChecklistPadrao",
    "ImplantacaoChecklist",
    "ChecklistStatus",
    "AuditoriaJobLog"
]
