"""
Meta Lav Auditorias - Formatadores
Moeda, percentual e competencia no padrao brasileiro
"""
import re
from datetime import date, datetime
from typing import Optional

_MES_REF_RE = re.compile(r"^(\d{4})-(\d{2})-01$")
_DATA_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DATA_BR_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def brl(valor) -> str:
    """1234.5 -> 'R$ 1.234,50'"""
    try:
        v = float(valor or 0)
    except (TypeError, ValueError):
        v = 0.0
    return f"R$ {v:,.2f}".replace(',', 'X').replace('.', ',').replace('X', '.')


def pct(valor, casas: int = 2) -> str:
    """12.5 -> '12,50%'; None -> '—'"""
    if valor is None:
        return "—"
    return f"{float(valor):.{casas}f}%".replace('.', ',')


def numero(valor, casas: int = 2) -> str:
    if valor is None:
        return "—"
    return f"{float(valor):,.{casas}f}".replace(',', 'X').replace('.', ',').replace('X', '.')


def competencia(mes_ref) -> str:
    """date(2025, 3, 1) ou '2025-03-01' -> '03/2025'"""
    if isinstance(mes_ref, (date, datetime)):
        return mes_ref.strftime("%m/%Y")
    s = str(mes_ref or "")[:10]
    return f"{s[5:7]}/{s[0:4]}" if len(s) >= 7 else s


def parse_mes_ref(value) -> Optional[date]:
    """Aceita apenas 'YYYY-MM-01'; retorna None para qualquer outro formato"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value if value.day == 1 else None
    m = _MES_REF_RE.match(str(value or "").strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), 1)
    except ValueError:
        return None


def parse_data(value) -> Optional[date]:
    """'YYYY-MM-DD' ou 'DD/MM/YYYY' -> date; None se vazio ou invalido"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value or "").strip()
    m = _DATA_ISO_RE.match(s)
    if m:
        ano, mes, dia = m.groups()
    else:
        m = _DATA_BR_RE.match(s)
        if not m:
            return None
        dia, mes, ano = m.groups()
    try:
        return date(int(ano), int(mes), int(dia))
    except ValueError:
        return None


def mes_atual(hoje: Optional[date] = None) -> date:
    hoje = hoje or date.today()
    return hoje.replace(day=1)


def mes_anterior(mes_ref: date) -> date:
    if mes_ref.month == 1:
        return date(mes_ref.year - 1, 12, 1)
    return date(mes_ref.year, mes_ref.month - 1, 1)
