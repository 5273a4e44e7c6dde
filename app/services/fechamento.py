"""
Meta Lav Auditorias - Fechamento
Calculo do fechamento financeiro de uma auditoria: receita por maquina,
cashback, consumo de insumos, repasse e total a pagar ao condominio.

Funcoes puras, sem acesso ao banco. Entradas sao dicts simples (veja
app/services/relatorios.py para a montagem a partir dos models).
"""
from typing import Optional, List, Dict, Tuple

from app.models.condominio import normalize_categoria

INSUMOS = ("agua", "energia", "gas")

INSUMO_LABELS = {
    "agua": "Água",
    "energia": "Energia",
    "gas": "Gás",
}

INSUMO_UNIDADES = {
    "agua": "m³",
    "energia": "kWh",
    "gas": "m³",
}

# coluna de tarifa no condominio por insumo
TARIFA_FIELDS = {
    "agua": "tarifa_agua_m3",
    "energia": "tarifa_energia_kwh",
    "gas": "tarifa_gas_m3",
}

ORIGEM_MES_ANTERIOR = "mes_anterior"
ORIGEM_BASE_MANUAL = "base_manual"
ORIGEM_SEM_BASE = "sem_base"


def safe_num(value) -> Optional[float]:
    """Converte para float; None para vazio/invalido"""
    if value is None or value == "":
        return None
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if x != x or x in (float("inf"), float("-inf")):
        return None
    return x


def money(value) -> float:
    """Valor monetario com 2 casas (None/invalido vira 0)"""
    return round(safe_num(value) or 0.0, 2)


def maquina_label(categoria, capacidade_kg) -> str:
    cat = "Secadora" if normalize_categoria(categoria) == "secadora" else "Lavadora"
    cap = safe_num(capacidade_kg)
    return f"{cat} {int(cap)}kg" if cap else cat


def _tipo_key(categoria, capacidade_kg) -> Tuple[str, int]:
    return normalize_categoria(categoria), int(safe_num(capacidade_kg) or 0)


def tipos_do_condominio(maquinas: List[dict]) -> List[Tuple[str, int]]:
    """
    Tipos distintos (categoria, capacidade) cadastrados no condominio.
    Lavadora antes de secadora, capacidade crescente. Sem maquinas,
    retorna lavadora 10kg.
    """
    tipos = set()
    for m in maquinas or []:
        cat, cap = _tipo_key(m.get("categoria"), m.get("capacidade_kg"))
        if cap:
            tipos.add((cat, cap))

    if not tipos:
        tipos.add(("lavadora", 10))

    return sorted(tipos, key=lambda t: (0 if t[0] == "lavadora" else 1, t[1]))


def preco_ciclo(categoria, capacidade_kg, maquinas: List[dict], condominio: dict) -> float:
    """
    Preco por ciclo: valor_ciclo da maquina com mesma categoria e capacidade;
    senao o preco legado da categoria no condominio; senao 0.
    """
    key = _tipo_key(categoria, capacidade_kg)
    for m in maquinas or []:
        if _tipo_key(m.get("categoria"), m.get("capacidade_kg")) == key:
            valor = safe_num(m.get("valor_ciclo"))
            if valor is not None:
                return valor

    legado_field = "valor_ciclo_secadora" if key[0] == "secadora" else "valor_ciclo_lavadora"
    legado = safe_num((condominio or {}).get(legado_field))
    return legado if legado is not None else 0.0


def calcular_vendas(ciclos: List[dict], maquinas: List[dict], condominio: dict) -> dict:
    """
    Receita por tipo de maquina. Lista todos os tipos cadastrados (com 0
    ciclos quando nao houve contagem) e tambem tipos contados que nao estao
    mais no cadastro.
    """
    contagem: Dict[Tuple[str, int], dict] = {}
    for row in ciclos or []:
        key = _tipo_key(row.get("categoria"), row.get("capacidade_kg"))
        if key[1]:
            contagem[key] = row

    tipos = tipos_do_condominio(maquinas)
    extras = sorted(
        (k for k in contagem if k not in tipos),
        key=lambda t: (0 if t[0] == "lavadora" else 1, t[1])
    )

    itens = []
    receita = {"lavadora": 0.0, "secadora": 0.0}
    for categoria, capacidade in list(tipos) + extras:
        row = contagem.get((categoria, capacidade)) or {}
        qtd = max(0, int(safe_num(row.get("ciclos")) or 0))
        valor_ciclo = preco_ciclo(categoria, capacidade, maquinas, condominio)
        valor_total = money(qtd * valor_ciclo)
        receita[categoria] += valor_total

        itens.append({
            "id": row.get("id"),
            "categoria": categoria,
            "capacidade_kg": capacidade,
            "maquina": maquina_label(categoria, capacidade),
            "ciclos": qtd,
            "valor_ciclo": money(valor_ciclo),
            "valor_total": valor_total,
        })

    return {
        "itens": itens,
        "receita_lavadora": money(receita["lavadora"]),
        "receita_secadora": money(receita["secadora"]),
        "receita_total": money(receita["lavadora"] + receita["secadora"]),
    }


def escolher_base(leitura_mes_anterior, leitura_base) -> Tuple[Optional[float], str]:
    """Leitura de referencia: mes anterior > base manual > nenhuma"""
    anterior = safe_num(leitura_mes_anterior)
    if anterior is not None:
        return anterior, ORIGEM_MES_ANTERIOR

    base = safe_num(leitura_base)
    if base is not None:
        return base, ORIGEM_BASE_MANUAL

    return None, ORIGEM_SEM_BASE


def calcular_consumo(leitura_atual, leitura_mes_anterior=None, leitura_base=None) -> dict:
    """
    Consumo = leitura atual - referencia.
    Sem referencia ou sem leitura atual o consumo e None (nunca 0).
    """
    atual = safe_num(leitura_atual)
    referencia, origem = escolher_base(leitura_mes_anterior, leitura_base)

    consumo = None
    if atual is not None and referencia is not None:
        consumo = round(atual - referencia, 3)

    return {
        "leitura_anterior": referencia,
        "leitura_atual": atual,
        "consumo": consumo,
        "origem": origem,
    }


def calcular_repasse(consumo, tarifa) -> float:
    """Repasse = max(0, consumo) x tarifa; 0 sem consumo"""
    c = safe_num(consumo)
    if c is None:
        return 0.0
    return money(max(0.0, c) * (safe_num(tarifa) or 0.0))


def variacao_percentual(atual, anterior) -> Optional[float]:
    """(atual - anterior) / anterior x 100; None sem comparacao valida"""
    a = safe_num(atual)
    p = safe_num(anterior)
    if a is None or p is None or p == 0:
        return None
    return round((a - p) / p * 100, 2)


def calcular_fechamento(
    auditoria: dict,
    condominio: dict,
    maquinas: List[dict],
    ciclos: List[dict],
    anterior: Optional[dict] = None
) -> dict:
    """
    Fechamento completo de uma auditoria.

    auditoria/anterior: leituras (agua_leitura, ..., agua_leitura_base, ...)
    condominio: cashback_percent, tarifas, usa_gas, precos legados
    maquinas: [{categoria, capacidade_kg, valor_ciclo}]
    ciclos: [{categoria, capacidade_kg, ciclos}]
    """
    condominio = condominio or {}
    usa_gas = bool(condominio.get("usa_gas"))

    vendas = calcular_vendas(ciclos, maquinas, condominio)
    receita_total = vendas["receita_total"]

    cashback_percent = safe_num(condominio.get("cashback_percent")) or 0.0
    cashback = money(receita_total * cashback_percent / 100)

    consumo = {}
    repasse = {}
    for insumo in INSUMOS:
        info = calcular_consumo(
            auditoria.get(f"{insumo}_leitura"),
            (anterior or {}).get(f"{insumo}_leitura"),
            auditoria.get(f"{insumo}_leitura_base"),
        )
        tarifa = safe_num(condominio.get(TARIFA_FIELDS[insumo])) or 0.0
        valor = calcular_repasse(info["consumo"], tarifa)
        if insumo == "gas" and not usa_gas:
            valor = 0.0

        info["tarifa"] = tarifa
        info["repasse"] = valor
        consumo[insumo] = info
        repasse[insumo] = valor

    repasse_total = money(sum(repasse.values()))

    return {
        "itens": vendas["itens"],
        "receita_lavadora": vendas["receita_lavadora"],
        "receita_secadora": vendas["receita_secadora"],
        "receita_total": receita_total,
        "cashback_percent": cashback_percent,
        "cashback": cashback,
        "usa_gas": usa_gas,
        "consumo": consumo,
        "repasse_agua": repasse["agua"],
        "repasse_energia": repasse["energia"],
        "repasse_gas": repasse["gas"],
        "repasse_total": repasse_total,
        "total_a_pagar": money(cashback + repasse_total),
    }
