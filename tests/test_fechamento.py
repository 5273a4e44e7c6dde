"""
Testes do calculo do fechamento (funcoes puras)
"""
import pytest

from app.services import fechamento as calc

MAQUINAS = [
    {"categoria": "lavadora", "capacidade_kg": 10, "valor_ciclo": 16.5},
    {"categoria": "secadora", "capacidade_kg": 10, "valor_ciclo": 8.0},
]

CONDOMINIO = {
    "cashback_percent": 20,
    "tarifa_agua_m3": 10,
    "tarifa_energia_kwh": 1.5,
    "tarifa_gas_m3": 5,
    "usa_gas": False,
}

CICLOS = [
    {"categoria": "lavadora", "capacidade_kg": 10, "ciclos": 10},
    {"categoria": "secadora", "capacidade_kg": 10, "ciclos": 5},
]


def test_receita_e_cashback_exemplo():
    """10 x 16,50 + 5 x 8,00 = 205,00; 20% de cashback = 41,00"""
    r = calc.calcular_fechamento({}, CONDOMINIO, MAQUINAS, CICLOS)

    assert r["receita_lavadora"] == 165.0
    assert r["receita_secadora"] == 40.0
    assert r["receita_total"] == 205.0
    assert r["cashback"] == 41.0
    assert [i["maquina"] for i in r["itens"]] == ["Lavadora 10kg", "Secadora 10kg"]


def test_preco_cai_para_valor_legado_e_depois_zero():
    condominio = {"valor_ciclo_lavadora": 12.0}
    assert calc.preco_ciclo("lavadora", 8, [], condominio) == 12.0
    assert calc.preco_ciclo("secadora", 8, [], condominio) == 0.0
    assert calc.preco_ciclo("lavadora", 10, MAQUINAS, condominio) == 16.5


def test_ciclos_negativos_viram_zero():
    ciclos = [{"categoria": "lavadora", "capacidade_kg": 10, "ciclos": -4}]
    r = calc.calcular_vendas(ciclos, MAQUINAS, CONDOMINIO)
    assert r["receita_total"] == 0.0
    assert r["itens"][0]["ciclos"] == 0


def test_tipos_sem_contagem_e_contados_fora_do_cadastro():
    ciclos = [{"categoria": "secadora", "capacidade_kg": 15, "ciclos": 2}]
    r = calc.calcular_vendas(ciclos, MAQUINAS, {"valor_ciclo_secadora": 9})

    tipos = [(i["categoria"], i["capacidade_kg"], i["ciclos"]) for i in r["itens"]]
    assert tipos == [("lavadora", 10, 0), ("secadora", 10, 0), ("secadora", 15, 2)]
    assert r["receita_secadora"] == 18.0


def test_tipos_do_condominio_sem_maquinas():
    assert calc.tipos_do_condominio([]) == [("lavadora", 10)]


def test_consumo_sem_base_e_none():
    info = calc.calcular_consumo(120)
    assert info["consumo"] is None
    assert info["origem"] == calc.ORIGEM_SEM_BASE

    r = calc.calcular_fechamento({"agua_leitura": 120}, CONDOMINIO, MAQUINAS, [])
    assert r["consumo"]["agua"]["consumo"] is None
    assert r["repasse_agua"] == 0.0


def test_base_prefere_mes_anterior():
    info = calc.calcular_consumo(150, leitura_mes_anterior=100, leitura_base=90)
    assert info["consumo"] == 50
    assert info["origem"] == calc.ORIGEM_MES_ANTERIOR

    info = calc.calcular_consumo(150, leitura_mes_anterior=None, leitura_base=90)
    assert info["consumo"] == 60
    assert info["origem"] == calc.ORIGEM_BASE_MANUAL


def test_consumo_sem_leitura_atual():
    info = calc.calcular_consumo(None, leitura_mes_anterior=100)
    assert info["consumo"] is None


def test_repasse_nunca_negativo():
    """Leitura menor que a anterior (troca de medidor) nao gera repasse negativo"""
    assert calc.calcular_repasse(-30, 10) == 0.0
    assert calc.calcular_repasse(None, 10) == 0.0
    assert calc.calcular_repasse(12.5, 4) == 50.0


def test_total_a_pagar_e_cashback_mais_repasse():
    auditoria = {"agua_leitura": 110, "energia_leitura": 80, "gas_leitura": 40}
    anterior = {"agua_leitura": 100, "energia_leitura": 100, "gas_leitura": 10}
    r = calc.calcular_fechamento(auditoria, CONDOMINIO, MAQUINAS, CICLOS, anterior)

    assert r["repasse_agua"] == 100.0
    # energia caiu: repasse 0
    assert r["repasse_energia"] == 0.0
    # condominio nao usa gas
    assert r["repasse_gas"] == 0.0
    assert r["repasse_total"] == 100.0
    assert r["total_a_pagar"] == r["cashback"] + r["repasse_total"] == 141.0


def test_gas_entra_quando_condominio_usa_gas():
    condominio = dict(CONDOMINIO, usa_gas=True)
    r = calc.calcular_fechamento({"gas_leitura": 40, "gas_leitura_base": 10}, condominio, MAQUINAS, [])
    assert r["repasse_gas"] == 150.0
    assert r["usa_gas"] is True


@pytest.mark.parametrize("atual, anterior, esperado", [
    (110, 100, 10.0),
    (50, 100, -50.0),
    (10, 0, None),
    (10, None, None),
    (None, 10, None),
])
def test_variacao_percentual(atual, anterior, esperado):
    assert calc.variacao_percentual(atual, anterior) == esperado


def test_money_arredonda_duas_casas():
    assert calc.money(1.234) == 1.23
    assert calc.money("16.5") == 16.5
    assert calc.money(None) == 0.0
    assert calc.money("abc") == 0.0
