"""
Testes de relatorios: final do condominio e financeiro mensal (JSON, PDF, XLSX)
"""
import io

from openpyxl import load_workbook

from app.utils.xlsx_report import XLSX_MEDIA_TYPE, FORMATO_MOEDA, FORMATO_PCT


def _finalizar(client, headers, auditoria_id, **body):
    r = client.post(f"/api/auditorias/{auditoria_id}/finalizar", json=body or None, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_relatorio_final_exige_auditoria_final(client, interno_headers, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"])
    r = client.get(f"/api/relatorios/condominio/final/{auditoria['id']}", headers=interno_headers)
    assert r.status_code == 400


def test_relatorio_final_json(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    condominio = criar_condominio(tipo_pagamento="boleto", usa_gas=False)
    auditoria = criar_auditoria(condominio["id"], mes_ref="2031-02-01")
    client.patch(f"/api/auditorias/{auditoria['id']}/base", json={"agua_leitura_base": 100},
                 headers=interno_headers)
    client.patch(f"/api/auditorias/{auditoria['id']}", json={"agua_leitura": 112.5, "energia_leitura": 50},
                 headers=interno_headers)
    lancar_ciclos(auditoria["id"])
    _finalizar(client, interno_headers, auditoria["id"], fechamento_obs="Sem ocorrências")

    r = client.get(f"/api/relatorios/condominio/final/{auditoria['id']}", headers=interno_headers)
    assert r.status_code == 200
    rel = r.json()["data"]

    assert rel["meta"]["competencia"] == "02/2031"
    assert rel["vendas_por_maquina"]["receita_bruta_total"] == 205.0
    assert rel["vendas_por_maquina"]["valor_cashback"] == 41.0

    insumos = {i["insumo"]: i for i in rel["consumo_insumos"]["itens"]}
    # sem gas no condominio: linha de gas nao aparece
    assert set(insumos) == {"Água", "Energia"}
    assert insumos["Água"]["consumo"] == 12.5
    assert insumos["Água"]["origem_leitura_anterior"] == "base_manual"
    assert insumos["Água"]["valor_total"] == 125.0
    # energia sem base: consumo nulo, repasse zero
    assert insumos["Energia"]["consumo"] is None
    assert insumos["Energia"]["valor_total"] == 0.0

    assert rel["totalizacao_final"]["total_a_pagar_condominio"] == 166.0
    assert rel["pagamento"]["tipo"] == "boleto"
    assert rel["observacoes"] == "Sem ocorrências"
    assert rel["anexos"]["foto_gas_url"] is None
    assert rel["anexos"]["comprovante_fechamento_url"] is None


def test_relatorio_final_pdf_com_anexos(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos, imagem_png):
    condominio = criar_condominio(nome="Residencial Ipê Amarelo", tipo_pagamento="direto", usa_gas=True)
    auditoria = criar_auditoria(condominio["id"], mes_ref="2031-03-01")
    fotos = f"/api/auditorias/{auditoria['id']}/fotos"

    r = client.post(fotos, data={"kind": "agua"}, files={"file": ("agua.png", imagem_png, "image/png")},
                    headers=interno_headers)
    assert r.status_code == 200
    # comprovante em PDF nao entra como imagem no relatorio
    r = client.post(fotos, data={"kind": "comprovante_fechamento"},
                    files={"file": ("comprovante.pdf", b"%PDF-1.4 comprovante", "application/pdf")},
                    headers=interno_headers)
    assert r.status_code == 200

    lancar_ciclos(auditoria["id"])
    _finalizar(client, interno_headers, auditoria["id"])

    r = client.get(f"/api/relatorios/condominio/final/{auditoria['id']}/pdf", headers=interno_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == "attachment; filename=relatorio_residencial_ipe_amarelo_2031-03.pdf"
    assert r.content.startswith(b"%PDF")


def test_financeiro_json_pdf_xlsx(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    condominio = criar_condominio(cashback_percent=20)

    anterior = criar_auditoria(condominio["id"], mes_ref="2031-04-01")
    # abril fecha com a base manual: 10 m3 de agua = R$100,00 de repasse
    client.patch(f"/api/auditorias/{anterior['id']}/base", json={"agua_leitura_base": 100},
                 headers=interno_headers)
    client.patch(f"/api/auditorias/{anterior['id']}", json={"agua_leitura": 110}, headers=interno_headers)
    lancar_ciclos(anterior["id"], lavadora=5, secadora=0)
    _finalizar(client, interno_headers, anterior["id"])

    atual = criar_auditoria(condominio["id"], mes_ref="2031-05-01")
    # maio parte da leitura de abril: 5 m3 = R$50,00
    client.patch(f"/api/auditorias/{atual['id']}", json={"agua_leitura": 115}, headers=interno_headers)
    lancar_ciclos(atual["id"])
    _finalizar(client, interno_headers, atual["id"])

    # aberta no mesmo mes: fica fora do financeiro
    outra = criar_auditoria(criar_condominio()["id"], mes_ref="2031-05-01")

    r = client.get("/api/relatorios/financeiro", params={"mes_ref": "2031-05-01"}, headers=interno_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["competencia"] == "05/2031"
    linhas = {ln["auditoria_id"]: ln for ln in data["linhas"]}
    assert outra["id"] not in linhas

    linha = linhas[atual["id"]]
    assert linha["receita_total"] == 205.0
    assert linha["cashback_valor"] == 41.0
    # 82,50 x 20% = 16,50 no mes anterior
    assert linha["cashback_delta_percent"] == round((41.0 - 16.5) / 16.5 * 100, 2)
    assert linha["repasse_total"] == 50.0
    assert linha["repasse_delta_percent"] == -50.0
    # total: 41 + 50 contra 16,50 + 100
    assert linha["total_pagar"] == 91.0
    assert linha["total_delta_percent"] == round((91.0 - 116.5) / 116.5 * 100, 2)
    assert linha["total_pagar"] == linha["cashback_valor"] + linha["repasse_total"]

    r = client.get("/api/relatorios/financeiro/export/pdf", params={"mes_ref": "2031-05-01"}, headers=interno_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == "attachment; filename=financeiro_2031-05.pdf"
    assert r.content.startswith(b"%PDF")

    r = client.get("/api/relatorios/financeiro/export/xlsx", params={"mes_ref": "2031-05-01"}, headers=interno_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == XLSX_MEDIA_TYPE
    assert r.headers["content-disposition"] == "attachment; filename=financeiro_2031-05.xlsx"

    ws = load_workbook(io.BytesIO(r.content)).active
    assert ws.cell(row=1, column=1).value == "Condomínio"
    row = next(
        i for i in range(2, ws.max_row + 1)
        if ws.cell(row=i, column=1).value == condominio["nome"]
    )
    receita = ws.cell(row=row, column=4)
    assert receita.value == 205.0
    assert receita.number_format == FORMATO_MOEDA == '"R$" #,##0.00'
    cashback_pct = ws.cell(row=row, column=5)
    assert cashback_pct.value == 0.2
    assert cashback_pct.number_format == FORMATO_PCT == "0.00%"
    var_total = ws.cell(row=row, column=13)
    assert ws.cell(row=1, column=13).value == "Var. total"
    assert var_total.value == round((91.0 - 116.5) / 116.5 * 100, 2) / 100
    assert var_total.number_format == FORMATO_PCT
    assert ws.cell(row=ws.max_row, column=1).value == "TOTAL"


def test_financeiro_mes_ref_invalido(client, interno_headers):
    r = client.get("/api/relatorios/financeiro/export/xlsx", params={"mes_ref": "2031-05"}, headers=interno_headers)
    assert r.status_code == 400


def test_auditor_nao_acessa_financeiro(client, auditor):
    r = client.get("/api/relatorios/financeiro", params={"mes_ref": "2031-05-01"}, headers=auditor["headers"])
    assert r.status_code == 403
