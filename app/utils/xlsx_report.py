"""
Meta Lav Auditorias - Exportacao XLSX
Planilha do relatorio financeiro mensal (openpyxl)
"""
import io
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter

from app.utils.formatters import competencia

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FORMATO_MOEDA = '"R$" #,##0.00'
FORMATO_PCT = '0.00%'

HEADER_FILL = PatternFill(start_color="E3F2FD", end_color="E3F2FD", fill_type="solid")

# (titulo, chave da linha, formato, largura)
COLUNAS = [
    ("Condomínio", "condominio_nome", None, 36),
    ("Status", "status", None, 16),
    ("Pagamento", "tipo_pagamento", None, 12),
    ("Receita bruta", "receita_total", FORMATO_MOEDA, 16),
    ("Cashback %", "cashback_percent", FORMATO_PCT, 12),
    ("Cashback", "cashback_valor", FORMATO_MOEDA, 14),
    ("Var. cashback", "cashback_delta_percent", FORMATO_PCT, 14),
    ("Repasse água", "repasse_agua", FORMATO_MOEDA, 14),
    ("Repasse energia", "repasse_energia", FORMATO_MOEDA, 16),
    ("Repasse gás", "repasse_gas", FORMATO_MOEDA, 14),
    ("Repasse total", "repasse_total", FORMATO_MOEDA, 15),
    ("Total a pagar", "total_pagar", FORMATO_MOEDA, 16),
    ("Var. total", "total_delta_percent", FORMATO_PCT, 12),
    ("Dados de pagamento", "pagamento_texto", None, 48),
]

_PERCENTUAIS = {"cashback_percent", "cashback_delta_percent", "total_delta_percent"}


def _valor(linha: dict, chave: str):
    v = linha.get(chave)
    if chave in _PERCENTUAIS and v is not None:
        # 0.00% espera fracao
        return float(v) / 100
    return v


def gerar_xlsx_financeiro(relatorio: dict) -> bytes:
    """Gera a planilha a partir do relatorio financeiro (mesmos numeros do JSON)"""
    wb = Workbook()
    ws = wb.active
    ws.title = f"Financeiro {competencia(relatorio.get('mes_ref')).replace('/', '-')}"

    ws.append([titulo for titulo, _, _, _ in COLUNAS])
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for linha in relatorio.get("linhas", []):
        ws.append([_valor(linha, chave) for _, chave, _, _ in COLUNAS])

    ultima = ws.max_row
    if relatorio.get("linhas"):
        totais = relatorio.get("totais", {})
        ws.append([
            "TOTAL", None, None,
            totais.get("receita_total"), None,
            totais.get("cashback_valor"), None,
            totais.get("repasse_agua"),
            totais.get("repasse_energia"),
            totais.get("repasse_gas"),
            totais.get("repasse_total"),
            totais.get("total_pagar"),
            None,
            None,
        ])
        for cell in ws[ws.max_row]:
            cell.font = Font(bold=True)
        ultima = ws.max_row

    for idx, (_, _, formato, largura) in enumerate(COLUNAS, start=1):
        letra = get_column_letter(idx)
        ws.column_dimensions[letra].width = largura
        if formato:
            for row in range(2, ultima + 1):
                ws[f"{letra}{row}"].number_format = formato

    ws.freeze_panes = "B2"

    output = io.BytesIO()
    wb.save(output)
    logger.info(f"XLSX financeiro gerado: {len(relatorio.get('linhas', []))} linhas")
    return output.getvalue()
