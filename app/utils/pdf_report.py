"""
Meta Lav Auditorias - Relatorios PDF (reportlab)
Relatorio final do condominio (com fotos anexas) e relatorio financeiro mensal
"""
import io
import logging
from datetime import datetime
from typing import List, Tuple, Optional

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.utils.formatters import brl, pct, numero

logger = logging.getLogger(__name__)


class ReportDesign:
    PRIMARY = '#0b3d91'      # Azul Meta Lav
    ACCENT = '#1a7f37'       # Verde (totais)
    DARK = '#343a40'
    GRAY = '#6c757d'
    LINE = '#dee2e6'
    ZEBRA = '#f5f7fa'

    FONT_BOLD = "Helvetica-Bold"
    FONT_REGULAR = "Helvetica"
    FONT_ITALIC = "Helvetica-Oblique"

    MARGIN_LEFT = 1.8*cm
    MARGIN_RIGHT = 1.8*cm
    MARGIN_TOP = 1.8*cm
    MARGIN_BOTTOM = 1.8*cm

    ROW_HEIGHT = 0.62*cm
    SPACE_M = 0.8*cm
    SPACE_S = 0.4*cm


class _Pagina:
    """Controle do cursor vertical com quebra de pagina automatica"""

    def __init__(self, c, pagesize, titulo: str):
        self.c = c
        self.largura, self.altura = pagesize
        self.titulo = titulo
        self.numero = 1
        self.y = self.altura - ReportDesign.MARGIN_TOP

    @property
    def util(self) -> float:
        return self.largura - ReportDesign.MARGIN_LEFT - ReportDesign.MARGIN_RIGHT

    def garantir(self, altura_necessaria: float):
        if self.y - altura_necessaria < ReportDesign.MARGIN_BOTTOM:
            self.nova_pagina()

    def nova_pagina(self):
        draw_footer(self.c, self)
        self.c.showPage()
        self.numero += 1
        self.y = self.altura - ReportDesign.MARGIN_TOP


def draw_footer(c, pagina: _Pagina):
    c.setFont(ReportDesign.FONT_REGULAR, 8)
    c.setFillColor(HexColor(ReportDesign.GRAY))
    c.drawString(ReportDesign.MARGIN_LEFT, 1.0*cm, f"{settings.APP_NAME} • {pagina.titulo}")
    c.drawRightString(
        pagina.largura - ReportDesign.MARGIN_RIGHT, 1.0*cm,
        f"Página {pagina.numero} • gerado em {datetime.now().strftime('%d/%m/%Y %H:%M')}"
    )


def draw_header(c, pagina: _Pagina, titulo: str, subtitulo: str):
    """Faixa azul com titulo e subtitulo"""
    altura_faixa = 2.0*cm
    y_top = pagina.y
    c.setFillColor(HexColor(ReportDesign.PRIMARY))
    c.rect(ReportDesign.MARGIN_LEFT, y_top - altura_faixa, pagina.util, altura_faixa, stroke=0, fill=1)

    c.setFillColor(HexColor('#ffffff'))
    c.setFont(ReportDesign.FONT_BOLD, 16)
    c.drawString(ReportDesign.MARGIN_LEFT + 0.5*cm, y_top - 0.9*cm, titulo)
    c.setFont(ReportDesign.FONT_REGULAR, 10)
    c.drawString(ReportDesign.MARGIN_LEFT + 0.5*cm, y_top - 1.5*cm, subtitulo)

    pagina.y = y_top - altura_faixa - ReportDesign.SPACE_M


def draw_section_title(c, pagina: _Pagina, texto: str):
    pagina.garantir(1.5*cm)
    c.setFont(ReportDesign.FONT_BOLD, 12)
    c.setFillColor(HexColor(ReportDesign.PRIMARY))
    c.drawString(ReportDesign.MARGIN_LEFT, pagina.y, texto)
    c.setStrokeColor(HexColor(ReportDesign.PRIMARY))
    c.setLineWidth(1)
    c.line(ReportDesign.MARGIN_LEFT, pagina.y - 0.15*cm, pagina.largura - ReportDesign.MARGIN_RIGHT, pagina.y - 0.15*cm)
    pagina.y -= ReportDesign.SPACE_M


def draw_table(c, pagina: _Pagina, colunas: List[Tuple[str, float, str]], linhas: List[list], font_size: int = 9):
    """
    colunas: (titulo, fracao da largura util, alinhamento 'l' ou 'r')
    linhas: valores ja formatados
    """
    def header():
        c.setFont(ReportDesign.FONT_BOLD, font_size)
        c.setFillColor(HexColor(ReportDesign.DARK))
        _draw_row(c, pagina, colunas, [t for t, _, _ in colunas])
        c.setStrokeColor(HexColor(ReportDesign.LINE))
        c.line(ReportDesign.MARGIN_LEFT, pagina.y + 0.15*cm, pagina.largura - ReportDesign.MARGIN_RIGHT, pagina.y + 0.15*cm)

    pagina.garantir(ReportDesign.ROW_HEIGHT * 2)
    header()

    for i, linha in enumerate(linhas):
        if pagina.y - ReportDesign.ROW_HEIGHT < ReportDesign.MARGIN_BOTTOM:
            pagina.nova_pagina()
            header()
        if i % 2 == 0:
            c.setFillColor(HexColor(ReportDesign.ZEBRA))
            c.rect(ReportDesign.MARGIN_LEFT, pagina.y - 0.18*cm, pagina.util, ReportDesign.ROW_HEIGHT, stroke=0, fill=1)
        c.setFont(ReportDesign.FONT_REGULAR, font_size)
        c.setFillColor(HexColor(ReportDesign.DARK))
        _draw_row(c, pagina, colunas, linha)

    pagina.y -= ReportDesign.SPACE_S


def _draw_row(c, pagina: _Pagina, colunas, valores):
    x = ReportDesign.MARGIN_LEFT
    for (_, fracao, alinhamento), valor in zip(colunas, valores):
        largura = pagina.util * fracao
        texto = "" if valor is None else str(valor)
        if alinhamento == "r":
            c.drawRightString(x + largura - 0.15*cm, pagina.y, texto)
        else:
            c.drawString(x + 0.15*cm, pagina.y, texto[:60])
        x += largura
    pagina.y -= ReportDesign.ROW_HEIGHT


def draw_key_values(c, pagina: _Pagina, pares: List[Tuple[str, str]], destaque_ultimo: bool = False):
    for i, (chave, valor) in enumerate(pares):
        pagina.garantir(ReportDesign.ROW_HEIGHT)
        ultimo = destaque_ultimo and i == len(pares) - 1
        fonte = ReportDesign.FONT_BOLD if ultimo else ReportDesign.FONT_REGULAR
        tamanho = 12 if ultimo else 10
        c.setFont(fonte, tamanho)
        c.setFillColor(HexColor(ReportDesign.ACCENT if ultimo else ReportDesign.DARK))
        c.drawString(ReportDesign.MARGIN_LEFT + 0.15*cm, pagina.y, chave)
        c.drawRightString(pagina.largura - ReportDesign.MARGIN_RIGHT - 0.15*cm, pagina.y, valor)
        pagina.y -= ReportDesign.ROW_HEIGHT + (0.1*cm if ultimo else 0)
    pagina.y -= ReportDesign.SPACE_S


def draw_paragraph(c, pagina: _Pagina, texto: str, font_size: int = 9):
    """Texto livre com quebra simples por largura"""
    c.setFont(ReportDesign.FONT_REGULAR, font_size)
    c.setFillColor(HexColor(ReportDesign.DARK))
    for bloco in (texto or "").splitlines() or [""]:
        linha = ""
        for palavra in bloco.split(" "):
            tentativa = f"{linha} {palavra}".strip()
            if c.stringWidth(tentativa, ReportDesign.FONT_REGULAR, font_size) > pagina.util - 0.3*cm and linha:
                pagina.garantir(0.5*cm)
                c.drawString(ReportDesign.MARGIN_LEFT + 0.15*cm, pagina.y, linha)
                pagina.y -= 0.45*cm
                linha = palavra
            else:
                linha = tentativa
        pagina.garantir(0.5*cm)
        c.drawString(ReportDesign.MARGIN_LEFT + 0.15*cm, pagina.y, linha)
        pagina.y -= 0.45*cm
    pagina.y -= ReportDesign.SPACE_S


def draw_attachments(c, pagina: _Pagina, anexos: List[Tuple[str, bytes]]):
    """Uma foto por bloco, escalada para caber na largura util (max 11cm de altura)"""
    for titulo, jpeg in anexos:
        try:
            reader = ImageReader(io.BytesIO(jpeg))
            w, h = reader.getSize()
        except Exception as e:
            logger.warning(f"Anexo '{titulo}' ignorado no PDF: {e}")
            continue

        max_w = pagina.util
        max_h = 11*cm
        escala = min(max_w / w, max_h / h)
        draw_w, draw_h = w * escala, h * escala

        pagina.garantir(draw_h + 1.2*cm)
        c.setFont(ReportDesign.FONT_BOLD, 10)
        c.setFillColor(HexColor(ReportDesign.DARK))
        c.drawString(ReportDesign.MARGIN_LEFT, pagina.y, titulo)
        pagina.y -= 0.3*cm
        c.drawImage(reader, ReportDesign.MARGIN_LEFT, pagina.y - draw_h, width=draw_w, height=draw_h)
        pagina.y -= draw_h + ReportDesign.SPACE_M


def generate_relatorio_final_pdf(relatorio: dict, anexos: Optional[List[Tuple[str, bytes]]] = None) -> bytes:
    """
    PDF do relatorio final do condominio.
    anexos: [(titulo, jpeg_bytes)] ja reencodados.
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)

    meta = relatorio["meta"]
    vendas = relatorio["vendas_por_maquina"]
    consumo = relatorio["consumo_insumos"]
    totais = relatorio["totalizacao_final"]

    pagina = _Pagina(c, A4, f"Relatório final • {meta['condominio_nome']}")

    try:
        draw_header(c, pagina, "Relatório de Auditoria", f"{meta['condominio_nome']} • Competência {meta['competencia']}")

        draw_section_title(c, pagina, "Vendas por máquina")
        draw_table(
            c, pagina,
            [("Máquina", 0.40, "l"), ("Ciclos", 0.15, "r"), ("Valor unitário", 0.22, "r"), ("Valor total", 0.23, "r")],
            [[i["maquina"], i["ciclos"], brl(i["valor_unitario"]), brl(i["valor_total"])] for i in vendas["itens"]]
        )
        draw_key_values(c, pagina, [
            ("Receita bruta", brl(vendas["receita_bruta_total"])),
            (f"Cashback ({pct(vendas['cashback_percent'])})", brl(vendas["valor_cashback"])),
        ])

        draw_section_title(c, pagina, "Consumo de insumos")
        draw_table(
            c, pagina,
            [("Insumo", 0.16, "l"), ("Leitura anterior", 0.17, "r"), ("Leitura atual", 0.17, "r"),
             ("Consumo", 0.16, "r"), ("Tarifa", 0.16, "r"), ("Repasse", 0.18, "r")],
            [[
                i["insumo"],
                numero(i["leitura_anterior"]),
                numero(i["leitura_atual"]),
                f"{numero(i['consumo'])} {i['unidade']}" if i["consumo"] is not None else "sem base",
                brl(i["valor_unitario"]),
                brl(i["valor_total"]),
            ] for i in consumo["itens"]]
        )

        draw_section_title(c, pagina, "Totalização")
        draw_key_values(c, pagina, [
            ("Cashback", brl(totais["cashback"])),
            ("Repasse de consumo", brl(totais["repasse_consumo"])),
            ("Total a pagar ao condomínio", brl(totais["total_a_pagar_condominio"])),
        ], destaque_ultimo=True)

        pagamento = relatorio.get("pagamento") or {}
        if pagamento.get("texto"):
            draw_section_title(c, pagina, "Dados para pagamento")
            draw_paragraph(c, pagina, pagamento["texto"])

        if relatorio.get("observacoes"):
            draw_section_title(c, pagina, "Observações")
            draw_paragraph(c, pagina, relatorio["observacoes"])

        if anexos:
            draw_section_title(c, pagina, "Anexos")
            draw_attachments(c, pagina, anexos)

        draw_footer(c, pagina)
        c.showPage()
        c.save()

        pdf_bytes = buffer.getvalue()
        logger.info(f"PDF final gerado - auditoria {meta['auditoria_id']} ({len(anexos or [])} anexos)")
        return pdf_bytes
    finally:
        buffer.close()


def generate_financeiro_pdf(relatorio: dict) -> bytes:
    """PDF paisagem do relatorio financeiro mensal"""
    buffer = io.BytesIO()
    pagesize = landscape(A4)
    c = canvas.Canvas(buffer, pagesize=pagesize)

    pagina = _Pagina(c, pagesize, f"Financeiro {relatorio['competencia']}")

    try:
        draw_header(c, pagina, "Relatório Financeiro", f"Competência {relatorio['competencia']}")

        linhas = relatorio.get("linhas", [])
        draw_table(
            c, pagina,
            [("Condomínio", 0.25, "l"), ("Pagto", 0.07, "l"), ("Receita", 0.11, "r"), ("Cashback", 0.11, "r"),
             ("Var.", 0.07, "r"), ("Repasse", 0.11, "r"), ("Total", 0.11, "r"), ("Var. total", 0.07, "r"), ("Status", 0.10, "l")],
            [[
                ln["condominio_nome"],
                ln["tipo_pagamento"],
                brl(ln["receita_total"]),
                brl(ln["cashback_valor"]),
                pct(ln["cashback_delta_percent"], 1),
                brl(ln["repasse_total"]),
                brl(ln["total_pagar"]),
                pct(ln["total_delta_percent"], 1),
                ln["status"],
            ] for ln in linhas],
            font_size=8
        )

        totais = relatorio.get("totais", {})
        draw_key_values(c, pagina, [
            ("Condomínios", str(len(linhas))),
            ("Receita bruta", brl(totais.get("receita_total"))),
            ("Cashback", brl(totais.get("cashback_valor"))),
            ("Repasse", brl(totais.get("repasse_total"))),
            ("Total a pagar", brl(totais.get("total_pagar"))),
        ], destaque_ultimo=True)

        draw_footer(c, pagina)
        c.showPage()
        c.save()

        logger.info(f"PDF financeiro gerado - {relatorio['competencia']} ({len(linhas)} linhas)")
        return buffer.getvalue()
    finally:
        buffer.close()
