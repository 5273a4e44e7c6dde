"""
Meta Lav Auditorias - Relatorios
Carrega os dados de uma auditoria e monta o fechamento usado por todas as
saidas (tela de ciclos, relatorio final JSON/PDF, financeiro JSON/PDF/XLSX).
"""
import logging
from datetime import date, datetime
from typing import Optional, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    Auditoria,
    AuditoriaStatus,
    AuditoriaCiclo,
    CondominioMaquina,
    normalize_tipo_pagamento
)
from app.services import fechamento as calc
from app.services.storage import carregar_arquivo
from app.utils.formatters import competencia, mes_anterior
from app.utils.image import preparar_jpeg, is_image_content_type

logger = logging.getLogger(__name__)

# auditorias que entram no financeiro do mes
STATUS_FINANCEIRO = (AuditoriaStatus.EM_CONFERENCIA.value, AuditoriaStatus.FINAL.value)

_LEITURAS = (
    "agua_leitura", "energia_leitura", "gas_leitura",
    "agua_leitura_base", "energia_leitura_base", "gas_leitura_base",
)


_PARAMETROS_CONDOMINIO = (
    "cashback_percent", "usa_gas",
    "tarifa_agua_m3", "tarifa_energia_kwh", "tarifa_gas_m3",
    "valor_ciclo_lavadora", "valor_ciclo_secadora",
)


def _parametros_condominio(condominio) -> dict:
    if condominio is None:
        return {}
    return {campo: getattr(condominio, campo) for campo in _PARAMETROS_CONDOMINIO}


def _leituras(auditoria: Optional[Auditoria]) -> Optional[dict]:
    if auditoria is None:
        return None
    return {campo: getattr(auditoria, campo) for campo in _LEITURAS}


async def buscar_auditoria_anterior(db: AsyncSession, auditoria: Auditoria) -> Optional[Auditoria]:
    result = await db.execute(
        select(Auditoria).where(
            Auditoria.condominio_id == auditoria.condominio_id,
            Auditoria.mes_ref == mes_anterior(auditoria.mes_ref)
        )
    )
    return result.scalar_one_or_none()


async def carregar_fechamento(db: AsyncSession, auditoria: Auditoria) -> dict:
    """
    Busca condominio, maquinas, ciclos e auditoria do mes anterior e
    executa o calculo do fechamento.
    """
    condominio = auditoria.condominio

    result = await db.execute(
        select(CondominioMaquina).where(CondominioMaquina.condominio_id == auditoria.condominio_id)
    )
    maquinas = [m.to_dict() for m in result.scalars().all()]

    result = await db.execute(
        select(AuditoriaCiclo).where(AuditoriaCiclo.auditoria_id == auditoria.id)
    )
    ciclos = [c.to_dict() for c in result.scalars().all()]

    anterior = await buscar_auditoria_anterior(db, auditoria)

    resultado = calc.calcular_fechamento(
        _leituras(auditoria),
        _parametros_condominio(condominio),
        maquinas,
        ciclos,
        _leituras(anterior),
    )

    return {
        "auditoria": auditoria,
        "condominio": condominio,
        "anterior": anterior,
        "fechamento": resultado,
    }


def resumo_ciclos(dados: dict) -> dict:
    """Resposta de GET /auditorias/{id}/ciclos"""
    auditoria = dados["auditoria"]
    f = dados["fechamento"]
    itens = [dict(item, auditoria_id=auditoria.id) for item in f["itens"]]
    return {
        "auditoria": {
            "id": auditoria.id,
            "condominio_id": auditoria.condominio_id,
            "mes_ref": auditoria.mes_ref.isoformat() if auditoria.mes_ref else None,
            "status": auditoria.status,
        },
        "itens": itens,
        "totais": {
            "receita_lavadora": f["receita_lavadora"],
            "receita_secadora": f["receita_secadora"],
            "receita_bruta": f["receita_total"],
            "cashback_percent": f["cashback_percent"],
            "total_cashback": f["cashback"],
            "consumo_agua": f["consumo"]["agua"]["consumo"],
            "consumo_energia": f["consumo"]["energia"]["consumo"],
            "consumo_gas": f["consumo"]["gas"]["consumo"],
            "base_agua": f["consumo"]["agua"]["origem"],
            "base_energia": f["consumo"]["energia"]["origem"],
            "base_gas": f["consumo"]["gas"]["origem"],
            "repasse_agua": f["repasse_agua"],
            "repasse_energia": f["repasse_energia"],
            "repasse_gas": f["repasse_gas"],
            "total_repasse": f["repasse_total"],
            "total_a_pagar": f["total_a_pagar"],
        },
    }


def montar_relatorio_final(dados: dict) -> dict:
    """Relatorio final do condominio (auditoria finalizada)"""
    auditoria = dados["auditoria"]
    condominio = dados["condominio"]
    f = dados["fechamento"]

    tipo_pagamento = normalize_tipo_pagamento(condominio.tipo_pagamento if condominio else None)
    usa_gas = f["usa_gas"]

    insumos = ["agua", "energia"] + (["gas"] if usa_gas else [])
    consumo_itens = []
    for insumo in insumos:
        info = f["consumo"][insumo]
        consumo_itens.append({
            "insumo": calc.INSUMO_LABELS[insumo],
            "unidade": calc.INSUMO_UNIDADES[insumo],
            "leitura_anterior": info["leitura_anterior"],
            "leitura_atual": info["leitura_atual"],
            "origem_leitura_anterior": info["origem"],
            "consumo": info["consumo"],
            "valor_unitario": info["tarifa"],
            "valor_total": info["repasse"],
        })

    return {
        "meta": {
            "auditoria_id": auditoria.id,
            "condominio_id": auditoria.condominio_id,
            "condominio_nome": condominio.nome if condominio else "Condomínio",
            "mes_ref": auditoria.mes_ref.isoformat(),
            "competencia": competencia(auditoria.mes_ref),
            "tipo_pagamento": tipo_pagamento,
            "fechado_em": auditoria.fechado_em.isoformat() if auditoria.fechado_em else None,
            "gerado_em": datetime.utcnow().isoformat(),
        },
        "vendas_por_maquina": {
            "itens": [
                {
                    "maquina": i["maquina"],
                    "categoria": i["categoria"],
                    "capacidade_kg": i["capacidade_kg"],
                    "ciclos": i["ciclos"],
                    "valor_unitario": i["valor_ciclo"],
                    "valor_total": i["valor_total"],
                }
                for i in f["itens"]
            ],
            "receita_lavadora": f["receita_lavadora"],
            "receita_secadora": f["receita_secadora"],
            "receita_bruta_total": f["receita_total"],
            "cashback_percent": f["cashback_percent"],
            "valor_cashback": f["cashback"],
        },
        "consumo_insumos": {
            "itens": consumo_itens,
            "total_repasse_consumo": f["repasse_total"],
        },
        "totalizacao_final": {
            "cashback": f["cashback"],
            "repasse_consumo": f["repasse_total"],
            "total_a_pagar_condominio": f["total_a_pagar"],
        },
        "pagamento": {
            "tipo": tipo_pagamento,
            "texto": condominio.pagamento_texto() if condominio else "",
            **(condominio.pagamento_dict() if condominio else {}),
        },
        "observacoes": auditoria.fechamento_obs,
        "anexos": {
            "foto_agua_url": auditoria.foto_agua_url,
            "foto_energia_url": auditoria.foto_energia_url,
            "foto_gas_url": auditoria.foto_gas_url if usa_gas else None,
            "comprovante_fechamento_url": auditoria.comprovante_fechamento_url if tipo_pagamento == "direto" else None,
        },
    }


_ANEXO_TITULOS = {
    "foto_agua_url": "Foto do medidor de água",
    "foto_energia_url": "Foto do medidor de energia",
    "foto_gas_url": "Foto do medidor de gás",
    "comprovante_fechamento_url": "Comprovante de pagamento",
}


async def carregar_anexos_pdf(relatorio: dict) -> List[Tuple[str, bytes]]:
    """
    Baixa os anexos do relatorio e reencoda como JPEG.
    Anexos que nao sao imagem (ou nao puderam ser obtidos) ficam de fora.
    """
    anexos = []
    for campo, url in relatorio["anexos"].items():
        if not url:
            continue
        arquivo = await carregar_arquivo(url)
        if arquivo is None:
            continue

        content, content_type = arquivo
        if not is_image_content_type(content_type):
            logger.info(f"Anexo {campo} ignorado no PDF ({content_type})")
            continue

        jpeg = preparar_jpeg(content)
        if jpeg:
            anexos.append((_ANEXO_TITULOS.get(campo, campo), jpeg))
    return anexos


async def relatorio_financeiro(db: AsyncSession, mes_ref: date) -> dict:
    """
    Uma linha por auditoria do mes (em conferencia ou final), com variacao
    de cashback, repasse e total contra o mes anterior do mesmo condominio.
    O mes anterior e fechado com a sua propria base (o mes que o antecede).
    """
    result = await db.execute(
        select(Auditoria)
        .where(Auditoria.mes_ref == mes_ref, Auditoria.status.in_(STATUS_FINANCEIRO))
    )
    auditorias = sorted(
        result.scalars().all(),
        key=lambda a: (a.condominio.nome.lower() if a.condominio else "")
    )

    # fechamento do mes anterior por condominio
    result = await db.execute(
        select(Auditoria)
        .where(Auditoria.mes_ref == mes_anterior(mes_ref), Auditoria.status.in_(STATUS_FINANCEIRO))
    )
    fechamento_anterior = {}
    for anterior in result.scalars().all():
        dados_prev = await carregar_fechamento(db, anterior)
        fechamento_anterior[anterior.condominio_id] = dados_prev["fechamento"]

    linhas = []
    for auditoria in auditorias:
        dados = await carregar_fechamento(db, auditoria)
        f = dados["fechamento"]
        condominio = dados["condominio"]
        prev = fechamento_anterior.get(auditoria.condominio_id) or {}

        linhas.append({
            "auditoria_id": auditoria.id,
            "condominio_id": auditoria.condominio_id,
            "condominio_nome": condominio.nome if condominio else "Condomínio",
            "status": auditoria.status,
            "tipo_pagamento": normalize_tipo_pagamento(condominio.tipo_pagamento if condominio else None),
            "receita_total": f["receita_total"],
            "cashback_percent": f["cashback_percent"],
            "cashback_valor": f["cashback"],
            "cashback_delta_percent": calc.variacao_percentual(f["cashback"], prev.get("cashback")),
            "repasse_agua": f["repasse_agua"],
            "repasse_energia": f["repasse_energia"],
            "repasse_gas": f["repasse_gas"],
            "repasse_total": f["repasse_total"],
            "repasse_delta_percent": calc.variacao_percentual(f["repasse_total"], prev.get("repasse_total")),
            "total_pagar": f["total_a_pagar"],
            "total_delta_percent": calc.variacao_percentual(f["total_a_pagar"], prev.get("total_a_pagar")),
            "pagamento_texto": condominio.pagamento_texto() if condominio else "",
            "pagamento": condominio.pagamento_dict() if condominio else {},
        })

    campos = ("receita_total", "cashback_valor", "repasse_agua", "repasse_energia",
              "repasse_gas", "repasse_total", "total_pagar")
    totais = {campo: calc.money(sum(ln[campo] for ln in linhas)) for campo in campos}

    return {
        "mes_ref": mes_ref.isoformat(),
        "competencia": competencia(mes_ref),
        "linhas": linhas,
        "totais": totais,
    }
