"""
Testes de implantacoes: checklist padrao, criacao com copia do checklist e listagem
"""
import asyncio
from datetime import datetime, timedelta

from sqlalchemy import update

from app.database import AsyncSessionLocal
from app.models import Implantacao

URL = "/api/implantacoes"

CHECKLIST = [
    {"secao": "Elétrica", "descricao": "Conferir tomadas 220V", "ordem": 2},
    {"secao": "Elétrica", "descricao": "Disjuntor exclusivo", "ordem": 1},
    {"secao": "Hidráulica", "descricao": "Ponto de água", "ordem": 1},
    {"secao": "Hidráulica", "descricao": "Item desativado", "ordem": 2, "ativo": False},
]


def _definir_checklist(client, gestor_headers, itens=CHECKLIST):
    r = client.put(f"{URL}/checklist-padrao", json={"itens": itens}, headers=gestor_headers)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_implantacoes_exigem_interno(client, auditor):
    assert client.get(URL, headers=auditor["headers"]).status_code == 403
    r = client.post(URL, json={"nome_condominio": "X", "data_contrato": "2030-01-10"}, headers=auditor["headers"])
    assert r.status_code == 403


def test_checklist_padrao_apenas_gestor(client, interno_headers, gestor_headers):
    r = client.put(f"{URL}/checklist-padrao", json={"itens": CHECKLIST}, headers=interno_headers)
    assert r.status_code == 403

    padrao = _definir_checklist(client, gestor_headers)
    assert len(padrao) == 4

    r = client.get(f"{URL}/checklist-padrao", headers=interno_headers)
    assert [i["descricao"] for i in r.json()["data"]][:2] == ["Disjuntor exclusivo", "Conferir tomadas 220V"]


def test_criar_implantacao_copia_checklist(client, interno_headers, gestor_headers):
    _definir_checklist(client, gestor_headers)

    r = client.post(
        URL,
        json={"nome_condominio": "  Residencial Aurora ", "endereco": "", "data_contrato": "15/02/2030"},
        headers=interno_headers
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["ok"] is True
    data = body["data"]
    assert body["implantacao_id"] == data["id"]
    assert data["nome_condominio"] == "Residencial Aurora"
    assert data["endereco"] is None
    assert data["data_contrato"] == "2030-02-15"
    assert data["finalizada_em"] is None

    # apenas itens ativos, por secao e ordem, todos pendentes
    assert [(i["secao"], i["descricao"]) for i in data["checklist"]] == [
        ("Elétrica", "Disjuntor exclusivo"),
        ("Elétrica", "Conferir tomadas 220V"),
        ("Hidráulica", "Ponto de água"),
    ]
    assert {i["status"] for i in data["checklist"]} == {"pendente"}
    assert data["pendentes"] == 3

    # alterar o padrao depois nao mexe na copia
    _definir_checklist(client, gestor_headers, [{"secao": "Geral", "descricao": "Novo item"}])
    r = client.get(f"{URL}/{data['id']}", headers=interno_headers)
    assert len(r.json()["data"]["checklist"]) == 3


def test_data_contrato_iso_e_invalida(client, interno_headers):
    r = client.post(URL, json={"nome_condominio": "Ed. Sol", "data_contrato": "2030-03-05"}, headers=interno_headers)
    assert r.status_code == 201
    assert r.json()["data"]["data_contrato"] == "2030-03-05"

    for data_contrato in ("05-03-2030", "31/02/2030", ""):
        r = client.post(URL, json={"nome_condominio": "Ed. Sol", "data_contrato": data_contrato},
                        headers=interno_headers)
        assert r.status_code == 400, data_contrato
        assert "data_contrato" in r.json()["error"]

    r = client.post(URL, json={"nome_condominio": "   ", "data_contrato": "2030-03-05"}, headers=interno_headers)
    assert r.status_code == 400


def test_item_do_checklist(client, interno_headers, gestor_headers):
    _definir_checklist(client, gestor_headers)
    primeira = client.post(URL, json={"nome_condominio": "A", "data_contrato": "2030-01-01"},
                           headers=interno_headers).json()["data"]
    segunda = client.post(URL, json={"nome_condominio": "B", "data_contrato": "2030-01-01"},
                          headers=interno_headers).json()["data"]
    item = primeira["checklist"][0]

    r = client.patch(f"{URL}/{primeira['id']}/checklist/{item['id']}",
                     json={"status": "ok", "observacao": "Instalado pelo eletricista"},
                     headers=interno_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "ok"
    assert r.json()["data"]["observacao"] == "Instalado pelo eletricista"

    r = client.get(f"{URL}/{primeira['id']}", headers=interno_headers)
    assert r.json()["data"]["pendentes"] == 2

    r = client.patch(f"{URL}/{primeira['id']}/checklist/{item['id']}", json={"status": "feito"},
                     headers=interno_headers)
    assert r.status_code == 400

    # item de outra implantacao
    r = client.patch(f"{URL}/{segunda['id']}/checklist/{item['id']}", json={"status": "ok"},
                     headers=interno_headers)
    assert r.status_code == 404


def test_lista_esconde_finalizadas_antigas(client, interno_headers):
    recente = client.post(URL, json={"nome_condominio": "Recente", "data_contrato": "2030-01-01"},
                          headers=interno_headers).json()["data"]
    antiga = client.post(URL, json={"nome_condominio": "Antiga", "data_contrato": "2030-01-01"},
                         headers=interno_headers).json()["data"]

    for implantacao in (recente, antiga):
        r = client.post(f"{URL}/{implantacao['id']}/finalizar", headers=interno_headers)
        assert r.status_code == 200
        assert r.json()["data"]["finalizada_em"]

    async def envelhecer():
        async with AsyncSessionLocal() as db:
            await db.execute(
                update(Implantacao)
                .where(Implantacao.id == antiga["id"])
                .values(finalizada_em=datetime.utcnow() - timedelta(days=11))
            )
            await db.commit()

    asyncio.run(envelhecer())

    ids = [i["id"] for i in client.get(URL, headers=interno_headers).json()["data"]]
    assert recente["id"] in ids
    assert antiga["id"] not in ids

    assert client.get(f"{URL}/nao-existe", headers=interno_headers).status_code == 404
