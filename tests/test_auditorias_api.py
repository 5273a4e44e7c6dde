"""
Testes de API: ciclo de vida da auditoria, finalizacao e upload de fotos
"""
import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from app.api import fotos
from app.database import AsyncSessionLocal
from app.models import Auditoria


def _atribuir(client, headers, auditor_id, condominio_id):
    r = client.post(
        "/api/assignments",
        json={"auditor_id": auditor_id, "condominio_id": condominio_id},
        headers=headers
    )
    assert r.status_code == 200, r.text


def test_sem_sessao_retorna_401(client):
    r = client.get("/api/auditorias")
    assert r.status_code == 401
    assert r.json() == {"error": "Não autenticado"}


def test_auditoria_duplicada_retorna_409(client, interno_headers, criar_condominio, criar_auditoria):
    condominio = criar_condominio()
    criar_auditoria(condominio["id"])

    r = client.post(
        "/api/auditorias",
        json={"condominio_id": condominio["id"], "mes_ref": "2030-03-01"},
        headers=interno_headers
    )
    assert r.status_code == 409
    assert "error" in r.json()


def test_mes_ref_fora_do_formato_retorna_400(client, interno_headers, criar_condominio):
    condominio = criar_condominio()
    r = client.post(
        "/api/auditorias",
        json={"condominio_id": condominio["id"], "mes_ref": "2030-03-15"},
        headers=interno_headers
    )
    assert r.status_code == 400
    assert "mes_ref" in r.json()["error"]


def test_auditor_nao_cria_auditoria(client, auditor, criar_condominio):
    condominio = criar_condominio()
    r = client.post(
        "/api/auditorias",
        json={"condominio_id": condominio["id"], "mes_ref": "2030-03-01"},
        headers=auditor["headers"]
    )
    assert r.status_code == 403


def test_ciclos_rejeita_tipo_nao_cadastrado(client, interno_headers, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"])
    r = client.post(
        f"/api/auditorias/{auditoria['id']}/ciclos",
        json={"itens": [{"categoria": "lavadora", "capacidade_kg": 15, "ciclos": 3}]},
        headers=interno_headers
    )
    assert r.status_code == 400
    assert "Tipo não cadastrado" in r.json()["error"]


def test_resumo_de_ciclos(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio()["id"])
    lancar_ciclos(auditoria["id"])
    # upsert: segunda gravacao substitui a contagem
    lancar_ciclos(auditoria["id"])

    r = client.get(f"/api/auditorias/{auditoria['id']}/ciclos", headers=interno_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data["itens"]) == 2
    assert data["totais"]["receita_bruta"] == 205.0
    assert data["totais"]["total_cashback"] == 41.0
    assert data["totais"]["consumo_agua"] is None
    assert data["totais"]["base_agua"] == "sem_base"


def test_finalizar_sem_lancamentos_retorna_400(client, interno_headers, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"])
    r = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno_headers)
    assert r.status_code == 400


def test_finalizar_boleto_sem_comprovante(client, interno, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio(tipo_pagamento="boleto")["id"])
    lancar_ciclos(auditoria["id"])

    r = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno["headers"])
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["status"] == "final"
    assert data["fechado_por"] == interno["id"]
    assert data["fechado_em"]


def test_finalizar_direto_exige_comprovante(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio(tipo_pagamento="direto")["id"])
    lancar_ciclos(auditoria["id"])

    r = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno_headers)
    assert r.status_code == 400
    assert "Comprovante" in r.json()["error"]

    r = client.patch(
        f"/api/auditorias/{auditoria['id']}/fechamento",
        json={"comprovante_fechamento_url": "https://storage.metalav.com.br/comprovante.pdf"},
        headers=interno_headers
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "final"
    assert r.json()["data"]["comprovante_fechamento_url"].endswith("comprovante.pdf")


def test_finalizar_com_item_de_fechamento(client, interno_headers, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"])
    r = client.post(
        f"/api/auditorias/{auditoria['id']}/fechamento/itens",
        json={"maquina_tag": "L-01", "tipo": "lavadora", "ciclos": 12, "valor_total": 198},
        headers=interno_headers
    )
    assert r.status_code == 201
    item_id = r.json()["data"]["id"]

    r = client.get(f"/api/auditorias/{auditoria['id']}/fechamento/itens", headers=interno_headers)
    assert [i["id"] for i in r.json()["data"]] == [item_id]

    r = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno_headers)
    assert r.status_code == 200


def test_finalizar_e_idempotente(client, interno_headers, gestor_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio()["id"])
    lancar_ciclos(auditoria["id"])

    primeira = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno_headers).json()["data"]
    segunda = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=gestor_headers)

    assert segunda.status_code == 200
    assert segunda.json()["data"]["fechado_em"] == primeira["fechado_em"]
    assert segunda.json()["data"]["fechado_por"] == primeira["fechado_por"]

    r = client.get(f"/api/auditorias/{auditoria['id']}/historico", headers=interno_headers)
    assert [h["para_status"] for h in r.json()["data"]] == ["final"]


def test_auditor_nao_finaliza(client, auditor, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio()["id"], auditor_id=auditor["id"])
    lancar_ciclos(auditoria["id"])

    r = client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=auditor["headers"])
    assert r.status_code == 403


def test_fluxo_conferencia_e_devolucao(client, interno_headers, auditor, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"], auditor_id=auditor["id"])
    url = f"/api/auditorias/{auditoria['id']}"

    r = client.patch(url, json={"agua_leitura": 120, "observacoes": "Tudo ok", "status": "em andamento"},
                     headers=auditor["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "em_andamento"
    assert r.json()["data"]["agua_leitura"] == 120

    # pular etapa nao e permitido
    r = client.patch(url, json={"status": "final"}, headers=auditor["headers"])
    assert r.status_code == 400

    r = client.patch(url, json={"status": "em_conferencia"}, headers=auditor["headers"])
    assert r.json()["data"]["status"] == "em_conferencia"

    # auditor nao altera leituras em conferencia
    r = client.patch(url, json={"agua_leitura": 130}, headers=auditor["headers"])
    assert r.status_code == 409

    r = client.post(f"{url}/devolver", json={}, headers=interno_headers)
    assert r.status_code == 400

    r = client.post(f"{url}/devolver", json={"motivo": "Foto da água ilegível"}, headers=interno_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "em_andamento"
    assert data["observacoes"].startswith("Tudo ok\n\n[DEVOLVIDO PELO INTERNO em ")
    assert data["observacoes"].endswith("Foto da água ilegível")

    r = client.get(f"{url}/historico", headers=auditor["headers"])
    historico = r.json()["data"]
    assert [h["para_status"] for h in historico] == ["em_andamento", "em_conferencia", "em_andamento"]
    assert historico[0]["motivo"] == "Foto da água ilegível"


def test_devolver_fora_de_conferencia(client, interno_headers, criar_condominio, criar_auditoria):
    auditoria = criar_auditoria(criar_condominio()["id"])
    r = client.post(f"/api/auditorias/{auditoria['id']}/devolver", json={"motivo": "x"}, headers=interno_headers)
    assert r.status_code == 400


def test_reabrir_auditoria_final(client, interno_headers, criar_condominio, criar_auditoria, lancar_ciclos):
    auditoria = criar_auditoria(criar_condominio()["id"])
    lancar_ciclos(auditoria["id"])
    client.post(f"/api/auditorias/{auditoria['id']}/finalizar", headers=interno_headers)

    r = client.post(f"/api/auditorias/{auditoria['id']}/reabrir", headers=interno_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "em_andamento"


def test_auditor_ve_apenas_as_suas(client, auditor, criar_condominio, criar_auditoria, gestor_headers):
    outro = criar_auditoria(criar_condominio()["id"])
    minha = criar_auditoria(criar_condominio()["id"], auditor_id=auditor["id"])

    r = client.get("/api/auditorias", headers=auditor["headers"])
    ids = {a["id"] for a in r.json()["data"]}
    assert minha["id"] in ids
    assert outro["id"] not in ids

    r = client.get(f"/api/auditorias/{outro['id']}", headers=auditor["headers"])
    assert r.status_code == 403


def test_upload_assume_auditoria_livre(client, gestor_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"])
    _atribuir(client, gestor_headers, auditor["id"], condominio["id"])

    r = client.post(
        f"/api/auditorias/{auditoria['id']}/fotos",
        data={"kind": "agua"},
        files={"file": ("agua.png", imagem_png, "image/png")},
        headers=auditor["headers"]
    )
    assert r.status_code == 200, r.text
    assert r.json()["url"].startswith("/uploads/auditorias/")

    r = client.get(f"/api/auditorias/{auditoria['id']}", headers=auditor["headers"])
    data = r.json()["data"]
    assert data["auditor_id"] == auditor["id"]
    assert data["status"] == "em_andamento"
    assert data["foto_agua_url"]

    # o arquivo fica acessivel em /uploads
    r = client.get(data["foto_agua_url"])
    assert r.status_code == 200
    assert r.content == imagem_png


def test_upload_de_auditoria_de_outro_auditor(client, gestor_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    from conftest import criar_usuario

    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"], auditor_id=auditor["id"])
    outro = criar_usuario(client, gestor_headers, "auditor")
    _atribuir(client, gestor_headers, outro["id"], condominio["id"])

    r = client.post(
        f"/api/auditorias/{auditoria['id']}/fotos",
        data={"kind": "energia"},
        files={"file": ("energia.png", imagem_png, "image/png")},
        headers=outro["headers"]
    )
    assert r.status_code == 403


def test_claim_concorrente_retorna_409(client, gestor_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"])
    _atribuir(client, gestor_headers, auditor["id"], condominio["id"])

    async def carregar():
        async with AsyncSessionLocal() as db:
            result = await db.execute(select(Auditoria).where(Auditoria.id == auditoria["id"]))
            return result.scalar_one()

    # copia lida antes do outro auditor assumir
    desatualizada = asyncio.run(carregar())
    assert desatualizada.auditor_id is None

    r = client.post(
        f"/api/auditorias/{auditoria['id']}/fotos",
        data={"kind": "agua"},
        files={"file": ("agua.png", imagem_png, "image/png")},
        headers=auditor["headers"]
    )
    assert r.status_code == 200

    async def assumir():
        async with AsyncSessionLocal() as db:
            await fotos._claim(db, desatualizada, SimpleNamespace(id="outro-auditor", email="outro@metalav.com.br"))

    with pytest.raises(HTTPException) as exc:
        asyncio.run(assumir())
    assert exc.value.status_code == 409


def test_upload_vazio_nao_assume_auditoria(client, gestor_headers, auditor, criar_condominio, criar_auditoria):
    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"])
    _atribuir(client, gestor_headers, auditor["id"], condominio["id"])

    r = client.post(
        f"/api/auditorias/{auditoria['id']}/fotos",
        data={"kind": "agua"},
        files={"file": ("agua.png", b"", "image/png")},
        headers=auditor["headers"]
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Arquivo vazio"}

    data = client.get(f"/api/auditorias/{auditoria['id']}", headers=gestor_headers).json()["data"]
    assert data["auditor_id"] is None
    assert data["status"] == "aberta"


def test_upload_valida_tipo_e_perfil(client, interno_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    auditoria = criar_auditoria(criar_condominio()["id"], auditor_id=auditor["id"])
    url = f"/api/auditorias/{auditoria['id']}/fotos"

    r = client.post(url, data={"kind": "agua"}, files={"file": ("a.txt", b"texto", "text/plain")},
                    headers=auditor["headers"])
    assert r.status_code == 400

    r = client.post(url, data={"kind": "selfie"}, files={"file": ("a.png", imagem_png, "image/png")},
                    headers=auditor["headers"])
    assert r.status_code == 400

    r = client.post(url, data={"kind": "comprovante_fechamento"},
                    files={"file": ("c.pdf", b"%PDF-1.4", "application/pdf")},
                    headers=auditor["headers"])
    assert r.status_code == 403

    r = client.post(url, data={"kind": "comprovante_fechamento"},
                    files={"file": ("c.pdf", b"%PDF-1.4", "application/pdf")},
                    headers=interno_headers)
    assert r.status_code == 200
    assert r.json()["field"] == "comprovante_fechamento_url"
