"""
Testes das fotos de proveta por maquina
"""
from conftest import criar_usuario


def _atribuir(client, headers, auditor_id, condominio_id):
    r = client.post(
        "/api/assignments",
        json={"auditor_id": auditor_id, "condominio_id": condominio_id},
        headers=headers
    )
    assert r.status_code == 200, r.text


def _enviar(client, auditoria_id, headers, tag, idx, conteudo, content_type="image/png"):
    return client.post(
        f"/api/auditorias/{auditoria_id}/provetas",
        data={"maquina_tag": tag, "maquina_idx": str(idx)},
        files={"file": (f"{tag}.png", conteudo, content_type)},
        headers=headers
    )


def test_auditor_envia_e_lista_provetas(client, gestor_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"])
    _atribuir(client, gestor_headers, auditor["id"], condominio["id"])

    url = f"/api/auditorias/{auditoria['id']}/provetas"
    # auditoria ainda sem auditor: lista bloqueada
    assert client.get(url, headers=auditor["headers"]).status_code == 403

    r = _enviar(client, auditoria["id"], auditor["headers"], "sec-01", 1, imagem_png)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["maquina_tag"] == "SEC-01"

    # o envio assume a auditoria
    data = client.get(f"/api/auditorias/{auditoria['id']}", headers=auditor["headers"]).json()["data"]
    assert data["auditor_id"] == auditor["id"]
    assert data["status"] == "em_andamento"

    assert _enviar(client, auditoria["id"], auditor["headers"], "LAV-01", 2, imagem_png).status_code == 200
    primeira = _enviar(client, auditoria["id"], auditor["headers"], "LAV-01", 1, imagem_png).json()["data"]
    # reenvio substitui a foto da mesma maquina
    segunda = _enviar(client, auditoria["id"], auditor["headers"], "lav-01", 1, imagem_png).json()["data"]
    assert segunda["id"] == primeira["id"]
    assert segunda["foto_url"] != primeira["foto_url"]

    r = client.get(url, headers=auditor["headers"])
    assert r.status_code == 200
    provetas = r.json()["data"]
    assert [(p["maquina_tag"], p["maquina_idx"]) for p in provetas] == [("LAV-01", 1), ("LAV-01", 2), ("SEC-01", 1)]
    assert client.get(provetas[0]["foto_url"]).content == imagem_png


def test_provetas_de_outro_auditor(client, gestor_headers, interno_headers, auditor, criar_condominio, criar_auditoria, imagem_png):
    condominio = criar_condominio()
    auditoria = criar_auditoria(condominio["id"], auditor_id=auditor["id"])
    outro = criar_usuario(client, gestor_headers, "auditor")
    _atribuir(client, gestor_headers, outro["id"], condominio["id"])

    assert _enviar(client, auditoria["id"], outro["headers"], "LAV-01", 1, imagem_png).status_code == 403
    url = f"/api/auditorias/{auditoria['id']}/provetas"
    assert client.get(url, headers=outro["headers"]).status_code == 403

    # interno ve e envia em qualquer auditoria
    assert _enviar(client, auditoria["id"], interno_headers, "LAV-01", 1, imagem_png).status_code == 200
    r = client.get(url, headers=interno_headers)
    assert r.status_code == 200
    assert len(r.json()["data"]) == 1


def test_proveta_validacoes(client, interno_headers, criar_condominio, criar_auditoria, imagem_png):
    auditoria = criar_auditoria(criar_condominio()["id"])

    assert _enviar(client, auditoria["id"], interno_headers, "LAV-01", 1, b"%PDF-1.4", "application/pdf").status_code == 400
    assert _enviar(client, auditoria["id"], interno_headers, "LAV-01", 0, imagem_png).status_code == 400
    assert _enviar(client, auditoria["id"], interno_headers, "   ", 1, imagem_png).status_code == 400

    r = _enviar(client, auditoria["id"], interno_headers, "LAV-01", 1, b"")
    assert r.status_code == 400
    assert r.json() == {"error": "Arquivo vazio"}

    assert client.get("/api/auditorias/nao-existe/provetas", headers=interno_headers).status_code == 404
