"""
Fixtures da suite: banco SQLite temporario, uploads em diretorio temporario
e usuarios de cada perfil criados pela propria API.
"""
import os
import tempfile
import uuid

_TMP = tempfile.mkdtemp(prefix="metalav-tests-")

# precisa acontecer antes de importar app.core.config
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP, "uploads")
os.environ["CRON_SECRET"] = "cron-secret-de-teste"
os.environ["SECRET_KEY"] = "chave-de-teste"
os.environ["PUBLIC_BASE_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from app.main import app

SENHA = "senha-forte-123"
CRON_SECRET = os.environ["CRON_SECRET"]


def login(client: TestClient, email: str, password: str = SENHA) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    # o login grava cookie no client; os testes usam apenas o header
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def criar_usuario(client: TestClient, gestor_headers: dict, role: str) -> dict:
    email = f"{role}-{uuid.uuid4().hex[:8]}@metalav.com.br"
    response = client.post(
        "/api/users",
        json={"email": email, "password": SENHA, "full_name": role.title(), "role": role},
        headers=gestor_headers
    )
    assert response.status_code == 201, response.text
    user = response.json()
    return {"id": user["id"], "email": email, "headers": login(client, email)}


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def gestor_headers(client):
    response = client.post(
        "/api/auth/setup",
        json={"email": "gestor@metalav.com.br", "password": SENHA, "full_name": "Gestor"}
    )
    assert response.status_code == 201, response.text
    return login(client, "gestor@metalav.com.br")


@pytest.fixture(scope="session")
def interno(client, gestor_headers):
    return criar_usuario(client, gestor_headers, "interno")


@pytest.fixture(scope="session")
def interno_headers(interno):
    return interno["headers"]


@pytest.fixture
def auditor(client, gestor_headers):
    return criar_usuario(client, gestor_headers, "auditor")


@pytest.fixture
def criar_condominio(client, interno_headers):
    """Factory: condominio com lavadora 10kg (R$16,50) e secadora 10kg (R$8,00)"""

    def _criar(**overrides):
        payload = {
            "nome": f"Condomínio {uuid.uuid4().hex[:6]}",
            "cidade": "Curitiba",
            "uf": "pr",
            "tipo_pagamento": "boleto",
            "cashback_percent": 20,
            "tarifa_agua_m3": 10,
            "tarifa_energia_kwh": 1.5,
            "tarifa_gas_m3": 5,
            "usa_gas": False,
            "pix": "financeiro@condominio.com.br",
        }
        payload.update(overrides)
        response = client.post("/api/condominios", json=payload, headers=interno_headers)
        assert response.status_code == 201, response.text
        condominio = response.json()["data"]

        response = client.put(
            f"/api/condominios/{condominio['id']}/maquinas",
            json={"itens": [
                {"categoria": "lavadora", "capacidade_kg": 10, "quantidade": 2, "valor_ciclo": 16.5},
                {"categoria": "secadora", "capacidade_kg": 10, "quantidade": 2, "valor_ciclo": 8.0},
            ]},
            headers=interno_headers
        )
        assert response.status_code == 200, response.text
        return condominio

    return _criar


@pytest.fixture
def criar_auditoria(client, interno_headers):
    def _criar(condominio_id: str, mes_ref: str = "2030-03-01", auditor_id: str = None):
        payload = {"condominio_id": condominio_id, "mes_ref": mes_ref}
        if auditor_id:
            payload["auditor_id"] = auditor_id
        response = client.post("/api/auditorias", json=payload, headers=interno_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _criar


@pytest.fixture
def lancar_ciclos(client, interno_headers):
    """Lanca 10 ciclos de lavadora e 5 de secadora (R$205,00 de receita)"""

    def _lancar(auditoria_id: str, lavadora: int = 10, secadora: int = 5):
        response = client.post(
            f"/api/auditorias/{auditoria_id}/ciclos",
            json={"itens": [
                {"categoria": "lavadora", "capacidade_kg": 10, "ciclos": lavadora},
                {"categoria": "secadora", "capacidade_kg": 10, "ciclos": secadora},
            ]},
            headers=interno_headers
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]

    return _lancar


@pytest.fixture
def imagem_png() -> bytes:
    """PNG com canal alpha (exercita a conversao para JPEG)"""
    import io
    from PIL import Image

    out = io.BytesIO()
    Image.new("RGBA", (64, 48), (30, 120, 200, 255)).save(out, format="PNG")
    return out.getvalue()
