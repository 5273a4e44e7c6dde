"""
Meta Lav Auditorias - CLI Admin
Ferramenta de linha de comando para a equipe interna

Uso:
    python admin_cli.py login
    python admin_cli.py painel
    python admin_cli.py condominios list
    python admin_cli.py auditorias criar [YYYY-MM-01]
    python admin_cli.py financeiro <YYYY-MM-01> [xlsx|pdf]
"""
import os
import sys
import httpx
from pathlib import Path

BASE_URL = os.getenv("METALAV_API_URL", "http://localhost:8080")
TOKEN_FILE = Path(".metalav_token")


def save_token(token: str):
    TOKEN_FILE.write_text(token)


def load_token() -> str:
    if TOKEN_FILE.exists():
        return TOKEN_FILE.read_text().strip()
    return None


def get_headers():
    token = load_token()
    if not token:
        print("Erro: Faça login primeiro com 'python admin_cli.py login'")
        sys.exit(1)
    return {"Authorization": f"Bearer {token}"}


def _erro(response: httpx.Response) -> str:
    try:
        return response.json().get("error", response.text)
    except ValueError:
        return response.text


def cmd_login():
    """Login no sistema"""
    email = input("Email: ").strip()
    password = input("Senha: ").strip()

    try:
        response = httpx.post(
            f"{BASE_URL}/api/auth/login",
            json={"email": email, "password": password}
        )
        if response.status_code == 200:
            data = response.json()
            save_token(data["access_token"])
            print("\n✓ Login bem sucedido!")
            print(f"  Usuário: {data['user']['email']} ({data['role']})")
        else:
            print(f"✗ Erro: {_erro(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro de conexão: {e}")


def cmd_painel():
    """Resumo do mes atual"""
    try:
        response = httpx.get(f"{BASE_URL}/api/admin/relatorios/mes-atual", headers=get_headers())
        if response.status_code == 200:
            painel = response.json()
            print(f"\n{'='*40}")
            print(f"  AUDITORIAS {painel['mes_ref'][:7]}")
            print(f"{'='*40}")
            print(f"  Condomínios: {painel['condominios']['total']} (ativos: {painel['condominios']['ativos']})")
            print(f"  Auditorias: {painel['auditorias']['total']}")
            for st, total in painel["auditorias"]["por_status"].items():
                print(f"    - {st}: {total}")
            print(f"{'='*40}")
        else:
            print(f"✗ Erro: {_erro(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_condominios_list():
    """Lista condominios"""
    try:
        response = httpx.get(f"{BASE_URL}/api/condominios", headers=get_headers())
        if response.status_code == 200:
            condominios = response.json()["data"]
            print(f"\n{'='*80}")
            print(f"{'ID':<36} | {'Nome':<24} | {'Pagamento':<9} | {'Ativo':<5}")
            print(f"{'='*80}")
            for c in condominios:
                print(f"{c['id']:<36} | {c['nome'][:24]:<24} | {c['tipo_pagamento']:<9} | {'sim' if c['ativo'] else 'não':<5}")
            print(f"\nTotal: {len(condominios)} condomínios")
        else:
            print(f"✗ Erro: {_erro(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_auditorias_criar(mes_ref: str = None):
    """Executa a criacao mensal de auditorias"""
    params = {"mes_ref": mes_ref} if mes_ref else None
    try:
        response = httpx.post(
            f"{BASE_URL}/api/admin/criar-auditorias",
            params=params,
            headers=get_headers()
        )
        if response.status_code == 200:
            r = response.json()
            print(f"\n✓ Mês {r['mes_ref'][:7]}: {r['criadas']} auditorias criadas")
            print(f"  Condomínios ativos: {r['condominios_ativos']} (já existentes: {r['ja_existentes']})")
            if r.get("warning"):
                print(f"  Aviso: {r['warning']}")
        else:
            print(f"✗ Erro: {_erro(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_financeiro(mes_ref: str, formato: str = "xlsx"):
    """Baixa o relatorio financeiro do mes"""
    if formato not in ("xlsx", "pdf"):
        print("Formato deve ser xlsx ou pdf")
        return
    try:
        response = httpx.get(
            f"{BASE_URL}/api/relatorios/financeiro/export/{formato}",
            params={"mes_ref": mes_ref},
            headers=get_headers(),
            timeout=60
        )
        if response.status_code == 200:
            destino = Path(f"financeiro_{mes_ref[:7]}.{formato}")
            destino.write_bytes(response.content)
            print(f"✓ Relatório salvo em {destino}")
        else:
            print(f"✗ Erro: {_erro(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def print_help():
    print("""
Meta Lav Auditorias - CLI Admin
===============================

Comandos disponíveis:

  python admin_cli.py login                              - Fazer login
  python admin_cli.py painel                             - Resumo do mês atual
  python admin_cli.py condominios list                   - Listar condomínios
  python admin_cli.py auditorias criar [YYYY-MM-01]      - Criar auditorias do mês
  python admin_cli.py financeiro <YYYY-MM-01> [xlsx|pdf] - Baixar relatório financeiro

Variável METALAV_API_URL define o servidor (padrão http://localhost:8080).
""")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print_help()
        sys.exit(0)

    cmd = sys.argv[1].lower()

    if cmd == "login":
        cmd_login()
    elif cmd == "painel":
        cmd_painel()
    elif cmd == "condominios":
        if len(sys.argv) >= 3 and sys.argv[2] == "list":
            cmd_condominios_list()
        else:
            print("Uso: condominios list")
    elif cmd == "auditorias":
        if len(sys.argv) >= 3 and sys.argv[2] == "criar":
            cmd_auditorias_criar(sys.argv[3] if len(sys.argv) > 3 else None)
        else:
            print("Uso: auditorias criar [YYYY-MM-01]")
    elif cmd == "financeiro":
        if len(sys.argv) >= 3:
            cmd_financeiro(sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else "xlsx")
        else:
            print("Uso: financeiro <YYYY-MM-01> [xlsx|pdf]")
    elif cmd == "help":
        print_help()
    else:
        print(f"Comando desconhecido: {cmd}")
        print_help()
