#!/usr/bin/env python
# scripts/push_to_github.py
"""
Backup do projeto no GitHub via REST API (sem git local).

Passos:
- Autentica com GITHUB_TOKEN e cria o repositório se não existir
- Repositório vazio recebe um README pela Contents API (cria o branch main)
- Cada arquivo não ignorado vira um blob; a árvore é montada sobre heads/main
- Cria o commit e avança a referência

Uso:
    python scripts/push_to_github.py
    python scripts/push_to_github.py --repo dzamb-previdencia --dir . --private

Requer:
    - GITHUB_TOKEN no ambiente ou no .env (escopo "repo")
"""

import os
import sys
import time
import base64
import argparse
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

GITHUB_API_URL = "https://api.github.com"
REPO_PADRAO = "dzamb-previdencia"
DESCRICAO_PADRAO = "DZAMB Previdência - Planejamento previdenciário para advogados. Do Zero ao Melhor Benefício."

IGNORAR = {
    ".git",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".venv",
    "venv",
    ".env",
    ".env.local",
    "uploads",
    "logs",
    "tmp",
    ".idea",
    ".vscode",
    "node_modules",
    "dist",
    "build",
}
EXTENSOES_IGNORADAS = (".db", ".sqlite", ".sqlite3", ".pyc", ".log")

README_INICIAL = """# DZAMB Previdência

**Do Zero ao Melhor Benefício**

Backend de gestão de casos e planejamento previdenciário para advogados.

- Upload e análise de documentos (CNIS, CTPS, PPP, FGTS)
- Extração de vínculos e contribuições com IA (Gemini)
- Pendências, inconsistências e parecer técnico
- FastAPI + SQLAlchemy
"""


class GitHubError(Exception):
    """Resposta inesperada da API do GitHub."""

    def __init__(self, status_code: int, mensagem: str):
        super().__init__(f"GitHub {status_code}: {mensagem}")
        self.status_code = status_code


def deve_ignorar(caminho_relativo: str) -> bool:
    partes = Path(caminho_relativo).parts
    if any(parte in IGNORAR for parte in partes):
        return True
    return caminho_relativo.endswith(EXTENSOES_IGNORADAS)


def listar_arquivos(raiz: Path) -> List[str]:
    """Caminhos relativos (com "/") de todos os arquivos não ignorados, em ordem."""
    arquivos = []
    for caminho in sorted(raiz.rglob("*")):
        relativo = caminho.relative_to(raiz).as_posix()
        if caminho.is_file() and not deve_ignorar(relativo):
            arquivos.append(relativo)
    return arquivos


class GitHubClient:
    """Wrapper mínimo sobre os endpoints de repos e git data."""

    def __init__(self, token: str, http: Optional[httpx.Client] = None):
        self.http = http or httpx.Client(base_url=GITHUB_API_URL, timeout=60.0)
        self.http.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = self.http.request(method, url, **kwargs)
        if response.status_code >= 400:
            try:
                mensagem = response.json().get("message", response.text)
            except ValueError:
                mensagem = response.text
            raise GitHubError(response.status_code, mensagem)
        return response.json() if response.content else {}

    def usuario(self) -> str:
        return self._request("GET", "/user")["login"]

    def repositorio_vazio(self, owner: str, repo: str) -> Optional[bool]:
        """
        None quando o repositório não existe; True quando existe sem commits
        (a API responde 409 na listagem de commits).
        """
        try:
            self._request("GET", f"/repos/{owner}/{repo}")
        except GitHubError as e:
            if e.status_code == 404:
                return None
            raise
        try:
            self._request("GET", f"/repos/{owner}/{repo}/commits", params={"per_page": 1})
        except GitHubError as e:
            if e.status_code == 409:
                return True
            raise
        return False

    def criar_repositorio(self, repo: str, descricao: str, privado: bool):
        self._request("POST", "/user/repos", json={
            "name": repo,
            "description": descricao,
            "private": privado,
            "auto_init": False,
        })

    def criar_arquivo(self, owner: str, repo: str, caminho: str, conteudo: bytes, mensagem: str):
        self._request("PUT", f"/repos/{owner}/{repo}/contents/{caminho}", json={
            "message": mensagem,
            "content": base64.b64encode(conteudo).decode("ascii"),
        })

    def sha_da_ref(self, owner: str, repo: str, ref: str = "heads/main") -> str:
        return self._request("GET", f"/repos/{owner}/{repo}/git/ref/{ref}")["object"]["sha"]

    def criar_blob(self, owner: str, repo: str, conteudo: bytes) -> str:
        return self._request("POST", f"/repos/{owner}/{repo}/git/blobs", json={
            "content": base64.b64encode(conteudo).decode("ascii"),
            "encoding": "base64",
        })["sha"]

    def criar_arvore(self, owner: str, repo: str, itens: List[Dict[str, str]], base_tree: str) -> str:
        return self._request("POST", f"/repos/{owner}/{repo}/git/trees", json={
            "tree": itens,
            "base_tree": base_tree,
        })["sha"]

    def criar_commit(self, owner: str, repo: str, mensagem: str, tree: str, parent: str) -> str:
        return self._request("POST", f"/repos/{owner}/{repo}/git/commits", json={
            "message": mensagem,
            "tree": tree,
            "parents": [parent],
        })["sha"]

    def atualizar_ref(self, owner: str, repo: str, sha: str, ref: str = "heads/main"):
        self._request("PATCH", f"/repos/{owner}/{repo}/git/refs/{ref}", json={"sha": sha})


def enviar_projeto(client: GitHubClient, raiz: Path, repo: str, privado: bool = False,
                   espera_inicial: float = 2.0) -> Dict[str, Any]:
    """Executa o backup completo. Retorna owner, commit e contagem de arquivos."""
    owner = client.usuario()
    print(f"✅ Autenticado como: {owner}")

    vazio = client.repositorio_vazio(owner, repo)
    if vazio is None:
        print(f"📦 Criando repositório {repo}...")
        client.criar_repositorio(repo, DESCRICAO_PADRAO, privado)
        vazio = True

    if vazio:
        print("📝 Inicializando repositório com README...")
        client.criar_arquivo(owner, repo, "README.md", README_INICIAL.encode("utf-8"),
                             "Initial commit - DZAMB Previdência")
        # O branch main demora alguns instantes para aparecer na API
        time.sleep(espera_inicial)

    arquivos = listar_arquivos(raiz)
    print(f"📁 {len(arquivos)} arquivos para enviar")

    base_sha = client.sha_da_ref(owner, repo)

    itens = []
    erros = 0
    for i, arquivo in enumerate(arquivos, start=1):
        try:
            sha = client.criar_blob(owner, repo, (raiz / arquivo).read_bytes())
        except (GitHubError, OSError) as e:
            print(f"❌ Erro ao enviar {arquivo}: {e}")
            erros += 1
            continue
        itens.append({"path": arquivo, "mode": "100644", "type": "blob", "sha": sha})
        if i % 20 == 0:
            print(f"   {i}/{len(arquivos)} arquivos...")

    print(f"✅ {len(itens)} arquivos enviados ({erros} erros)")
    if not itens:
        raise RuntimeError("Nenhum arquivo foi enviado")

    tree_sha = client.criar_arvore(owner, repo, itens, base_sha)
    mensagem = f"Backup DZAMB Previdência - {datetime.now().strftime('%d/%m/%Y %H:%M')}\n\n{len(itens)} arquivos"
    commit_sha = client.criar_commit(owner, repo, mensagem, tree_sha, base_sha)
    client.atualizar_ref(owner, repo, commit_sha)

    return {"owner": owner, "commit": commit_sha, "arquivos": len(itens), "erros": erros}


def main():
    parser = argparse.ArgumentParser(description="Envia o projeto para o GitHub via API")
    parser.add_argument("--repo", default=REPO_PADRAO, help=f"Nome do repositório (default: {REPO_PADRAO})")
    parser.add_argument("--dir", default=str(Path(__file__).resolve().parent.parent),
                        help="Diretório do projeto (default: raiz do repositório)")
    parser.add_argument("--private", action="store_true", help="Cria o repositório como privado")
    args = parser.parse_args()

    token = os.getenv("GITHUB_TOKEN", "")
    if not token:
        print("ERRO: GITHUB_TOKEN não configurado.")
        sys.exit(1)

    print("🚀 Iniciando backup do DZAMB Previdência no GitHub...\n")
    try:
        resultado = enviar_projeto(GitHubClient(token), Path(args.dir).resolve(), args.repo, args.private)
    except (GitHubError, RuntimeError, httpx.HTTPError) as e:
        print(f"❌ Backup falhou: {e}")
        sys.exit(1)

    print(f"\n{'='*60}")
    print("✅ BACKUP COMPLETO!")
    print(f"✅ Repositório: https://github.com/{resultado['owner']}/{args.repo}")
    print(f"✅ Commit: {resultado['commit'][:7]}")
    print(f"✅ Arquivos: {resultado['arquivos']}")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
