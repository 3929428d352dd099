# tests/test_push_to_github.py
"""
Testes do backup via API do GitHub (scripts/push_to_github.py)

O GitHub é simulado com httpx.MockTransport.
"""

import base64
import json

import httpx
import pytest

from scripts.push_to_github import (
    GitHubClient,
    GitHubError,
    deve_ignorar,
    enviar_projeto,
    listar_arquivos,
)


class FakeGitHub:
    """Simula os endpoints usados pelo backup e registra as chamadas."""

    def __init__(self, repo_existe=True, vazio=False, falhar_blob=None):
        self.repo_existe = repo_existe
        self.vazio = vazio
        self.falhar_blob = falhar_blob
        self.chamadas = []
        self.blobs = []
        self.arvore = None
        self.commit = None
        self.ref_atualizada = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        metodo, caminho = request.method, request.url.path
        corpo = json.loads(request.content) if request.content else None
        self.chamadas.append((metodo, caminho))

        if caminho == "/user":
            return httpx.Response(200, json={"login": "dzamb"})
        if metodo == "GET" and caminho == "/repos/dzamb/backup":
            return httpx.Response(200 if self.repo_existe else 404, json={"message": "Not Found"})
        if metodo == "POST" and caminho == "/user/repos":
            self.repo_existe = True
            return httpx.Response(201, json={"name": corpo["name"]})
        if metodo == "GET" and caminho.endswith("/commits"):
            if self.vazio:
                return httpx.Response(409, json={"message": "Git Repository is empty."})
            return httpx.Response(200, json=[{"sha": "base"}])
        if metodo == "PUT" and "/contents/" in caminho:
            self.vazio = False
            return httpx.Response(201, json={"content": {}})
        if caminho.endswith("/git/ref/heads/main"):
            return httpx.Response(200, json={"object": {"sha": "base"}})
        if caminho.endswith("/git/blobs"):
            conteudo = base64.b64decode(corpo["content"])
            if self.falhar_blob and self.falhar_blob in conteudo:
                return httpx.Response(422, json={"message": "blob inválido"})
            self.blobs.append(conteudo)
            return httpx.Response(201, json={"sha": f"blob{len(self.blobs)}"})
        if caminho.endswith("/git/trees"):
            self.arvore = corpo
            return httpx.Response(201, json={"sha": "tree1"})
        if caminho.endswith("/git/commits"):
            self.commit = corpo
            return httpx.Response(201, json={"sha": "commit123456"})
        if metodo == "PATCH" and caminho.endswith("/git/refs/heads/main"):
            self.ref_atualizada = corpo["sha"]
            return httpx.Response(200, json={"object": {"sha": corpo["sha"]}})
        return httpx.Response(500, json={"message": f"rota não simulada: {metodo} {caminho}"})


def _client(fake):
    http = httpx.Client(base_url="https://api.github.com", transport=httpx.MockTransport(fake))
    return GitHubClient("token-teste", http=http)


@pytest.fixture
def projeto(tmp_path):
    (tmp_path / "main.py").write_text("print('ok')\n")
    (tmp_path / "sistemas").mkdir()
    (tmp_path / "sistemas" / "router.py").write_text("router = None\n")
    (tmp_path / ".env").write_text("GITHUB_TOKEN=segredo\n")
    (tmp_path / "dados.db").write_bytes(b"sqlite")
    (tmp_path / "__pycache__").mkdir()
    (tmp_path / "__pycache__" / "main.cpython-312.pyc").write_bytes(b"\x00")
    return tmp_path


class TestArquivos:

    @pytest.mark.parametrize("caminho,ignorado", [
        ("main.py", False),
        (".env", True),
        ("uploads/cnis.pdf", True),
        ("sistemas/__pycache__/x.pyc", True),
        ("banco.sqlite3", True),
        ("docs/leia.md", False),
    ])
    def test_deve_ignorar(self, caminho, ignorado):
        assert deve_ignorar(caminho) is ignorado

    def test_listar_arquivos(self, projeto):
        assert listar_arquivos(projeto) == ["main.py", "sistemas/router.py"]


class TestGitHubClient:

    def test_headers(self):
        fake = FakeGitHub()
        client = _client(fake)

        assert client.http.headers["Authorization"] == "Bearer token-teste"
        assert client.usuario() == "dzamb"

    def test_repositorio_inexistente(self):
        assert _client(FakeGitHub(repo_existe=False)).repositorio_vazio("dzamb", "backup") is None

    def test_repositorio_vazio(self):
        assert _client(FakeGitHub(vazio=True)).repositorio_vazio("dzamb", "backup") is True
        assert _client(FakeGitHub()).repositorio_vazio("dzamb", "backup") is False

    def test_erro_com_mensagem(self):
        client = _client(FakeGitHub())

        with pytest.raises(GitHubError) as exc:
            client._request("GET", "/rota/desconhecida")
        assert exc.value.status_code == 500
        assert "rota não simulada" in str(exc.value)


class TestEnviarProjeto:

    def test_repositorio_existente(self, projeto):
        fake = FakeGitHub()

        resultado = enviar_projeto(_client(fake), projeto, "backup", espera_inicial=0)

        assert resultado == {"owner": "dzamb", "commit": "commit123456", "arquivos": 2, "erros": 0}
        assert ("POST", "/user/repos") not in fake.chamadas
        assert [item["path"] for item in fake.arvore["tree"]] == ["main.py", "sistemas/router.py"]
        assert fake.arvore["base_tree"] == "base"
        assert fake.commit["parents"] == ["base"]
        assert fake.ref_atualizada == "commit123456"

    def test_cria_e_inicializa(self, projeto):
        fake = FakeGitHub(repo_existe=False)

        enviar_projeto(_client(fake), projeto, "backup", privado=True, espera_inicial=0)

        assert ("POST", "/user/repos") in fake.chamadas
        assert ("PUT", "/repos/dzamb/backup/contents/README.md") in fake.chamadas

    def test_falha_em_blob_nao_interrompe(self, projeto):
        fake = FakeGitHub(falhar_blob=b"router")

        resultado = enviar_projeto(_client(fake), projeto, "backup", espera_inicial=0)

        assert resultado["arquivos"] == 1
        assert resultado["erros"] == 1

    def test_nenhum_arquivo(self, tmp_path):
        with pytest.raises(RuntimeError):
            enviar_projeto(_client(FakeGitHub()), tmp_path, "backup", espera_inicial=0)
