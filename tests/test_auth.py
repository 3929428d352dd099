# tests/test_auth.py
"""
Testes de sessão (/api/login, /api/logout, /api/me, /api/change-password)
e da gestão de usuários (/api/users)
"""

from fastapi.testclient import TestClient

from auth.models import User
from auth.security import create_access_token, verify_password
from main import app
from tests.conftest import ADMIN_PASSWORD, ADMIN_USERNAME, login


def _bearer(username=ADMIN_USERNAME):
    return {"Authorization": f"Bearer {create_access_token({'sub': username})}"}


# ============================================
# SESSÃO
# ============================================

class TestLogin:

    def test_login_define_cookie(self, client):
        response = login(client)

        body = response.json()
        assert body["success"] is True
        assert body["user"]["role"] == "admin"
        assert body["user"]["name"] == "Administrador"
        assert "access_token" in response.cookies

    def test_login_por_email(self, client, advogado):
        response = login(client, "maria@dzamb.com.br", "senha-maria")
        assert response.json()["user"]["id"] == advogado.id

    def test_senha_errada(self, client):
        response = client.post("/api/login", json={"username": ADMIN_USERNAME, "password": "errada"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Usuário ou senha incorretos"
        assert "access_token" not in response.cookies

    def test_usuario_inexistente(self, client):
        response = client.post("/api/login", json={"username": "ninguem", "password": "x"})
        assert response.status_code == 401

    def test_usuario_desativado(self, client, db, advogado):
        advogado.is_active = False
        db.commit()

        response = client.post("/api/login", json={"username": "maria", "password": "senha-maria"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Usuário desativado. Contate o administrador."

    def test_payload_invalido(self, client):
        response = client.post("/api/login", json={"username": ""})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Dados inválidos"
        assert {e["campo"] for e in body["errors"]} == {"username", "password"}


class TestMe:

    def test_sem_sessao(self, client):
        response = client.get("/api/me")

        assert response.status_code == 200
        assert response.json() == {"authenticated": False}

    def test_com_sessao(self, auth_client):
        body = auth_client.get("/api/me").json()

        assert body["authenticated"] is True
        assert body["user"]["role"] == "admin"

    def test_token_invalido(self, client):
        response = client.get("/api/me", headers={"Authorization": "Bearer nao-e-um-jwt"})
        assert response.json() == {"authenticated": False}


class TestLogout:

    def test_logout_revoga_token(self):
        client = TestClient(app)
        headers = _bearer()

        assert client.get("/api/me", headers=headers).json()["authenticated"] is True
        assert client.post("/api/logout", headers=headers).json() == {"success": True}

        assert client.get("/api/me", headers=headers).json() == {"authenticated": False}
        assert client.get("/api/clients", headers=headers).status_code == 401

    def test_logout_sem_sessao(self, client):
        assert client.post("/api/logout").json() == {"success": True}

    def test_logout_encerra_cookie(self, auth_client):
        auth_client.post("/api/logout")
        assert auth_client.get("/api/me").json() == {"authenticated": False}


class TestChangePassword:

    def test_troca_senha(self, auth_client, db):
        response = auth_client.post("/api/change-password", json={
            "currentPassword": ADMIN_PASSWORD, "newPassword": "nova-senha-123",
        })

        assert response.json() == {"message": "Senha alterada com sucesso"}
        admin = db.query(User).filter(User.username == ADMIN_USERNAME).one()
        assert verify_password("nova-senha-123", admin.hashed_password)
        assert admin.must_change_password is False

    def test_senha_atual_incorreta(self, auth_client):
        response = auth_client.post("/api/change-password", json={
            "currentPassword": "errada", "newPassword": "nova-senha-123",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Senha atual incorreta"

    def test_senha_igual(self, auth_client):
        response = auth_client.post("/api/change-password", json={
            "currentPassword": ADMIN_PASSWORD, "newPassword": ADMIN_PASSWORD,
        })
        assert response.json()["detail"] == "Nova senha deve ser diferente da atual"

    def test_exige_login(self, client):
        response = client.post("/api/change-password", json={"currentPassword": "a", "newPassword": "bbbb"})
        assert response.status_code == 401


# ============================================
# USUÁRIOS
# ============================================

class TestUsers:

    def test_listar_ativos(self, auth_client, db, advogado):
        db.add(User(username="inativo", full_name="Zé Inativo", hashed_password="x", is_active=False))
        db.commit()

        nomes = [u["fullName"] for u in auth_client.get("/api/users").json()]
        assert nomes == ["Administrador", "Maria Advogada"]

    def test_listar_sem_hash(self, auth_client):
        assert "hashedPassword" not in auth_client.get("/api/users").json()[0]

    def test_criar_com_senha_padrao(self, auth_client, db):
        response = auth_client.post("/api/users", json={
            "username": "joao", "fullName": "João Estagiário", "email": "joao@dzamb.com.br",
        })

        assert response.status_code == 201
        assert response.json()["role"] == "advogado"
        joao = db.query(User).filter(User.username == "joao").one()
        assert joao.must_change_password is True
        assert verify_password("mudar123", joao.hashed_password)

    def test_criar_duplicado(self, auth_client, advogado):
        response = auth_client.post("/api/users", json={"username": "maria", "fullName": "Outra Maria"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Usuário 'maria' já existe"

        response = auth_client.post("/api/users", json={
            "username": "maria2", "fullName": "Outra Maria", "email": "maria@dzamb.com.br",
        })
        assert response.json()["detail"] == "Email 'maria@dzamb.com.br' já cadastrado"

    def test_advogado_nao_cria_usuario(self, client, advogado):
        login(client, "maria", "senha-maria")

        response = client.post("/api/users", json={"username": "joao", "fullName": "João"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Acesso restrito a administradores"
        assert client.get("/api/users").status_code == 200

    def test_atualizar(self, auth_client, advogado):
        response = auth_client.patch(f"/api/users/{advogado.id}", json={"role": "admin", "fullName": "Maria Sócia"})

        assert response.json()["role"] == "admin"
        assert response.json()["fullName"] == "Maria Sócia"

    def test_atualizar_inexistente(self, auth_client):
        response = auth_client.patch("/api/users/999", json={"role": "admin"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Usuário não encontrado"

    def test_desativar(self, auth_client, db, advogado):
        assert auth_client.delete(f"/api/users/{advogado.id}").status_code == 204

        db.refresh(advogado)
        assert advogado.is_active is False

    def test_nao_desativa_a_si_mesmo(self, auth_client, admin_user):
        response = auth_client.delete(f"/api/users/{admin_user.id}")
        assert response.status_code == 400
        assert response.json()["detail"] == "Você não pode desativar seu próprio usuário"
