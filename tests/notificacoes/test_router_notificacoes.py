# tests/notificacoes/test_router_notificacoes.py
"""
Testes das notificações do usuário logado (/api/notificacoes)
"""

import pytest

from sistemas.notificacoes.services import notificar
from tests.conftest import login


def _criar(client, titulo="Prazo do recurso", tipo="prazo"):
    response = client.post("/api/notificacoes", json={
        "tipo": tipo, "titulo": titulo, "descricao": "Vence em 5 dias", "casoNome": "José da Silva",
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestNotificacoes:

    def test_criar_e_listar(self, auth_client):
        notificacao = _criar(auth_client)

        assert notificacao["lida"] is False
        assert notificacao["casoNome"] == "José da Silva"
        assert [n["id"] for n in auth_client.get("/api/notificacoes").json()] == [notificacao["id"]]

    def test_tipo_invalido(self, auth_client):
        response = auth_client.post("/api/notificacoes", json={"tipo": "spam", "titulo": "a", "descricao": "b"})
        assert response.status_code == 400

    def test_marcar_lida(self, auth_client):
        notificacao = _criar(auth_client)

        response = auth_client.patch(f"/api/notificacoes/{notificacao['id']}/lida")
        assert response.json()["lida"] is True

    def test_marcar_todas(self, auth_client):
        _criar(auth_client, "a")
        _criar(auth_client, "b")

        assert auth_client.post("/api/notificacoes/marcar-todas-lidas").json() == {"atualizadas": 2}
        assert all(n["lida"] for n in auth_client.get("/api/notificacoes").json())

    def test_excluir(self, auth_client):
        notificacao = _criar(auth_client)

        assert auth_client.delete(f"/api/notificacoes/{notificacao['id']}").status_code == 204
        assert auth_client.get("/api/notificacoes").json() == []

    def test_isolamento_entre_usuarios(self, client, advogado):
        login(client)
        notificacao = _criar(client)

        login(client, "maria", "senha-maria")
        assert client.get("/api/notificacoes").json() == []
        response = client.patch(f"/api/notificacoes/{notificacao['id']}/lida")
        assert response.status_code == 404
        assert response.json()["detail"] == "Notificação não encontrada"


class TestNotificar:

    def test_tipo_invalido(self, db, admin_user):
        with pytest.raises(ValueError):
            notificar(db, admin_user.id, "spam", "a", "b")

    def test_nao_faz_commit(self, db, admin_user, auth_client):
        notificar(db, admin_user.id, "sucesso", "Parecer pronto", "O parecer foi gerado")
        assert auth_client.get("/api/notificacoes").json() == []

        db.commit()
        assert auth_client.get("/api/notificacoes").json()[0]["titulo"] == "Parecer pronto"
