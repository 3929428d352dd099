# tests/chat/test_router_chat.py
"""
Testes do chat de atendimento (/api/conversations)
"""

import pytest


@pytest.fixture
def conversa(auth_client):
    cliente = auth_client.post("/api/clients", json={"nome": "José da Silva", "cpf": "12345678900"}).json()
    response = auth_client.post("/api/conversations", json={"clienteId": cliente["id"]})
    assert response.status_code == 201, response.text
    return response.json()


def _enviar(client, conversa_id, conteudo, **extra):
    return client.post(f"/api/conversations/{conversa_id}/messages", json={"conteudo": conteudo, **extra})


class TestConversas:

    def test_padroes(self, conversa):
        assert conversa["canal"] == "interno"
        assert conversa["status"] == "aberto"
        assert conversa["ultimaMensagemAt"] is None

    def test_listagem_com_resumo(self, auth_client, conversa):
        _enviar(auth_client, conversa["id"], "Bom dia, doutor", remetenteTipo="cliente", remetenteId="cli-1")
        _enviar(auth_client, conversa["id"], "Já envio o CNIS", remetenteTipo="cliente")
        _enviar(auth_client, conversa["id"], "Recebido")

        item = auth_client.get("/api/conversations").json()[0]
        assert item["clienteNome"] == "José da Silva"
        assert item["ultimaMensagem"] == "Recebido"
        assert item["naoLidas"] == 2

    def test_mais_recente_primeiro(self, auth_client, conversa):
        cliente = auth_client.post("/api/clients", json={"nome": "Ana", "cpf": "98765432100"}).json()
        outra = auth_client.post("/api/conversations", json={"clienteId": cliente["id"]}).json()

        _enviar(auth_client, conversa["id"], "Olá")
        assert [c["id"] for c in auth_client.get("/api/conversations").json()] == [conversa["id"], outra["id"]]

    def test_atualizar_e_excluir(self, auth_client, conversa):
        response = auth_client.patch(f"/api/conversations/{conversa['id']}", json={"status": "fechado"})
        assert response.json()["status"] == "fechado"

        _enviar(auth_client, conversa["id"], "Olá")
        assert auth_client.delete(f"/api/conversations/{conversa['id']}").status_code == 204
        response = auth_client.get(f"/api/conversations/{conversa['id']}/messages")
        assert response.status_code == 404
        assert response.json()["detail"] == "Conversa não encontrada"

    def test_cliente_inexistente(self, auth_client):
        assert auth_client.post("/api/conversations", json={"clienteId": "x"}).status_code == 404


class TestMensagens:

    def test_remetente_usuario_logado(self, auth_client, conversa, admin_user):
        response = _enviar(auth_client, conversa["id"], "Olá")

        assert response.status_code == 201
        body = response.json()
        assert body["remetenteTipo"] == "usuario"
        assert body["remetenteId"] == str(admin_user.id)
        assert body["lida"] is False
        assert auth_client.get(f"/api/conversations/{conversa['id']}").json()["ultimaMensagemAt"] is not None

    def test_remetente_invalido(self, auth_client, conversa):
        response = _enviar(auth_client, conversa["id"], "Olá", remetenteTipo="robo")
        assert response.status_code == 400

    def test_ordem_cronologica(self, auth_client, conversa):
        for texto in ("1", "2", "3"):
            _enviar(auth_client, conversa["id"], texto)

        mensagens = auth_client.get(f"/api/conversations/{conversa['id']}/messages").json()
        assert [m["conteudo"] for m in mensagens] == ["1", "2", "3"]

    def test_marcar_como_lidas(self, auth_client, conversa):
        _enviar(auth_client, conversa["id"], "a", remetenteTipo="cliente")
        _enviar(auth_client, conversa["id"], "b", remetenteTipo="cliente")

        response = auth_client.post(f"/api/conversations/{conversa['id']}/read")
        assert response.json() == {"success": True, "atualizadas": 2}
        assert auth_client.get("/api/conversations").json()[0]["naoLidas"] == 0
