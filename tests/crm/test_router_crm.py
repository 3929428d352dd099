# tests/crm/test_router_crm.py
"""
Testes do funil comercial (/api/pipeline-stages e /api/deals)
"""

import pytest

from sistemas.crm.models import PipelineStage
from sistemas.crm.services import DEFAULT_STAGES, seed_pipeline_stages


@pytest.fixture
def cliente_id(auth_client):
    return auth_client.post("/api/clients", json={"nome": "José", "cpf": "12345678900"}).json()["id"]


class TestEstagios:

    def test_estagios_padrao(self, auth_client):
        estagios = auth_client.get("/api/pipeline-stages").json()
        assert [e["nome"] for e in estagios] == [nome for nome, _, _ in DEFAULT_STAGES]

    def test_seed_idempotente(self, db):
        assert seed_pipeline_stages(db) == 0
        assert db.query(PipelineStage).count() == len(DEFAULT_STAGES)

    def test_criar_e_atualizar(self, auth_client):
        estagio = auth_client.post("/api/pipeline-stages", json={"nome": "Pós-venda", "ordem": 6}).json()

        response = auth_client.patch(f"/api/pipeline-stages/{estagio['id']}", json={"cor": "#FF0000"})
        assert response.json()["cor"] == "#FF0000"
        assert auth_client.get("/api/pipeline-stages").json()[-1]["nome"] == "Pós-venda"

    def test_excluir_libera_deals(self, auth_client, cliente_id):
        estagio = auth_client.get("/api/pipeline-stages").json()[0]
        deal = auth_client.post("/api/deals", json={
            "clienteId": cliente_id, "titulo": "Planejamento", "stageId": estagio["id"],
        }).json()

        assert auth_client.delete(f"/api/pipeline-stages/{estagio['id']}").status_code == 204
        assert auth_client.get(f"/api/deals/{deal['id']}").json()["stageId"] is None

    def test_inexistente(self, auth_client):
        response = auth_client.patch("/api/pipeline-stages/x", json={"nome": "A"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Estágio não encontrado"


class TestDeals:

    def test_criar(self, auth_client, cliente_id, admin_user):
        response = auth_client.post("/api/deals", json={
            "clienteId": cliente_id,
            "titulo": "Revisão da vida toda",
            "valor": 3500.0,
            "responsavelId": admin_user.id,
        })

        assert response.status_code == 201
        body = response.json()
        assert body["valor"] == 3500.0
        assert body["stageId"] is None
        assert [d["id"] for d in auth_client.get("/api/deals").json()] == [body["id"]]

    def test_estagio_inexistente(self, auth_client, cliente_id):
        response = auth_client.post("/api/deals", json={"clienteId": cliente_id, "titulo": "A", "stageId": "x"})
        assert response.status_code == 404

    def test_cliente_inexistente(self, auth_client):
        response = auth_client.post("/api/deals", json={"clienteId": "x", "titulo": "A"})
        assert response.json()["detail"] == "Cliente não encontrado"

    def test_mover_de_estagio(self, auth_client, cliente_id):
        deal = auth_client.post("/api/deals", json={"clienteId": cliente_id, "titulo": "A"}).json()
        proposta = auth_client.get("/api/pipeline-stages").json()[3]

        response = auth_client.patch(f"/api/deals/{deal['id']}", json={"stageId": proposta["id"]})
        assert response.json()["stageId"] == proposta["id"]

    def test_excluir(self, auth_client, cliente_id):
        deal = auth_client.post("/api/deals", json={"clienteId": cliente_id, "titulo": "A"}).json()

        assert auth_client.delete(f"/api/deals/{deal['id']}").status_code == 204
        response = auth_client.get(f"/api/deals/{deal['id']}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Deal não encontrado"
