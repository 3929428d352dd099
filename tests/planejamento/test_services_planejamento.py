# tests/planejamento/test_services_planejamento.py
"""
Testes das regras de negócio do planejamento (sem IA e sem HTTP)
"""

import pytest
from fastapi import HTTPException

from sistemas.planejamento import services
from sistemas.planejamento.models import (
    AlertaIdentificacao,
    AnaliseCompetencia,
    ContribuicaoCnis,
    IdentificacaoCnis,
    Inconsistencia,
    Pendencia,
    Planejamento,
    ProblemaRemuneracao,
    VinculoCnis,
)


@pytest.fixture
def planejamento(db, admin_user):
    p = Planejamento(user_id=admin_user.id, cliente_nome="Maria Souza", cliente_cpf="111.222.333-44", status="uploaded")
    db.add(p)
    db.commit()
    return p


def _analise(**extra):
    analise = {
        "identificacao": {
            "nomeCompleto": "MARIA APARECIDA SOUZA",
            "cpf": "11122233344",
            "nomeMae": "ANA SOUZA",
            "nits": ["1", "2"],
        },
        "vinculos": [
            {"empregador": "Padaria Pão Bom", "dataInicio": "01/03/2015", "dataFim": "31/05/2015"},
            {"sequencia": 7, "empregador": "", "dataInicio": "01/08/1994", "dataFim": "31/08/1994"},
        ],
        "contribuicoesPorVinculo": {
            "1": [
                {"competencia": "03/2015", "remuneracao": "1.800,00"},
                {"competencia": "04/2015", "remuneracao": ""},
                {"competencia": "05/2015", "remuneracao": "50,00"},
                {"remuneracao": "100,00"},
            ],
            "7": [{"competencia": "08/1994", "remuneracao": "300,00"}],
        },
        "alertas": [],
    }
    analise.update(extra)
    return analise


class TestTipoDocumento:

    @pytest.mark.parametrize("nome,esperado", [
        ("CNIS_2024.pdf", "CNIS"),
        ("ctps.pdf", "CTPS"),
        ("extrato fgts.pdf", "FGTS"),
        ("ppp-metalurgica.pdf", "PPP"),
        ("documento.pdf", "CNIS"),
        (None, "CNIS"),
    ])
    def test_tipo_pelo_nome(self, nome, esperado):
        assert services.tipo_documento_por_nome(nome) == esperado


class TestAplicarAnaliseCnis:

    def test_vinculos_sem_sequencia_usam_posicao(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())

        vinculos = services.listar_vinculos(db, planejamento.id)
        assert [(v.sequencia, v.empregador) for v in vinculos] == [(1, "Padaria Pão Bom"), (7, "Vínculo 7")]
        assert vinculos[0].origem_documento == "CNIS"
        # contribuição sem competência é descartada
        assert [c.competencia for c in vinculos[0].contribuicoes] == ["03/2015", "04/2015", "05/2015"]

    def test_alertas_de_identificacao_media_nao_geram_pendencia(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())

        alertas = db.query(AlertaIdentificacao).filter_by(planejamento_id=planejamento.id).all()
        assert [a.tipo for a in alertas] == ["multiplos_nits"]
        assert db.query(Pendencia).filter_by(tipo="identificacao_divergente").count() == 0
        assert db.query(IdentificacaoCnis).one().validada is False

    def test_problemas_de_remuneracao(self, db, planejamento):
        resultado = services.aplicar_analise_cnis(db, planejamento, _analise())

        problemas = db.query(ProblemaRemuneracao).order_by(ProblemaRemuneracao.competencia).all()
        assert [(p.competencia, p.tipo, p.gravidade) for p in problemas] == [
            ("04/2015", "ausente", "alta"),
            ("05/2015", "muito_baixa", "media"),
        ]
        assert resultado["problemasRemuneracao"] == 2
        assert resultado["pendenciasGeradasRemuneracao"] == 1

        pendencia = db.query(Pendencia).filter_by(tipo="remuneracao_ausente").one()
        assert pendencia.titulo == "Remuneração ausente detectada no vínculo Padaria Pão Bom"
        assert pendencia.vinculo_id == problemas[0].vinculo_id

    def test_sem_faltas_nao_gera_pendencia_de_competencia(self, db, planejamento):
        resultado = services.aplicar_analise_cnis(db, planejamento, _analise())

        assert resultado["analiseCompetencias"] == 2
        assert resultado["pendenciasGeradasCompetencias"] == 0
        assert all(a.meses_faltantes == [] for a in db.query(AnaliseCompetencia).all())

    def test_alertas_viram_pendencias(self, db, planejamento):
        resultado = services.aplicar_analise_cnis(db, planejamento, _analise(alertas=["PREC-MENOR-MIN", "AEXT-VI"]))

        assert resultado["alertas"] == 2
        descricoes = {p.descricao for p in db.query(Pendencia).filter_by(tipo="alerta_cnis")}
        assert descricoes == {"PREC-MENOR-MIN", "AEXT-VI"}

    def test_reanalise_nao_duplica(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())
        services.aplicar_analise_cnis(db, planejamento, _analise())

        assert db.query(VinculoCnis).count() == 2
        assert db.query(ContribuicaoCnis).count() == 4
        assert db.query(IdentificacaoCnis).count() == 1
        assert db.query(AnaliseCompetencia).count() == 2
        assert db.query(ProblemaRemuneracao).count() == 2
        assert db.query(Pendencia).count() == 1

    def test_reanalise_preserva_pendencia_manual(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())
        vinculo = services.listar_vinculos(db, planejamento.id)[0]
        db.add(Pendencia(planejamento_id=planejamento.id, titulo="Buscar PPP", descricao="", tipo="documento_faltante",
                         prioridade="media", status="aberta", vinculo_id=vinculo.id))
        db.add(Inconsistencia(planejamento_id=planejamento.id, tipo="outro", gravidade="baixa", titulo="x",
                              descricao="", status="pendente", vinculo_id=vinculo.id))
        db.commit()

        services.aplicar_analise_cnis(db, planejamento, _analise())
        db.expire_all()

        manual = db.query(Pendencia).filter_by(tipo="documento_faltante").one()
        assert manual.vinculo_id is None
        assert db.query(Inconsistencia).one().vinculo_id is None


class TestRevalidarIdentificacao:

    def test_sem_identificacao(self, db, planejamento):
        assert services.revalidar_identificacao(db, planejamento) is False

    def test_nome_divergente_gera_pendencia(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())

        planejamento.cliente_nome = "João Pereira"
        assert services.revalidar_identificacao(db, planejamento) is True
        db.commit()

        pendencia = db.query(Pendencia).filter_by(tipo="identificacao_divergente").one()
        assert pendencia.titulo == "Nome divergente no CNIS"
        tipos = sorted(a.tipo for a in db.query(AlertaIdentificacao).all())
        assert tipos == ["multiplos_nits", "nome_divergente"]


class TestAplicarCruzamento:

    def test_sequencia_invalida_fica_sem_vinculo(self, db, planejamento):
        services.aplicar_analise_cnis(db, planejamento, _analise())
        vinculos = services.listar_vinculos(db, planejamento.id)

        resultado = services.aplicar_cruzamento(db, planejamento, "FGTS", vinculos, {
            "inconsistencias": [
                {"titulo": "Sem depósito", "vinculoSequencia": "abc"},
                {"titulo": "Depósito divergente", "vinculoSequencia": 7},
                {"titulo": "Vínculo desconhecido", "vinculoSequencia": 99},
            ],
        })

        assert resultado == {
            "message": "Documento FGTS analisado com sucesso",
            "inconsistencias": 3,
            "pendencias": 0,
            "resumo": None,
        }
        por_titulo = {i.titulo: i for i in db.query(Inconsistencia).all()}
        assert por_titulo["Sem depósito"].vinculo_id is None
        assert por_titulo["Depósito divergente"].vinculo_id == vinculos[1].id
        assert por_titulo["Vínculo desconhecido"].vinculo_id is None
        assert por_titulo["Sem depósito"].gravidade == "media"
        assert por_titulo["Sem depósito"].documento_origem == "CNIS"

    def test_listagens_ordenadas(self, db, planejamento):
        services.aplicar_cruzamento(db, planejamento, "CTPS", [], {
            "inconsistencias": [
                {"titulo": "a", "gravidade": "baixa"},
                {"titulo": "b", "gravidade": "critica"},
            ],
            "pendencias": [
                {"titulo": "c", "prioridade": "baixa"},
                {"titulo": "d", "prioridade": "urgente"},
            ],
        })

        assert [i.titulo for i in services.listar_inconsistencias(db, planejamento.id)] == ["b", "a"]
        assert [p.titulo for p in services.listar_pendencias(db, planejamento.id)] == ["d", "c"]


class TestChecklistEContexto:

    def test_pilar_invalido(self, db, planejamento):
        with pytest.raises(HTTPException) as exc:
            services.atualizar_checklist(db, planejamento.id, None, True)
        assert exc.value.status_code == 400

    def test_marca_e_desmarca(self, db, planejamento):
        checklist = services.atualizar_checklist(db, planejamento.id, "remuneracoesAnalisadas", True)
        assert checklist.remuneracoes_analisadas is True
        assert checklist.remuneracoes_analisadas_em is not None

        checklist = services.atualizar_checklist(db, planejamento.id, "remuneracoesAnalisadas", False)
        assert checklist.remuneracoes_analisadas is False
        assert checklist.remuneracoes_analisadas_em is None

    def test_contexto_parecer(self, planejamento):
        assert services.contexto_parecer(planejamento) == {}

        planejamento.resumo_ata = "Cliente quer aposentar em 2027"
        assert services.contexto_parecer(planejamento) == {"resumoAta": "Cliente quer aposentar em 2027"}
