# tests/planejamento/test_identificacao.py
"""
Testes da validação de identificação do CNIS
"""

from sistemas.planejamento.identificacao import comparar_nomes, normalizar_cpf, validar_identificacao


def _ident(**kwargs):
    dados = {
        "nomeCompleto": "JOSÉ DA SILVA SANTOS",
        "cpf": "123.456.789-00",
        "nomeMae": "MARIA DA SILVA",
        "nits": ["123.45678.90-1"],
        "dataNascimento": "01/01/1960",
    }
    dados.update(kwargs)
    return dados


class TestComparacoes:

    def test_nomes_sem_acento_e_caixa(self):
        assert comparar_nomes("José da Silva Santos", "JOSE DA SILVA SANTOS")

    def test_primeiro_e_ultimo_nome(self):
        assert comparar_nomes("José da Silva Santos", "José Santos")

    def test_nomes_diferentes(self):
        assert not comparar_nomes("José Santos", "João Santos")

    def test_nome_unico_nao_confere(self):
        assert not comparar_nomes("José", "José Santos")

    def test_cpf_somente_digitos(self):
        assert normalizar_cpf("123.456.789-00") == "12345678900"


class TestValidarIdentificacao:

    def test_tudo_ok(self):
        resultado = validar_identificacao(_ident(), "José Santos", "12345678900")

        assert resultado.tudo_ok
        assert resultado.alertas == []
        assert resultado.mensagem_resumo == "Identificação validada. Nome e CPF conferem com o cadastro."

    def test_sem_identificacao(self):
        resultado = validar_identificacao(None, "José", "123")

        assert not resultado.tudo_ok
        assert resultado.alertas[0].gravidade == "alta"

    def test_cpf_divergente(self):
        resultado = validar_identificacao(_ident(cpf="999.999.999-99"), "José Santos", "123.456.789-00")

        assert [a.tipo for a in resultado.alertas] == ["cpf_divergente"]
        assert resultado.mensagem_resumo == "1 alerta(s) de alta gravidade encontrado(s). Ação necessária."

    def test_nome_divergente(self):
        resultado = validar_identificacao(_ident(), "Pedro Alves", "123.456.789-00")
        assert [a.tipo for a in resultado.alertas] == ["nome_divergente"]

    def test_alertas_de_atencao(self):
        resultado = validar_identificacao(
            _ident(nomeMae="  ", nits=["1", "2"]), "José Santos", "123.456.789-00",
        )

        assert [a.tipo for a in resultado.alertas] == ["nome_mae_ausente", "multiplos_nits"]
        assert all(a.gravidade == "media" for a in resultado.alertas)
        assert "2 NITs (1 e 2)" in resultado.alertas[1].mensagem
        assert resultado.mensagem_resumo == "2 alerta(s) de atenção encontrado(s). Recomenda-se verificação."

    def test_cpf_ausente_no_cnis_nao_gera_alerta(self):
        resultado = validar_identificacao(_ident(cpf=None), "José Santos", "123.456.789-00")
        assert resultado.tudo_ok
