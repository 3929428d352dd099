# tests/planejamento/test_ia_service.py
"""
Testes do ia_service: normalização dos dados extraídos e chamadas ao Gemini (mockadas)
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from services.gemini_service import GeminiError
from sistemas.planejamento import ia_service


class TestNormalizarDadosExtraidos:

    def test_preenche_padroes(self):
        dados = ia_service.normalizar_dados_extraidos({})

        assert dados["nome"] == ""
        assert dados["cpf"] == ""
        assert dados["tempoContribuicao"] == {"anos": 0, "meses": 0}
        assert dados["vinculos"] == []
        assert dados["salarios"] == []
        assert dados["carencias"] == {"cumprida": False, "mesesContribuidos": 0}

    def test_nulos_viram_padrao(self):
        dados = ia_service.normalizar_dados_extraidos({
            "nome": None, "tempoContribuicao": None, "vinculos": None, "carencias": None,
        })

        assert dados["nome"] == ""
        assert dados["tempoContribuicao"] == {"anos": 0, "meses": 0}
        assert dados["vinculos"] == []

    def test_tipo_de_vinculo(self):
        dados = ia_service.normalizar_dados_extraidos({"vinculos": [
            {"empresa": "A", "inicio": "2010-01-01", "tipo": "MEI"},
            {"empresa": "B", "inicio": "2011-01-01", "tipo": "Estagiário"},
            {"empresa": "C", "inicio": "2012-01-01", "tipo": None},
        ]})

        assert [v["tipo"] for v in dados["vinculos"]] == ["MEI", "Outro", "CLT"]

    @pytest.mark.parametrize("valor,esperado", [
        ("R$ 3500,50", 3500.5),
        ("1500", 1500.0),
        ("sem valor", 0),
        (2000, 2000),
    ])
    def test_salario_convertido(self, valor, esperado):
        dados = ia_service.normalizar_dados_extraidos({"salarios": [{"competencia": "2024-01", "valor": valor}]})
        assert dados["salarios"][0]["valor"] == esperado

    def test_campos_extras_mantidos(self):
        dados = ia_service.normalizar_dados_extraidos({"nome": "José", "observacoesIa": "ok"})
        assert dados["observacoesIa"] == "ok"


class TestProvedores:

    def test_gemini_configurado(self):
        assert ia_service.get_available_providers() == ["gemini"]

    def test_sem_chave(self):
        with patch.object(ia_service.gemini_service, "is_configured", return_value=False):
            assert ia_service.get_available_providers() == []
            with pytest.raises(GeminiError, match="Nenhum provedor de IA disponível"):
                asyncio.run(ia_service.gerar_resumo_executivo("parecer"))

    def test_provedor_nao_suportado(self):
        with pytest.raises(GeminiError, match="Provedor de IA não suportado: openai"):
            asyncio.run(ia_service.extrair_dados([b"%PDF"], provider="openai"))


class TestChamadas:

    def test_extrair_dados_normaliza(self):
        resposta = json.dumps({"nome": "José", "vinculos": [{"empresa": "ACME", "inicio": "2000-01-01", "tipo": "CLT"}]})
        with patch.object(ia_service, "chamar_gemini_com_documentos", AsyncMock(return_value=resposta)) as mock:
            dados = asyncio.run(ia_service.extrair_dados([b"%PDF-1", b"%PDF-2"]))

        assert dados["nome"] == "José"
        assert dados["carencias"] == {"cumprida": False, "mesesContribuidos": 0}
        args, kwargs = mock.call_args
        assert args[1] == [b"%PDF-1", b"%PDF-2"]
        assert kwargs["json_output"] is True

    def test_resposta_sem_json(self):
        with patch.object(ia_service, "chamar_gemini_com_documentos", AsyncMock(return_value="Não consegui ler")):
            with pytest.raises(ValueError, match="Não foi possível extrair JSON"):
                asyncio.run(ia_service.importar_calculo(b"%PDF"))

    def test_json_entre_texto(self):
        resposta = 'Segue:\n```json\n{"cenarios": [{"regra": "Idade", "rmi": 2100}]}\n```'
        with patch.object(ia_service, "chamar_gemini_com_documentos", AsyncMock(return_value=resposta)):
            dados = asyncio.run(ia_service.importar_calculo(b"%PDF"))

        assert dados["cenarios"][0]["rmi"] == 2100

    def test_parecer_usa_contexto(self):
        with patch.object(ia_service, "chamar_gemini", AsyncMock(return_value="# Parecer")) as mock:
            parecer = asyncio.run(ia_service.gerar_parecer({"nome": "José"}, {"resumoAta": "Ata resumida"}))

        assert parecer == "# Parecer"
        prompt = mock.call_args[0][0]
        assert "Ata resumida" in prompt

    def test_analisar_ata(self):
        with patch.object(ia_service, "chamar_gemini", AsyncMock(return_value="resumo")) as mock:
            assert asyncio.run(ia_service.analisar_ata("cliente pediu revisão")) == "resumo"

        assert "cliente pediu revisão" in mock.call_args[0][0]

    def test_cnis_detalhado(self):
        resposta = json.dumps({"identificacao": {"nomeCompleto": "JOSÉ"}, "vinculos": [{"sequencia": 1}], "alertas": []})
        with patch.object(ia_service, "chamar_gemini_com_documentos", AsyncMock(return_value=resposta)) as mock:
            dados = asyncio.run(ia_service.analisar_cnis_detalhado(b"%PDF"))

        assert dados["vinculos"] == [{"sequencia": 1}]
        assert "{data_hoje}" not in mock.call_args[0][0]

    def test_comparativo_envia_vinculos(self):
        resposta = json.dumps({"inconsistencias": [], "pendencias": []})
        with patch.object(ia_service, "chamar_gemini_com_documentos", AsyncMock(return_value=resposta)) as mock:
            asyncio.run(ia_service.analisar_documento_comparativo(b"%PDF", "CTPS", [{"sequencia": 1, "empregador": "ACME"}]))

        prompt = mock.call_args[0][0]
        assert '"empregador": "ACME"' in prompt
        assert '"CTPS"' in prompt
