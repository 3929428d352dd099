# tests/planejamento/test_prompts.py
"""
Testes da montagem dos prompts
"""

from sistemas.planejamento.prompts import (
    PROMPT_CNIS_DETALHADO,
    PROMPT_COMPARATIVO,
    PROMPT_EXTRACAO,
    montar_prompt,
    prompt_parecer,
)


class TestMontarPrompt:

    def test_substitui_placeholders(self):
        assert montar_prompt("Olá {nome}, hoje é {data}", nome="José", data="01/01/2026") == (
            "Olá José, hoje é 01/01/2026"
        )

    def test_preserva_chaves_de_json(self):
        resultado = montar_prompt('{"tipo": "{tipo_documento}", "dados": {}}', tipo_documento="CTPS")
        assert resultado == '{"tipo": "CTPS", "dados": {}}'

    def test_cnis_recebe_data_de_hoje(self):
        prompt = montar_prompt(PROMPT_CNIS_DETALHADO, data_hoje="19/10/2026")

        assert "Hoje é 19/10/2026" in prompt
        assert "{data_hoje}" not in prompt

    def test_comparativo(self):
        prompt = montar_prompt(PROMPT_COMPARATIVO, tipo_documento="PPP", vinculos="[]")

        assert '"PPP"' in prompt
        assert "{vinculos}" not in prompt

    def test_extracao_lista_tipos_de_vinculo(self):
        assert "Segurado Especial" in PROMPT_EXTRACAO


class TestPromptParecer:

    def test_sem_contexto(self):
        prompt = prompt_parecer({"nome": "José"})

        assert '"nome": "José"' in prompt
        assert "CONTEXTO ADICIONAL" not in prompt
        assert "PONTOS DA REUNIÃO" not in prompt
        assert "{secao_ata}" not in prompt

    def test_com_ata_e_calculo(self):
        prompt = prompt_parecer(
            {"nome": "José"},
            {"resumoAta": "Cliente quer se aposentar em 2027", "dadosCalculoExterno": {"rmi": 3500.5}},
        )

        assert "CONTEXTO ADICIONAL - RESUMO DA ATA DE REUNIÃO:\nCliente quer se aposentar em 2027" in prompt
        assert "CONTEXTO ADICIONAL - DADOS DE CÁLCULO EXTERNO:" in prompt
        assert '"rmi": 3500.5' in prompt
        assert "PONTOS DA REUNIÃO COM O CLIENTE" in prompt
