# sistemas/planejamento/prompts.py
"""
Prompts do Planejamento Previdenciário

Os templates usam placeholders {nome}; a substituição é feita por
montar_prompt() e não por str.format(), porque os exemplos de JSON
dentro dos prompts têm chaves literais.
"""

import json
from typing import Any, Dict, Optional


def montar_prompt(template: str, **kwargs) -> str:
    """Substitui placeholders sem usar .format() para evitar conflito com JSON."""
    resultado = template
    for chave, valor in kwargs.items():
        resultado = resultado.replace("{" + chave + "}", str(valor))
    return resultado


# =====================================================
# EXTRAÇÃO DE DADOS (POST /processar)
# =====================================================

PROMPT_EXTRACAO = """Você é um especialista em direito previdenciário brasileiro.

TAREFA: Analise os documentos fornecidos (CNIS) e extraia as seguintes informações:

DADOS A EXTRAIR:
1. Nome completo do segurado
2. CPF (apenas números)
3. Data de nascimento (formato YYYY-MM-DD)
4. Tempo de contribuição total (em anos e meses)
5. Lista de vínculos empregatícios (empresa, período, tipo de vínculo)
6. Salários de contribuição (competências e valores)
7. Carências cumpridas

FORMATO DE SAÍDA: JSON estruturado EXATAMENTE neste formato:
{
  "nome": "Nome Completo do Segurado",
  "cpf": "12345678901",
  "dataNascimento": "1980-01-15",
  "tempoContribuicao": {"anos": 25, "meses": 6},
  "vinculos": [
    {"empresa": "Nome da Empresa LTDA", "inicio": "2010-01-01", "fim": "2020-12-31", "tipo": "CLT"}
  ],
  "salarios": [
    {"competencia": "2024-01", "valor": 3500.50}
  ],
  "carencias": {"cumprida": true, "mesesContribuidos": 180}
}

REGRAS IMPORTANTES:
1. Campo não disponível no documento recebe o valor padrão:
   - Strings: ""
   - Numbers: 0
   - Booleans: false
   - Arrays: []
   - Objetos: o objeto com valores padrão
2. O campo "tipo" em vínculos DEVE ser um destes valores:
   "CLT", "Autonomo", "MEI", "Contribuinte Individual", "Facultativo",
   "Empregado Doméstico", "Segurado Especial", "Outro"
3. Datas no formato YYYY-MM-DD
4. Competências no formato YYYY-MM
5. CPF apenas com números (sem pontos ou traços)
6. Valores monetários como números (não strings)
7. SEMPRE retorne TODOS os campos do JSON, mesmo que vazios

Retorne SOMENTE o JSON, sem texto adicional, sem markdown, sem explicações."""


# =====================================================
# PARECER (POST /gerar-parecer)
# =====================================================

PROMPT_PARECER = """Você é um advogado previdenciário experiente.

DADOS DO CLIENTE:
{dados}{contexto_extra}

TAREFA: Gere um parecer técnico completo de planejamento previdenciário incluindo:

1. RESUMO EXECUTIVO
   - Situação atual do segurado
   - Principal recomendação

2. ANÁLISE DA SITUAÇÃO ATUAL
   - Tempo de contribuição
   - Idade
   - Carências

3. CENÁRIOS DE APOSENTADORIA
   Para cada regra aplicável calcule:
   - Regra de transição (se aplicável)
   - Aposentadoria por idade
   - Aposentadoria por tempo de contribuição
   - Regra de pontos

   Para cada cenário mostre:
   - Data estimada de elegibilidade
   - Tempo faltante
   - Valor estimado do benefício
   - Vantagens e desvantagens

4. RECOMENDAÇÃO ESTRATÉGICA
   - Melhor momento para requerer
   - Ações a tomar
   - Documentos que faltam

5. OBSERVAÇÕES E RESSALVAS

{secao_ata}FORMATO: Markdown bem estruturado e profissional.
TOM: Técnico mas acessível ao cliente."""

SECAO_PONTOS_REUNIAO = """6. PONTOS DA REUNIÃO COM O CLIENTE
   - Responder às dúvidas identificadas na ata
   - Alinhar expectativas mencionadas

"""


def prompt_parecer(dados: Dict[str, Any], contexto: Optional[Dict[str, Any]] = None) -> str:
    contexto = contexto or {}
    contexto_extra = ""

    resumo_ata = contexto.get("resumoAta")
    if resumo_ata:
        contexto_extra += f"\n\nCONTEXTO ADICIONAL - RESUMO DA ATA DE REUNIÃO:\n{resumo_ata}"

    calculo = contexto.get("dadosCalculoExterno")
    if calculo:
        contexto_extra += (
            "\n\nCONTEXTO ADICIONAL - DADOS DE CÁLCULO EXTERNO:\n"
            + json.dumps(calculo, indent=2, ensure_ascii=False)
        )

    return montar_prompt(
        PROMPT_PARECER,
        dados=json.dumps(dados, indent=2, ensure_ascii=False),
        contexto_extra=contexto_extra,
        secao_ata=SECAO_PONTOS_REUNIAO if resumo_ata else "",
    )


# =====================================================
# ATA, CÁLCULO EXTERNO E RESUMO EXECUTIVO
# =====================================================

PROMPT_ATA = """Você é um especialista em direito previdenciário brasileiro.
Analise o texto a seguir, extraído de uma ata de reunião com um cliente, e retorne um resumo em bullet points com:
- Principais pontos de atenção
- Dúvidas do cliente
- Informações que precisam ser validadas nos documentos
- Expectativas do cliente quanto à aposentadoria
- Histórico laboral mencionado

Texto da ata:
{texto_ata}

Retorne o resumo em formato Markdown bem estruturado."""

PROMPT_CALCULO_EXTERNO = """Analise este relatório de cálculo previdenciário e extraia as seguintes informações em formato JSON:
- Uma lista de cenários de aposentadoria
- Para cada cenário:
  - Nome do cenário/regra
  - Renda Mensal Inicial (RMI) projetada
  - Tempo de contribuição necessário
  - Data estimada de elegibilidade
  - Valor do benefício estimado
  - Observações relevantes

Retorne APENAS o JSON válido, sem texto adicional. Formato esperado:
{
  "cenarios": [
    {
      "nome": "string",
      "rmi": 0,
      "tempoContribuicao": {"anos": 0, "meses": 0},
      "dataElegibilidade": "YYYY-MM-DD",
      "valorBeneficio": 0,
      "observacoes": "string"
    }
  ],
  "resumoGeral": "string"
}"""

PROMPT_RESUMO_EXECUTIVO = """Resuma o seguinte parecer técnico previdenciário em uma linguagem simples e direta, adequada para uma pessoa leiga.

Foque em:
- Conclusões principais
- Próximos passos recomendados
- Prazos importantes
- Ações que o cliente precisa tomar

Mantenha o tom profissional mas acessível. Use bullet points quando apropriado.

Parecer completo:
{parecer}"""


# =====================================================
# ANÁLISE DETALHADA DO CNIS (POST /{id}/analisar-cnis)
# =====================================================

PROMPT_CNIS_DETALHADO = """Você é um especialista em análise de CNIS (Cadastro Nacional de Informações Sociais) brasileiro.

Analise o documento CNIS anexado e extraia TODOS os dados de forma estruturada com MÁXIMA PRECISÃO.

INSTRUÇÕES DE VALIDAÇÃO:

1. DATA DE REFERÊNCIA: Hoje é {data_hoje}. Use esta data em todas as validações.

2. DATA DE NASCIMENTO:
   - Extraia a data de nascimento do cabeçalho do CNIS
   - Se não encontrar, retorne "dataNascimento": null e adicione alerta

3. CONTRIBUIÇÕES:
   - A primeira contribuição deve ser posterior a nascimento + 14 anos
   - A última contribuição deve ser anterior ou igual a hoje
   - Competência posterior a hoje é PROJEÇÃO FUTURA e NÃO conta no tempo total

4. TEMPO DE CONTRIBUIÇÃO:
   - Conte APENAS competências com remuneração > 0 e até hoje
   - Formato: "X anos e Y meses"
   - O tempo total deve ser menor que a idade atual; caso contrário adicione alerta de ERRO CRÍTICO

5. GAPS:
   - Compare a data fim do vínculo N com a data início do vínculo N+1
   - Diferença maior que 1 mês é GAP
   - Formato: "MM/YYYY a MM/YYYY (X meses)"

---

DADOS DE IDENTIFICAÇÃO do segurado (cabeçalho do CNIS):
- Nome completo
- CPF (formato XXX.XXX.XXX-XX)
- Nome da mãe (se disponível)
- NIT(s), pode haver mais de um
- Data de nascimento (DD/MM/YYYY)

Para cada vínculo:
- Número sequencial (Seq.)
- NIT/PIS/PASEP do vínculo
- Empregador ou tipo de recolhimento
- CNPJ ou CPF do empregador
- Tipo de vínculo (Empregado, Contribuinte Individual, Facultativo, etc.)
- Data de início e data de fim
- Última remuneração registrada
- Indicadores (PREC-CADINI, AEXT-VI, IREM-INDPEND, IREC-MEI, IREC-LC123, PEXT, etc.)
- Observações relevantes

Para cada vínculo, as contribuições mensais visíveis:
- Competência (MM/YYYY)
- Remuneração
- Indicadores da competência

ALERTAS OBRIGATÓRIOS:
- Tempo total maior que a idade: "ERRO CRÍTICO: Tempo de contribuição (X anos) maior que idade do segurado (Y anos). Verificar cálculo."
- Primeira contribuição antes dos 14 anos: "ALERTA: Primeira contribuição antes da idade mínima para trabalhar (14 anos)."
- Gap maior que 12 meses: "ATENÇÃO: Período de X anos sem contribuição entre MM/YYYY e MM/YYYY."
- Projeções futuras: "AVISO: Vínculo inclui competências futuras até MM/YYYY. Não contam no tempo atual."
- Valores zerados: "ALERTA: Competências com remuneração zerada detectadas."

---

Retorne APENAS o JSON válido, sem texto adicional. Formato:

{
  "identificacao": {
    "nomeCompleto": "string ou null",
    "cpf": "string ou null",
    "nomeMae": "string ou null",
    "nits": ["string"],
    "dataNascimento": "DD/MM/YYYY ou null"
  },
  "vinculos": [
    {
      "sequencia": 1,
      "nit": "string ou null",
      "empregador": "string",
      "cnpjCpf": "string ou null",
      "tipoVinculo": "string ou null",
      "dataInicio": "DD/MM/YYYY ou null",
      "dataFim": "DD/MM/YYYY ou null",
      "ultimaRemuneracao": "string ou null",
      "indicadores": ["string"],
      "observacoes": "string ou null",
      "origemDocumento": "CNIS"
    }
  ],
  "contribuicoesPorVinculo": {
    "1": [
      {"competencia": "MM/YYYY", "remuneracao": "string ou null", "indicadores": ["string"]}
    ]
  },
  "resumoGeral": {
    "totalVinculos": 0,
    "totalContribuicoes": 0,
    "tempoTotalContribuicao": "X anos e Y meses",
    "primeiraContribuicao": "MM/YYYY ou null",
    "ultimaContribuicao": "MM/YYYY ou null",
    "gaps": [{"inicio": "MM/YYYY", "fim": "MM/YYYY", "duracao": "X meses"}]
  },
  "alertas": ["string"]
}"""


# =====================================================
# CRUZAMENTO DE DOCUMENTOS (POST /{id}/cruzar-documento)
# =====================================================

PROMPT_COMPARATIVO = """Você é um especialista em análise de documentos previdenciários brasileiros.

Você recebeu um documento do tipo "{tipo_documento}" para analisar.

Vínculos já extraídos do CNIS do cliente:
{vinculos}

Analise o documento anexado e:
1. CRUZE as informações com os vínculos do CNIS
2. IDENTIFIQUE inconsistências (datas divergentes, empregadores diferentes, valores diferentes)
3. GERE pendências que precisam ser resolvidas junto ao INSS

Gravidade das inconsistências:
- "baixa": pequenas divergências que não afetam o benefício
- "media": divergências que podem afetar cálculos
- "alta": divergências significativas que podem impactar a concessão
- "critica": divergências que podem invalidar períodos de contribuição

Prioridade das pendências:
- "baixa": pode ser resolvida posteriormente
- "media": deve ser resolvida antes do requerimento
- "alta": impacta diretamente no benefício
- "urgente": precisa de ação imediata

Retorne APENAS o JSON válido:
{
  "inconsistencias": [
    {
      "tipo": "data_divergente|valor_divergente|vinculo_ausente|indicador_pendente|outro",
      "gravidade": "baixa|media|alta|critica",
      "titulo": "string curto descritivo",
      "descricao": "string detalhada",
      "documentoOrigem": "CNIS",
      "documentoComparacao": "{tipo_documento}",
      "vinculoSequencia": 1,
      "dadosOrigem": {},
      "dadosComparacao": {},
      "sugestaoCorrecao": "string"
    }
  ],
  "pendencias": [
    {
      "titulo": "string curto",
      "descricao": "string detalhada",
      "tipo": "documento_faltante|retificacao_cnis|comprovacao_vinculo|outro",
      "prioridade": "baixa|media|alta|urgente",
      "acaoNecessaria": "string",
      "documentosNecessarios": ["string"],
      "vinculoSequencia": 1
    }
  ],
  "resumoAnalise": "string com resumo geral da análise"
}"""
