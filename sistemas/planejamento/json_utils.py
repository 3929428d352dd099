# sistemas/planejamento/json_utils.py
"""
Recuperação de JSON malformado devolvido pela IA.

Respostas longas (CNIS com dezenas de vínculos) costumam chegar truncadas
ou com vírgulas sobrando. As tentativas vão da mais barata à mais agressiva:

1. Remove caracteres de controle e faz parse direto
2. Remove vírgulas finais, separa objetos colados, coloca aspas em chaves
3. Recorta do primeiro "{" ao último "}"
4. Fecha chaves e colchetes faltantes
5. Remove elementos do final, um a um, até o JSON fechar
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_CONTROLE = re.compile(r"[\x00-\x1F\x7F]")

_SANITIZACOES = [
    (re.compile(r",\s*}"), "}"),
    (re.compile(r",\s*]"), "]"),
    (re.compile(r"}\s*{"), "},{"),
    (re.compile(r"]\s*\["), "],["),
    (re.compile(r"([{,]\s*)(\w+)(\s*:)"), r'\1"\2"\3'),
    (re.compile(r":\s*'([^']*)'"), r': "\1"'),
]

# Cada padrão remove o último elemento (par chave/valor, valor solto, objeto ou array aberto)
_CORTES_FINAIS = [
    re.compile(r',\s*"[^"]*"\s*:\s*("[^"]*"|[0-9.]+|null|true|false|\[[^\]]*\]|\{[^}]*\})\s*$'),
    re.compile(r',\s*("[^"]*"|[0-9.]+|null|true|false)\s*$'),
    re.compile(r",\s*\{[^}]*$"),
    re.compile(r",\s*\[[^\]]*$"),
]

MAX_CORTES = 50


def _try_parse(texto: str):
    try:
        return True, json.loads(texto)
    except ValueError:
        return False, None


def _fechar_estruturas(texto: str) -> str:
    """Remove vírgula final e acrescenta os "]" e "}" que faltam."""
    tentativa = re.sub(r",\s*$", "", texto, count=1)
    tentativa += "]" * max(0, texto.count("[") - texto.count("]"))
    tentativa += "}" * max(0, texto.count("{") - texto.count("}"))
    return tentativa


def sanitize_and_parse_json(texto: str) -> Any:
    """
    Faz parse do JSON retornado pela IA, reparando o que for possível.

    Raises:
        ValueError: se nenhuma das tentativas produzir JSON válido
    """
    sanitizado = _CONTROLE.sub(" ", texto)
    ok, dados = _try_parse(sanitizado)
    if ok:
        return dados

    for padrao, substituto in _SANITIZACOES:
        sanitizado = padrao.sub(substituto, sanitizado)
    ok, dados = _try_parse(sanitizado)
    if ok:
        logger.debug("JSON da IA recuperado após sanitização")
        return dados

    inicio = sanitizado.find("{")
    fim = sanitizado.rfind("}")
    if inicio == -1 or fim == -1 or fim <= inicio:
        raise ValueError("Erro ao parsear JSON da IA: Estrutura JSON não encontrada na resposta")

    extraido = sanitizado[inicio:fim + 1]
    ok, dados = _try_parse(extraido)
    if ok:
        return dados

    reparado = extraido
    reparado += "}" * max(0, reparado.count("{") - reparado.count("}"))
    reparado += "]" * max(0, reparado.count("[") - reparado.count("]"))
    reparado = re.sub(r",\s*]", "]", re.sub(r",\s*}", "}", reparado))
    ok, dados = _try_parse(reparado)
    if ok:
        return dados

    restante = extraido
    for _ in range(MAX_CORTES):
        if len(restante) <= 10:
            break
        ok, dados = _try_parse(_fechar_estruturas(restante))
        if ok:
            logger.warning("JSON da IA truncado; parse feito após remover elementos do final")
            return dados
        for padrao in _CORTES_FINAIS:
            restante = padrao.sub("", restante, count=1)

    logger.error(
        "Falha ao recuperar JSON da IA. Início: %s | Fim: %s",
        texto[:1000], texto[-500:],
    )
    raise ValueError("Erro ao parsear JSON da IA: JSON malformado não pôde ser recuperado")
