# sistemas/planejamento/remuneracoes.py
"""
Detecção de remunerações problemáticas nas contribuições do CNIS
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

LIMITE_MUITO_BAIXA = 100

_NUMERO_INICIAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")


@dataclass
class ProblemaRemuneracaoResult:
    vinculo_id: str
    competencia: str
    valor: Optional[str]
    tipo: str  # zerada, muito_baixa, ausente
    gravidade: str  # alta, media
    mensagem: str


def converter_valor(valor: Optional[str]) -> Optional[float]:
    """
    "R$ 1.234,56" -> 1234.56. Retorna None para vazio ou não numérico.

    Aceita lixo após o número ("1500,00 *"), como o CNIS costuma trazer.
    """
    if valor is None or not valor.strip():
        return None
    limpo = valor.replace("R$", "").replace(".", "").replace(",", ".").strip()
    match = _NUMERO_INICIAL.match(limpo)
    if not match:
        return None
    return float(match.group(0))


def detectar_problemas(vinculo_id: str, empregador: str, contribuicoes: Iterable) -> List[ProblemaRemuneracaoResult]:
    """
    Args:
        contribuicoes: objetos com competencia e remuneracao
    """
    problemas = []
    for contrib in contribuicoes:
        remuneracao = contrib.remuneracao
        valor = converter_valor(remuneracao)
        base = f'Competência {contrib.competencia} do vínculo "{empregador}"'

        if valor is None:
            problemas.append(ProblemaRemuneracaoResult(
                vinculo_id, contrib.competencia, remuneracao, "ausente", "alta",
                f"{base} está sem valor de remuneração. Solicitar correção junto ao INSS.",
            ))
        elif valor == 0:
            problemas.append(ProblemaRemuneracaoResult(
                vinculo_id, contrib.competencia, remuneracao, "zerada", "alta",
                f"{base} está com valor zerado. Solicitar correção junto ao INSS.",
            ))
        elif valor < LIMITE_MUITO_BAIXA:
            problemas.append(ProblemaRemuneracaoResult(
                vinculo_id, contrib.competencia, remuneracao, "muito_baixa", "media",
                f"{base} possui remuneração muito baixa ({remuneracao}). Verificar se o valor está correto.",
            ))
    return problemas


def detectar_todos_vinculos(vinculos: Iterable, contribuicoes_por_vinculo: Dict[str, list]) -> List[ProblemaRemuneracaoResult]:
    problemas = []
    for vinculo in vinculos:
        problemas.extend(
            detectar_problemas(vinculo.id, vinculo.empregador, contribuicoes_por_vinculo.get(vinculo.id, []))
        )
    return problemas
