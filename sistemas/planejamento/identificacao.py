# sistemas/planejamento/identificacao.py
"""
Validação da identificação do CNIS contra o cadastro do cliente
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AlertaIdentificacaoResult:
    tipo: str  # nome_divergente, cpf_divergente, multiplos_nits, nome_mae_ausente
    gravidade: str  # alta, media
    mensagem: str


@dataclass
class ValidacaoIdentificacaoResult:
    alertas: List[AlertaIdentificacaoResult] = field(default_factory=list)
    tudo_ok: bool = True
    mensagem_resumo: str = ""


def remover_acentos(texto: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFD", texto)
        if not unicodedata.combining(c)
    )


def normalizar_nome(nome: Optional[str]) -> str:
    if not nome:
        return ""
    return re.sub(r"\s+", " ", remover_acentos(nome.lower())).strip()


def comparar_nomes(nome1: Optional[str], nome2: Optional[str]) -> bool:
    """Nomes conferem se iguais ou se primeiro e último nome coincidem."""
    n1 = normalizar_nome(nome1)
    n2 = normalizar_nome(nome2)
    if not n1 or not n2:
        return False
    if n1 == n2:
        return True

    palavras1 = n1.split(" ")
    palavras2 = n2.split(" ")
    if len(palavras1) < 2 or len(palavras2) < 2:
        return False
    return palavras1[0] == palavras2[0] and palavras1[-1] == palavras2[-1]


def normalizar_cpf(cpf: Optional[str]) -> str:
    return re.sub(r"\D", "", cpf or "")


def validar_identificacao(
    identificacao: Optional[Dict[str, Any]],
    cliente_nome: Optional[str],
    cliente_cpf: Optional[str],
) -> ValidacaoIdentificacaoResult:
    """
    Args:
        identificacao: dict com nomeCompleto, cpf, nomeMae, nits, dataNascimento
            (formato devolvido pela IA)
    """
    if not identificacao:
        return ValidacaoIdentificacaoResult(
            alertas=[AlertaIdentificacaoResult(
                "nome_divergente", "alta",
                "Dados de identificação não foram extraídos do CNIS.",
            )],
            tudo_ok=False,
            mensagem_resumo="Não foi possível validar a identificação.",
        )

    alertas = []
    cpf_cnis = identificacao.get("cpf")
    nome_cnis = identificacao.get("nomeCompleto")

    if normalizar_cpf(cpf_cnis) and normalizar_cpf(cliente_cpf) and normalizar_cpf(cpf_cnis) != normalizar_cpf(cliente_cpf):
        alertas.append(AlertaIdentificacaoResult(
            "cpf_divergente", "alta",
            f"ATENÇÃO: CPF do CNIS ({cpf_cnis}) difere do CPF cadastrado ({cliente_cpf}). "
            f"Verificar se é o documento correto.",
        ))

    if nome_cnis and cliente_nome and not comparar_nomes(nome_cnis, cliente_nome):
        alertas.append(AlertaIdentificacaoResult(
            "nome_divergente", "alta",
            f"ATENÇÃO: Nome do CNIS ({nome_cnis}) difere do nome cadastrado ({cliente_nome}). "
            f"Confirmar se é a mesma pessoa.",
        ))

    nome_mae = identificacao.get("nomeMae")
    if not nome_mae or not str(nome_mae).strip():
        alertas.append(AlertaIdentificacaoResult(
            "nome_mae_ausente", "media",
            "Nome da mãe não consta no CNIS. Recomenda-se solicitar atualização para evitar problemas com homônimos.",
        ))

    nits = identificacao.get("nits") or []
    if len(nits) > 1:
        alertas.append(AlertaIdentificacaoResult(
            "multiplos_nits", "media",
            f"Atenção: Segurado possui {len(nits)} NITs ({' e '.join(str(n) for n in nits)}). Verificar se todos estão no CNIS.",
        ))

    if not alertas:
        return ValidacaoIdentificacaoResult(
            alertas=[], tudo_ok=True,
            mensagem_resumo="Identificação validada. Nome e CPF conferem com o cadastro.",
        )

    altas = sum(1 for a in alertas if a.gravidade == "alta")
    if altas:
        resumo = f"{altas} alerta(s) de alta gravidade encontrado(s). Ação necessária."
    else:
        medias = sum(1 for a in alertas if a.gravidade == "media")
        resumo = f"{medias} alerta(s) de atenção encontrado(s). Recomenda-se verificação."

    return ValidacaoIdentificacaoResult(alertas=alertas, tudo_ok=False, mensagem_resumo=resumo)
