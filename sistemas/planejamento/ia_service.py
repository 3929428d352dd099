# sistemas/planejamento/ia_service.py
"""
Chamadas de IA do Planejamento Previdenciário (Google Gemini)

- extrair_dados: PDFs -> dadosExtraidos normalizados
- gerar_parecer / gerar_resumo_executivo / analisar_ata: texto Markdown
- importar_calculo: relatório de cálculo externo -> JSON de cenários
- analisar_cnis_detalhado / analisar_documento_comparativo: JSON estruturado
  usado pelo pipeline de análise do CNIS
"""

import json
import logging
import re
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from services.gemini_service import (
    GeminiError,
    chamar_gemini,
    chamar_gemini_com_documentos,
    gemini_service,
)
from sistemas.planejamento.json_utils import sanitize_and_parse_json
from sistemas.planejamento.prompts import (
    PROMPT_ATA,
    PROMPT_CALCULO_EXTERNO,
    PROMPT_CNIS_DETALHADO,
    PROMPT_COMPARATIVO,
    PROMPT_EXTRACAO,
    PROMPT_RESUMO_EXECUTIVO,
    montar_prompt,
    prompt_parecer,
)
from utils.schemas import CamelModel
from utils.timezone import data_hoje_br

logger = logging.getLogger(__name__)

PROVEDOR_PADRAO = "gemini"

MAX_TOKENS_EXTRACAO = 4096
MAX_TOKENS_PARECER = 8000
MAX_TOKENS_ATA = 4096
MAX_TOKENS_RESUMO = 2048
MAX_TOKENS_CNIS = 8192

_OBJETO_JSON = re.compile(r"\{[\s\S]*\}")
_NUMERO_INICIAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")


# =====================================================
# SCHEMA DOS DADOS EXTRAÍDOS
# =====================================================

TIPOS_VINCULO = (
    "CLT", "Autonomo", "MEI", "Contribuinte Individual", "Facultativo",
    "Empregado Doméstico", "Segurado Especial", "Outro",
)


class TempoContribuicao(CamelModel):
    anos: Optional[Union[int, float]] = 0
    meses: Optional[Union[int, float]] = 0


class VinculoExtraido(CamelModel):
    empresa: str = ""
    inicio: str = ""
    fim: Optional[str] = None
    tipo: Literal[
        "CLT", "Autonomo", "MEI", "Contribuinte Individual", "Facultativo",
        "Empregado Doméstico", "Segurado Especial", "Outro",
    ] = "CLT"

    @field_validator("tipo", mode="before")
    @classmethod
    def tipo_conhecido(cls, v):
        if v is None:
            return "CLT"
        return v if v in TIPOS_VINCULO else "Outro"


def _texto_para_numero(valor: str) -> float:
    """Primeiro número do texto após limpar símbolos ("R$ 3500,50" -> 3500.5)."""
    limpo = re.sub(r"[^\d.,-]", "", valor).replace(",", ".", 1)
    match = _NUMERO_INICIAL.match(limpo)
    return float(match.group(0)) if match else 0


class SalarioExtraido(CamelModel):
    competencia: str = ""
    valor: Optional[Union[int, float]] = 0

    @field_validator("valor", mode="before")
    @classmethod
    def valor_numerico(cls, v):
        if isinstance(v, str):
            return _texto_para_numero(v)
        return v


class Carencias(CamelModel):
    cumprida: Optional[bool] = False
    meses_contribuidos: Optional[Union[int, float]] = 0


class DadosExtraidos(CamelModel):
    """Campos ausentes recebem valores padrão; campos extras são mantidos."""

    model_config = ConfigDict(extra="allow")

    nome: str = ""
    cpf: str = ""
    data_nascimento: Optional[str] = None
    tempo_contribuicao: TempoContribuicao = Field(default_factory=TempoContribuicao)
    vinculos: List[VinculoExtraido] = Field(default_factory=list)
    salarios: List[SalarioExtraido] = Field(default_factory=list)
    carencias: Carencias = Field(default_factory=Carencias)

    @field_validator("nome", "cpf", mode="before")
    @classmethod
    def texto_ou_vazio(cls, v):
        return "" if v is None else v

    @field_validator("tempo_contribuicao", "carencias", mode="before")
    @classmethod
    def objeto_ou_padrao(cls, v):
        return {} if v is None else v

    @field_validator("vinculos", "salarios", mode="before")
    @classmethod
    def lista_ou_vazia(cls, v):
        return [] if v is None else v


def normalizar_dados_extraidos(dados: Dict[str, Any]) -> Dict[str, Any]:
    return DadosExtraidos.model_validate(dados).model_dump(by_alias=True)


# =====================================================
# AUXILIARES
# =====================================================

def get_available_providers() -> List[str]:
    return [PROVEDOR_PADRAO] if gemini_service.is_configured() else []


def _verificar_provedor(provider: Optional[str]):
    if not gemini_service.is_configured():
        raise GeminiError("Nenhum provedor de IA disponível")
    if provider and provider != PROVEDOR_PADRAO:
        raise GeminiError(f"Provedor de IA não suportado: {provider}")


def _extrair_json(resposta: str) -> Any:
    """Recorta o objeto JSON da resposta e faz o parse com reparo."""
    match = _OBJETO_JSON.search(resposta or "")
    if not match:
        logger.error("Resposta da IA não contém JSON: %s", (resposta or "")[:500])
        raise ValueError("Não foi possível extrair JSON da resposta da IA")
    return sanitize_and_parse_json(match.group(0))


# =====================================================
# OPERAÇÕES
# =====================================================

async def extrair_dados(pdfs: List[bytes], provider: Optional[str] = None) -> Dict[str, Any]:
    _verificar_provedor(provider)
    logger.info("Extraindo dados de %d documento(s)", len(pdfs))

    resposta = await chamar_gemini_com_documentos(
        PROMPT_EXTRACAO, pdfs, max_tokens=MAX_TOKENS_EXTRACAO, json_output=True,
    )
    dados = _extrair_json(resposta)
    if not isinstance(dados, dict):
        raise ValueError("JSON retornado pela IA é inválido")
    return normalizar_dados_extraidos(dados)


async def gerar_parecer(dados: Dict[str, Any], contexto: Optional[Dict[str, Any]] = None,
                        provider: Optional[str] = None) -> str:
    _verificar_provedor(provider)
    return await chamar_gemini(
        prompt_parecer(dados, contexto), max_tokens=MAX_TOKENS_PARECER, temperature=0.4,
    )


async def analisar_ata(texto_ata: str) -> str:
    _verificar_provedor(None)
    return await chamar_gemini(
        montar_prompt(PROMPT_ATA, texto_ata=texto_ata), max_tokens=MAX_TOKENS_ATA,
    )


async def importar_calculo(pdf: bytes) -> Dict[str, Any]:
    _verificar_provedor(None)
    resposta = await chamar_gemini_com_documentos(
        PROMPT_CALCULO_EXTERNO, [pdf], max_tokens=MAX_TOKENS_EXTRACAO, json_output=True,
    )
    return _extrair_json(resposta)


async def gerar_resumo_executivo(parecer: str) -> str:
    _verificar_provedor(None)
    return await chamar_gemini(
        montar_prompt(PROMPT_RESUMO_EXECUTIVO, parecer=parecer), max_tokens=MAX_TOKENS_RESUMO,
    )


async def analisar_cnis_detalhado(pdf: bytes) -> Dict[str, Any]:
    """
    Retorna identificacao, vinculos, contribuicoesPorVinculo, resumoGeral e
    alertas, no formato descrito em PROMPT_CNIS_DETALHADO.
    """
    _verificar_provedor(None)
    prompt = montar_prompt(PROMPT_CNIS_DETALHADO, data_hoje=data_hoje_br())

    resposta = await chamar_gemini_com_documentos(
        prompt, [pdf], max_tokens=MAX_TOKENS_CNIS, temperature=0.1, json_output=True,
    )
    resultado = _extrair_json(resposta)
    if not isinstance(resultado, dict):
        raise ValueError("JSON retornado pela IA é inválido")

    logger.info(
        "CNIS analisado: %d vínculo(s), %d alerta(s)",
        len(resultado.get("vinculos") or []), len(resultado.get("alertas") or []),
    )
    return resultado


async def analisar_documento_comparativo(documento: bytes, tipo_documento: str,
                                         vinculos: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Cruza um documento (CTPS, PPP, FGTS...) com os vínculos do CNIS."""
    _verificar_provedor(None)
    prompt = montar_prompt(
        PROMPT_COMPARATIVO,
        tipo_documento=tipo_documento,
        vinculos=json.dumps(vinculos, indent=2, ensure_ascii=False),
    )

    resposta = await chamar_gemini_com_documentos(
        prompt, [documento], max_tokens=MAX_TOKENS_CNIS, json_output=True,
    )
    resultado = _extrair_json(resposta)
    if not isinstance(resultado, dict):
        raise ValueError("JSON retornado pela IA é inválido")

    logger.info(
        "Cruzamento %s: %d inconsistência(s), %d pendência(s)",
        tipo_documento,
        len(resultado.get("inconsistencias") or []),
        len(resultado.get("pendencias") or []),
    )
    return resultado
