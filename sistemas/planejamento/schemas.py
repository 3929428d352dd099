# sistemas/planejamento/schemas.py
"""
Schemas Pydantic do Planejamento Previdenciário
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from utils.schemas import CamelModel


# ============================================
# Requests
# ============================================

class PlanejamentoCreate(CamelModel):
    nome_cliente: Optional[str] = None
    cpf_cliente: Optional[str] = None


class PlanejamentoUpdate(CamelModel):
    dados_extraidos: Optional[Any] = None
    parecer_gerado: Optional[str] = None
    cliente_nome: Optional[str] = None
    cliente_cpf: Optional[str] = None


class ProcessarRequest(CamelModel):
    planejamento_id: Optional[str] = None
    provider: Optional[str] = None


class AnalisarAtaRequest(CamelModel):
    texto_ata: Optional[str] = None


class AnalisarCnisRequest(CamelModel):
    documento_id: Optional[str] = None


class PendenciaUpdate(CamelModel):
    status: Optional[str] = None
    observacoes: Optional[str] = None


class ParecerRequest(CamelModel):
    parecer: Optional[str] = None


class ChecklistRequest(CamelModel):
    pilar: Optional[str] = None
    valor: Any = None


class ObservacoesRequest(CamelModel):
    # Tipo validado no endpoint para devolver a mensagem em português
    observacoes: Any = None


# ============================================
# Responses
# ============================================

class DocumentoResponse(CamelModel):
    id: str
    planejamento_id: str
    nome_arquivo: str
    tipo_documento: str
    arquivo_url: str
    created_at: Optional[datetime] = None


class PlanejamentoResponse(CamelModel):
    id: str
    user_id: int
    cliente_nome: str
    cliente_cpf: str
    dados_extraidos: Optional[Any] = None
    parecer_gerado: Optional[str] = None
    resumo_ata: Optional[str] = None
    dados_calculo_externo: Optional[Any] = None
    resumo_executivo: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlanejamentoDetalhe(PlanejamentoResponse):
    """Planejamento com documentos e dadosExtraidos já convertido de JSON."""

    documentos: List[DocumentoResponse] = Field(default_factory=list)

    @field_validator("dados_extraidos", mode="before")
    @classmethod
    def parse_dados(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except ValueError:
                return v
        return v


class ContribuicaoResponse(CamelModel):
    id: str
    vinculo_id: str
    competencia: str
    remuneracao: Optional[str] = None
    indicadores: List[Any] = Field(default_factory=list)


class RemuneracaoResponse(ContribuicaoResponse):
    empregador: str
    vinculo_sequencia: int


class VinculoResponse(CamelModel):
    id: str
    planejamento_id: str
    sequencia: int
    nit: Optional[str] = None
    empregador: str
    cnpj_cpf: Optional[str] = None
    tipo_vinculo: Optional[str] = None
    data_inicio: Optional[str] = None
    data_fim: Optional[str] = None
    ultima_remuneracao: Optional[str] = None
    indicadores: List[Any] = Field(default_factory=list)
    observacoes: Optional[str] = None
    origem_documento: str = "CNIS"


class VinculoComContribuicoes(VinculoResponse):
    contribuicoes: List[ContribuicaoResponse] = Field(default_factory=list)


class InconsistenciaResponse(CamelModel):
    id: str
    planejamento_id: str
    tipo: str
    gravidade: str
    titulo: str
    descricao: str
    documento_origem: Optional[str] = None
    documento_comparacao: Optional[str] = None
    vinculo_id: Optional[str] = None
    dados_origem: Optional[Any] = None
    dados_comparacao: Optional[Any] = None
    sugestao_correcao: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class PendenciaResponse(CamelModel):
    id: str
    planejamento_id: str
    titulo: str
    descricao: str
    tipo: str
    prioridade: str
    acao_necessaria: Optional[str] = None
    documentos_necessarios: List[Any] = Field(default_factory=list)
    vinculo_id: Optional[str] = None
    inconsistencia_id: Optional[str] = None
    status: str
    observacoes: Optional[str] = None
    impacta_calculo: Optional[bool] = False
    contexto: Optional[str] = None
    resolvida_em: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AnaliseCompetenciaResponse(CamelModel):
    vinculo_id: str
    vinculo_sequencia: int
    empregador: str
    meses_esperados: int
    meses_registrados: int
    meses_faltantes: List[str] = Field(default_factory=list)
    impacto: str
    mensagem: Optional[str] = ""


class CompetenciasResponse(CamelModel):
    analises: List[AnaliseCompetenciaResponse]
    resumo: Dict[str, int]
    source: str


class ProblemaRemuneracaoResponse(CamelModel):
    id: str
    planejamento_id: str
    vinculo_id: str
    competencia: str
    valor: Optional[str] = None
    tipo: str
    gravidade: str
    mensagem: str
    created_at: Optional[datetime] = None


class IdentificacaoResponse(CamelModel):
    id: str
    planejamento_id: str
    nome_completo: Optional[str] = None
    cpf: Optional[str] = None
    nome_mae: Optional[str] = None
    nits: List[Any] = Field(default_factory=list)
    data_nascimento: Optional[str] = None
    validada: bool = False
    validada_por: Optional[int] = None
    validada_em: Optional[datetime] = None


class AlertaIdentificacaoResponse(CamelModel):
    id: str
    planejamento_id: str
    tipo: str
    gravidade: str
    mensagem: str
    created_at: Optional[datetime] = None


class ChecklistResponse(CamelModel):
    id: str
    planejamento_id: str
    identificacao_confirmada: bool = False
    identificacao_confirmada_em: Optional[datetime] = None
    vinculos_extraidos: bool = False
    vinculos_extraidos_em: Optional[datetime] = None
    remuneracoes_analisadas: bool = False
    remuneracoes_analisadas_em: Optional[datetime] = None
    updated_at: Optional[datetime] = None
