# sistemas/planejamento/models.py
"""
Modelos SQLAlchemy do Planejamento Previdenciário
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship

from database.connection import Base, new_uuid
from utils.timezone import get_utc_now

STATUS_PLANEJAMENTO = (
    "rascunho", "uploaded", "processing", "processed", "error", "parecer_gerado", "arquivado",
)
TIPOS_DOCUMENTO = ("CNIS", "CTPS", "PPP", "FGTS")


class Planejamento(Base):
    """Planejamento de aposentadoria de um segurado"""
    __tablename__ = "planejamentos"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    cliente_nome = Column(String(200), nullable=False)
    cliente_cpf = Column(String(14), nullable=False)

    # =====================================================
    # RESULTADOS DA IA
    # =====================================================
    dados_extraidos = Column(Text, nullable=True)  # JSON serializado
    parecer_gerado = Column(Text, nullable=True)  # Markdown
    resumo_ata = Column(Text, nullable=True)
    dados_calculo_externo = Column(JSON, nullable=True)
    resumo_executivo = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="uploaded")
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    documentos = relationship(
        "DocumentoPlanejamento", back_populates="planejamento",
        cascade="all, delete-orphan", order_by="DocumentoPlanejamento.created_at",
    )
    vinculos = relationship(
        "VinculoCnis", back_populates="planejamento",
        cascade="all, delete-orphan", order_by="VinculoCnis.sequencia",
    )
    inconsistencias = relationship("Inconsistencia", cascade="all, delete-orphan")
    pendencias = relationship("Pendencia", cascade="all, delete-orphan")
    analises_competencias = relationship("AnaliseCompetencia", cascade="all, delete-orphan")
    problemas_remuneracao = relationship("ProblemaRemuneracao", cascade="all, delete-orphan")
    identificacao = relationship("IdentificacaoCnis", uselist=False, cascade="all, delete-orphan")
    alertas_identificacao = relationship("AlertaIdentificacao", cascade="all, delete-orphan")
    checklist = relationship("ChecklistValidacao", uselist=False, cascade="all, delete-orphan")


class DocumentoPlanejamento(Base):
    __tablename__ = "documentos_planejamento"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    nome_arquivo = Column(String(500), nullable=False)
    tipo_documento = Column(String(10), nullable=False)  # CNIS, CTPS, PPP, FGTS
    arquivo_url = Column(String(500), nullable=False)  # relativo a UPLOAD_FOLDER
    created_at = Column(DateTime(timezone=True), default=get_utc_now)

    planejamento = relationship("Planejamento", back_populates="documentos")


# =====================================================
# CNIS
# =====================================================

class VinculoCnis(Base):
    """Vínculo empregatício ou período de contribuição extraído do CNIS"""
    __tablename__ = "vinculos_cnis"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    sequencia = Column(Integer, nullable=False)
    nit = Column(String(30), nullable=True)
    empregador = Column(String(300), nullable=False)
    cnpj_cpf = Column(String(30), nullable=True)
    tipo_vinculo = Column(String(100), nullable=True)
    data_inicio = Column(String(10), nullable=True)  # DD/MM/YYYY
    data_fim = Column(String(10), nullable=True)
    ultima_remuneracao = Column(String(50), nullable=True)
    indicadores = Column(JSON, default=list)
    observacoes = Column(Text, nullable=True)
    origem_documento = Column(String(20), nullable=False, default="CNIS")
    created_at = Column(DateTime(timezone=True), default=get_utc_now)

    planejamento = relationship("Planejamento", back_populates="vinculos")
    contribuicoes = relationship(
        "ContribuicaoCnis", back_populates="vinculo",
        cascade="all, delete-orphan", order_by="ContribuicaoCnis.created_at",
    )
    problemas_remuneracao = relationship("ProblemaRemuneracao", cascade="all")


class ContribuicaoCnis(Base):
    __tablename__ = "contribuicoes_cnis"

    id = Column(String(36), primary_key=True, default=new_uuid)
    vinculo_id = Column(String(36), ForeignKey("vinculos_cnis.id"), nullable=False, index=True)
    competencia = Column(String(7), nullable=False)  # MM/YYYY
    remuneracao = Column(String(50), nullable=True)
    indicadores = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)

    vinculo = relationship("VinculoCnis", back_populates="contribuicoes")


class IdentificacaoCnis(Base):
    __tablename__ = "identificacao_cnis"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, unique=True)
    nome_completo = Column(String(200), nullable=True)
    cpf = Column(String(14), nullable=True)
    nome_mae = Column(String(200), nullable=True)
    nits = Column(JSON, default=list)
    data_nascimento = Column(String(10), nullable=True)
    validada = Column(Boolean, default=False)
    validada_por = Column(Integer, ForeignKey("users.id"), nullable=True)
    validada_em = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)


class AlertaIdentificacao(Base):
    __tablename__ = "alertas_identificacao"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    tipo = Column(String(30), nullable=False)
    gravidade = Column(String(10), nullable=False, default="media")
    mensagem = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)


class ChecklistValidacao(Base):
    """Os três pilares conferidos pelo advogado antes do parecer"""
    __tablename__ = "checklist_validacao"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, unique=True)
    identificacao_confirmada = Column(Boolean, default=False)
    identificacao_confirmada_em = Column(DateTime(timezone=True), nullable=True)
    vinculos_extraidos = Column(Boolean, default=False)
    vinculos_extraidos_em = Column(DateTime(timezone=True), nullable=True)
    remuneracoes_analisadas = Column(Boolean, default=False)
    remuneracoes_analisadas_em = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)


# =====================================================
# ANÁLISES E PENDÊNCIAS
# =====================================================

class Inconsistencia(Base):
    """Divergência encontrada no cruzamento de documentos"""
    __tablename__ = "inconsistencias"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    tipo = Column(String(50), nullable=False)
    gravidade = Column(String(10), nullable=False, default="media")  # critica, alta, media, baixa
    titulo = Column(String(300), nullable=False)
    descricao = Column(Text, nullable=False)
    documento_origem = Column(String(20), nullable=True)
    documento_comparacao = Column(String(20), nullable=True)
    vinculo_id = Column(String(36), ForeignKey("vinculos_cnis.id"), nullable=True)
    dados_origem = Column(JSON, nullable=True)
    dados_comparacao = Column(JSON, nullable=True)
    sugestao_correcao = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pendente")
    created_at = Column(DateTime(timezone=True), default=get_utc_now)


class Pendencia(Base):
    """Ação que o advogado precisa tomar antes do pedido de benefício"""
    __tablename__ = "pendencias"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    titulo = Column(String(300), nullable=False)
    descricao = Column(Text, nullable=False)
    tipo = Column(String(50), nullable=False)
    prioridade = Column(String(10), nullable=False, default="media")  # urgente, alta, media, baixa
    acao_necessaria = Column(Text, nullable=True)
    documentos_necessarios = Column(JSON, default=list)
    vinculo_id = Column(String(36), ForeignKey("vinculos_cnis.id"), nullable=True)
    inconsistencia_id = Column(String(36), ForeignKey("inconsistencias.id"), nullable=True)
    status = Column(String(20), nullable=False, default="aberta")
    observacoes = Column(Text, nullable=True)
    impacta_calculo = Column(Boolean, default=False)
    contexto = Column(Text, nullable=True)
    resolvida_em = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)


class AnaliseCompetencia(Base):
    __tablename__ = "analise_competencias"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    vinculo_id = Column(String(36), nullable=False)
    vinculo_sequencia = Column(Integer, nullable=False)
    empregador = Column(String(300), nullable=False)
    meses_esperados = Column(Integer, nullable=False, default=0)
    meses_registrados = Column(Integer, nullable=False, default=0)
    meses_faltantes = Column(JSON, nullable=False, default=list)
    impacto = Column(String(10), nullable=False, default="baixo")
    mensagem = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)


class ProblemaRemuneracao(Base):
    __tablename__ = "problemas_remuneracao"

    id = Column(String(36), primary_key=True, default=new_uuid)
    planejamento_id = Column(String(36), ForeignKey("planejamentos.id"), nullable=False, index=True)
    vinculo_id = Column(String(36), ForeignKey("vinculos_cnis.id"), nullable=False, index=True)
    competencia = Column(String(7), nullable=False)
    valor = Column(String(50), nullable=True)
    tipo = Column(String(20), nullable=False)  # zerada, muito_baixa, ausente
    gravidade = Column(String(10), nullable=False, default="media")
    mensagem = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
