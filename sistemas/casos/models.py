# sistemas/casos/models.py
"""
Modelos SQLAlchemy de clientes e casos previdenciários
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship

from database.connection import Base, new_uuid
from utils.timezone import get_utc_now


class Client(Base):
    """Segurado atendido pelo escritório"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_uuid)
    nome = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    telefone = Column(String(30), nullable=True)
    cpf = Column(String(14), unique=True, nullable=False, index=True)
    data_nascimento = Column(String(10), nullable=True)  # DD/MM/YYYY
    avatar = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    cases = relationship("Case", back_populates="cliente", cascade="all, delete-orphan")
    deals = relationship("Deal", back_populates="cliente", cascade="all, delete-orphan")
    conversations = relationship("Conversation", back_populates="cliente", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Client(id={self.id}, nome='{self.nome}')>"


class Case(Base):
    """Caso (pedido de benefício, revisão, recurso...)"""
    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=new_uuid)
    cliente_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    titulo = Column(String(300), nullable=False)
    descricao = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default="Em Análise")
    prioridade = Column(String(20), nullable=False, default="média")
    tipo_beneficio = Column(String(100), nullable=True)
    tags = Column(JSON, default=list)
    documentos_upload = Column(Integer, default=0)
    documentos_analisados = Column(Integer, default=0)
    atribuido_a = Column(Integer, ForeignKey("users.id"), nullable=True)
    data_abertura = Column(DateTime(timezone=True), default=get_utc_now)
    data_ultima_atualizacao = Column(DateTime(timezone=True), default=get_utc_now)
    prazo_estimado = Column(DateTime(timezone=True), nullable=True)

    cliente = relationship("Client", back_populates="cases")
    activities = relationship(
        "Activity", back_populates="case", cascade="all, delete-orphan",
        order_by="Activity.timestamp.desc()",
    )
    comments = relationship(
        "Comment", back_populates="case", cascade="all, delete-orphan",
        order_by="Comment.timestamp.desc()",
    )


class Activity(Base):
    """Linha do tempo do caso"""
    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=new_uuid)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    tipo = Column(String(50), nullable=False)  # criacao, edicao, comentario, documento...
    descricao = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=get_utc_now)
    # "metadata" é reservado pelo declarative
    metadados = Column("metadata", JSON, nullable=True)

    case = relationship("Case", back_populates="activities")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    case_id = Column(String(36), ForeignKey("cases.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    conteudo = Column(Text, nullable=False)
    is_internal = Column(Boolean, default=False)
    timestamp = Column(DateTime(timezone=True), default=get_utc_now)

    case = relationship("Case", back_populates="comments")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=new_uuid)
    nome = Column(String(100), unique=True, nullable=False)
    cor = Column(String(20), nullable=False, default="#6B7280")
