# sistemas/casos/schemas.py
"""
Schemas Pydantic de clientes, casos, atividades, comentários e tags
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field

from utils.schemas import CamelModel


# ============================================
# Clientes
# ============================================

class ClientCreate(CamelModel):
    nome: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = None
    telefone: Optional[str] = None
    cpf: str = Field(..., min_length=11, max_length=14)
    data_nascimento: Optional[str] = None
    avatar: Optional[str] = None


class ClientUpdate(CamelModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    telefone: Optional[str] = None
    cpf: Optional[str] = Field(None, min_length=11, max_length=14)
    data_nascimento: Optional[str] = None
    avatar: Optional[str] = None


class ClientResponse(CamelModel):
    id: str
    nome: str
    email: Optional[str] = None
    telefone: Optional[str] = None
    cpf: str
    data_nascimento: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================
# Casos
# ============================================

class CaseCreate(CamelModel):
    cliente_id: str
    titulo: str = Field(..., min_length=1, max_length=300)
    descricao: Optional[str] = None
    status: str = "Em Análise"
    prioridade: str = "média"
    tipo_beneficio: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    documentos_upload: int = 0
    documentos_analisados: int = 0
    atribuido_a: Optional[int] = None
    prazo_estimado: Optional[datetime] = None


class CaseUpdate(CamelModel):
    titulo: Optional[str] = Field(None, min_length=1, max_length=300)
    descricao: Optional[str] = None
    status: Optional[str] = None
    prioridade: Optional[str] = None
    tipo_beneficio: Optional[str] = None
    tags: Optional[List[str]] = None
    documentos_upload: Optional[int] = None
    documentos_analisados: Optional[int] = None
    atribuido_a: Optional[int] = None
    prazo_estimado: Optional[datetime] = None


class CaseResponse(CamelModel):
    id: str
    cliente_id: str
    titulo: str
    descricao: Optional[str] = None
    status: str
    prioridade: str
    tipo_beneficio: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    documentos_upload: int = 0
    documentos_analisados: int = 0
    atribuido_a: Optional[int] = None
    data_abertura: Optional[datetime] = None
    data_ultima_atualizacao: Optional[datetime] = None
    prazo_estimado: Optional[datetime] = None


# ============================================
# Atividades e comentários
# ============================================

class ActivityCreate(CamelModel):
    tipo: str = Field(..., min_length=1, max_length=50)
    descricao: str = Field(..., min_length=1)
    metadados: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("metadata", "metadados"),
        serialization_alias="metadata",
    )


class ActivityResponse(CamelModel):
    id: str
    case_id: str
    user_id: Optional[int] = None
    tipo: str
    descricao: str
    timestamp: Optional[datetime] = None
    # Lido do atributo ORM "metadados"; exposto como "metadata"
    metadados: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("metadados", "metadata"),
        serialization_alias="metadata",
    )


class CommentCreate(CamelModel):
    conteudo: str = Field(..., min_length=1)
    is_internal: bool = False


class CommentResponse(CamelModel):
    id: str
    case_id: str
    user_id: Optional[int] = None
    conteudo: str
    is_internal: bool = False
    timestamp: Optional[datetime] = None


# ============================================
# Tags
# ============================================

class TagCreate(CamelModel):
    nome: str = Field(..., min_length=1, max_length=100)
    cor: str = "#6B7280"


class TagResponse(CamelModel):
    id: str
    nome: str
    cor: str
