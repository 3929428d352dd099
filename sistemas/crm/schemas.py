# sistemas/crm/schemas.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from utils.schemas import CamelModel


class PipelineStageCreate(CamelModel):
    nome: str = Field(..., min_length=1, max_length=100)
    ordem: int = 0
    cor: str = "#6B7280"


class PipelineStageUpdate(CamelModel):
    nome: Optional[str] = Field(None, min_length=1, max_length=100)
    ordem: Optional[int] = None
    cor: Optional[str] = None


class PipelineStageResponse(CamelModel):
    id: str
    nome: str
    ordem: int
    cor: str


class DealCreate(CamelModel):
    cliente_id: str
    titulo: str = Field(..., min_length=1, max_length=300)
    valor: Optional[float] = None
    stage_id: Optional[str] = None
    responsavel_id: Optional[int] = None
    descricao: Optional[str] = None
    data_fechamento: Optional[datetime] = None


class DealUpdate(CamelModel):
    titulo: Optional[str] = Field(None, min_length=1, max_length=300)
    valor: Optional[float] = None
    stage_id: Optional[str] = None
    responsavel_id: Optional[int] = None
    descricao: Optional[str] = None
    data_fechamento: Optional[datetime] = None


class DealResponse(CamelModel):
    id: str
    cliente_id: str
    titulo: str
    valor: Optional[float] = None
    stage_id: Optional[str] = None
    responsavel_id: Optional[int] = None
    descricao: Optional[str] = None
    data_fechamento: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
