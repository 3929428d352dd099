# sistemas/notificacoes/schemas.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from utils.schemas import CamelModel


class NotificacaoCreate(CamelModel):
    tipo: str = Field(..., pattern="^(pendencia|documento|prazo|sucesso)$")
    titulo: str = Field(..., min_length=1, max_length=300)
    descricao: str = Field(..., min_length=1)
    caso_nome: Optional[str] = None


class NotificacaoResponse(CamelModel):
    id: str
    tipo: str
    titulo: str
    descricao: str
    timestamp: Optional[datetime] = None
    lida: bool = False
    caso_nome: Optional[str] = None
