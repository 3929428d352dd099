# sistemas/chat/schemas.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from utils.schemas import CamelModel


class ConversationCreate(CamelModel):
    cliente_id: str
    atribuido_a: Optional[int] = None
    canal: str = "interno"
    status: str = "aberto"


class ConversationUpdate(CamelModel):
    atribuido_a: Optional[int] = None
    canal: Optional[str] = None
    status: Optional[str] = None


class ConversationResponse(CamelModel):
    id: str
    cliente_id: str
    atribuido_a: Optional[int] = None
    canal: str
    status: str
    ultima_mensagem_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ConversationListItem(ConversationResponse):
    """Conversa enriquecida para a lista lateral do chat"""
    cliente_nome: Optional[str] = None
    ultima_mensagem: Optional[str] = None
    nao_lidas: int = 0


class MessageCreate(CamelModel):
    conteudo: str = Field(..., min_length=1)
    remetente_tipo: str = Field("usuario", pattern="^(usuario|cliente)$")
    remetente_id: Optional[str] = None
    tipo_mensagem: str = "text"


class MessageResponse(CamelModel):
    id: str
    conversation_id: str
    remetente_id: Optional[str] = None
    remetente_tipo: str
    conteudo: str
    tipo_mensagem: str
    lida: bool
    timestamp: Optional[datetime] = None
