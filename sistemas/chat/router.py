# sistemas/chat/router.py
"""
Endpoints do chat de atendimento
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_active_user
from auth.models import User
from database.connection import get_db
from sistemas.casos.services import get_client_or_404
from sistemas.chat.models import Conversation, Message
from sistemas.chat.schemas import (
    ConversationCreate, ConversationListItem, ConversationResponse, ConversationUpdate,
    MessageCreate, MessageResponse,
)
from sistemas.chat import services

router = APIRouter(prefix="/api/conversations", tags=["Chat"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=List[ConversationListItem])
async def listar_conversas(db: Session = Depends(get_db)):
    return services.listar_conversas(db)


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def criar_conversa(dados: ConversationCreate, db: Session = Depends(get_db)):
    get_client_or_404(db, dados.cliente_id)
    conversa = Conversation(**dados.model_dump())
    db.add(conversa)
    db.commit()
    db.refresh(conversa)
    return conversa


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def obter_conversa(conversation_id: str, db: Session = Depends(get_db)):
    return services.get_conversation_or_404(db, conversation_id)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def atualizar_conversa(conversation_id: str, dados: ConversationUpdate, db: Session = Depends(get_db)):
    conversa = services.get_conversation_or_404(db, conversation_id)
    for field, value in dados.model_dump(exclude_unset=True).items():
        setattr(conversa, field, value)
    db.commit()
    db.refresh(conversa)
    return conversa


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_conversa(conversation_id: str, db: Session = Depends(get_db)):
    """Exclui a conversa e todas as suas mensagens."""
    conversa = services.get_conversation_or_404(db, conversation_id)
    db.delete(conversa)
    db.commit()


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def listar_mensagens(conversation_id: str, db: Session = Depends(get_db)):
    services.get_conversation_or_404(db, conversation_id)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.timestamp.asc())
        .all()
    )


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def enviar_mensagem(
    conversation_id: str,
    dados: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    conversa = services.get_conversation_or_404(db, conversation_id)
    remetente_id = dados.remetente_id
    if remetente_id is None and dados.remetente_tipo == "usuario":
        remetente_id = str(current_user.id)
    return services.enviar_mensagem(
        db, conversa, dados.conteudo, dados.remetente_tipo, remetente_id, dados.tipo_mensagem
    )


@router.post("/{conversation_id}/read")
async def marcar_como_lidas(conversation_id: str, db: Session = Depends(get_db)):
    conversa = services.get_conversation_or_404(db, conversation_id)
    atualizadas = services.marcar_como_lidas(db, conversa)
    return {"success": True, "atualizadas": atualizadas}
