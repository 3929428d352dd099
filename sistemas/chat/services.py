# sistemas/chat/services.py
"""
Consultas e regras do chat de atendimento
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from sistemas.chat.models import Conversation, Message
from sistemas.chat.schemas import ConversationListItem
from utils.timezone import get_utc_now


def get_conversation_or_404(db: Session, conversation_id: str) -> Conversation:
    conversa = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversa:
        raise HTTPException(status_code=404, detail="Conversa não encontrada")
    return conversa


def _momento_ordenacao(conversa: Conversation) -> datetime:
    momento = conversa.ultima_mensagem_at or conversa.created_at
    if momento is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    # SQLite devolve datetimes naive
    if momento.tzinfo is None:
        momento = momento.replace(tzinfo=timezone.utc)
    return momento


def listar_conversas(db: Session) -> List[ConversationListItem]:
    """Conversas com nome do cliente, última mensagem e não lidas, mais recentes primeiro."""
    conversas = sorted(db.query(Conversation).all(), key=_momento_ordenacao, reverse=True)

    itens = []
    for conversa in conversas:
        mensagens = conversa.messages
        item = ConversationListItem.model_validate(conversa)
        item.cliente_nome = conversa.cliente.nome if conversa.cliente else None
        item.ultima_mensagem = mensagens[-1].conteudo if mensagens else None
        item.nao_lidas = sum(1 for m in mensagens if not m.lida and m.remetente_tipo == "cliente")
        itens.append(item)
    return itens


def enviar_mensagem(
    db: Session,
    conversa: Conversation,
    conteudo: str,
    remetente_tipo: str,
    remetente_id: Optional[str],
    tipo_mensagem: str = "text",
) -> Message:
    mensagem = Message(
        conversation_id=conversa.id,
        remetente_id=remetente_id,
        remetente_tipo=remetente_tipo,
        conteudo=conteudo,
        tipo_mensagem=tipo_mensagem,
    )
    db.add(mensagem)
    conversa.ultima_mensagem_at = get_utc_now()
    db.commit()
    db.refresh(mensagem)
    return mensagem


def marcar_como_lidas(db: Session, conversa: Conversation) -> int:
    atualizadas = (
        db.query(Message)
        .filter(Message.conversation_id == conversa.id, Message.lida == False)  # noqa: E712
        .update({Message.lida: True}, synchronize_session=False)
    )
    db.commit()
    return atualizadas
