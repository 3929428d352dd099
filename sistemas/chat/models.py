# sistemas/chat/models.py
"""
Conversas de atendimento com clientes e suas mensagens
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from database.connection import Base, new_uuid
from utils.timezone import get_utc_now


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=new_uuid)
    cliente_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    atribuido_a = Column(Integer, ForeignKey("users.id"), nullable=True)
    canal = Column(String(30), nullable=False, default="interno")  # interno, whatsapp, email
    status = Column(String(20), nullable=False, default="aberto")  # aberto, pendente, fechado
    ultima_mensagem_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)

    cliente = relationship("Client", back_populates="conversations")
    messages = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan",
        order_by="Message.timestamp",
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_uuid)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False, index=True)
    remetente_id = Column(String(50), nullable=True)
    remetente_tipo = Column(String(20), nullable=False)  # 'usuario' ou 'cliente'
    conteudo = Column(Text, nullable=False)
    tipo_mensagem = Column(String(20), nullable=False, default="text")
    lida = Column(Boolean, default=False)
    timestamp = Column(DateTime(timezone=True), default=get_utc_now)

    conversation = relationship("Conversation", back_populates="messages")
