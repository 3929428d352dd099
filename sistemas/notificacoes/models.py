# sistemas/notificacoes/models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from database.connection import Base, new_uuid
from utils.timezone import get_utc_now

TIPOS_NOTIFICACAO = ("pendencia", "documento", "prazo", "sucesso")


class Notificacao(Base):
    """Aviso exibido no sino do painel"""
    __tablename__ = "notificacoes"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tipo = Column(String(20), nullable=False)
    titulo = Column(String(300), nullable=False)
    descricao = Column(Text, nullable=False)
    lida = Column(Boolean, default=False)
    caso_nome = Column(String(300), nullable=True)
    timestamp = Column(DateTime(timezone=True), default=get_utc_now)

    user = relationship("User", back_populates="notificacoes")
