# sistemas/crm/models.py
"""
Modelos do funil comercial (estágios e negociações)
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship

from database.connection import Base, new_uuid
from utils.timezone import get_utc_now


class PipelineStage(Base):
    __tablename__ = "pipeline_stages"

    id = Column(String(36), primary_key=True, default=new_uuid)
    nome = Column(String(100), nullable=False)
    ordem = Column(Integer, nullable=False, default=0)
    cor = Column(String(20), nullable=False, default="#6B7280")

    deals = relationship("Deal", back_populates="stage")


class Deal(Base):
    """Negociação com um cliente, posicionada num estágio do funil"""
    __tablename__ = "deals"

    id = Column(String(36), primary_key=True, default=new_uuid)
    cliente_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    titulo = Column(String(300), nullable=False)
    valor = Column(Float, nullable=True)
    stage_id = Column(String(36), ForeignKey("pipeline_stages.id"), nullable=True, index=True)
    responsavel_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    descricao = Column(Text, nullable=True)
    data_fechamento = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now)

    cliente = relationship("Client", back_populates="deals")
    stage = relationship("PipelineStage", back_populates="deals")
