# sistemas/crm/services.py
"""
Seed e consultas do funil comercial
"""

import logging

from sqlalchemy.orm import Session

from sistemas.crm.models import PipelineStage

logger = logging.getLogger(__name__)

# (nome, ordem, cor)
DEFAULT_STAGES = [
    ("Lead", 1, "#6B7280"),
    ("Contato Inicial", 2, "#3B82F6"),
    ("Qualificação", 3, "#8B5CF6"),
    ("Proposta", 4, "#F59E0B"),
    ("Fechamento", 5, "#10B981"),
]


def seed_pipeline_stages(db: Session) -> int:
    """Cria os estágios padrão se a tabela estiver vazia. Retorna quantos criou."""
    if db.query(PipelineStage).count() > 0:
        return 0

    for nome, ordem, cor in DEFAULT_STAGES:
        db.add(PipelineStage(nome=nome, ordem=ordem, cor=cor))
    db.commit()

    logger.info("Estágios padrão do funil criados: %d", len(DEFAULT_STAGES))
    return len(DEFAULT_STAGES)
