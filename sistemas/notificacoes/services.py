# sistemas/notificacoes/services.py
"""
Criação de notificações a partir de outros módulos
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from sistemas.notificacoes.models import Notificacao, TIPOS_NOTIFICACAO

logger = logging.getLogger(__name__)


def notificar(
    db: Session,
    user_id: int,
    tipo: str,
    titulo: str,
    descricao: str,
    caso_nome: Optional[str] = None,
) -> Notificacao:
    """Adiciona uma notificação para o usuário (sem commit)."""
    if tipo not in TIPOS_NOTIFICACAO:
        raise ValueError(f"Tipo de notificação inválido: {tipo}")

    notificacao = Notificacao(
        user_id=user_id,
        tipo=tipo,
        titulo=titulo,
        descricao=descricao,
        caso_nome=caso_nome,
    )
    db.add(notificacao)
    logger.debug("Notificação '%s' criada para usuário %s", titulo, user_id)
    return notificacao
