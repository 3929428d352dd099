# sistemas/casos/services.py
"""
Regras de negócio de clientes e casos

Toda alteração relevante num caso gera uma Activity na linha do tempo.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from sistemas.casos.models import Client, Case, Activity, Comment
from utils.timezone import get_utc_now

logger = logging.getLogger(__name__)


def get_client_or_404(db: Session, client_id: str) -> Client:
    cliente = db.query(Client).filter(Client.id == client_id).first()
    if not cliente:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")
    return cliente


def get_case_or_404(db: Session, case_id: str) -> Case:
    caso = db.query(Case).filter(Case.id == case_id).first()
    if not caso:
        raise HTTPException(status_code=404, detail="Caso não encontrado")
    return caso


def cpf_em_uso(db: Session, cpf: str, ignorar_id: Optional[str] = None) -> bool:
    query = db.query(Client).filter(Client.cpf == cpf)
    if ignorar_id:
        query = query.filter(Client.id != ignorar_id)
    return db.query(query.exists()).scalar()


def registrar_atividade(
    db: Session,
    case_id: str,
    tipo: str,
    descricao: str,
    user_id: Optional[int] = None,
    metadados: Optional[Dict[str, Any]] = None,
) -> Activity:
    """Adiciona uma atividade ao caso (sem commit)."""
    atividade = Activity(
        case_id=case_id,
        user_id=user_id,
        tipo=tipo,
        descricao=descricao,
        metadados=metadados,
    )
    db.add(atividade)
    return atividade


def criar_caso(db: Session, dados: Dict[str, Any], user_id: Optional[int]) -> Case:
    get_client_or_404(db, dados["cliente_id"])

    caso = Case(**dados)
    db.add(caso)
    db.flush()

    registrar_atividade(db, caso.id, "criacao", f"Caso criado: {caso.titulo}", user_id=user_id)
    db.commit()
    db.refresh(caso)

    logger.info("Caso criado: %s (cliente %s)", caso.id, caso.cliente_id)
    return caso


def atualizar_caso(db: Session, caso: Case, dados: Dict[str, Any], user_id: Optional[int]) -> Case:
    for field, value in dados.items():
        setattr(caso, field, value)
    caso.data_ultima_atualizacao = get_utc_now()

    registrar_atividade(
        db, caso.id, "edicao", "Caso atualizado",
        user_id=user_id,
        metadados={"campos": sorted(dados)} if dados else None,
    )
    db.commit()
    db.refresh(caso)
    return caso


def adicionar_comentario(db: Session, caso: Case, conteudo: str, is_internal: bool, user_id: Optional[int]) -> Comment:
    comentario = Comment(
        case_id=caso.id,
        user_id=user_id,
        conteudo=conteudo,
        is_internal=is_internal,
    )
    db.add(comentario)

    descricao = "Comentário interno adicionado" if is_internal else "Comentário adicionado"
    registrar_atividade(db, caso.id, "comentario", descricao, user_id=user_id)

    db.commit()
    db.refresh(comentario)
    return comentario
