# sistemas/notificacoes/router.py
"""
Endpoints de notificações do usuário logado
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_active_user
from auth.models import User
from database.connection import get_db
from sistemas.notificacoes.models import Notificacao
from sistemas.notificacoes.schemas import NotificacaoCreate, NotificacaoResponse
from sistemas.notificacoes.services import notificar

router = APIRouter(prefix="/api/notificacoes", tags=["Notificações"])


def _get_notificacao_or_404(db: Session, notificacao_id: str, user: User) -> Notificacao:
    notificacao = db.query(Notificacao).filter(
        Notificacao.id == notificacao_id,
        Notificacao.user_id == user.id,
    ).first()
    if not notificacao:
        raise HTTPException(status_code=404, detail="Notificação não encontrada")
    return notificacao


@router.get("", response_model=List[NotificacaoResponse])
async def listar_notificacoes(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(Notificacao)
        .filter(Notificacao.user_id == current_user.id)
        .order_by(Notificacao.timestamp.desc())
        .all()
    )


@router.post("", response_model=NotificacaoResponse, status_code=status.HTTP_201_CREATED)
async def criar_notificacao(
    dados: NotificacaoCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    notificacao = notificar(db, current_user.id, dados.tipo, dados.titulo, dados.descricao, dados.caso_nome)
    db.commit()
    db.refresh(notificacao)
    return notificacao


@router.patch("/{notificacao_id}/lida", response_model=NotificacaoResponse)
async def marcar_lida(
    notificacao_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    notificacao = _get_notificacao_or_404(db, notificacao_id, current_user)
    notificacao.lida = True
    db.commit()
    db.refresh(notificacao)
    return notificacao


@router.post("/marcar-todas-lidas")
async def marcar_todas_lidas(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    atualizadas = (
        db.query(Notificacao)
        .filter(Notificacao.user_id == current_user.id, Notificacao.lida == False)  # noqa: E712
        .update({Notificacao.lida: True}, synchronize_session=False)
    )
    db.commit()
    return {"atualizadas": atualizadas}


@router.delete("/{notificacao_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_notificacao(
    notificacao_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    notificacao = _get_notificacao_or_404(db, notificacao_id, current_user)
    db.delete(notificacao)
    db.commit()
