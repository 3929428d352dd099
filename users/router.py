# users/router.py
"""
Endpoints de usuários do escritório

Listagem para qualquer usuário logado (atribuição de casos, responsáveis de
deals); criação, edição e desativação apenas para administradores.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database.connection import get_db
from auth.models import User
from auth.schemas import UserCreate, UserUpdate, UserResponse
from auth.security import get_password_hash
from auth.dependencies import get_current_active_user, require_admin
from config import DEFAULT_USER_PASSWORD
from utils.audit import AuditEvent, log_user_management

router = APIRouter(prefix="/api/users", tags=["Usuários"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    return user


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Lista os usuários ativos (sem hash de senha)."""
    return db.query(User).filter(User.is_active == True).order_by(User.full_name).all()  # noqa: E712


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    user_data: UserCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Cria um novo usuário.

    Se **password** não for informada, usa DEFAULT_USER_PASSWORD e obriga a troca
    no primeiro acesso.
    """
    if db.query(User).filter(User.username == user_data.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Usuário '{user_data.username}' já existe"
        )

    if user_data.email and db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Email '{user_data.email}' já cadastrado"
        )

    new_user = User(
        username=user_data.username,
        email=user_data.email,
        full_name=user_data.full_name,
        hashed_password=get_password_hash(user_data.password or DEFAULT_USER_PASSWORD),
        role=user_data.role,
        must_change_password=not user_data.password,
        is_active=True,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    log_user_management(AuditEvent.USER_CREATED, admin, new_user.id, request, {"role": new_user.role})
    return new_user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    request: Request,
    user_id: int,
    user_data: UserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Atualiza dados de um usuário."""
    user = _get_user_or_404(db, user_id)

    update_data = user_data.model_dump(exclude_unset=True)
    if update_data.get("email") and update_data["email"] != user.email:
        if db.query(User).filter(User.email == update_data["email"]).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Email '{update_data['email']}' já cadastrado"
            )

    for field, value in update_data.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    log_user_management(AuditEvent.USER_UPDATED, admin, user.id, request, {"campos": sorted(update_data)})
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_user(
    request: Request,
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Desativa o usuário (soft delete)."""
    user = _get_user_or_404(db, user_id)

    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Você não pode desativar seu próprio usuário"
        )

    user.is_active = False
    db.commit()

    log_user_management(AuditEvent.USER_DEACTIVATED, admin, user.id, request)
