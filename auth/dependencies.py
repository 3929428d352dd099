# auth/dependencies.py
"""
Dependencies de autenticação para injeção nas rotas

O token JWT chega pelo cookie HttpOnly "access_token" (navegador) ou pelo
header Authorization (clientes de API e testes).
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database.connection import get_db
from auth.models import User
from auth.security import decode_token
from utils.token_blacklist import is_token_revoked

AUTH_COOKIE_NAME = "access_token"


def extract_token(request: Request) -> Optional[str]:
    """Extrai o JWT do cookie de sessão ou do header Authorization."""
    cookie_token = request.cookies.get(AUTH_COOKIE_NAME)
    if cookie_token:
        return cookie_token[7:] if cookie_token.startswith("Bearer ") else cookie_token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def _user_from_token(token: Optional[str], db: Session) -> Optional[User]:
    if not token:
        return None

    payload = decode_token(token)
    if payload is None or is_token_revoked(token):
        return None

    username = payload.get("sub")
    if username is None:
        return None

    return db.query(User).filter(User.username == username).first()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Dependency que retorna o usuário atual.
    Lança HTTPException 401 se não houver sessão válida.

    Uso:
        @router.get("/rota-protegida")
        def rota(user: User = Depends(get_current_user)):
            ...
    """
    user = _user_from_token(extract_token(request), db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency que retorna o usuário atual apenas se estiver ativo.
    Lança HTTPException 403 se usuário desativado.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário desativado"
        )
    return current_user


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """Dependency que exige que o usuário seja administrador."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a administradores"
        )
    return current_user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Retorna o usuário se autenticado e ativo, ou None.
    Usado pelo /api/me, que nunca responde 401.
    """
    user = _user_from_token(extract_token(request), db)
    if user is None or not user.is_active:
        return None
    return user
