# auth/router.py
"""
Endpoints de sessão: login, logout, usuário atual e troca de senha

SECURITY: O JWT é entregue num cookie HttpOnly; o frontend nunca manipula o token.
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.orm import Session

from database.connection import get_db
from auth.models import User
from auth.schemas import (
    LoginRequest, LoginResponse, MeResponse, SessionUser, ChangePasswordRequest
)
from auth.security import verify_password, get_password_hash, create_access_token, decode_token
from auth.dependencies import (
    AUTH_COOKIE_NAME, extract_token, get_current_active_user, get_optional_user
)
from config import ACCESS_TOKEN_EXPIRE_MINUTES, IS_PRODUCTION
from utils.rate_limit import limiter, LIMITS
from utils.audit import (
    log_login_success, log_login_failure, log_logout, log_password_change
)
from utils.token_blacklist import revoke_token

router = APIRouter(prefix="/api", tags=["Autenticação"])


def _set_session_cookie(response: Response, token: str):
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=f"Bearer {token}",
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LIMITS["login"])
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Autentica o usuário (username ou e-mail) e abre a sessão via cookie HttpOnly.
    """
    user = db.query(User).filter(
        (User.username == credentials.username) | (User.email == credentials.username)
    ).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        log_login_failure(credentials.username, request, "user_not_found" if not user else "invalid_password")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário ou senha incorretos",
        )

    if not user.is_active:
        log_login_failure(credentials.username, request, "user_inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário desativado. Contate o administrador."
        )

    access_token = create_access_token(
        data={"sub": user.username, "user_id": user.id, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    _set_session_cookie(response, access_token)

    log_login_success(user.id, user.username, request)

    return LoginResponse(success=True, user=SessionUser.from_user(user))


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    current_user: Optional[User] = Depends(get_optional_user)
):
    """
    Encerra a sessão: revoga o token e remove o cookie.
    Funciona mesmo sem sessão ativa.
    """
    token = extract_token(request)
    if token and decode_token(token):
        revoke_token(token)

    log_logout(
        current_user.id if current_user else None,
        current_user.username if current_user else None,
        request,
    )

    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
        path="/"
    )
    return {"success": True}


@router.get("/me", response_model=MeResponse, response_model_exclude_none=True)
async def get_me(current_user: Optional[User] = Depends(get_optional_user)):
    """Estado da sessão. Nunca responde 401."""
    if current_user is None:
        return MeResponse(authenticated=False)
    return MeResponse(authenticated=True, user=SessionUser.from_user(current_user))


@router.post("/change-password")
@limiter.limit(LIMITS["login"])
async def change_password(
    request: Request,
    password_request: ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Altera a senha do usuário autenticado."""
    if not verify_password(password_request.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Senha atual incorreta"
        )

    if password_request.current_password == password_request.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nova senha deve ser diferente da atual"
        )

    current_user.hashed_password = get_password_hash(password_request.new_password)
    current_user.must_change_password = False
    db.commit()

    log_password_change(current_user.id, current_user.username, request)

    return {"message": "Senha alterada com sucesso"}
