# auth/schemas.py
"""
Schemas Pydantic para autenticação e usuários
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from utils.schemas import CamelModel


# ==========================================
# Sessão
# ==========================================

class LoginRequest(BaseModel):
    """Request de login"""
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    """Usuário exposto pela sessão (login e /api/me)"""
    id: int
    email: Optional[str] = None
    name: str
    role: str

    @classmethod
    def from_user(cls, user) -> "SessionUser":
        return cls(id=user.id, email=user.email, name=user.full_name, role=user.role)


class LoginResponse(BaseModel):
    success: bool = True
    user: SessionUser


class MeResponse(BaseModel):
    authenticated: bool
    user: Optional[SessionUser] = None


class ChangePasswordRequest(CamelModel):
    """Request de troca de senha"""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=4, max_length=100)


# ==========================================
# Usuários
# ==========================================

class UserCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    full_name: str = Field(..., min_length=2, max_length=200)
    role: str = Field(default="advogado", pattern="^(admin|advogado)$")
    password: Optional[str] = None  # Se None, usa senha padrão


class UserUpdate(CamelModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, min_length=2, max_length=200)
    role: Optional[str] = Field(None, pattern="^(admin|advogado)$")
    is_active: Optional[bool] = None


class UserResponse(CamelModel):
    id: int
    username: str
    email: Optional[str] = None
    full_name: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
