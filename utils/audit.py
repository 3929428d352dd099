# utils/audit.py
"""
Audit logging de eventos sensíveis (login, logout, gestão de usuários).

Os eventos vão para o logger "security.audit" (structlog) e, quando
AUDIT_LOG_FILE está definido, também para um arquivo dedicado.
"""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request

from utils.logging_config import get_logger
from utils.rate_limit import get_real_ip

audit_logger = get_logger("security.audit")

AUDIT_LOG_FILE = os.getenv("AUDIT_LOG_FILE")
if AUDIT_LOG_FILE:
    os.makedirs(os.path.dirname(os.path.abspath(AUDIT_LOG_FILE)), exist_ok=True)
    _file_handler = logging.FileHandler(AUDIT_LOG_FILE, encoding="utf-8")
    _file_handler.setLevel(logging.INFO)
    _file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logging.getLogger("security.audit").addHandler(_file_handler)


class AuditEvent(str, Enum):
    """Tipos de eventos de auditoria"""
    AUTH_LOGIN_SUCCESS = "AUTH_LOGIN_SUCCESS"
    AUTH_LOGIN_FAILURE = "AUTH_LOGIN_FAILURE"
    AUTH_LOGOUT = "AUTH_LOGOUT"
    AUTH_PASSWORD_CHANGE = "AUTH_PASSWORD_CHANGE"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"


SENSITIVE_KEYS = {"password", "senha", "secret", "token", "authorization", "hashed_password"}


def mask_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mascara chaves sensíveis e trunca strings longas antes de logar."""
    masked = {}
    for key, value in data.items():
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            masked[key] = "***MASKED***"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        elif isinstance(value, str) and len(value) > 100:
            masked[key] = value[:100] + "...[truncated]"
        else:
            masked[key] = value
    return masked


def log_audit_event(
    event: AuditEvent,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True,
):
    """
    Registra evento de auditoria.

    Example:
        log_audit_event(
            AuditEvent.AUTH_LOGIN_SUCCESS,
            user_id=user.id,
            username=user.username,
            request=request,
        )
    """
    record = {
        "audit_event": event.value,
        "success": success,
        "user_id": user_id,
        "username": username,
    }
    if request is not None:
        record["ip"] = get_real_ip(request)
        record["path"] = request.url.path
        record["user_agent"] = request.headers.get("User-Agent", "")[:200]
    if details:
        record["details"] = mask_sensitive_data(details)

    if success:
        audit_logger.info("audit", **record)
    else:
        audit_logger.warning("audit", **record)


# ==================================================
# ATALHOS
# ==================================================

def log_login_success(user_id: int, username: str, request: Request):
    log_audit_event(AuditEvent.AUTH_LOGIN_SUCCESS, user_id=user_id, username=username, request=request)


def log_login_failure(username: str, request: Request, reason: str):
    log_audit_event(
        AuditEvent.AUTH_LOGIN_FAILURE,
        username=username,
        request=request,
        details={"reason": reason},
        success=False,
    )


def log_logout(user_id: Optional[int], username: Optional[str], request: Request):
    log_audit_event(AuditEvent.AUTH_LOGOUT, user_id=user_id, username=username, request=request)


def log_password_change(user_id: int, username: str, request: Request):
    log_audit_event(AuditEvent.AUTH_PASSWORD_CHANGE, user_id=user_id, username=username, request=request)


def log_user_management(event: AuditEvent, admin: Any, target_user_id: int, request: Request,
                        details: Optional[Dict[str, Any]] = None):
    log_audit_event(
        event,
        user_id=admin.id,
        username=admin.username,
        request=request,
        details={"target_user_id": target_user_id, **(details or {})},
    )
