# utils/rate_limit.py
# -*- coding: utf-8 -*-
"""
Rate Limiting do DZAMB Previdência

Limites padrão:
- Geral: 100 requests/minuto por IP
- Login: 5 tentativas/minuto por IP
- IA (processar, parecer, análise de CNIS): 10 requests/minuto
- Upload de documentos: 10 requests/minuto

Uso:
    from utils.rate_limit import limiter, LIMITS

    @router.post("/endpoint")
    @limiter.limit(LIMITS["ai"])
    async def endpoint(request: Request):
        ...
"""

import os
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ==================================================
# CONFIGURAÇÃO
# ==================================================

def get_real_ip(request: Request) -> str:
    """
    Obtém IP real do cliente, considerando headers de proxy.

    Prioridade:
    1. X-Forwarded-For (primeiro IP da lista)
    2. X-Real-IP
    3. IP direto da conexão
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
RATE_LIMIT_LOGIN = os.getenv("RATE_LIMIT_LOGIN", "5/minute")
RATE_LIMIT_AI = os.getenv("RATE_LIMIT_AI", "10/minute")
RATE_LIMIT_UPLOAD = os.getenv("RATE_LIMIT_UPLOAD", "10/minute")

# Storage: memória por padrão, Redis em produção (redis://...)
RATE_LIMIT_STORAGE = os.getenv("RATE_LIMIT_STORAGE", "memory://")

limiter = Limiter(
    key_func=get_real_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=RATE_LIMIT_ENABLED,
    storage_uri=RATE_LIMIT_STORAGE,
)

# Para usar com @limiter.limit() diretamente
LIMITS = {
    "login": RATE_LIMIT_LOGIN,
    "ai": RATE_LIMIT_AI,
    "upload": RATE_LIMIT_UPLOAD,
    "default": RATE_LIMIT_DEFAULT,
}


# ==================================================
# HANDLER
# ==================================================

async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para RateLimitExceeded.

    Retorna resposta JSON em português com Retry-After.
    """
    exc_detail = getattr(exc, "detail", str(exc))
    logger.warning(
        "Rate limit excedido: %s - %s - %s",
        get_real_ip(request), request.url.path, exc_detail,
    )

    retry_after = "60"
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Limite de requisições excedido. Tente novamente em alguns minutos.",
            "error": "rate_limit_exceeded",
            "retry_after": retry_after,
        },
        headers={
            "Retry-After": retry_after,
            "X-RateLimit-Limit": str(exc_detail),
        },
    )
