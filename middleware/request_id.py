# middleware/request_id.py
"""
Request ID por requisição.

O ID vem do header X-Request-ID (quando o frontend ou o proxy já enviou um)
ou é gerado aqui. Fica em request.state, num ContextVar lido pelo
processador de logs e volta no header da resposta.

    from middleware.request_id import get_request_id
"""

import re
import uuid
import logging
from contextvars import ContextVar
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

_ID_VALIDO = re.compile(r"^[A-Za-z0-9._-]+$")
_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = logging.getLogger(__name__)


def get_request_id() -> Optional[str]:
    """Request ID da requisição atual, ou None fora de uma requisição."""
    return _request_id_ctx.get()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def normalizar_request_id(valor: Optional[str]) -> str:
    """Aceita o ID recebido se for curto e sem caracteres estranhos; senão gera outro."""
    if valor:
        valor = valor.strip()[:MAX_REQUEST_ID_LENGTH]
        if _ID_VALIDO.match(valor):
            return valor
    return generate_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Uso:
        app.add_middleware(RequestIDMiddleware)
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = normalizar_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = _request_id_ctx.set(request_id)

        try:
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            logger.error("[%s] Erro durante requisição %s %s: %s", request_id, request.method, request.url.path, e)
            raise
        finally:
            _request_id_ctx.reset(token)
