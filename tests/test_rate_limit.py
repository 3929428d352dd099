# tests/test_rate_limit.py
# -*- coding: utf-8 -*-
"""
Testes para o módulo de Rate Limiting (utils/rate_limit.py)

Testa:
- Detecção de IP real atrás de proxies
- Handler de rate limit (429 em português)
- Limiter aplicado a um endpoint
"""

import json
import asyncio
from unittest.mock import Mock, patch

import pytest
from fastapi import Request, FastAPI
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from utils.rate_limit import (
    get_real_ip,
    rate_limit_exceeded_handler,
    RATE_LIMIT_LOGIN,
    RATE_LIMIT_AI,
    LIMITS,
)


# ==================================================
# FIXTURES
# ==================================================


def _mock_request(headers=None):
    request = Mock(spec=Request)
    request.headers = headers or {}
    request.url.path = "/api/planejamento/processar"
    return request


@pytest.fixture
def test_app():
    """Aplicação isolada com um limiter ativo (o global fica desligado nos testes)."""
    limiter_teste = Limiter(key_func=get_real_ip, enabled=True)
    app = FastAPI()
    app.state.limiter = limiter_teste
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.get("/test")
    @limiter_teste.limit("2/minute")
    async def test_endpoint(request: Request):
        return {"message": "success"}

    return app


# ==================================================
# TESTES: get_real_ip
# ==================================================


class TestGetRealIP:
    """Testes para função get_real_ip."""

    def test_get_real_ip_from_x_forwarded_for(self):
        """Deve extrair o primeiro IP do X-Forwarded-For."""
        with patch('utils.rate_limit.get_remote_address', return_value='127.0.0.1'):
            ip = get_real_ip(_mock_request({"X-Forwarded-For": "192.168.1.100, 10.0.0.1"}))
            assert ip == "192.168.1.100"

    def test_get_real_ip_from_x_real_ip(self):
        with patch('utils.rate_limit.get_remote_address', return_value='127.0.0.1'):
            ip = get_real_ip(_mock_request({"X-Real-IP": "203.0.113.42"}))
            assert ip == "203.0.113.42"

    def test_get_real_ip_fallback_direct(self):
        with patch('utils.rate_limit.get_remote_address', return_value='127.0.0.1'):
            assert get_real_ip(_mock_request()) == "127.0.0.1"

    def test_get_real_ip_strips_whitespace(self):
        with patch('utils.rate_limit.get_remote_address', return_value='127.0.0.1'):
            ip = get_real_ip(_mock_request({"X-Forwarded-For": "  192.168.1.100  , 10.0.0.1"}))
            assert ip == "192.168.1.100"


# ==================================================
# TESTES: handler
# ==================================================


class TestRateLimitHandler:

    def _exc(self):
        exc = Mock(spec=RateLimitExceeded)
        exc.detail = "10 per 1 minute"
        return exc

    def test_handler_retorna_429(self):
        response = asyncio.run(rate_limit_exceeded_handler(_mock_request(), self._exc()))
        assert response.status_code == 429

    def test_handler_mensagem_em_portugues(self):
        response = asyncio.run(rate_limit_exceeded_handler(_mock_request(), self._exc()))
        body = json.loads(response.body)

        assert body["error"] == "rate_limit_exceeded"
        assert "Limite de requisições excedido" in body["detail"]

    def test_handler_headers(self):
        response = asyncio.run(rate_limit_exceeded_handler(_mock_request(), self._exc()))

        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Limit"] == "10 per 1 minute"


# ==================================================
# TESTES: limites configurados
# ==================================================


class TestLimits:

    def test_limits_tem_chaves_usadas_nos_routers(self):
        assert {"login", "ai", "upload", "default"} <= set(LIMITS)

    def test_limites_padrao(self):
        assert LIMITS["login"] == RATE_LIMIT_LOGIN
        assert LIMITS["ai"] == RATE_LIMIT_AI


class TestLimiterIntegracao:

    def test_terceira_requisicao_bloqueada(self, test_app):
        client = TestClient(test_app)

        assert client.get("/test").status_code == 200
        assert client.get("/test").status_code == 200

        response = client.get("/test")
        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"

    def test_ips_diferentes_tem_contadores_separados(self, test_app):
        client = TestClient(test_app)

        for _ in range(2):
            client.get("/test", headers={"X-Forwarded-For": "10.0.0.1"})

        assert client.get("/test", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/test", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
