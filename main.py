# main.py
"""
DZAMB Previdência - Aplicação FastAPI Principal

Backend do escritório de direito previdenciário:
- Clientes, casos, tags e atividades
- CRM (funil de vendas)
- Chat interno e notificações
- Planejamento previdenciário com IA (Gemini)

Com autenticação centralizada via JWT em cookie HttpOnly.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import CORS_ORIGINS, ENV
from database.init_db import init_database
from middleware import RequestIDMiddleware, get_request_id
from services.gemini_service import GeminiError, close_http_client, get_service_status
from sistemas.planejamento.storage import FileUploadError
from utils.logging_config import setup_logging
from utils.rate_limit import limiter, rate_limit_exceeded_handler

from auth.router import router as auth_router
from users.router import router as users_router

# Import dos sistemas
from sistemas.casos.router import router as casos_router
from sistemas.crm.router import router as crm_router
from sistemas.chat.router import router as chat_router
from sistemas.notificacoes.router import router as notificacoes_router
from sistemas.planejamento.router import router as planejamento_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle events da aplicação.
    Executa na inicialização e no shutdown.
    """
    # Startup
    setup_logging()
    logger.info("🚀 Iniciando DZAMB Previdência (%s)...", ENV)
    init_database()
    yield
    # Shutdown
    await close_http_client()
    logger.info("👋 Encerrando DZAMB Previdência...")


# Cria a aplicação FastAPI
app = FastAPI(
    title="DZAMB Previdência",
    description="Gestão de casos e planejamento previdenciário",
    version="1.0.0",
    lifespan=lifespan
)

# Configuração de CORS (cookies exigem origem explícita em produção)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# ==================================================
# HANDLERS DE ERRO
# ==================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        # Rota inexistente
        detail = "Recurso não encontrado"
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    erros = [
        {"campo": ".".join(str(p) for p in err.get("loc", ())[1:]), "mensagem": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Dados inválidos", "errors": erros},
    )


@app.exception_handler(FileUploadError)
async def file_upload_exception_handler(request: Request, exc: FileUploadError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(GeminiError)
async def gemini_exception_handler(request: Request, exc: GeminiError):
    logger.error("[%s] Falha na IA: %s", get_request_id(), exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[%s] Erro não tratado em %s %s", get_request_id(), request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Erro interno do servidor"})


# ==================================================
# ROTAS DO SISTEMA
# ==================================================

@app.get("/health")
async def health_check():
    """Health check para monitoramento"""
    return {
        "status": "ok",
        "service": "dzamb-previdencia",
        "ia": get_service_status(),
    }


# ==================================================
# ROUTERS DE AUTENTICAÇÃO E USUÁRIOS
# ==================================================

app.include_router(auth_router)
app.include_router(users_router)


# ==================================================
# ROUTERS DOS SISTEMAS
# ==================================================

app.include_router(casos_router)
app.include_router(crm_router)
app.include_router(chat_router)
app.include_router(notificacoes_router)
app.include_router(planejamento_router)


# ==================================================
# EXECUÇÃO DIRETA
# ==================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
