# services/gemini_service.py
"""
Serviço centralizado para chamadas à API REST do Google Gemini.

Usado pelo Planejamento Previdenciário para:
- Extração de dados dos documentos (CNIS, CTPS, PPP, FGTS)
- Análise detalhada do CNIS e cruzamento de documentos
- Geração do parecer, resumo executivo e análise de atas

- HTTP client reutilizável (connection pooling, HTTP/2)
- Retry com backoff exponencial para falhas de rede
- PDFs enviados como inline_data (base64)
"""

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from config import GEMINI_KEY, GEMINI_MODEL

logger = logging.getLogger(__name__)


class GeminiError(Exception):
    """Falha na chamada ao Gemini (não configurado, HTTP, resposta vazia)."""


@dataclass
class GeminiResponse:
    """Resposta padronizada do Gemini"""
    success: bool
    content: str = ""
    error: Optional[str] = None
    tokens_used: int = 0
    model: str = ""
    time_total_ms: float = 0
    retry_count: int = 0


# ============================================
# CONFIGURAÇÃO DE TIMEOUTS E RETRY
# ============================================

TIMEOUT_CONNECT = 10.0
TIMEOUT_READ = 180.0        # CNIS extensos demoram a ser analisados

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 10.0
RETRY_ERRORS = (
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)

_http_client: Optional[httpx.AsyncClient] = None
_http_client_lock = asyncio.Lock()


async def get_http_client() -> httpx.AsyncClient:
    """Retorna HTTP client singleton com connection pooling."""
    global _http_client

    if _http_client is None or _http_client.is_closed:
        async with _http_client_lock:
            if _http_client is None or _http_client.is_closed:
                _http_client = httpx.AsyncClient(
                    timeout=httpx.Timeout(
                        connect=TIMEOUT_CONNECT,
                        read=TIMEOUT_READ,
                        write=60.0,
                        pool=10.0
                    ),
                    limits=httpx.Limits(
                        max_keepalive_connections=10,
                        max_connections=20,
                        keepalive_expiry=30.0
                    ),
                    http2=True
                )
                logger.info("[Gemini] HTTP client criado")

    return _http_client


async def close_http_client():
    """Fecha o HTTP client (shutdown)"""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
        logger.info("[Gemini] HTTP client fechado")


# Documento: bytes do arquivo ou string base64 (aceita "data:<mime>;base64,...")
Documento = Union[bytes, str]


class GeminiService:
    """
    Uso:
        from services.gemini_service import gemini_service

        response = await gemini_service.generate(prompt="Olá!")
        response = await gemini_service.generate_with_documents(
            prompt="Extraia os vínculos", documents=[pdf_bytes],
        )
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, api_key: str = None, model: str = None):
        self._api_key = api_key if api_key is not None else GEMINI_KEY
        self.default_model = model or GEMINI_MODEL

    @property
    def api_key(self) -> str:
        return self._api_key

    @api_key.setter
    def api_key(self, value: str):
        self._api_key = value

    def is_configured(self) -> bool:
        return bool(self._api_key)

    @staticmethod
    def normalize_model(model: str) -> str:
        """Remove o prefixo 'google/' (ex: google/gemini-2.5-pro -> gemini-2.5-pro)."""
        return model[7:] if model.startswith("google/") else model

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        model: str = None,
        max_tokens: int = None,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> GeminiResponse:
        """
        Gera texto a partir de um prompt.

        Args:
            json_output: pede responseMimeType application/json
        """
        payload = self._build_payload(
            parts=[{"text": prompt}],
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            json_output=json_output,
        )
        return await self._execute(payload, model)

    async def generate_with_documents(
        self,
        prompt: str,
        documents: List[Documento],
        system_prompt: str = "",
        model: str = None,
        max_tokens: int = None,
        temperature: float = 0.2,
        json_output: bool = False,
        mime_type: str = "application/pdf",
    ) -> GeminiResponse:
        """Gera texto analisando documentos (PDF por padrão) enviados inline."""
        parts = [{"inline_data": {"mime_type": mime, "data": data}}
                 for mime, data in (self._encode_document(d, mime_type) for d in documents)]
        parts.append({"text": prompt})

        payload = self._build_payload(
            parts=parts,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            json_output=json_output,
        )
        return await self._execute(payload, model)

    @staticmethod
    def _encode_document(document: Documento, default_mime: str) -> Tuple[str, str]:
        if isinstance(document, bytes):
            return default_mime, base64.b64encode(document).decode("ascii")
        if document.startswith("data:"):
            header, data = document.split(",", 1)
            return header.split(":")[1].split(";")[0], data
        return default_mime, document

    def _build_payload(
        self,
        parts: List[Dict[str, Any]],
        system_prompt: str = "",
        max_tokens: int = None,
        temperature: float = 0.3,
        json_output: bool = False,
    ) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens
        if json_output:
            generation_config["responseMimeType"] = "application/json"

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    async def _execute(self, payload: Dict[str, Any], model: Optional[str]) -> GeminiResponse:
        """Envia o payload com retry e backoff."""
        t_start = time.perf_counter()
        model = self.normalize_model(model) if model else self.default_model

        if not self._api_key:
            return GeminiResponse(success=False, error="GEMINI_KEY não configurada", model=model)

        url = f"{self.BASE_URL}/{model}:generateContent"
        headers = {"x-goog-api-key": self._api_key}

        last_error = None
        for attempt in range(MAX_RETRIES):
            try:
                client = await get_http_client()
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()

                content = self._extract_content(data)
                elapsed = (time.perf_counter() - t_start) * 1000
                if not content:
                    return GeminiResponse(
                        success=False,
                        error="Resposta vazia do Gemini (sem conteúdo gerado)",
                        model=model,
                        time_total_ms=elapsed,
                        retry_count=attempt,
                    )

                tokens = self._extract_tokens(data)
                logger.info(
                    "[Gemini] %s | %.0fms | %d tokens | retries=%d",
                    model, elapsed, tokens, attempt,
                )
                return GeminiResponse(
                    success=True,
                    content=content,
                    tokens_used=tokens,
                    model=model,
                    time_total_ms=elapsed,
                    retry_count=attempt,
                )

            except RETRY_ERRORS as e:
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    delay = min(RETRY_BASE_DELAY * (2 ** attempt), RETRY_MAX_DELAY)
                    logger.warning(
                        "[Gemini] Retry %d/%d após %.1fs: %s",
                        attempt + 1, MAX_RETRIES, delay, type(e).__name__,
                    )
                    await asyncio.sleep(delay)

            except httpx.HTTPStatusError as e:
                error = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
                logger.error("[Gemini] %s", error)
                return GeminiResponse(
                    success=False,
                    error=error,
                    model=model,
                    time_total_ms=(time.perf_counter() - t_start) * 1000,
                )

        error = f"Falhou após {MAX_RETRIES} tentativas: {last_error}"
        logger.error("[Gemini] %s", error)
        return GeminiResponse(
            success=False,
            error=error,
            model=model,
            time_total_ms=(time.perf_counter() - t_start) * 1000,
            retry_count=MAX_RETRIES,
        )

    def _extract_content(self, data: Dict) -> str:
        """Extrai o texto da resposta (ignora parts de "thought")."""
        candidates = data.get("candidates", [])
        if not candidates:
            block_reason = data.get("promptFeedback", {}).get("blockReason", "")
            if block_reason:
                logger.warning("[Gemini] Prompt bloqueado: blockReason=%s", block_reason)
            else:
                logger.warning("[Gemini] Resposta sem candidates. Keys: %s", list(data.keys()))
            return ""

        finish_reason = candidates[0].get("finishReason", "")
        if finish_reason in ("SAFETY", "RECITATION", "OTHER"):
            logger.warning("[Gemini] Resposta bloqueada: finishReason=%s", finish_reason)

        for part in candidates[0].get("content", {}).get("parts", []):
            if part.get("text") and not part.get("thought"):
                return part["text"]
        return ""

    def _extract_tokens(self, data: Dict) -> int:
        return data.get("usageMetadata", {}).get("totalTokenCount", 0)


# Instância global
gemini_service = GeminiService()


# ============================================
# Funções de conveniência
# ============================================

async def chamar_gemini(
    prompt: str,
    system_prompt: str = "",
    modelo: str = None,
    max_tokens: int = None,
    temperature: float = 0.3,
    json_output: bool = False,
) -> str:
    """Retorna apenas o texto. Raises GeminiError."""
    response = await gemini_service.generate(
        prompt=prompt,
        system_prompt=system_prompt,
        model=modelo,
        max_tokens=max_tokens,
        temperature=temperature,
        json_output=json_output,
    )
    if not response.success:
        raise GeminiError(response.error)
    return response.content


async def chamar_gemini_com_documentos(
    prompt: str,
    documentos: List[Documento],
    system_prompt: str = "",
    modelo: str = None,
    max_tokens: int = None,
    temperature: float = 0.2,
    json_output: bool = False,
) -> str:
    """Versão com PDFs anexados. Raises GeminiError."""
    response = await gemini_service.generate_with_documents(
        prompt=prompt,
        documents=documentos,
        system_prompt=system_prompt,
        model=modelo,
        max_tokens=max_tokens,
        temperature=temperature,
        json_output=json_output,
    )
    if not response.success:
        raise GeminiError(response.error)
    return response.content


def get_service_status() -> Dict[str, Any]:
    """Status do serviço para o health check."""
    return {
        "configured": gemini_service.is_configured(),
        "http_client_active": _http_client is not None and not _http_client.is_closed,
        "default_model": gemini_service.default_model,
        "max_retries": MAX_RETRIES,
    }
