# services/__init__.py
"""
Serviços compartilhados do DZAMB Previdência
"""

from services.gemini_service import GeminiError, GeminiService, gemini_service

__all__ = [
    # Gemini
    "GeminiError",
    "GeminiService",
    "gemini_service",
]
