# utils/token_blacklist.py
"""
Revogação de tokens JWT antes da expiração (logout, troca de senha).

Os tokens emitidos pelo login carregam um "jti" único. A blacklist guarda
o jti até a data de expiração do token; depois disso a entrada é descartada
porque o próprio JWT já é rejeitado pelo decode.
"""

import hashlib
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from jose import JWTError, jwt

from config import SECRET_KEY, ALGORITHM
from utils.timezone import get_utc_now

logger = logging.getLogger("security.token_blacklist")


class TokenBlacklist:
    """Conjunto thread-safe de jti revogados com expiração."""

    def __init__(self, cleanup_interval: timedelta = timedelta(minutes=30)):
        self._revogados: Dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._last_cleanup = get_utc_now()
        self._cleanup_interval = cleanup_interval

    @staticmethod
    def _jti_e_expiracao(token: str) -> Optional[Tuple[str, datetime]]:
        try:
            payload = jwt.decode(
                token,
                SECRET_KEY,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.warning("Token inválido recebido para blacklist: %s", e)
            return None

        jti = payload.get("jti") or hashlib.sha256(token.encode()).hexdigest()[:32]
        exp = payload.get("exp")
        if exp:
            expira_em = datetime.fromtimestamp(exp, tz=timezone.utc)
        else:
            expira_em = get_utc_now() + timedelta(hours=24)
        return jti, expira_em

    def revoke(self, token: str) -> bool:
        """Revoga o token. Retorna False se o token não puder ser lido."""
        dados = self._jti_e_expiracao(token)
        if not dados:
            return False

        jti, expira_em = dados
        if expira_em < get_utc_now():
            return True

        with self._lock:
            self._revogados[jti] = expira_em
            self._maybe_cleanup()
        logger.info("Token revogado: %s...", jti[:8])
        return True

    def is_revoked(self, token: str) -> bool:
        dados = self._jti_e_expiracao(token)
        if not dados:
            # Token ilegível nunca é aceito
            return True
        with self._lock:
            return dados[0] in self._revogados

    def _maybe_cleanup(self):
        # Chamado com o lock adquirido
        agora = get_utc_now()
        if agora - self._last_cleanup < self._cleanup_interval:
            return
        expirados = [jti for jti, exp in self._revogados.items() if exp < agora]
        for jti in expirados:
            del self._revogados[jti]
        self._last_cleanup = agora
        logger.debug("Cleanup da blacklist: %d removidos, %d restantes", len(expirados), len(self._revogados))

    def clear(self):
        """Esvazia a blacklist (usado nos testes)."""
        with self._lock:
            self._revogados.clear()

    def __len__(self):
        with self._lock:
            return len(self._revogados)


_blacklist_instance: Optional[TokenBlacklist] = None
_instance_lock = threading.Lock()


def get_token_blacklist() -> TokenBlacklist:
    global _blacklist_instance

    if _blacklist_instance is None:
        with _instance_lock:
            if _blacklist_instance is None:
                _blacklist_instance = TokenBlacklist()
    return _blacklist_instance


def revoke_token(token: str) -> bool:
    return get_token_blacklist().revoke(token)


def is_token_revoked(token: str) -> bool:
    return get_token_blacklist().is_revoked(token)
