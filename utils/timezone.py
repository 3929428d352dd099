"""
POLÍTICA DE TIMEZONE DO SISTEMA

REGRAS:
1. GRAVAÇÃO NO BANCO: Sempre UTC (timezone-aware)
2. EXIBIÇÃO E PROMPTS: America/Sao_Paulo (UTC-3)
3. SERIALIZAÇÃO JSON: ISO 8601 com timezone explícito

USO:
    from utils.timezone import get_utc_now, now_local, data_hoje_br

    created_at = Column(DateTime(timezone=True), default=get_utc_now)
    hoje = data_hoje_br()  # "19/10/2026"
"""

from datetime import datetime, timezone, date
from typing import Optional
import pytz

# Timezone local do escritório
TIMEZONE_LOCAL_NAME = "America/Sao_Paulo"
TIMEZONE_LOCAL = pytz.timezone(TIMEZONE_LOCAL_NAME)

UTC = timezone.utc


def now_utc() -> datetime:
    """Datetime atual em UTC (timezone-aware). Use para gravar no banco."""
    return datetime.now(UTC)


def now_local() -> datetime:
    """Datetime atual em America/Sao_Paulo."""
    return datetime.now(TIMEZONE_LOCAL)


def today_local() -> date:
    """Data de hoje no timezone local."""
    return now_local().date()


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Converte datetime para o timezone local.

    Datetimes naive são tratados como UTC (é assim que o SQLite devolve).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(TIMEZONE_LOCAL)


def format_local(dt: Optional[datetime], format: str = "%d/%m/%Y %H:%M:%S") -> str:
    """Formata datetime no timezone local. Retorna "" para None."""
    local_dt = to_local(dt)
    if local_dt is None:
        return ""
    return local_dt.strftime(format)


def data_hoje_br() -> str:
    """Data de hoje no formato brasileiro (DD/MM/YYYY)."""
    return today_local().strftime("%d/%m/%Y")


def get_utc_now():
    """
    Callable para uso em Column(default=...).

    USE EM MODELS:
        created_at = Column(DateTime(timezone=True), default=get_utc_now)
    """
    return now_utc()
