from datetime import datetime, timezone
from typing import Any, Optional

# Faixa aceita pela coluna DATETIME do SQL Server
MIN_YEAR = 1753
MAX_YEAR = 9999


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """
    Converte um timestamp ISO 8601 em datetime UTC sem fuso (como é gravado no banco).
    Retorna None quando o valor não pode ser interpretado como data
    ou cai fora da faixa de anos do banco (1753-9999).
    """
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text[-1] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if value.tzinfo is not None:
        try:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    if not MIN_YEAR <= value.year <= MAX_YEAR:
        return None
    return value


def format_timestamp(value: datetime) -> str:
    """
    Ex: datetime(2025, 6, 1, 10, 0) -> "2025-06-01T10:00:00.000Z"
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"
