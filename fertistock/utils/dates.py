from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Fecha y hora actual en UTC, con zona horaria."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Pasa una fecha a UTC. Las fechas sin zona horaria se interpretan como UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
