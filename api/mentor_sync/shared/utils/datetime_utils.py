"""
Utilidades para manejo de fechas y horas (siempre UTC aware).
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    SQLite devuelve datetimes naive aunque la columna sea timezone=True;
    se asumen UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_z(dt: datetime) -> str:
    """
    Serializa datetime a ISO8601 con 'Z' (UTC), formato que Airtable
    acepta en campos de fecha.
    """
    dt_utc = ensure_utc(dt)
    return dt_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")

