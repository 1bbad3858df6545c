"""
Interfaz hacia el modulo de analytics (utilizacion y feedback de mentores).

Este contrato existe para:
- Que el sync no dependa de las tablas de sesiones/reviews directamente.
- Facilitar tests unitarios con un stub.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class MentorMetrics:
    """
    Campos calculados que se publican en Airtable como solo-lectura.

    utilization: % de horas reservadas sobre disponibles (ultimos 30 dias).
    avg_feedback: promedio de rating de reviews (ultimos 90 dias).
    """

    utilization: Optional[float] = None
    avg_feedback: Optional[float] = None


class MentorMetricsProvider(Protocol):
    """
    Provee metricas calculadas de un mentor antes de cada push saliente.

    Implementaciones:
    - Agregador SQL del modulo de analytics.
    - NullMentorMetricsProvider (sin metricas) o stub para tests.
    """

    async def get_metrics(self, mentor_id: str) -> MentorMetrics:
        """Retorna las metricas actuales del mentor."""


class NullMentorMetricsProvider:
    """Proveedor por defecto: no publica campos calculados."""

    async def get_metrics(self, mentor_id: str) -> MentorMetrics:
        return MentorMetrics()
