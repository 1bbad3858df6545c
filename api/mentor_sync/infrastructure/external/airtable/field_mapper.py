"""
Traduccion pura entre el perfil de mentor y los fields planos de Airtable.

Ambas direcciones son funciones deterministas, idempotentes y sin I/O:
se pueden testear sin base de datos ni red.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

from mentor_sync.application.interfaces.mentor_metrics import MentorMetrics
from mentor_sync.domain.entities.mentor_profile import (
    ExpertiseTag,
    MentorProfile,
    ProfilePatch,
)
from mentor_sync.shared.utils.datetime_utils import isoformat_z, utc_now

from .field_mappings import (
    AVG_FEEDBACK_FIELD,
    EXPERTISE_FIELD,
    INDUSTRIES_FIELD,
    LAST_SYNCED_FIELD,
    MENTOR_SCALAR_MAPPINGS,
    STAGE_FIELD,
    UTILIZATION_FIELD,
)


def split_industries(industry: Optional[str]) -> list[str]:
    """'SaaS, Fintech' -> ['SaaS', 'Fintech'] (sin vacios)."""
    if not industry:
        return []
    return [part.strip() for part in industry.split(",") if part.strip()]


def encode_expertise(tags: Iterable[ExpertiseTag]) -> list[str]:
    return [tag.encode() for tag in tags]


def parse_expertise(raw: Any) -> tuple[ExpertiseTag, ...]:
    """
    Parsea el multi-select de expertise.

    Airtable siempre envia lista; un string suelto se trata como una sola
    opcion en vez de descartarlo (borraria el expertise del mentor).
    """
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(ExpertiseTag.parse(item) for item in raw if item)


def outbound_map(
    profile: MentorProfile,
    metrics: Optional[MentorMetrics] = None,
    *,
    synced_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Mapea un perfil de mentor a fields de Airtable.

    Reglas:
    - Escalares se copian solo si no son None
    - Expertise -> multi-select 'Area - Subarea' (solo si hay al menos uno)
    - Industry (separado por comas) -> multi-select Industries
    - Stage -> multi-select de un elemento
    - Metricas calculadas se agregan si el proveedor las entrega
    - 'Last Synced' se estampa siempre
    """
    fields: dict[str, Any] = {}

    for m in MENTOR_SCALAR_MAPPINGS:
        value = getattr(profile, m.attribute)
        if value is not None:
            fields[m.airtable_field] = value

    if profile.expertise:
        fields[EXPERTISE_FIELD] = encode_expertise(profile.expertise)

    industries = split_industries(profile.industry)
    if industries:
        fields[INDUSTRIES_FIELD] = industries

    if profile.stage:
        fields[STAGE_FIELD] = [profile.stage]

    if metrics is not None:
        if metrics.utilization is not None:
            fields[UTILIZATION_FIELD] = metrics.utilization
        if metrics.avg_feedback is not None:
            fields[AVG_FEEDBACK_FIELD] = metrics.avg_feedback

    fields[LAST_SYNCED_FIELD] = isoformat_z(synced_at or utc_now())
    return fields


def inbound_map(airtable_fields: dict[str, Any]) -> ProfilePatch:
    """
    Mapea fields de Airtable a un parche de perfil.

    Solo se traducen campos de la allow-list; los fields desconocidos
    se ignoran (Airtable puede agregar columnas sin romper el sync).
    """
    changes: dict[str, Any] = {}

    for m in MENTOR_SCALAR_MAPPINGS:
        if not m.inbound or m.airtable_field not in airtable_fields:
            continue
        raw = airtable_fields[m.airtable_field]
        if raw is None:
            continue
        changes[m.attribute] = m.transform(raw) if m.transform else raw

    if EXPERTISE_FIELD in airtable_fields:
        changes["expertise"] = parse_expertise(airtable_fields[EXPERTISE_FIELD])

    industries = airtable_fields.get(INDUSTRIES_FIELD)
    if industries:
        changes["industry"] = (
            ",".join(str(i) for i in industries)
            if isinstance(industries, (list, tuple))
            else str(industries)
        )

    stage = airtable_fields.get(STAGE_FIELD)
    if stage:
        changes["stage"] = stage[0] if isinstance(stage, (list, tuple)) else stage

    return ProfilePatch(**changes)
