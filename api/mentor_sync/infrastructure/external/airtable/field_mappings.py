"""
Mapeos de campos Postgres <-> Airtable para la tabla de mentores.

Este es el punto recomendado para tener "control total" sobre:
- que campos se publican en Airtable
- que campos puede escribir Airtable de vuelta (allow-list)
- nombres exactos de los fields en la base de Airtable

Este modulo no realiza I/O: solo define configuracion.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un campo escalar del perfil a un field de Airtable.

    - attribute: atributo del perfil (MentorProfile)
    - airtable_field: nombre del field en Airtable
    - inbound: si True, Airtable puede escribir este campo de vuelta
    - transform: transformacion opcional al leer desde Airtable
    """

    attribute: str
    airtable_field: str
    inbound: bool = True
    transform: Optional[Transform] = None


# Campos multi-select con formato especial
EXPERTISE_FIELD = "Expertise"
INDUSTRIES_FIELD = "Industries"
STAGE_FIELD = "Stage Focus"
# Single-select de timezone (el field se llama asi en la base)
TIMEZONE_FIELD = "Select"

# Campos calculados (solo lectura en Airtable)
UTILIZATION_FIELD = "Utilization"
AVG_FEEDBACK_FIELD = "Avg Feedback"

LAST_SYNCED_FIELD = "Last Synced"


MENTOR_SCALAR_MAPPINGS: tuple[FieldMapping, ...] = (
    # Nombre y email viven en users; se publican para identificacion
    FieldMapping(attribute="name", airtable_field="Name", inbound=False),
    FieldMapping(attribute="email", airtable_field="Email", inbound=False),
    FieldMapping(attribute="headline", airtable_field="Headline"),
    FieldMapping(attribute="bio", airtable_field="Bio"),
    FieldMapping(attribute="company", airtable_field="Company"),
    FieldMapping(attribute="title", airtable_field="Title"),
    FieldMapping(attribute="active", airtable_field="Is Active", transform=bool),
    FieldMapping(attribute="timezone", airtable_field=TIMEZONE_FIELD),
)


# Fields que Airtable puede escribir de vuelta hacia Postgres
INBOUND_ALLOWED_FIELDS: frozenset[str] = frozenset(
    [m.airtable_field for m in MENTOR_SCALAR_MAPPINGS if m.inbound]
    + [EXPERTISE_FIELD, INDUSTRIES_FIELD, STAGE_FIELD]
)

