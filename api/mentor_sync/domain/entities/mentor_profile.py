"""
Entidades de dominio: perfil de mentor y parche de perfil.

Son snapshots inmutables, desacoplados del ORM, para que el mapeo de campos
sea puro y testeable sin base de datos.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

# Separador del formato "Area - Subarea" en el multi-select de Airtable
EXPERTISE_SEPARATOR = " - "


@dataclass(frozen=True)
class ExpertiseTag:
    """Area de expertise con subarea opcional."""

    area: str
    subarea: Optional[str] = None

    def encode(self) -> str:
        """Formato de opcion del multi-select: 'Area' o 'Area - Subarea'."""
        if self.subarea:
            return f"{self.area}{EXPERTISE_SEPARATOR}{self.subarea}"
        return self.area

    @classmethod
    def parse(cls, raw: str) -> "ExpertiseTag":
        """
        Parsea 'Area - Subarea' partiendo en el PRIMER separador.
        'A - B - C' queda como area='A', subarea='B - C'.
        """
        area, _, subarea = str(raw).partition(EXPERTISE_SEPARATOR)
        return cls(area=area, subarea=subarea or None)


@dataclass(frozen=True)
class MentorProfile:
    """
    Snapshot del perfil de mentor tal como lo consume el sync.

    El perfil es propiedad del modulo de perfiles; aqui solo se lee.
    """

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    headline: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    industry: Optional[str] = None
    stage: Optional[str] = None
    timezone: Optional[str] = None
    expertise: Tuple[ExpertiseTag, ...] = ()
    active: Optional[bool] = True
    airtable_record_id: Optional[str] = None
    sync_version: int = 0

    @classmethod
    def from_model(cls, model: Any) -> "MentorProfile":
        """Construye el snapshot desde un MentorModel con expertise cargado."""
        return cls(
            id=model.id,
            name=model.name,
            email=model.email,
            headline=model.headline,
            bio=model.bio,
            company=model.company,
            title=model.title,
            industry=model.industry,
            stage=model.stage,
            timezone=model.timezone,
            expertise=tuple(
                ExpertiseTag(area=e.area, subarea=e.subarea) for e in (model.expertise or [])
            ),
            active=model.active,
            airtable_record_id=model.airtable_record_id,
            sync_version=model.sync_version or 0,
        )

    def apply(self, patch: "ProfilePatch") -> "MentorProfile":
        """Retorna un nuevo snapshot con el parche aplicado (sin tocar version)."""
        changes = patch.as_dict()
        if "expertise" in changes:
            changes["expertise"] = tuple(changes["expertise"])
        return type(self)(**{**self.__dict__, **changes})


@dataclass(frozen=True)
class ProfilePatch:
    """
    Cambios parciales sobre un perfil. None significa "no tocar".

    Solo contiene los campos de la allow-list que Airtable puede escribir.
    """

    headline: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    industry: Optional[str] = None
    stage: Optional[str] = None
    timezone: Optional[str] = None
    active: Optional[bool] = None
    expertise: Optional[Tuple[ExpertiseTag, ...]] = field(default=None)

    def as_dict(self) -> Dict[str, Any]:
        """Solo los campos presentes en el parche."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def column_values(self) -> Dict[str, Any]:
        """Campos escalares (columnas de la tabla mentors)."""
        values = self.as_dict()
        values.pop("expertise", None)
        return values

    def is_empty(self) -> bool:
        return not self.as_dict()
