"""
Modelos de base de datos (ORM).
"""
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from mentor_sync.infrastructure.database.session import Base
from mentor_sync.shared.constants.sync_constants import OutboxStatus
from mentor_sync.shared.utils.datetime_utils import utc_now


def _uuid_str() -> str:
    return str(uuid.uuid4())


class MentorModel(Base):
    """
    Modelo de base de datos para mentores.

    La tabla es propiedad del modulo de perfiles; el sync solo lee los
    campos de perfil y escribe airtable_record_id / sync_version.

    sync_version:
    - Monotonico, +1 en cada mutacion local o aplicada por webhook.
    - Asignar airtable_record_id tras el primer push NO lo incrementa.
    """

    __tablename__ = "mentors"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    airtable_record_id = Column(String(64), nullable=True, unique=True, index=True)
    headline = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    company = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    industry = Column(Text, nullable=True)  # separado por comas
    stage = Column(String(100), nullable=True)
    timezone = Column(String(100), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    sync_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    expertise = relationship(
        "ExpertiseModel",
        back_populates="mentor",
        cascade="all, delete-orphan",
        order_by="ExpertiseModel.position",
    )

    def __repr__(self):
        return f"<Mentor(id={self.id}, airtable_record_id={self.airtable_record_id}, v={self.sync_version})>"


class ExpertiseModel(Base):
    """Areas de expertise de un mentor (muchos a uno)."""

    __tablename__ = "expertise"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    mentor_id = Column(
        String(36),
        ForeignKey("mentors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    area = Column(String(255), nullable=False)
    subarea = Column(String(255), nullable=True)
    # Orden estable para que el multi-select de Airtable no "baile"
    position = Column(Integer, nullable=False, default=0)

    mentor = relationship("MentorModel", back_populates="expertise")

    def __repr__(self):
        return f"<Expertise(mentor_id={self.mentor_id}, area={self.area}, subarea={self.subarea})>"


class SyncMetadataModel(Base):
    """
    Ledger de "que version esta reflejada en Airtable" por entidad.

    Una fila por entidad sincronizada. sync_version replica la ultima
    version empujada o recibida con exito.
    """

    __tablename__ = "airtable_sync_metadata"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="uq_airtable_sync_metadata_entity"),
    )

    id = Column(String(36), primary_key=True, default=_uuid_str)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False, index=True)
    airtable_record_id = Column(String(64), nullable=True, index=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    sync_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return (
            f"<SyncMetadata({self.entity_type}:{self.entity_id} -> "
            f"{self.airtable_record_id}, v={self.sync_version})>"
        )


class OutboxModel(Base):
    """
    Cola durable de pushes pendientes hacia Airtable (outbox pattern).

    Estados:
    - pending: encolado, sin duenio
    - processing: reclamado por un dispatcher (o por el push inmediato)
    - completed: empujado con exito
    - failed: fallo; requiere replay manual (sin reintento automatico)
    """

    __tablename__ = "airtable_outbox"
    __table_args__ = (
        Index("ix_airtable_outbox_status_created_at", "status", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_uuid_str)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False, index=True)
    action = Column(String(20), nullable=False, default="upsert")
    payload = Column(JSON, nullable=False, default=dict)
    status = Column(String(20), nullable=False, default=OutboxStatus.PENDING.value)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Outbox(id={self.id}, {self.entity_type}:{self.entity_id}, {self.action}, {self.status})>"
