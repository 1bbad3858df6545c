"""
Paso de push compartido por el dispatcher del outbox y el push inmediato.

Lee el mentor, calcula metricas, mapea a fields de Airtable, hace upsert
del record y deja registrada la version reflejada. No hace commit: el
caller define la transaccion.
"""
import asyncio
from typing import Any, Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.interfaces.mentor_metrics import (
    MentorMetricsProvider,
    NullMentorMetricsProvider,
)
from mentor_sync.domain.entities.mentor_profile import MentorProfile
from mentor_sync.infrastructure.external.airtable.airtable_client import (
    AirtableClient,
    build_from_settings,
    mentors_table_id,
)
from mentor_sync.infrastructure.external.airtable.field_mapper import outbound_map
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.shared.constants.sync_constants import EntityType
from mentor_sync.shared.exceptions.domain import EntityNotFoundException


class MentorPushService:
    """Empuja el estado actual de un mentor a su record de Airtable."""

    def __init__(
        self,
        db: AsyncSession,
        client: AirtableClient,
        table_id: str,
        metrics_provider: Optional[MentorMetricsProvider] = None,
    ):
        self.db = db
        self.client = client
        self.table_id = table_id
        self.mentors = MentorRepository(db)
        self.metadata = SyncMetadataRepository(db)
        self.metrics_provider = metrics_provider or NullMentorMetricsProvider()

    async def push_mentor(self, mentor_id: str) -> str:
        """
        Upsert del mentor en Airtable. Retorna el record id.

        La version registrada en metadata es la del mentor leida ANTES del
        push: una edicion concurrente queda con version mayor y se vuelve a
        empujar en su propio item.
        """
        mentor = await self.mentors.get_by_id(mentor_id)
        if mentor is None:
            raise EntityNotFoundException("Mentor", mentor_id)

        profile = MentorProfile.from_model(mentor)
        metrics = await self.metrics_provider.get_metrics(mentor_id)
        fields = outbound_map(profile, metrics)

        meta = await self.metadata.get(EntityType.MENTOR.value, mentor_id)
        existing_record_id = (meta.airtable_record_id if meta else None) or profile.airtable_record_id

        record_id = await asyncio.to_thread(
            self.client.upsert_record, self.table_id, existing_record_id, fields
        )

        await self.metadata.upsert(
            EntityType.MENTOR.value, mentor_id, record_id, profile.sync_version
        )
        if await self.mentors.set_airtable_record_id_if_missing(mentor_id, record_id):
            logger.info(f"Mentor {mentor_id} vinculado al record Airtable {record_id}")

        logger.debug(
            f"Mentor {mentor_id} -> Airtable {record_id} "
            f"(version={profile.sync_version}, {'update' if existing_record_id else 'create'})"
        )
        return record_id

    async def delete_mentor(self, mentor_id: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """
        Elimina el record del mentor en Airtable y su metadata.

        El record id sale del payload del item o de la metadata. Sin record
        conocido no hay nada que borrar (no-op).
        """
        record_id = (payload or {}).get("airtable_record_id")
        if not record_id:
            meta = await self.metadata.get(EntityType.MENTOR.value, mentor_id)
            record_id = meta.airtable_record_id if meta else None

        if not record_id:
            logger.info(f"Mentor {mentor_id} sin record en Airtable; delete omitido")
            return False

        deleted = await asyncio.to_thread(self.client.delete_record, self.table_id, record_id)
        await self.metadata.delete(EntityType.MENTOR.value, mentor_id)
        return deleted


def build_push_service(
    db: AsyncSession,
    settings: Any,
    *,
    client: Optional[AirtableClient] = None,
    metrics_provider: Optional[MentorMetricsProvider] = None,
) -> MentorPushService:
    """
    Arma el servicio de push desde Settings.

    Lanza AirtableConfigError si falta token, base o tabla de mentores.
    """
    return MentorPushService(
        db,
        client or build_from_settings(settings),
        mentors_table_id(settings),
        metrics_provider=metrics_provider,
    )
