"""
Camino de escritura de perfiles etiquetado por origen.

Toda mutacion de perfil pasa por aca con su MutationOrigin:
- Origenes locales (LOCAL, ADMIN): escriben, suben sync_version y encolan
  un item en el outbox en la MISMA transaccion; luego del commit se
  intenta el push inmediato.
- AIRTABLE_WEBHOOK: escribe, sube sync_version y registra en metadata que
  esa version ya esta reflejada en Airtable. No encola ni empuja.
"""
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.use_cases.immediate_sync import ImmediateSync
from mentor_sync.domain.entities.mentor_profile import ProfilePatch
from mentor_sync.domain.entities.outbox_item import OutboxItem
from mentor_sync.infrastructure.repositories.mentor_repository import MentorRepository
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.infrastructure.repositories.sync_metadata_repository import SyncMetadataRepository
from mentor_sync.shared.constants.sync_constants import EntityType, MutationOrigin, OutboxAction
from mentor_sync.shared.exceptions.domain import EntityNotFoundException


class MentorWriteService:
    """Aplica parches de perfil respetando el origen de la mutacion."""

    def __init__(self, db: AsyncSession, immediate_sync: Optional[ImmediateSync] = None):
        self.db = db
        self.mentors = MentorRepository(db)
        self.outbox = OutboxRepository(db)
        self.metadata = SyncMetadataRepository(db)
        self._immediate_sync = immediate_sync

    async def apply_change(
        self,
        mentor_id: str,
        patch: ProfilePatch,
        origin: MutationOrigin,
        *,
        airtable_record_id: Optional[str] = None,
    ) -> Tuple[int, Optional[OutboxItem]]:
        """
        Escribe el parche sin hacer commit.

        Retorna (nueva version, item encolado o None). Para el origen
        webhook, airtable_record_id es obligatorio.
        """
        version = await self.mentors.apply_patch(mentor_id, patch, origin=origin)
        if version is None:
            raise EntityNotFoundException("Mentor", mentor_id)

        if origin.triggers_outbound_sync:
            item = await self.outbox.enqueue(
                EntityType.MENTOR.value, mentor_id, OutboxAction.UPSERT,
                payload={"origin": origin.value, "version": version},
            )
            return version, item

        if not airtable_record_id:
            raise ValueError("airtable_record_id es obligatorio para cambios desde Airtable")
        await self.metadata.upsert(EntityType.MENTOR.value, mentor_id, airtable_record_id, version)
        await self.mentors.set_airtable_record_id_if_missing(mentor_id, airtable_record_id)
        return version, None

    async def apply_local_change(
        self,
        mentor_id: str,
        patch: ProfilePatch,
        origin: MutationOrigin = MutationOrigin.LOCAL,
        *,
        push_immediately: bool = True,
    ) -> int:
        """
        Punto de entrada del modulo de perfiles: aplica, confirma y
        dispara el push inmediato. Un fallo de sync nunca deshace la
        edicion del usuario. Retorna la nueva sync_version.
        """
        if not origin.triggers_outbound_sync:
            raise ValueError(f"Origen {origin.value} no es una edicion local")

        version, item = await self.apply_change(mentor_id, patch, origin)
        await self.db.commit()
        logger.info(f"Perfil de mentor {mentor_id} actualizado (version={version})")

        if push_immediately and item is not None:
            immediate = self._immediate_sync or ImmediateSync(self.db)
            await immediate.push_best_effort(mentor_id, item.id)
        return version

    async def request_delete(self, mentor_id: str) -> OutboxItem:
        """
        Encola el borrado del record de Airtable de un mentor.

        Se toma el record id ahora: cuando el dispatcher lo procese, el
        mentor puede ya no existir.
        """
        meta = await self.metadata.get(EntityType.MENTOR.value, mentor_id)
        record_id = meta.airtable_record_id if meta else None
        if record_id is None:
            mentor = await self.mentors.get_by_id(mentor_id)
            record_id = mentor.airtable_record_id if mentor else None

        item = await self.outbox.enqueue(
            EntityType.MENTOR.value, mentor_id, OutboxAction.DELETE,
            payload={"airtable_record_id": record_id} if record_id else {},
        )
        await self.db.commit()
        return item
