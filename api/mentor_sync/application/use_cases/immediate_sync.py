"""
Push inmediato (best-effort) de un mentor despues de una edicion local.

Cada edicion local deja un item en el outbox dentro de la misma
transaccion. Este caso de uso reclama ESE item y lo empuja al momento;
si falla, el item vuelve a 'pending' con el error registrado y el
dispatcher lo reintenta. Nunca lanza hacia el caller.
"""
from typing import Any, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from mentor_sync.application.interfaces.mentor_metrics import MentorMetricsProvider
from mentor_sync.application.services.mentor_push_service import (
    MentorPushService,
    build_push_service,
)
from mentor_sync.core.config import settings as default_settings
from mentor_sync.domain.entities.outbox_item import OutboxItem
from mentor_sync.infrastructure.external.airtable.airtable_client import AirtableClient
from mentor_sync.infrastructure.repositories.outbox_repository import OutboxRepository
from mentor_sync.shared.constants.sync_constants import EntityType, OutboxAction
from mentor_sync.shared.exceptions.base import describe_error


class ImmediateSync:
    """Push best-effort de un mentor hacia Airtable."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        client: Optional[AirtableClient] = None,
        metrics_provider: Optional[MentorMetricsProvider] = None,
        settings: Any = None,
    ):
        self.db = db
        self.outbox = OutboxRepository(db)
        self._client = client
        self._metrics_provider = metrics_provider
        self._settings = settings or default_settings

    def _push_service(self) -> MentorPushService:
        return build_push_service(
            self.db,
            self._settings,
            client=self._client,
            metrics_provider=self._metrics_provider,
        )

    async def push_best_effort(self, mentor_id: str, outbox_item_id: Optional[str] = None) -> bool:
        """
        Empuja el mentor a Airtable. Retorna True si el push quedo registrado.

        - Con outbox_item_id: reclama el item (si el dispatcher ya lo tomo,
          no hace nada), empuja y lo marca completed; si falla lo libera.
        - Sin outbox_item_id: empuja directo; si falla encola un item nuevo.
        """
        item: Optional[OutboxItem] = None
        if outbox_item_id:
            item = await self.outbox.claim_one(outbox_item_id)
            await self.db.commit()
            if item is None:
                logger.debug(f"Item {outbox_item_id} ya reclamado; push inmediato omitido")
                return False

        try:
            await self._push_service().push_mentor(mentor_id)
            if item:
                await self.outbox.mark_completed(item.id)
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            error = describe_error(e)
            logger.warning(f"Push inmediato fallo para mentor {mentor_id}: {error}")
            await self._defer(mentor_id, item, error)
            return False

    async def _defer(self, mentor_id: str, item: Optional[OutboxItem], error: str) -> None:
        """Deja el trabajo para el dispatcher."""
        try:
            if item:
                await self.outbox.release(item.id, error)
            else:
                await self.outbox.enqueue(EntityType.MENTOR.value, mentor_id, OutboxAction.UPSERT)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"No se pudo diferir el push del mentor {mentor_id} al outbox: {e}")
